import random
from typing import Any, Sequence

from shardharness.models import (
    AcknowledgedResult,
    BroadcastResult,
    BulkResult,
    ClusterSpec,
    ClusterStateSnapshot,
    HealthResponse,
    HealthStatus,
    NodeEndpoint,
    PendingTask,
    Scope,
    WriteOperation,
    WriteResult,
)

from .protocol import ClusterClient, ProvisionedCluster


class ClusterHandle:
    """
    Façade over one provisioned cluster.

    Created and closed only by the ClusterRegistry. Every other component
    shares it read-only for the lifetime of its scope. Operations are sent
    through a randomly chosen node's client unless a node is named.

    Example usage:
        handle = await registry.acquire("tests.test_search", Scope.SUITE, seed)

        await handle.write(WriteOperation(index="test", id="1", payload={"field": 1}))
        await handle.refresh(["test"])

        response = await handle.health(wait_for_status=HealthStatus.GREEN)
    """

    def __init__(
        self,
        identity: str,
        scope: Scope,
        seed: int,
        spec: ClusterSpec,
        cluster: ProvisionedCluster,
    ) -> None:
        self.identity = identity
        self.scope = scope
        self.seed = seed
        self.spec = spec
        self._cluster = cluster
        self._random = random.Random(seed)
        self._closed = False

    @property
    def nodes(self) -> list[NodeEndpoint]:
        return list(self._cluster.nodes)

    @property
    def node_names(self) -> list[str]:
        return [node.name for node in self._cluster.nodes]

    @property
    def size(self) -> int:
        return len(self._cluster.nodes)

    @property
    def settings(self) -> dict[str, str]:
        return dict(self.spec.node_settings)

    @property
    def closed(self) -> bool:
        return self._closed

    def client(self, node_name: str | None = None) -> ClusterClient:
        if node_name is None:
            node_name = self._random.choice(self.node_names)

        return self._cluster.client(node_name)

    def clients(self) -> list[ClusterClient]:
        return [self._cluster.client(name) for name in self.node_names]

    async def wipe(self, exclude_templates: frozenset[str] = frozenset()) -> None:
        await self._cluster.wipe(exclude_templates)

    async def close(self) -> None:
        if self._closed:
            return

        self._closed = True
        await self._cluster.close()

    async def create_index(
        self,
        index: str,
        settings: dict[str, Any] | None = None,
    ) -> AcknowledgedResult:
        return await self.client().create_index(index, settings=settings)

    async def delete_index(self, *indices: str) -> AcknowledgedResult:
        return await self.client().delete_index(*indices)

    async def update_settings(
        self,
        indices: Sequence[str],
        settings: dict[str, Any],
    ) -> AcknowledgedResult:
        return await self.client().update_settings(indices, settings)

    async def put_template(
        self,
        name: str,
        patterns: Sequence[str],
        settings: dict[str, Any],
        order: int = 0,
    ) -> AcknowledgedResult:
        return await self.client().put_template(name, patterns, settings, order=order)

    async def write(self, operation: WriteOperation) -> WriteResult:
        return await self.client().write(operation)

    async def bulk_write(self, operations: Sequence[WriteOperation]) -> BulkResult:
        return await self.client().bulk_write(operations)

    async def refresh(self, indices: Sequence[str] = ()) -> BroadcastResult:
        return await self.client().refresh(indices)

    async def flush(
        self,
        indices: Sequence[str] = (),
        durable: bool = False,
    ) -> BroadcastResult:
        return await self.client().flush(indices, durable=durable)

    async def force_merge(
        self,
        indices: Sequence[str] = (),
        max_segments: int = 1,
        flush: bool = True,
    ) -> BroadcastResult:
        return await self.client().force_merge(
            indices,
            max_segments=max_segments,
            flush=flush,
        )

    async def delete(
        self,
        index: str,
        doc_type: str,
        id: str,
        routing: str | None = None,
    ) -> WriteResult:
        return await self.client().delete(index, doc_type, id, routing=routing)

    async def health(
        self,
        indices: Sequence[str] = (),
        wait_for_status: HealthStatus | None = None,
        wait_for_nodes: int | None = None,
        wait_for_no_relocating_shards: bool = False,
        wait_for_no_initializing_shards: bool = False,
        timeout: float = 0.0,
        node_name: str | None = None,
        local: bool = False,
    ) -> HealthResponse:
        return await self.client(node_name).health(
            indices=indices,
            wait_for_status=wait_for_status,
            wait_for_nodes=wait_for_nodes,
            wait_for_no_relocating_shards=wait_for_no_relocating_shards,
            wait_for_no_initializing_shards=wait_for_no_initializing_shards,
            timeout=timeout,
            local=local,
        )

    async def state(
        self,
        local: bool = False,
        node_name: str | None = None,
    ) -> ClusterStateSnapshot:
        return await self.client(node_name).state(local=local)

    async def pending_tasks(self) -> list[PendingTask]:
        return await self.client().pending_tasks()

    def __repr__(self) -> str:
        return (
            f"ClusterHandle(identity={self.identity!r}, scope={self.scope.value}, "
            f"seed={self.seed}, nodes={self.node_names})"
        )

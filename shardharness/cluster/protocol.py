"""
Narrow async contracts consumed from the store under test.

The harness never talks to a store directly. Adapters implement
ClusterClient (one per node), ProvisionedCluster (a running cluster) and
ClusterFactory (how clusters get built). Adapters signal transient
overload by raising AdmissionRejectedError, either directly or as the
``__cause__`` of their own error type.
"""

from typing import Any, Protocol, Sequence

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
    WriteOperation,
    WriteResult,
)


class ClusterClient(Protocol):
    """Client bound to a single node of a cluster."""

    node: NodeEndpoint

    async def create_index(
        self,
        index: str,
        settings: dict[str, Any] | None = None,
    ) -> AcknowledgedResult: ...

    async def delete_index(self, *indices: str) -> AcknowledgedResult: ...

    async def update_settings(
        self,
        indices: Sequence[str],
        settings: dict[str, Any],
    ) -> AcknowledgedResult: ...

    async def put_template(
        self,
        name: str,
        patterns: Sequence[str],
        settings: dict[str, Any],
        order: int = 0,
    ) -> AcknowledgedResult: ...

    async def write(self, operation: WriteOperation) -> WriteResult: ...

    async def bulk_write(self, operations: Sequence[WriteOperation]) -> BulkResult: ...

    async def refresh(self, indices: Sequence[str]) -> BroadcastResult: ...

    async def flush(
        self,
        indices: Sequence[str],
        durable: bool = False,
    ) -> BroadcastResult: ...

    async def force_merge(
        self,
        indices: Sequence[str],
        max_segments: int = 1,
        flush: bool = True,
    ) -> BroadcastResult: ...

    async def health(
        self,
        indices: Sequence[str] = (),
        wait_for_status: HealthStatus | None = None,
        wait_for_nodes: int | None = None,
        wait_for_no_relocating_shards: bool = False,
        wait_for_no_initializing_shards: bool = False,
        timeout: float = 0.0,
        local: bool = False,
    ) -> HealthResponse: ...

    async def state(self, local: bool = False) -> ClusterStateSnapshot: ...

    async def pending_tasks(self) -> list[PendingTask]: ...

    async def delete(
        self,
        index: str,
        doc_type: str,
        id: str,
        routing: str | None = None,
    ) -> WriteResult: ...


class ProvisionedCluster(Protocol):
    """A running cluster built by a ClusterFactory."""

    @property
    def nodes(self) -> list[NodeEndpoint]: ...

    def client(self, node_name: str) -> ClusterClient: ...

    async def wipe(self, exclude_templates: frozenset[str] = frozenset()) -> None: ...

    async def close(self) -> None: ...


class ClusterFactory(Protocol):

    async def build(self, spec: ClusterSpec) -> ProvisionedCluster: ...

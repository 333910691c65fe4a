"""
Cross-node cluster state consistency.

Each node keeps its own copy of the cluster state published by the
master. Once a node has applied the same state version from the same
master its copy must match the master's exactly, up to mapping order and
array order, which differ between serializations of equal states.
"""

import hashlib
from typing import Any

import orjson

from shardharness.cluster.handle import ClusterHandle
from shardharness.errors import ConsistencyMismatchError
from shardharness.logging import Logger
from shardharness.logging.harness_logging_models import (
    ConsistencyError,
    ConsistencyTrace,
)
from shardharness.models import (
    ClusterStateSnapshot,
    ConsistencyReport,
    NodeConsistency,
)


def canonicalize(value: Any) -> Any:
    if isinstance(value, dict):
        return {str(key): canonicalize(item) for key, item in value.items()}

    if isinstance(value, (list, tuple, set, frozenset)):
        items = [canonicalize(item) for item in value]
        return sorted(
            items,
            key=lambda item: orjson.dumps(item, option=orjson.OPT_SORT_KEYS),
        )

    return value


def canonical_bytes(body: dict[str, Any]) -> bytes:
    return orjson.dumps(canonicalize(body), option=orjson.OPT_SORT_KEYS)


def serialized_size(body: dict[str, Any]) -> int:
    return len(orjson.dumps(body))


def digest(body: dict[str, Any]) -> str:
    return hashlib.sha256(canonical_bytes(body)).hexdigest()


class ConsistencyChecker:
    """
    Example usage:
        checker = ConsistencyChecker(handle)

        report = await checker.check()
        assert len(report.skipped_nodes) == 0
    """

    def __init__(
        self,
        handle: ClusterHandle,
        logger: Logger | None = None,
    ) -> None:
        self._handle = handle
        self._logger = logger or Logger()

    async def check(self) -> ConsistencyReport:
        if self._handle.size == 0:
            return ConsistencyReport(
                master_node_id=None,
                master_version=0,
                master_digest="",
                master_size=0,
            )

        master_state = (await self._handle.state()).without_local_node()
        master_canonical = canonical_bytes(master_state.body)
        master_size = serialized_size(master_state.body)

        report = ConsistencyReport(
            master_node_id=master_state.master_node_id,
            master_version=master_state.version,
            master_digest=hashlib.sha256(master_canonical).hexdigest(),
            master_size=master_size,
        )

        for node_name in self._handle.node_names:
            local_state = (
                await self._handle.state(local=True, node_name=node_name)
            ).without_local_node()

            local_canonical = canonical_bytes(local_state.body)
            local_size = serialized_size(local_state.body)

            # Nodes still applying an older state, or following another master, are skipped
            compared = (
                local_state.version == master_state.version
                and local_state.master_node_id == master_state.master_node_id
            )

            if compared:
                await self._logger.log(
                    ConsistencyTrace(
                        message=f"checking cluster state of node [{node_name}]",
                        nodes=self._handle.size,
                        master_id=master_state.master_node_id,
                        version=master_state.version,
                    )
                )

                reason: str | None = None
                if local_state.state_uuid != master_state.state_uuid:
                    reason = (
                        f"cluster state uuid differs: master [{master_state.state_uuid}] "
                        f"local [{local_state.state_uuid}]"
                    )

                elif local_size != master_size:
                    reason = (
                        f"cluster state size differs: master [{master_size}] "
                        f"local [{local_size}]"
                    )

                elif local_canonical != master_canonical:
                    reason = "cluster state differs"

                if reason is not None:
                    await self._fail(reason, node_name, master_state, local_state)

            report.nodes.append(
                NodeConsistency(
                    node=node_name,
                    version=local_state.version,
                    digest=hashlib.sha256(local_canonical).hexdigest(),
                    master_node_id=local_state.master_node_id,
                    size=local_size,
                    compared=compared,
                )
            )

        return report

    async def _fail(
        self,
        reason: str,
        node_name: str,
        master_state: ClusterStateSnapshot,
        local_state: ClusterStateSnapshot,
    ):
        await self._logger.log(
            ConsistencyError(
                message=f"{reason} on node [{node_name}]",
                nodes=self._handle.size,
                master_id=master_state.master_node_id,
                version=master_state.version,
                master_state=orjson.dumps(master_state.body).decode(),
                local_state=orjson.dumps(local_state.body).decode(),
            )
        )

        raise ConsistencyMismatchError(
            reason,
            node_name,
            master_state,
            local_state,
        )

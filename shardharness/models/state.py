from dataclasses import dataclass, field
from typing import Any


@dataclass(slots=True)
class ClusterStateSnapshot:
    """Full cluster state as held by one node."""

    version: int
    state_uuid: str
    master_node_id: str | None
    local_node_id: str | None = None
    body: dict[str, Any] = field(default_factory=dict)

    def without_local_node(self) -> "ClusterStateSnapshot":
        return ClusterStateSnapshot(
            version=self.version,
            state_uuid=self.state_uuid,
            master_node_id=self.master_node_id,
            local_node_id=None,
            body=self.body,
        )

    @property
    def persistent_settings(self) -> dict[str, Any]:
        return self.body.get("metadata", {}).get("persistent_settings", {})

    @property
    def transient_settings(self) -> dict[str, Any]:
        return self.body.get("metadata", {}).get("transient_settings", {})


@dataclass(slots=True)
class NodeConsistency:
    node: str
    version: int
    digest: str
    master_node_id: str | None
    size: int
    compared: bool


@dataclass(slots=True)
class ConsistencyReport:
    master_node_id: str | None
    master_version: int
    master_digest: str
    master_size: int
    nodes: list[NodeConsistency] = field(default_factory=list)

    @property
    def compared_nodes(self) -> list[NodeConsistency]:
        return [node for node in self.nodes if node.compared]

    @property
    def skipped_nodes(self) -> list[NodeConsistency]:
        return [node for node in self.nodes if not node.compared]

"""
Cluster identity and shape models.

A ClusterSpec is resolved once per provisioned cluster from the harness
configuration and a seeded random stream, so the same seed always yields
the same cluster shape.
"""

from dataclasses import dataclass, field
from enum import Enum


class Scope(str, Enum):
    """Lifetime policy of a provisioned cluster."""
    SUITE = "suite"  # Shared by every test of one suite
    TEST = "test"    # Rebuilt before every test


class NodeRole(str, Enum):
    MASTER = "master"
    DATA = "data"
    CLIENT = "client"


@dataclass(frozen=True, slots=True)
class NodeEndpoint:
    name: str
    host: str = "127.0.0.1"
    port: int = 0
    roles: frozenset[NodeRole] = frozenset({NodeRole.MASTER, NodeRole.DATA})

    @property
    def address(self) -> str:
        return f"{self.host}:{self.port}"


@dataclass(frozen=True, slots=True)
class ClusterSpec:
    """Resolved shape of a cluster to provision."""

    cluster_name: str
    seed: int
    num_data_nodes: int
    num_dedicated_masters: int = 0
    num_client_nodes: int = 0
    auto_manage_master_nodes: bool = True
    node_settings: dict[str, str] = field(default_factory=dict)

    @property
    def size(self) -> int:
        return self.num_data_nodes + self.num_dedicated_masters + self.num_client_nodes

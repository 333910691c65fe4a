from dataclasses import dataclass, field
from enum import IntEnum


class HealthStatus(IntEnum):
    """
    Aggregated cluster health.

    Lower values are better, so "at least as good as" a requested status
    means numerically less than or equal to it.
    """

    GREEN = 0   # All primaries and replicas allocated
    YELLOW = 1  # All primaries allocated, some replicas missing
    RED = 2     # Some primaries unallocated

    def satisfies(self, requested: "HealthStatus") -> bool:
        return self.value <= requested.value


@dataclass(slots=True)
class HealthTarget:
    """What a HealthGate waits for."""

    status: HealthStatus = HealthStatus.GREEN
    timeout: float | None = None
    wait_for_no_initializing_shards: bool = False
    wait_for_no_relocating_shards: bool = True
    expected_nodes: int | None = None
    indices: tuple[str, ...] = field(default_factory=tuple)
    via_node: str | None = None
    local: bool = False


@dataclass(slots=True)
class HealthResponse:
    status: HealthStatus
    number_of_nodes: int
    initializing_shards: int = 0
    relocating_shards: int = 0
    in_flight_fetch: int = 0
    timed_out: bool = False

"""
Error taxonomy for the cluster harness.

Every error raised by the harness derives from HarnessError so test code
can catch the whole family at once:

- ProvisioningError: the cluster could not be built (fatal for the run)
- HealthTimeoutError: a health gate deadline elapsed
- AdmissionRejectedError: transient backpressure from the store, retried
  once by the write workload and never surfaced to the caller
- WriteError: semantic write failures surfaced as one batch failure
- ConsistencyMismatchError: cluster state diverged across nodes
- TeardownError: best-effort cleanup failures collected across handles
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Sequence

if TYPE_CHECKING:
    from shardharness.models import (
        ClusterStateSnapshot,
        ErrorRecord,
        HealthResponse,
        HealthStatus,
    )


class HarnessError(Exception):
    pass


class ProvisioningError(HarnessError):
    """Raised when a cluster could not be built for a suite."""

    def __init__(self, identity: str, cause: BaseException) -> None:
        self.identity = identity
        self.cause = cause
        super().__init__(
            f"failed to provision cluster for [{identity}]: {cause}"
        )


class HealthTimeoutError(HarnessError):
    """
    Raised when a HealthGate times out.

    Carries the last observed health response together with the
    diagnostic snapshot (full cluster state and pending tasks) taken at
    the moment of the timeout.
    """

    def __init__(
        self,
        requested: HealthStatus,
        last_response: HealthResponse | None,
        timeout: float,
        cluster_state: Any = None,
        pending_tasks: Sequence[Any] | None = None,
    ) -> None:
        self.requested = requested
        self.last_response = last_response
        self.timeout = timeout
        self.cluster_state = cluster_state
        self.pending_tasks = list(pending_tasks or [])

        observed = last_response.status.name if last_response else "unknown"
        super().__init__(
            f"timed out after {timeout}s waiting for {requested.name.lower()} state "
            f"(last observed status: {observed}), cluster state:\n{cluster_state}\n"
            f"pending tasks: {self.pending_tasks}"
        )

    @property
    def last_status(self) -> HealthStatus | None:
        if self.last_response is None:
            return None

        return self.last_response.status


class AdmissionRejectedError(HarnessError):
    """Raised by store adapters when a write is refused due to overload."""

    def __init__(self, message: str = "rejected execution") -> None:
        super().__init__(message)


class WriteError(HarnessError):
    """Raised when writes fail for reasons other than admission pressure."""

    def __init__(
        self,
        message: str,
        records: Sequence[ErrorRecord] | None = None,
    ) -> None:
        self.records = list(records or [])

        if self.records:
            details = "\n".join(
                f"-> [{record.operation.index}][{record.operation.id}]: {record.cause!r}"
                for record in self.records
            )
            message = f"{message}\n{details}"

        super().__init__(message)


class BulkWriteError(WriteError):
    """Raised when a bulk response contains any failed item."""


class DecoyRetractionError(WriteError):
    """Raised when a decoy document could not be deleted."""


class RefreshFailedError(WriteError):
    """Raised when the final refresh reports shard failures."""


class WorkloadDeadlineError(WriteError):
    """Raised when an external join deadline elapses with operations outstanding."""

    def __init__(self, deadline: float, outstanding: int) -> None:
        self.deadline = deadline
        self.outstanding = outstanding
        super().__init__(
            f"{outstanding} operations still outstanding after {deadline}s join deadline"
        )


class ConsistencyMismatchError(HarnessError):
    """Raised when a node's cluster state diverges from the master's."""

    def __init__(
        self,
        reason: str,
        node: str,
        master_state: ClusterStateSnapshot,
        local_state: ClusterStateSnapshot,
    ) -> None:
        self.reason = reason
        self.node = node
        self.master_state = master_state
        self.local_state = local_state
        super().__init__(
            f"{reason} on node [{node}]\n"
            f"cluster state from master:\n{master_state}\n"
            f"local cluster state:\n{local_state}"
        )


class TeardownError(HarnessError):
    """Collects every failure from a best-effort cleanup pass."""

    def __init__(self, errors: Sequence[BaseException]) -> None:
        self.errors = list(errors)
        super().__init__(
            f"{len(self.errors)} error(s) during teardown: "
            + "; ".join(repr(error) for error in self.errors)
        )

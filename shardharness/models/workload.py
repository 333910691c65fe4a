import asyncio
from dataclasses import dataclass, field
from enum import Enum

from shardharness.errors import ErrorClass

from .operations import WriteOperation


class IndexingStrategy(str, Enum):
    ASYNC = "async"  # One by one, fire and forget with a completion ticket
    SYNC = "sync"    # One by one, waiting on each write
    BULK = "bulk"    # Partitioned bulk requests


class PendingKind(str, Enum):
    WRITE = "write"
    REFRESH = "refresh"
    FLUSH = "flush"
    DURABLE_FLUSH = "durable_flush"
    FORCE_MERGE = "force_merge"


@dataclass(slots=True)
class PendingOperation:
    """Ticket for one outstanding asynchronous submission."""

    ticket: int
    kind: PendingKind
    operation: WriteOperation | None = None
    task: asyncio.Task | None = None


@dataclass(slots=True)
class OperationOutcome:
    pending: PendingOperation
    error: BaseException | None = None


@dataclass(slots=True)
class ErrorRecord:
    operation: WriteOperation
    cause: BaseException
    error_class: ErrorClass


@dataclass(slots=True)
class WorkloadOptions:
    refresh: bool = False
    inject_decoys: bool | None = None  # Follows refresh when unset
    maybe_flush: bool = True
    strategy: IndexingStrategy | None = None
    decoy_probability: float | None = None
    join_deadline: float | None = None

    @property
    def decoys_enabled(self) -> bool:
        if self.inject_decoys is None:
            return self.refresh

        return self.inject_decoys


@dataclass(slots=True)
class WorkloadReport:
    strategy: IndexingStrategy
    batch_size: int
    decoys: int = 0
    writes_submitted: int = 0
    bulk_chunk_sizes: list[int] = field(default_factory=list)
    side_effects: dict[PendingKind, int] = field(default_factory=dict)
    retried: int = 0
    peak_in_flight: int = 0

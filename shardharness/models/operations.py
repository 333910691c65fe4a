"""
Write and admin operation models exchanged with a store client.

WriteOperation is frozen so the orchestrator can hold caller-owned
operations without ever mutating them.
"""

from enum import Enum
from typing import Any

import msgspec


class WriteOperation(msgspec.Struct, frozen=True, kw_only=True):
    index: str
    doc_type: str = "_doc"
    id: str | None = None
    payload: dict[str, Any] = msgspec.field(default_factory=dict)
    routing: str | None = None
    decoy: bool = False


class DocWriteResult(str, Enum):
    CREATED = "created"
    UPDATED = "updated"
    DELETED = "deleted"
    NOT_FOUND = "not_found"
    NOOP = "noop"


class WriteResult(msgspec.Struct, kw_only=True):
    index: str
    id: str
    result: DocWriteResult
    version: int = 1


class BulkItemResult(msgspec.Struct, kw_only=True):
    operation: WriteOperation
    result: WriteResult | None = None
    failure: str | None = None

    @property
    def failed(self) -> bool:
        return self.failure is not None


class BulkResult(msgspec.Struct, kw_only=True):
    items: list[BulkItemResult]

    @property
    def has_failures(self) -> bool:
        return any(item.failed for item in self.items)

    def build_failure_message(self) -> str:
        return "\n".join(
            f"[{item.operation.index}][{item.operation.id}]: {item.failure}"
            for item in self.items
            if item.failed
        )


class ShardFailure(msgspec.Struct, kw_only=True):
    index: str
    shard: int
    reason: str
    status: int = 500


class BroadcastResult(msgspec.Struct, kw_only=True):
    """Outcome of refresh, flush or force-merge across shards."""

    total_shards: int = 0
    successful_shards: int = 0
    failures: list[ShardFailure] = msgspec.field(default_factory=list)

    @property
    def failed(self) -> bool:
        return len(self.failures) > 0


class AcknowledgedResult(msgspec.Struct, kw_only=True):
    acknowledged: bool
    reason: str | None = None


class PendingTask(msgspec.Struct, kw_only=True):
    source: str
    priority: str = "NORMAL"
    time_in_queue: float = 0.0

from .cluster import (
    ClusterSpec as ClusterSpec,
    NodeEndpoint as NodeEndpoint,
    NodeRole as NodeRole,
    Scope as Scope,
)
from .health import (
    HealthResponse as HealthResponse,
    HealthStatus as HealthStatus,
    HealthTarget as HealthTarget,
)
from .operations import (
    AcknowledgedResult as AcknowledgedResult,
    BroadcastResult as BroadcastResult,
    BulkItemResult as BulkItemResult,
    BulkResult as BulkResult,
    DocWriteResult as DocWriteResult,
    PendingTask as PendingTask,
    ShardFailure as ShardFailure,
    WriteOperation as WriteOperation,
    WriteResult as WriteResult,
)
from .state import (
    ClusterStateSnapshot as ClusterStateSnapshot,
    ConsistencyReport as ConsistencyReport,
    NodeConsistency as NodeConsistency,
)
from .workload import (
    ErrorRecord as ErrorRecord,
    IndexingStrategy as IndexingStrategy,
    OperationOutcome as OperationOutcome,
    PendingKind as PendingKind,
    PendingOperation as PendingOperation,
    WorkloadOptions as WorkloadOptions,
    WorkloadReport as WorkloadReport,
)

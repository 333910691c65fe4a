from .models import Entry, LogLevel


class ClusterTrace(Entry, kw_only=True):
    identity: str
    scope: str
    seed: int
    nodes: int
    level: LogLevel = LogLevel.TRACE

class ClusterDebug(Entry, kw_only=True):
    identity: str
    scope: str
    seed: int
    nodes: int
    level: LogLevel = LogLevel.DEBUG

class ClusterInfo(Entry, kw_only=True):
    identity: str
    scope: str
    seed: int
    nodes: int
    level: LogLevel = LogLevel.INFO

class ClusterWarning(Entry, kw_only=True):
    identity: str
    scope: str
    seed: int
    nodes: int
    level: LogLevel = LogLevel.WARN

class ClusterError(Entry, kw_only=True):
    identity: str
    scope: str
    seed: int
    nodes: int
    level: LogLevel = LogLevel.ERROR

class TestInfo(Entry, kw_only=True):
    identity: str
    test: str
    scope: str
    level: LogLevel = LogLevel.INFO

class HealthDebug(Entry, kw_only=True):
    requested_status: str
    observed_status: str | None
    expected_nodes: int
    elapsed: float
    level: LogLevel = LogLevel.DEBUG

class HealthError(Entry, kw_only=True):
    requested_status: str
    observed_status: str | None
    expected_nodes: int
    elapsed: float
    cluster_state: str
    pending_tasks: str
    level: LogLevel = LogLevel.ERROR

class WorkloadDebug(Entry, kw_only=True):
    batch_size: int
    strategy: str
    in_flight: int
    level: LogLevel = LogLevel.DEBUG

class WorkloadInfo(Entry, kw_only=True):
    batch_size: int
    strategy: str
    in_flight: int
    level: LogLevel = LogLevel.INFO

class WorkloadWarning(Entry, kw_only=True):
    batch_size: int
    strategy: str
    in_flight: int
    level: LogLevel = LogLevel.WARN

class WorkloadError(Entry, kw_only=True):
    batch_size: int
    strategy: str
    in_flight: int
    level: LogLevel = LogLevel.ERROR

class ConsistencyTrace(Entry, kw_only=True):
    nodes: int
    master_id: str | None
    version: int
    level: LogLevel = LogLevel.TRACE

class ConsistencyError(Entry, kw_only=True):
    nodes: int
    master_id: str | None
    version: int
    master_state: str
    local_state: str
    level: LogLevel = LogLevel.ERROR

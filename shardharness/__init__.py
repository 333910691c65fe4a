from .cluster import (
    ClusterFactory as ClusterFactory,
    ClusterHandle as ClusterHandle,
    ClusterRegistry as ClusterRegistry,
)
from .consistency import ConsistencyChecker as ConsistencyChecker
from .env import (
    Env as Env,
    HarnessConfig as HarnessConfig,
    load_env as load_env,
)
from .harness import Harness as Harness
from .health import HealthGate as HealthGate
from .models import (
    HealthStatus as HealthStatus,
    HealthTarget as HealthTarget,
    Scope as Scope,
    WorkloadOptions as WorkloadOptions,
    WriteOperation as WriteOperation,
)
from .workload import IndexingOrchestrator as IndexingOrchestrator

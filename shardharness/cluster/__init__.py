from .handle import ClusterHandle as ClusterHandle
from .protocol import (
    ClusterClient as ClusterClient,
    ClusterFactory as ClusterFactory,
    ProvisionedCluster as ProvisionedCluster,
)
from .registry import ClusterRegistry as ClusterRegistry
from .settings import (
    RANDOM_INDEX_TEMPLATE as RANDOM_INDEX_TEMPLATE,
    random_index_settings as random_index_settings,
    resolve_cluster_spec as resolve_cluster_spec,
)

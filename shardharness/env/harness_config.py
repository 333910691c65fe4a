from pydantic import BaseModel, StrictBool, StrictInt

from shardharness.models import Scope


class HarnessConfig(BaseModel):
    """
    Cluster shape and lifecycle settings for one suite.

    Resolved once when the harness is constructed. A data node count of -1
    means "pick randomly between the min and max bounds" using the cluster
    seed, so the choice is reproducible.
    """

    scope: Scope = Scope.SUITE
    num_data_nodes: StrictInt = -1
    min_num_data_nodes: StrictInt = 1
    max_num_data_nodes: StrictInt = 3
    supports_dedicated_masters: StrictBool = True
    auto_manage_master_nodes: StrictBool = True
    num_client_nodes: StrictInt = 0
    min_number_of_shards: StrictInt = 1
    max_number_of_shards: StrictInt = 10
    min_number_of_replicas: StrictInt = 0
    max_number_of_replicas: StrictInt = 1
    randomize_index_template: StrictBool = True
    exclude_templates: frozenset[str] = frozenset()

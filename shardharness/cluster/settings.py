"""
Reproducible randomization of cluster shape and per-index settings.

All choices are drawn from the random stream passed in, so a cluster built
from the same seed always gets the same shape and template.
"""

import random
from typing import Any

from shardharness.env.harness_config import HarnessConfig
from shardharness.models import ClusterSpec


RANDOM_INDEX_TEMPLATE = "random_index_template"

TRANSLOG_DURABILITY_VALUES = ("request", "async")
CHECK_ON_STARTUP_VALUES = ("false", "checksum", "true")


def resolve_cluster_spec(
    config: HarnessConfig,
    identity: str,
    seed: int,
    rng: random.Random,
) -> ClusterSpec:
    if config.num_data_nodes >= 0:
        num_data_nodes = config.num_data_nodes

    else:
        low = max(0, config.min_num_data_nodes)
        high = max(low, config.max_num_data_nodes)
        num_data_nodes = rng.randint(low, high)

    num_dedicated_masters = 0
    if config.supports_dedicated_masters and rng.random() < 0.5:
        num_dedicated_masters = rng.choice((1, 3))

    num_client_nodes = config.num_client_nodes
    if num_client_nodes < 0:
        num_client_nodes = rng.randint(0, 1)

    return ClusterSpec(
        cluster_name=f"{identity}-{seed & 0xFFFFFFFF:08x}",
        seed=seed,
        num_data_nodes=num_data_nodes,
        num_dedicated_masters=num_dedicated_masters,
        num_client_nodes=num_client_nodes,
        auto_manage_master_nodes=config.auto_manage_master_nodes,
        node_settings={
            "cluster.routing.allocation.disk.threshold_enabled": "false",
            "node.attr.seed": str(seed),
        },
    )


def number_of_shards(
    config: HarnessConfig,
    rng: random.Random,
) -> int:
    return rng.randint(
        config.min_number_of_shards,
        max(config.min_number_of_shards, config.max_number_of_shards),
    )


def number_of_replicas(
    config: HarnessConfig,
    rng: random.Random,
    num_data_nodes: int,
) -> int:
    high = min(config.max_number_of_replicas, num_data_nodes - 1)
    low = min(config.min_number_of_replicas, max(0, high))
    return rng.randint(low, max(low, high))


def random_merge_settings(
    rng: random.Random,
    settings: dict[str, Any],
) -> dict[str, Any]:
    if rng.random() < 0.5:
        settings["index.compound_format"] = str(
            rng.random() if rng.random() < 0.5 else rng.random() < 0.5
        ).lower()

    if rng.randrange(4) == 3:
        max_thread_count = rng.randint(1, 4)
        max_merge_count = rng.randint(max_thread_count, max_thread_count + 4)
        settings["index.merge.scheduler.max_merge_count"] = max_merge_count
        settings["index.merge.scheduler.max_thread_count"] = max_thread_count

    return settings


def random_translog_settings(
    rng: random.Random,
    settings: dict[str, Any],
) -> dict[str, Any]:
    if rng.random() < 0.5:
        settings["index.translog.flush_threshold_size"] = f"{rng.randint(1, 300)}mb"

    if rng.random() < 0.5:
        # Effectively never flush on translog size
        settings["index.translog.flush_threshold_size"] = "1pb"

    if rng.random() < 0.5:
        settings["index.translog.durability"] = rng.choice(TRANSLOG_DURABILITY_VALUES)

    if rng.random() < 0.5:
        settings["index.translog.sync_interval"] = f"{rng.randint(100, 5000)}ms"

    return settings


def random_index_settings(
    rng: random.Random,
    config: HarnessConfig,
    num_data_nodes: int,
) -> dict[str, Any]:
    settings: dict[str, Any] = {}

    random_merge_settings(rng, settings)
    random_translog_settings(rng, settings)

    if rng.random() < 0.5:
        settings["index.merge.scheduler.auto_throttle"] = False

    if rng.random() < 0.5:
        settings["index.requests.cache.enable"] = rng.random() < 0.5

    if rng.random() < 0.5:
        settings["index.shard.check_on_startup"] = rng.choice(CHECK_ON_STARTUP_VALUES)

    if rng.random() < 0.5:
        # Kept low so tests are never stalled by delayed allocation
        settings["index.unassigned.node_left.delayed_timeout"] = f"{rng.randint(1, 15)}ms"

    if rng.random() < 0.5:
        settings["index.store.force_ram_term_dict"] = True

    settings["index.test_seed"] = rng.getrandbits(63)
    settings["index.number_of_shards"] = number_of_shards(config, rng)
    settings["index.number_of_replicas"] = number_of_replicas(
        config,
        rng,
        num_data_nodes,
    )

    validate_index_settings(settings)

    # Always default delayed allocation to 0 so tests are never delayed
    settings["index.unassigned.node_left.delayed_timeout"] = 0

    if rng.random() < 0.5:
        settings["index.queries.cache.enabled"] = rng.random() < 0.5

    return settings


def validate_index_settings(settings: dict[str, Any]) -> None:
    node_level = [key for key in settings if not key.startswith("index.")]
    if node_level:
        raise ValueError(
            f"non index. prefix setting set on index template, its a node setting: {node_level}"
        )

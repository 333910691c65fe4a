import random
from typing import Sequence, TypeVar

from shardharness.models import IndexingStrategy

T = TypeVar("T")


def select_strategy(
    batch_size: int,
    rng: random.Random,
    config: dict,
) -> IndexingStrategy:
    """
    Pick how a batch is submitted. Small batches mostly go one by one,
    medium batches mostly go bulk and large batches always go bulk.
    """
    if batch_size < config["frequent_bulk_threshold"]:
        one_by_one = rng.random() < config["frequently_probability"]

    elif batch_size < config["always_bulk_threshold"]:
        one_by_one = rng.random() < config["rarely_probability"]

    else:
        one_by_one = False

    if not one_by_one:
        return IndexingStrategy.BULK

    if rng.random() < config["async_probability"]:
        return IndexingStrategy.ASYNC

    return IndexingStrategy.SYNC


def bulk_chunk_size(
    batch_size: int,
    rng: random.Random,
    max_bulk_request_size: int,
) -> int:
    return min(max_bulk_request_size, max(1, int(batch_size * rng.random())))


def partition(items: Sequence[T], chunk_size: int) -> list[list[T]]:
    if chunk_size < 1:
        raise ValueError(f"chunk size must be at least 1, got {chunk_size}")

    return [
        list(items[offset:offset + chunk_size])
        for offset in range(0, len(items), chunk_size)
    ]

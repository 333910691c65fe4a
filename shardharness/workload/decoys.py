"""
Decoy documents.

Decoys are throwaway writes mixed into a batch so deletes and segment
churn run alongside the real workload. Every decoy is routed by its own
id, which lets it land on any shard, and is deleted again before the
workload returns.
"""

import itertools
import random
from typing import Sequence

from shardharness.models import WriteOperation

DECOY_ID_PREFIX = "bogus_doc_"

# Skips control characters and the surrogate range
_MIN_CODE_POINT = 0x21
_MAX_CODE_POINT = 0xD7FF


class DecoyFactory:
    def __init__(self, rng: random.Random) -> None:
        self._rng = rng
        self._sequence = itertools.count()

    def random_unicode(self, min_length: int = 1, max_length: int = 10) -> str:
        length = self._rng.randint(min_length, max_length)
        return "".join(
            chr(self._rng.randint(_MIN_CODE_POINT, _MAX_CODE_POINT))
            for _ in range(length)
        )

    def next_id(self) -> str:
        return f"{DECOY_ID_PREFIX}{self.random_unicode()}{next(self._sequence)}"

    def build(self, batch: Sequence[WriteOperation]) -> list[WriteOperation]:
        if len(batch) == 0:
            return []

        # Targets are drawn per distinct index, not per operation
        types_by_index: dict[str, list[str]] = {}
        for operation in batch:
            doc_types = types_by_index.setdefault(operation.index, [])
            if operation.doc_type not in doc_types:
                doc_types.append(operation.doc_type)

        indices = list(types_by_index)
        count = self._rng.randint(1, 2 * len(batch))

        decoys: list[WriteOperation] = []
        for _ in range(count):
            index = self._rng.choice(indices)
            doc_type = self._rng.choice(types_by_index[index])
            decoy_id = self.next_id()

            decoys.append(
                WriteOperation(
                    index=index,
                    doc_type=doc_type,
                    id=decoy_id,
                    payload={},
                    routing=decoy_id,
                    decoy=True,
                )
            )

        return decoys

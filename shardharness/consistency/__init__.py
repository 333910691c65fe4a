from .checker import (
    ConsistencyChecker as ConsistencyChecker,
    canonical_bytes as canonical_bytes,
    canonicalize as canonicalize,
    digest as digest,
    serialized_size as serialized_size,
)

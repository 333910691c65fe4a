from __future__ import annotations
from pydantic import BaseModel, StrictBool, StrictStr, StrictInt, StrictFloat
from typing import Callable, Dict, Literal, Union

PrimaryType = Union[str, int, float, bytes, bool]


class Env(BaseModel):
    SHARDHARNESS_LOG_FILE: StrictStr | None = None
    SHARDHARNESS_LOG_LEVEL: StrictStr = "info"
    SHARDHARNESS_LOG_OUTPUT: Literal["stdout", "stderr"] = "stderr"

    # Health gate
    SHARDHARNESS_HEALTH_TIMEOUT: StrictStr = "30s"
    SHARDHARNESS_HEALTH_POLL_INTERVAL: StrictStr = "0.1s"

    # Write workload
    SHARDHARNESS_MAX_IN_FLIGHT_ASYNC_INDEXES: StrictInt = 150
    SHARDHARNESS_FREQUENT_BULK_THRESHOLD: StrictInt = 300
    SHARDHARNESS_ALWAYS_BULK_THRESHOLD: StrictInt = 3000
    SHARDHARNESS_MAX_BULK_INDEX_REQUEST_SIZE: StrictInt = 1000
    SHARDHARNESS_FREQUENTLY_PROBABILITY: StrictFloat = 0.9
    SHARDHARNESS_RARELY_PROBABILITY: StrictFloat = 0.1
    SHARDHARNESS_ASYNC_PROBABILITY: StrictFloat = 0.6
    SHARDHARNESS_DECOY_PROBABILITY: StrictFloat = 0.5
    SHARDHARNESS_MAYBE_FLUSH: StrictBool = True
    SHARDHARNESS_WORKLOAD_JOIN_DEADLINE: StrictStr | None = None

    @classmethod
    def types_map(cls) -> Dict[str, Callable[[str], PrimaryType]]:
        return {
            "SHARDHARNESS_LOG_FILE": str,
            "SHARDHARNESS_LOG_LEVEL": str,
            "SHARDHARNESS_LOG_OUTPUT": str,
            "SHARDHARNESS_HEALTH_TIMEOUT": str,
            "SHARDHARNESS_HEALTH_POLL_INTERVAL": str,
            "SHARDHARNESS_MAX_IN_FLIGHT_ASYNC_INDEXES": int,
            "SHARDHARNESS_FREQUENT_BULK_THRESHOLD": int,
            "SHARDHARNESS_ALWAYS_BULK_THRESHOLD": int,
            "SHARDHARNESS_MAX_BULK_INDEX_REQUEST_SIZE": int,
            "SHARDHARNESS_FREQUENTLY_PROBABILITY": float,
            "SHARDHARNESS_RARELY_PROBABILITY": float,
            "SHARDHARNESS_ASYNC_PROBABILITY": float,
            "SHARDHARNESS_DECOY_PROBABILITY": float,
            "SHARDHARNESS_MAYBE_FLUSH": lambda value: value.lower() in ("1", "true", "yes"),
            "SHARDHARNESS_WORKLOAD_JOIN_DEADLINE": str,
        }

    def get_workload_config(self) -> dict:
        """Get write workload tuning from environment settings."""
        return {
            'max_in_flight': self.SHARDHARNESS_MAX_IN_FLIGHT_ASYNC_INDEXES,
            'frequent_bulk_threshold': self.SHARDHARNESS_FREQUENT_BULK_THRESHOLD,
            'always_bulk_threshold': self.SHARDHARNESS_ALWAYS_BULK_THRESHOLD,
            'max_bulk_request_size': self.SHARDHARNESS_MAX_BULK_INDEX_REQUEST_SIZE,
            'frequently_probability': self.SHARDHARNESS_FREQUENTLY_PROBABILITY,
            'rarely_probability': self.SHARDHARNESS_RARELY_PROBABILITY,
            'async_probability': self.SHARDHARNESS_ASYNC_PROBABILITY,
            'decoy_probability': self.SHARDHARNESS_DECOY_PROBABILITY,
        }

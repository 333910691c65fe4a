from .decoys import DECOY_ID_PREFIX as DECOY_ID_PREFIX, DecoyFactory as DecoyFactory
from .in_flight import InFlightOperations as InFlightOperations
from .orchestrator import IndexingOrchestrator as IndexingOrchestrator
from .strategy import (
    bulk_chunk_size as bulk_chunk_size,
    partition as partition,
    select_strategy as select_strategy,
)

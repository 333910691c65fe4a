from .classification import (
    ErrorClass as ErrorClass,
    classify_error as classify_error,
    unwrap_cause as unwrap_cause,
)
from .errors import (
    AdmissionRejectedError as AdmissionRejectedError,
    BulkWriteError as BulkWriteError,
    ConsistencyMismatchError as ConsistencyMismatchError,
    DecoyRetractionError as DecoyRetractionError,
    HarnessError as HarnessError,
    HealthTimeoutError as HealthTimeoutError,
    ProvisioningError as ProvisioningError,
    RefreshFailedError as RefreshFailedError,
    TeardownError as TeardownError,
    WorkloadDeadlineError as WorkloadDeadlineError,
    WriteError as WriteError,
)

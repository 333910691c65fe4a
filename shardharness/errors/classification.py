from enum import Enum

from .errors import AdmissionRejectedError


class ErrorClass(Enum):
    TRANSIENT = "transient"
    PERMANENT = "permanent"


def unwrap_cause(error: BaseException) -> BaseException:
    """
    Follow the explicit ``__cause__`` chain down to the innermost error.

    Store adapters commonly wrap transport errors, so the root cause is
    what decides whether a failure was admission pressure.
    """
    seen: set[int] = set()
    current = error

    while current.__cause__ is not None and id(current) not in seen:
        seen.add(id(current))
        current = current.__cause__

    return current


def classify_error(error: BaseException) -> ErrorClass:
    if isinstance(error, AdmissionRejectedError):
        return ErrorClass.TRANSIENT

    if isinstance(unwrap_cause(error), AdmissionRejectedError):
        return ErrorClass.TRANSIENT

    return ErrorClass.PERMANENT

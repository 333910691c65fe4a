from .entry import (
    Entry as Entry,
    LogLevel as LogLevel,
    LogLevelName as LogLevelName,
)
from .log import Log as Log

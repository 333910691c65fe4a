from .logging_config import (
    LoggingConfig as LoggingConfig,
    LoggingSettings as LoggingSettings,
    LogOutput as LogOutput,
    StreamType as StreamType,
)

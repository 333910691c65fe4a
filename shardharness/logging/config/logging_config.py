import contextvars
from enum import Enum
from typing import Literal

import msgspec

from shardharness.logging.models import LogLevel, LogLevelName

LogOutput = Literal["stdout", "stderr"]


class StreamType(Enum):
    STDOUT = "stdout"
    STDERR = "stderr"


class LoggingSettings(msgspec.Struct, frozen=True):
    level: LogLevel = LogLevel.INFO
    output: StreamType = StreamType.STDERR
    disabled: frozenset[str] = frozenset()


_settings: contextvars.ContextVar[LoggingSettings] = contextvars.ContextVar(
    "_shardharness_logging_settings",
    default=LoggingSettings(),
)


class LoggingConfig:
    """
    Process logging settings held in a context variable.

    Settings are replaced as a whole on every update, so tasks that copied
    the context earlier keep a consistent view.
    """

    def update(
        self,
        log_level: LogLevelName | None = None,
        log_output: LogOutput | None = None,
    ):
        settings = _settings.get()

        if log_level:
            settings = msgspec.structs.replace(
                settings,
                level=LogLevel.from_name(log_level),
            )

        if log_output:
            settings = msgspec.structs.replace(
                settings,
                output=StreamType(log_output),
            )

        _settings.set(settings)

    def disable(self, logger_name: str):
        settings = _settings.get()
        _settings.set(
            msgspec.structs.replace(
                settings,
                disabled=settings.disabled | {logger_name},
            )
        )

    def enable(self, logger_name: str):
        settings = _settings.get()
        _settings.set(
            msgspec.structs.replace(
                settings,
                disabled=settings.disabled - {logger_name},
            )
        )

    def enabled(self, logger_name: str, log_level: LogLevel) -> bool:
        settings = _settings.get()
        return (
            logger_name not in settings.disabled
            and log_level.severity >= settings.level.severity
        )

    @property
    def level(self) -> LogLevel:
        return _settings.get().level

    @property
    def output(self) -> StreamType:
        return _settings.get().output

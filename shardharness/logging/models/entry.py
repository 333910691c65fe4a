from __future__ import annotations

from enum import Enum
from typing import Any, Literal

import msgspec

LogLevelName = Literal[
    "trace",
    "debug",
    "info",
    "warn",
    "error",
    "critical",
]


class LogLevel(Enum):
    TRACE = "TRACE"
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARN = "WARN"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"

    @property
    def severity(self) -> int:
        return _SEVERITY[self]

    @classmethod
    def from_name(cls, name: LogLevelName | str) -> LogLevel:
        try:
            return cls(name.upper())

        except ValueError:
            return cls.INFO


_SEVERITY = {level: rank for rank, level in enumerate(LogLevel)}


class Entry(msgspec.Struct, kw_only=True):
    """
    Base for every structured log entry.

    Subclasses add their own typed fields and pin a default level, so call
    sites only pass what is specific to the event.
    """

    message: str = ""
    level: LogLevel

    def fields(self) -> dict[str, Any]:
        values = {name: getattr(self, name) for name in self.__struct_fields__}
        values["level"] = self.level.value
        return values

    def render(self, template: str, **context: Any) -> str:
        return template.format(**self.fields(), **context)

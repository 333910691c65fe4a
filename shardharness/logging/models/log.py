import datetime

import msgspec

from .entry import Entry


def utc_now() -> str:
    return datetime.datetime.now(datetime.timezone.utc).isoformat()


class Log(msgspec.Struct, kw_only=True):
    """An entry together with where and when it was logged."""

    entry: Entry
    logger: str
    filename: str
    function_name: str
    line_number: int
    timestamp: str = msgspec.field(default_factory=utc_now)

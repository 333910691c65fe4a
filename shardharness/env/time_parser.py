import re
from datetime import timedelta


class TimeParser:
    def __init__(self) -> None:
        self._units = {
            "ms": "milliseconds",
            "s": "seconds",
            "m": "minutes",
            "h": "hours",
            "d": "days",
            "w": "weeks",
        }

    def parse(self, time_amount: str | int | float) -> float:
        if isinstance(time_amount, (int, float)):
            return float(time_amount)

        parts: dict[str, float] = {}
        for m in re.finditer(
            r"(?P<val>\d+(\.\d+)?)(?P<unit>ms|[smhdw]?)",
            time_amount,
            flags=re.I,
        ):
            unit = self._units.get(m.group("unit").lower(), "seconds")
            parts[unit] = parts.get(unit, 0.0) + float(m.group("val"))

        return float(timedelta(**parts).total_seconds())

import re
from datetime import timedelta


class TimeParser:
    def __init__(self) -> None:
        self._units = {
            "s": "seconds",
            "m": "minutes",
            "h": "hours",
            "d": "days",
            "w": "weeks",
        }

    def parse(self, time_amount: str) -> float:
        matches = list(
            re.finditer(
                r"(?P<val>\d+(\.\d+)?)(?P<unit>[smhdw]?)",
                time_amount,
                flags=re.I,
            )
        )

        if len(matches) == 0:
            raise ValueError(f"Err. - could not parse duration '{time_amount}'")

        durations: dict[str, float] = {}
        for match in matches:
            unit = self._units.get(match.group("unit").lower(), "seconds")
            durations[unit] = durations.get(unit, 0.0) + float(match.group("val"))

        return timedelta(**durations).total_seconds()

import re
from datetime import timedelta
from typing import Annotated, Any, Final, TypeAlias

from pydantic import BeforeValidator

ZERO: Final[timedelta] = timedelta(0)

_SIMPLE_FORMAT = re.compile(r"^\s*([+-]?\d+)\s*(ns|us|ms|s|m|h|d)\s*$", re.IGNORECASE)

_UNITS: Final[dict[str, timedelta]] = {
    "us": timedelta(microseconds=1),
    "ms": timedelta(milliseconds=1),
    "s": timedelta(seconds=1),
    "m": timedelta(minutes=1),
    "h": timedelta(hours=1),
    "d": timedelta(days=1),
}


def parse_simple(value: Any) -> Any:
    """
    Accepts the `<amount><unit>` notation (`500ms`, `10s`, `30d`).

    Anything else is returned untouched and left to pydantic's `timedelta` parsing,
    so plain numbers are still read as seconds and ISO 8601 strings keep working.
    """
    if not isinstance(value, str):
        return value
    match = _SIMPLE_FORMAT.match(value)
    if match is None:
        return value
    amount, unit = match.groups()
    try:
        if unit.lower() == "ns":
            return timedelta(microseconds=int(amount) // 1000)
        return int(amount) * _UNITS[unit.lower()]
    except OverflowError as error:
        raise ValueError(f"duration out of range ({value.strip()})") from error


Duration: TypeAlias = Annotated[timedelta, BeforeValidator(parse_simple)]


def to_millis(duration: timedelta) -> int:
    return duration // timedelta(milliseconds=1)

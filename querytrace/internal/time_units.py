"""
Conversion between the duration units query measurements can be reported in.

Measurements arrive in the native resolution, which is the resolution of the
OpenTelemetry clock: nanoseconds.
"""
from typing import Union


NATIVE = "native"

# parts per second
_PARTS = {
    "second": 1,
    "millisecond": 1000,
    "microsecond": 1000000,
    "nanosecond": 1000000000,
    NATIVE: 1000000000,
}

TIME_UNITS = tuple(_PARTS)


def validate_time_unit(unit):
    # type: (str) -> None
    if unit not in _PARTS:
        raise ValueError("unknown time unit %r, expected one of: %s" % (unit, ", ".join(TIME_UNITS)))


def convert_time_unit(value: Union[int, float], from_unit: str, to_unit: str) -> int:
    """Convert ``value`` from ``from_unit`` to ``to_unit``, rounding down.

    >>> convert_time_unit(1500, "native", "microsecond")
    1
    >>> convert_time_unit(2, "second", "millisecond")
    2000
    """
    validate_time_unit(from_unit)
    validate_time_unit(to_unit)
    return int(value * _PARTS[to_unit] // _PARTS[from_unit])

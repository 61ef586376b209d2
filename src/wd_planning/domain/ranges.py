"""Caller-supplied range strings: "min-max" or a single fixed value."""

import re
from dataclasses import dataclass

from src.wd_common.errors import ValidationError

_RANGE_RE = re.compile(r"^(\d+(?:\.\d+)?)\s*-\s*(\d+(?:\.\d+)?)$")
_SINGLE_RE = re.compile(r"^\d+(?:\.\d+)?$")


@dataclass(frozen=True)
class Range:
    min: float
    max: float

    def as_int(self) -> "IntRange":
        return IntRange(int(self.min), int(self.max))


@dataclass(frozen=True)
class IntRange:
    min: int
    max: int


def parse_range(text: str | None, field_name: str = "range") -> Range | None:
    """"10000-14000" -> Range(10000, 14000); "500" -> Range(500, 500); "" / None -> None.

    Raises ValidationError for anything else, including min > max or zero bounds.
    """
    if text is None or not text.strip():
        return None
    value = text.strip()

    match = _RANGE_RE.match(value)
    if match:
        low, high = float(match.group(1)), float(match.group(2))
    elif _SINGLE_RE.match(value):
        low = high = float(value)
    else:
        raise ValidationError(f"Invalid {field_name} {text!r}: expected 'min-max' or a number")

    if low <= 0 or high <= 0 or low > high:
        raise ValidationError(f"Invalid {field_name} {text!r}: bounds must be positive and min <= max")
    return Range(low, high)


def parse_stake_range(text: str | None) -> IntRange | None:
    """Stake ranges are whole stake units."""
    parsed = parse_range(text, "single limit range")
    if parsed is None:
        return None
    if parsed.min != int(parsed.min) or parsed.max != int(parsed.max):
        raise ValidationError(f"Invalid single limit range {text!r}: whole units only")
    return parsed.as_int()

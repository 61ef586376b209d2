"""Textual handicap / total line parsing.

Books print the same line several ways: "0.25", "0/0.5", "0 / 0.5",
"-0/0.5" (the leading sign applies to both halves) and occasionally with a
trailing suffix ("0+4450"). All of them reduce to one Decimal so lines can be
compared numerically.
"""

import re
from decimal import Decimal, InvalidOperation

SPREAD_TOLERANCE = Decimal("0.01")

_NUMBER_RE = re.compile(r"^[+-]?\d+(?:\.\d+)?")


def _leading_number(part: str) -> Decimal | None:
    match = _NUMBER_RE.match(part)
    if not match:
        return None
    try:
        return Decimal(match.group(0))
    except InvalidOperation:
        return None


def parse_spread(value: object) -> Decimal | None:
    """"-0/0.5" -> Decimal("-0.25"), "2.5" -> Decimal("2.5"), "0+4450" -> Decimal("0")."""
    if value is None:
        return None
    text = re.sub(r"\s+", "", str(value))
    if not text:
        return None

    sign = Decimal(1)
    if text[0] in "+-":
        sign = Decimal(-1) if text[0] == "-" else Decimal(1)
        text = text[1:]

    parts = [p for p in text.split("/") if p]
    if not parts:
        return None
    values: list[Decimal] = []
    for part in parts:
        part_sign = sign
        if part[0] in "+-":
            part_sign = Decimal(-1) if part[0] == "-" else Decimal(1)
            part = part[1:]
        number = _leading_number(part)
        if number is None:
            return None
        values.append(part_sign * number)
    return sum(values, Decimal(0)) / len(values)


def spreads_equal(a: object, b: object) -> bool:
    """Numeric comparison within tolerance; falls back to trimmed text equality."""
    left, right = parse_spread(a), parse_spread(b)
    if left is None or right is None:
        return str(a).strip() == str(b).strip()
    return abs(left - right) < SPREAD_TOLERANCE

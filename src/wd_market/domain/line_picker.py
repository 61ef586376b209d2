"""Resolve a descriptor against a snapshot into a candidate odds value.

Lookup order inside the descriptor's "category:scope" bucket:
    1. line whose spread_gid equals the descriptor's spread_gid
    2. the only line whose numeric value equals the descriptor's line
    3. the only line in the bucket, when the caller named neither

A named line that no longer resolves means the market is CLOSED. A bucket
that never had lines for an unnamed descriptor is MISSING, which callers must
not confuse with closed.
"""

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum

from src.wd_market.domain.models import AnyDescriptor, MarketLine, MarketSnapshot
from src.wd_market.domain.spread import spreads_equal


class PickStatus(str, Enum):
    FOUND = "found"
    CLOSED = "closed"
    MISSING = "missing"


@dataclass(frozen=True)
class LinePick:
    status: PickStatus
    odds: Decimal | None = None
    line: MarketLine | None = None


_MISSING = LinePick(PickStatus.MISSING)
_CLOSED = LinePick(PickStatus.CLOSED)


def _find_line(lines: list[MarketLine], descriptor: AnyDescriptor) -> MarketLine | None:
    gid = descriptor.line_gid
    if gid:
        for candidate in lines:
            if candidate.spread_gid == gid:
                return candidate
    text = descriptor.line_text
    if text:
        matches = [
            c for c in lines if c.line is not None and spreads_equal(c.line, text)
        ]
    elif descriptor.has_explicit_line:
        return None
    else:
        matches = lines
    # Without a spread_gid the value must identify exactly one line; sub-markets
    # (corners, bookings) reuse the main line's values.
    return matches[0] if len(matches) == 1 else None


def pick_line(snapshot: MarketSnapshot | None, descriptor: AnyDescriptor) -> LinePick:
    if snapshot is None:
        return _MISSING
    lines = snapshot.lines.get(descriptor.market_key) or []
    if not lines:
        return _CLOSED if descriptor.has_explicit_line else _MISSING

    line = _find_line(lines, descriptor)
    if line is None:
        return _CLOSED
    price = line.prices.get(descriptor.side)
    if price is None or price <= 0:
        # A line without a price for this side is suspended.
        return LinePick(PickStatus.CLOSED, line=line)
    return LinePick(PickStatus.FOUND, odds=price, line=line)

"""Market descriptors and snapshots.

A MarketDescriptor is a tagged variant keyed on `category`: moneyline
carries no line, handicap and over/under may carry a textual `line` and a
line-specific `spread_gid` (several simultaneous lines of one category, e.g.
corner-kick sub-markets). Sides are restricted per category.
"""

from datetime import datetime
from decimal import Decimal
from typing import Annotated, Literal, Union

from pydantic import BaseModel, Field

from src.wd_common.enums import MarketScope


class _DescriptorBase(BaseModel):
    scope: MarketScope = MarketScope.FULL

    @property
    def market_key(self) -> str:
        """Snapshot bucket for this descriptor, e.g. "handicap:full"."""
        return f"{self.category}:{self.scope.value}"  # type: ignore[attr-defined]

    @property
    def line_text(self) -> str | None:
        return getattr(self, "line", None)

    @property
    def line_gid(self) -> str | None:
        return getattr(self, "spread_gid", None)

    @property
    def has_explicit_line(self) -> bool:
        return bool(self.line_text) or bool(self.line_gid)


class MoneylineDescriptor(_DescriptorBase):
    category: Literal["moneyline"] = "moneyline"
    side: Literal["home", "away", "draw"]


class HandicapDescriptor(_DescriptorBase):
    category: Literal["handicap"] = "handicap"
    side: Literal["home", "away"]
    line: str | None = Field(None, max_length=32)
    spread_gid: str | None = Field(None, max_length=64)


class OverUnderDescriptor(_DescriptorBase):
    category: Literal["overunder"] = "overunder"
    side: Literal["over", "under"]
    line: str | None = Field(None, max_length=32)
    spread_gid: str | None = Field(None, max_length=64)


MarketDescriptor = Annotated[
    Union[MoneylineDescriptor, HandicapDescriptor, OverUnderDescriptor],
    Field(discriminator="category"),
]

AnyDescriptor = MoneylineDescriptor | HandicapDescriptor | OverUnderDescriptor


class MarketLine(BaseModel):
    """One bettable line; `prices` maps side -> decimal odds. A missing side is suspended."""
    line: str | None = None
    spread_gid: str | None = None
    prices: dict[str, Decimal] = Field(default_factory=dict)


class MarketSnapshot(BaseModel):
    """Latest streamed odds for one match, keyed by "category:scope"."""
    match_id: str
    updated_at: datetime
    lines: dict[str, list[MarketLine]] = Field(default_factory=dict)

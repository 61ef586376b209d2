"""Pydantic schemas for wd_market API."""

from datetime import datetime

from pydantic import BaseModel, Field

from src.wd_market.domain.models import MarketLine


class SnapshotUpsertRequest(BaseModel):
    """Body pushed by the feed ingester; `updated_at` defaults to receipt time."""
    updated_at: datetime | None = None
    lines: dict[str, list[MarketLine]] = Field(default_factory=dict)

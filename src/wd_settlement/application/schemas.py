"""Pydantic schemas for wd_settlement."""

from pydantic import BaseModel

from src.wd_settlement.domain.models import SyncReport


class SyncSettlementsResponse(BaseModel):
    updated: int
    skipped: int
    errors: list[str]

    @classmethod
    def from_report(cls, report: SyncReport) -> "SyncSettlementsResponse":
        return cls(updated=report.updated, skipped=report.skipped, errors=list(report.errors))

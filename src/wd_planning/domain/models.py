"""Domain models for wd_planning."""

from dataclasses import dataclass, field

from src.wd_common.enums import DistributionMode
from src.wd_registry.domain.models import BookAccount


@dataclass(frozen=True)
class PlanItem:
    account: BookAccount
    stake: int                      # cents, whole stake units
    delay_seconds: float            # from dispatch start, strictly increasing
    single_limit: int | None = None  # cents, per-account cap the stake was drawn under


@dataclass
class StakePlan:
    mode: DistributionMode
    requested_total: int            # cents
    items: list[PlanItem] = field(default_factory=list)

    @property
    def planned_total(self) -> int:
        return sum(item.stake for item in self.items)

    @property
    def unplanned(self) -> int:
        return self.requested_total - self.planned_total

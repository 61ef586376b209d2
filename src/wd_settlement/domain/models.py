"""Domain models for wd_settlement."""

from dataclasses import dataclass, field


@dataclass
class SyncReport:
    updated: int = 0                 # bets moved to settled/cancelled by this run
    skipped: int = 0                 # still open upstream, or already terminal
    errors: list[str] = field(default_factory=list)

    def merge(self, other: "SyncReport") -> None:
        self.updated += other.updated
        self.skipped += other.skipped
        self.errors.extend(other.errors)

"""Eligibility & conflict resolution: pure, no I/O.

The pool is ranked by (loss bucket, account id) and walked once. An account
is admitted when it is online, below its stop-profit limit and its line key
is neither already admitted in this walk nor already used on this match by an
earlier distribution. The walk stops admitting once `limit` is reached.

Invariant: no two admitted entries share a line_key.
"""

import logging
from collections.abc import Iterable, Mapping

from src.wd_registry.domain.models import BookAccount
from src.wd_selection.domain.models import AccountStats, SelectionEntry, SelectionFlags

logger = logging.getLogger(__name__)


def stop_profit_reached(account: BookAccount, stats: AccountStats) -> bool:
    limit = account.stop_profit_limit
    if limit <= 0:
        return False
    return stats.daily_profit >= limit or stats.weekly_profit >= limit


def rank(entries: Iterable[SelectionEntry]) -> list[SelectionEntry]:
    return sorted(entries, key=lambda e: (e.stats.loss_bucket, e.account.id))


def resolve(
    accounts: Iterable[BookAccount],
    stats_by_account: Mapping[int, AccountStats],
    used_line_keys: Iterable[str] = (),
    limit: int | None = None,
) -> tuple[list[SelectionEntry], list[SelectionEntry]]:
    """Return (eligible, excluded); every excluded entry carries at least one flag."""
    if limit is not None and limit <= 0:
        limit = None

    taken = set(used_line_keys)
    entries = rank(
        SelectionEntry(account=a, stats=stats_by_account.get(a.id, AccountStats()))
        for a in accounts
    )

    eligible: list[SelectionEntry] = []
    excluded: list[SelectionEntry] = []
    admitted_keys: set[str] = set()
    for entry in entries:
        account = entry.account
        entry.flags = SelectionFlags(
            stop_profit_reached=stop_profit_reached(account, entry.stats),
            line_conflicted=account.line_key in taken or account.line_key in admitted_keys,
            offline=not account.is_online,
        )
        if entry.flags.blocking:
            excluded.append(entry)
            continue
        if limit is not None and len(eligible) >= limit:
            entry.flags.limit_reached = True
            excluded.append(entry)
            continue
        eligible.append(entry)
        admitted_keys.add(account.line_key)

    logger.debug(
        "Resolved %d accounts: %d eligible, %d excluded",
        len(entries), len(eligible), len(excluded),
    )
    return eligible, excluded

"""OddsReconciler: decide the odds to commit with, immediately before placing.

Policy:
    * The snapshot cache gives a candidate. A named line that no longer
      resolves in the cache is a closed market: abort without asking the book.
    * The upstream preview is authoritative. Its odds are used whenever the
      call succeeds; `closed` from the preview aborts.
    * Only a transient preview failure (network, timeout, book busy) falls
      back to the cache candidate, flagged as CACHE_FALLBACK.
    * A preview account whose session expired is skipped and reported, and
      the next candidate account previews instead.
"""

import logging
from collections.abc import Awaitable, Callable, Sequence

from src.wd_book.domain.client import BookClientProtocol
from src.wd_book.infrastructure.session_locks import AccountSessionLocks, session_locks
from src.wd_common.enums import OddsSource
from src.wd_common.errors import (
    MarketClosedError,
    OddsUnavailableError,
    SessionExpiredError,
    UpstreamTransientError,
)
from src.wd_market.domain.line_picker import LinePick, PickStatus, pick_line
from src.wd_market.domain.models import AnyDescriptor
from src.wd_market.domain.repository import SnapshotStoreProtocol
from src.wd_market.domain.spread import spreads_equal
from src.wd_odds.domain.models import ReconciledOdds
from src.wd_registry.domain.models import BookAccount

logger = logging.getLogger(__name__)


class OddsReconciler:
    def __init__(
        self,
        cache: SnapshotStoreProtocol,
        book: BookClientProtocol,
        locks: AccountSessionLocks | None = None,
    ) -> None:
        self._cache = cache
        self._book = book
        self._locks = locks or session_locks

    async def reconcile(
        self,
        match_id: str,
        descriptor: AnyDescriptor,
        accounts: Sequence[BookAccount],
        on_session_expired: Callable[[BookAccount, str], Awaitable[None]] | None = None,
    ) -> ReconciledOdds:
        pick = pick_line(await self._cache.get(match_id), descriptor)
        if pick.status == PickStatus.CLOSED:
            raise MarketClosedError(match_id, "line no longer offered")

        expired: list[int] = []
        for account in accounts:
            try:
                async with self._locks.for_account(account.id):
                    preview = await self._book.preview_odds(match_id, descriptor, account)
            except SessionExpiredError as exc:
                logger.warning("Preview session expired for account %s", account.id)
                expired.append(account.id)
                if on_session_expired is not None:
                    await on_session_expired(account, exc.message)
                continue
            except UpstreamTransientError as exc:
                return self._fallback(match_id, pick, account, expired, str(exc))

            if preview.closed:
                raise MarketClosedError(match_id, preview.message or "closed by book")
            if preview.odds is None:
                raise MarketClosedError(match_id, "book returned no odds")

            mismatch = bool(
                descriptor.line_text
                and preview.spread is not None
                and not spreads_equal(preview.spread, descriptor.line_text)
            )
            message = preview.message
            if mismatch:
                message = f"Line mismatch: requested={descriptor.line_text}, book={preview.spread}"
                logger.warning("Match %s: %s", match_id, message)
            return ReconciledOdds(
                odds=preview.odds,
                source=OddsSource.PREVIEW,
                spread_mismatch=mismatch,
                message=message,
                returned_spread=preview.spread,
                preview_account_id=account.id,
                expired_account_ids=tuple(expired),
            )

        # Every candidate's session is gone: nobody can place anyway.
        raise OddsUnavailableError(match_id)

    @staticmethod
    def _fallback(
        match_id: str,
        pick: LinePick,
        account: BookAccount,
        expired: list[int],
        reason: str,
    ) -> ReconciledOdds:
        if pick.status != PickStatus.FOUND or pick.odds is None:
            logger.warning("Match %s: preview failed (%s) and no cached odds", match_id, reason)
            raise OddsUnavailableError(match_id)
        logger.warning(
            "Match %s: preview failed (%s), using cached odds %s", match_id, reason, pick.odds
        )
        return ReconciledOdds(
            odds=pick.odds,
            source=OddsSource.CACHE_FALLBACK,
            message=f"Unverified odds from cache: {reason}",
            preview_account_id=account.id,
            expired_account_ids=tuple(expired),
        )

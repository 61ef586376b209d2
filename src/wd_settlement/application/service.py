"""Settlement entry points: on-demand sync for a caller, and the periodic loop."""

import asyncio
import logging

from sqlalchemy.ext.asyncio import AsyncSession

from src.wd_book.infrastructure.http_client import get_book_client
from src.wd_gateway.auth.dependencies import CurrentUser
from src.wd_registry.domain.repository import AccountRegistryProtocol
from src.wd_registry.infrastructure.persistence import AccountRegistry
from src.wd_settlement.application.reconciler import SettlementReconciler
from src.wd_settlement.application.schemas import SyncSettlementsResponse
from src.wd_settlement.domain.models import SyncReport

logger = logging.getLogger(__name__)

_registry: AccountRegistryProtocol = AccountRegistry()
_reconciler: SettlementReconciler | None = None


def get_reconciler() -> SettlementReconciler:
    global _reconciler  # noqa: PLW0603
    if _reconciler is None:
        _reconciler = SettlementReconciler(get_book_client())
    return _reconciler


async def scoped_account_ids(
    db: AsyncSession,
    actor: CurrentUser,
    account_ids: list[int] | None,
    registry: AccountRegistryProtocol | None = None,
) -> list[int] | None:
    """Admins sync anything; everyone else only accounts of their pool."""
    if actor.is_admin:
        return account_ids
    registry = registry or _registry
    pool = {a.id for a in await registry.list_pool(db, actor.pool_owner_id)}
    if account_ids is None:
        return sorted(pool)
    return [a for a in account_ids if a in pool]


async def sync_settlements(
    db: AsyncSession,
    actor: CurrentUser,
    account_ids: list[int] | None,
    reconciler: SettlementReconciler | None = None,
) -> SyncSettlementsResponse:
    scoped = await scoped_account_ids(db, actor, account_ids)
    if scoped is not None and not scoped:
        return SyncSettlementsResponse.from_report(SyncReport())
    report = await (reconciler or get_reconciler()).sync(scoped)
    return SyncSettlementsResponse.from_report(report)


async def run_periodic_sync(reconciler: SettlementReconciler, interval_seconds: float) -> None:
    """Reconcile every account forever; a failed run is logged and the loop goes on."""
    logger.info("Settlement sync loop started (every %.0fs)", interval_seconds)
    while True:
        try:
            await reconciler.sync(None)
        except asyncio.CancelledError:
            raise
        except Exception:
            logger.exception("Periodic settlement sync failed")
        await asyncio.sleep(interval_seconds)

"""HttpBookClient: talks to the book automation gateway over HTTP.

The gateway owns the logged-in browser/API sessions and exposes one JSON
endpoint per operation, addressed by account id:

    POST /accounts/{id}/preview      {match_id, descriptor}
    POST /accounts/{id}/bets         {match_id, descriptor, stake_cents, odds}
    GET  /accounts/{id}/settlements

Every response is {"success": bool, "data": {...}} or
{"success": false, "code": "1X008", "error": "..."}.
"""

import logging
from decimal import Decimal
from typing import Any

import httpx

from config.settings import settings
from src.wd_book.domain.error_codes import ErrorCategory, category_of, format_upstream_error
from src.wd_book.domain.models import OddsPreview, Placement, SettlementRecord
from src.wd_common.cents import normalize_odds
from src.wd_common.errors import (
    SessionExpiredError,
    UpstreamRejectedError,
    UpstreamTransientError,
)
from src.wd_market.domain.models import AnyDescriptor
from src.wd_registry.domain.models import BookAccount

logger = logging.getLogger(__name__)


def _preview_odds_value(data: dict[str, Any]) -> Decimal | None:
    """Decimal odds from a preview payload: `odds`, then `ioratio`, then `ratio`/1000."""
    for key in ("odds", "ioratio"):
        odds = normalize_odds(data.get(key))
        if odds is not None:
            return odds
    ratio = normalize_odds(data.get("ratio"))
    if ratio is not None:
        return normalize_odds(ratio / 1000)
    return None


def _optional_int(value: Any) -> int | None:
    if value is None or value == "":
        return None
    return int(value)


def _settlement_record(item: Any) -> SettlementRecord:
    try:
        return SettlementRecord(
            placement_id=str(item["placement_id"]),
            result=item.get("result") or None,
            score=item.get("score"),
            payout=_optional_int(item.get("payout_cents")),
            profit=_optional_int(item.get("profit_cents")),
        )
    except (KeyError, TypeError, ValueError, AttributeError) as exc:
        raise UpstreamRejectedError(f"malformed settlement record: {item!r}") from exc


class HttpBookClient:
    def __init__(
        self,
        base_url: str | None = None,
        timeout_seconds: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._client = httpx.AsyncClient(
            base_url=base_url or settings.BOOK_GATEWAY_URL,
            timeout=timeout_seconds or settings.BOOK_TIMEOUT_SECONDS,
            transport=transport,
        )

    async def aclose(self) -> None:
        await self._client.aclose()

    async def preview_odds(
        self, match_id: str, descriptor: AnyDescriptor, account: BookAccount
    ) -> OddsPreview:
        data = await self._request(
            "POST",
            f"/accounts/{account.id}/preview",
            json={"match_id": match_id, "descriptor": descriptor.model_dump(mode="json")},
        )
        return OddsPreview(
            odds=_preview_odds_value(data),
            closed=bool(data.get("closed", False)),
            message=data.get("message"),
            spread=str(data["spread"]) if data.get("spread") is not None else None,
        )

    async def place_bet(
        self,
        match_id: str,
        descriptor: AnyDescriptor,
        stake: int,
        odds: Decimal,
        account: BookAccount,
    ) -> Placement:
        data = await self._request(
            "POST",
            f"/accounts/{account.id}/bets",
            json={
                "match_id": match_id,
                "descriptor": descriptor.model_dump(mode="json"),
                "stake_cents": stake,
                "odds": str(odds),
            },
        )
        placement_id = data.get("placement_id") or data.get("ticket_id")
        if not placement_id:
            raise UpstreamRejectedError("Book accepted the bet without a placement id")
        return Placement(placement_id=str(placement_id), odds=normalize_odds(data.get("odds")))

    async def fetch_settlements(self, account: BookAccount) -> list[SettlementRecord]:
        data = await self._request("GET", f"/accounts/{account.id}/settlements")
        items = data.get("records") or []
        if not isinstance(items, list):
            raise UpstreamRejectedError("settlement records are not a list")
        return [_settlement_record(item) for item in items]

    async def _request(self, method: str, path: str, **kwargs: Any) -> dict[str, Any]:
        try:
            response = await self._client.request(method, path, **kwargs)
        except httpx.TimeoutException as exc:
            raise UpstreamTransientError(f"timeout calling {path}") from exc
        except httpx.TransportError as exc:
            raise UpstreamTransientError(f"{type(exc).__name__} calling {path}") from exc

        if response.status_code >= 500:
            raise UpstreamTransientError(f"gateway returned HTTP {response.status_code}")
        try:
            body = response.json()
        except ValueError as exc:
            raise UpstreamTransientError(f"unreadable gateway response for {path}") from exc
        if not isinstance(body, dict):
            raise UpstreamTransientError(f"unreadable gateway response for {path}")

        if response.status_code >= 400 or not body.get("success", False):
            code = body.get("code")
            message = body.get("error") or body.get("message")
            self._raise_rejection(
                str(code) if code is not None else None,
                str(message) if message is not None else None,
            )
        data = body.get("data") or {}
        if not isinstance(data, dict):
            raise UpstreamTransientError(f"unreadable gateway response for {path}")
        return data

    @staticmethod
    def _raise_rejection(code: str | None, message: str | None) -> None:
        text = format_upstream_error(code, message)
        category = category_of(code)
        logger.info("Book rejected request: code=%s category=%s %s", code, category.value, text)
        if category == ErrorCategory.SESSION:
            raise SessionExpiredError(text, upstream_code=code)
        if category in (ErrorCategory.NETWORK, ErrorCategory.STATUS):
            raise UpstreamTransientError(text)
        raise UpstreamRejectedError(text, upstream_code=code)


_book_client: HttpBookClient | None = None


def get_book_client() -> HttpBookClient:
    """Process-wide client; one connection pool to the gateway."""
    global _book_client  # noqa: PLW0603
    if _book_client is None:
        _book_client = HttpBookClient()
    return _book_client


async def close_book_client() -> None:
    global _book_client  # noqa: PLW0603
    if _book_client is not None:
        await _book_client.aclose()
        _book_client = None

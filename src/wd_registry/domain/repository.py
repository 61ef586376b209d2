"""Account registry Protocol: read-mostly from the distribution engine's side."""

from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.wd_registry.domain.models import BookAccount, DirectoryUser


class AccountRegistryProtocol(Protocol):
    async def list_pool(
        self, db: AsyncSession, owner_agent_id: str | None
    ) -> list[BookAccount]: ...

    async def get_by_ids(
        self, db: AsyncSession, account_ids: list[int]
    ) -> list[BookAccount]: ...

    async def set_online(
        self, db: AsyncSession, account_id: int, online: bool, reason: str | None = None
    ) -> None: ...


class UserDirectoryProtocol(Protocol):
    async def get_user(self, db: AsyncSession, user_id: str) -> DirectoryUser | None: ...

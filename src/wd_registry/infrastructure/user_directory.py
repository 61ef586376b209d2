"""UserDirectory: read-only lookup into the users table owned by the admin flow."""

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.wd_registry.domain.models import DirectoryUser

_GET_USER_SQL = text("""
    SELECT id, role, agent_id, is_active
    FROM users
    WHERE id = :user_id
""")


class UserDirectory:
    async def get_user(self, db: AsyncSession, user_id: str) -> DirectoryUser | None:
        result = await db.execute(_GET_USER_SQL, {"user_id": user_id})
        row = result.fetchone()
        if row is None:
            return None
        return DirectoryUser(
            id=str(row.id),  # type: ignore[attr-defined]
            role=row.role,  # type: ignore[attr-defined]
            agent_id=str(row.agent_id) if row.agent_id else None,  # type: ignore[attr-defined]
            is_active=bool(row.is_active),  # type: ignore[attr-defined]
        )

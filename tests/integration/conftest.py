"""Integration-test fixtures.

All integration tests share a single event-loop so that the module-level
SQLAlchemy async engine pool and Redis pool (both created at import time)
remain valid across the entire test session.

Users and book accounts are owned by the external admin flow, so `world`
seeds them straight into PostgreSQL and mints tokens the way the auth
service would.
"""

import uuid
from dataclasses import dataclass

import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy import text

from src.main import app
from src.wd_common.database import engine
from src.wd_gateway.auth.jwt_handler import create_access_token


@dataclass
class World:
    admin_id: str
    agent_id: str
    staff_id: str
    account_ids: list[int]

    def headers(self, user_id: str) -> dict[str, str]:
        role = {self.admin_id: "admin", self.agent_id: "agent"}.get(user_id, "staff")
        agent = self.agent_id if role == "staff" else None
        return {"Authorization": f"Bearer {create_access_token(user_id, role, agent)}"}


@pytest_asyncio.fixture(loop_scope="session", scope="session")
async def client() -> AsyncClient:  # type: ignore[override]
    """Session-scoped async HTTP client: keeps the engine pool alive."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest_asyncio.fixture(loop_scope="session", scope="session")
async def world(client: AsyncClient) -> World:
    """A fresh admin, agent, staff member and two online accounts of the agent."""
    tag = uuid.uuid4().hex[:8]
    admin_id, agent_id, staff_id = f"adm-{tag}", f"agt-{tag}", f"stf-{tag}"
    async with engine.begin() as conn:
        await conn.execute(
            text(
                "INSERT INTO users (id, username, role, agent_id) VALUES "
                "(:admin, :admin, 'admin', NULL), "
                "(:agent, :agent, 'agent', NULL), "
                "(:staff, :staff, 'staff', :agent)"
            ),
            {"admin": admin_id, "agent": agent_id, "staff": staff_id},
        )
        rows = await conn.execute(
            text(
                "INSERT INTO book_accounts (user_id, agent_id, username, line_key, is_online) "
                "VALUES (:agent, :agent, :u1, :k1, TRUE), (:agent, :agent, :u2, :k2, TRUE) "
                "RETURNING id"
            ),
            {
                "agent": agent_id,
                "u1": f"a1{tag}", "k1": f"A{tag}",
                "u2": f"b2{tag}", "k2": f"B{tag}",
            },
        )
        account_ids = sorted(r[0] for r in rows)
    return World(admin_id, agent_id, staff_id, account_ids)

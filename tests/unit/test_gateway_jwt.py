"""Unit tests for JWT verification and CurrentUser."""

from datetime import timedelta
from unittest.mock import patch

import pytest
from fastapi import HTTPException
from jose import jwt

from src.wd_common.enums import UserRole
from src.wd_common.errors import InvalidCredentialsError
from src.wd_gateway.auth.dependencies import CurrentUser, get_current_user
from src.wd_gateway.auth.jwt_handler import create_access_token, decode_access_token


def test_access_token_contains_claims() -> None:
    token = create_access_token("staff-1", "staff", agent_id="agent-1")
    payload = jwt.get_unverified_claims(token)
    assert payload["sub"] == "staff-1"
    assert payload["role"] == "staff"
    assert payload["agent_id"] == "agent-1"
    assert payload["type"] == "access"


def test_decode_valid_token() -> None:
    payload = decode_access_token(create_access_token("agent-1", "agent"))
    assert payload["sub"] == "agent-1"
    assert "agent_id" not in payload


def test_expired_token_rejected() -> None:
    with patch("src.wd_gateway.auth.jwt_handler._ACCESS_EXPIRE", timedelta(seconds=-1)):
        token = create_access_token("agent-1", "agent")
    with pytest.raises(InvalidCredentialsError):
        decode_access_token(token)


def test_tampered_token_rejected() -> None:
    token = create_access_token("agent-1", "agent")
    with pytest.raises(InvalidCredentialsError):
        decode_access_token(token[:-4] + "xxxx")


async def test_get_current_user_reads_role_and_agent() -> None:
    user = await get_current_user(create_access_token("staff-1", "staff", agent_id="agent-1"))
    assert user == CurrentUser("staff-1", UserRole.STAFF, "agent-1")


async def test_unknown_role_is_401() -> None:
    with pytest.raises(HTTPException) as info:
        await get_current_user(create_access_token("x", "superuser"))
    assert info.value.status_code == 401


class TestCurrentUser:
    def test_staff_bills_agent_and_uses_agent_pool(self) -> None:
        staff = CurrentUser("staff-1", UserRole.STAFF, "agent-1")
        assert staff.charge_user_id == "agent-1"
        assert staff.pool_owner_id == "agent-1"

    def test_agent_owns_its_pool(self) -> None:
        agent = CurrentUser("agent-1", UserRole.AGENT)
        assert agent.charge_user_id == "agent-1"
        assert agent.pool_owner_id == "agent-1"

    def test_admin_sees_every_account(self) -> None:
        admin = CurrentUser("admin-1", UserRole.ADMIN)
        assert admin.is_admin
        assert admin.pool_owner_id is None
        assert admin.charge_user_id == "admin-1"

"""JWT verification for tokens issued by the external auth service.

Tokens are HS256 with a shared JWT_SECRET. Claims this service relies on:
    sub       user id
    role      admin | agent | staff
    agent_id  owning agent (staff only)
    type      must be "access"

`create_access_token` exists for operator tooling and tests; production
tokens come from the auth service.
"""

from datetime import UTC, datetime, timedelta
from typing import Any

from jose import JWTError, jwt

from config.settings import settings
from src.wd_common.errors import InvalidCredentialsError

_ALGORITHM = settings.JWT_ALGORITHM
_ACCESS_EXPIRE = timedelta(minutes=settings.JWT_EXPIRE_MINUTES)


def create_access_token(user_id: str, role: str, agent_id: str | None = None) -> str:
    now = datetime.now(UTC)
    payload: dict[str, Any] = {
        "sub": user_id,
        "role": role,
        "type": "access",
        "iat": now,
        "exp": now + _ACCESS_EXPIRE,
    }
    if agent_id is not None:
        payload["agent_id"] = agent_id
    return str(jwt.encode(payload, settings.JWT_SECRET, algorithm=_ALGORITHM))


def decode_access_token(token: str) -> dict[str, Any]:
    """Decode and validate an access token.

    Raises:
        InvalidCredentialsError: signature/expiry invalid or wrong token type.
    """
    try:
        payload: dict[str, Any] = jwt.decode(
            token,
            settings.JWT_SECRET,
            algorithms=[_ALGORITHM],  # Explicit list prevents algorithm confusion
        )
    except JWTError:
        raise InvalidCredentialsError() from None

    if payload.get("type") != "access":
        raise InvalidCredentialsError()
    return payload

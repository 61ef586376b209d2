"""FastAPI dependencies: get_current_user / require_admin.

Usage in any protected router:
    from src.wd_gateway.auth.dependencies import CurrentUser, get_current_user

    @router.get("/protected")
    async def protected(user: CurrentUser = Depends(get_current_user)):
        ...
"""

from dataclasses import dataclass

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer

from src.wd_common.enums import UserRole
from src.wd_common.errors import InvalidCredentialsError, PermissionDeniedError
from src.wd_gateway.auth.jwt_handler import decode_access_token

# Token issuance lives in the external auth service
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/login")

_CREDENTIALS_EXCEPTION = HTTPException(
    status_code=status.HTTP_401_UNAUTHORIZED,
    detail="Invalid or expired token",
    headers={"WWW-Authenticate": "Bearer"},
)


@dataclass(frozen=True)
class CurrentUser:
    user_id: str
    role: UserRole
    agent_id: str | None = None

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN

    @property
    def charge_user_id(self) -> str:
        """Ledger that pays for this user's bets: a staff member bills its agent."""
        if self.role == UserRole.STAFF and self.agent_id:
            return self.agent_id
        return self.user_id

    @property
    def pool_owner_id(self) -> str | None:
        """Agent whose account pool this user draws from; None means every account."""
        if self.role == UserRole.ADMIN:
            return None
        if self.role == UserRole.AGENT:
            return self.user_id
        return self.agent_id or self.user_id


async def get_current_user(token: str = Depends(oauth2_scheme)) -> CurrentUser:
    """Extract the bearer token into a CurrentUser. Raises HTTP 401 when invalid."""
    try:
        payload = decode_access_token(token)
    except InvalidCredentialsError:
        raise _CREDENTIALS_EXCEPTION from None

    user_id = payload.get("sub")
    if not user_id:
        raise _CREDENTIALS_EXCEPTION
    try:
        role = UserRole(payload.get("role", UserRole.STAFF.value))
    except ValueError:
        raise _CREDENTIALS_EXCEPTION from None

    agent_id = payload.get("agent_id")
    return CurrentUser(
        user_id=str(user_id),
        role=role,
        agent_id=str(agent_id) if agent_id else None,
    )


async def require_admin(
    current_user: CurrentUser = Depends(get_current_user),
) -> CurrentUser:
    if not current_user.is_admin:
        raise PermissionDeniedError("Administrator required")
    return current_user

"""
FastAPI dependencies for authentication and authorization.

    get_current_user (JWT -> User)
        └── require_roles(*names) (User -> User, role checked)

Role-based access control:
  - MANAGER passes every role check (users, roles, wallets, rates, prices)
  - TREASURER hands out custody and moves treasury cash
  - CASHIER accepts or rejects custody and records trades
  - VALIDATOR reviews recorded activity

If a dependency fails (missing/expired token, wrong role) the request is
rejected before the route handler runs.
"""

import uuid

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from exchange_desk.database import get_db
from exchange_desk.exceptions import PermissionDeniedError
from exchange_desk.models.user import User
from exchange_desk.security import decode_access_token
from exchange_desk.services.role_service import has_any_role


# Where Swagger UI's "Authorize" button posts credentials
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/login")


def user_id_from_token(token: str) -> uuid.UUID | None:
    """Return the user id carried by a valid token, None for anything else."""
    try:
        payload = decode_access_token(token)
        subject = payload.get("sub")
        if subject is None:
            return None
        return uuid.UUID(subject)
    except (JWTError, ValueError):
        return None


async def get_current_user(
    token: str = Depends(oauth2_scheme),
    db: AsyncSession = Depends(get_db),
) -> User:
    """
    Validate the bearer token and return the corresponding active User.

    Raises:
        HTTPException 401: If the token is invalid or the user doesn't exist
                           or has been deactivated.
    """
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )

    user_id = user_id_from_token(token)
    if user_id is None:
        raise credentials_exception

    result = await db.execute(select(User).where(User.id == user_id))
    user = result.scalar_one_or_none()

    if user is None or not user.is_active:
        raise credentials_exception

    return user


def require_roles(*role_names: str):
    """
    Build a dependency that admits users holding any of ``role_names``.

    Managers are always admitted. Usage:

        @router.post("/wallets")
        async def create_wallet(user: User = Depends(require_roles("manager"))):
            ...
    """

    async def role_checker(user: User = Depends(get_current_user)) -> User:
        if not has_any_role(user, role_names):
            raise PermissionDeniedError(
                f"This action requires one of the roles: {', '.join(role_names)}"
            )
        return user

    return role_checker


require_manager = require_roles("manager")

"""
User service — profile lookups and edits, and staff accounts created by a
manager.

Email and id are immutable once registered. A user edits their own name and
phone; a manager can also change another user's role and active flag.
Accounts a manager creates or renames must carry a name no other user has
(case-insensitive) so staff can be told apart in pickers.
"""

import logging
import uuid

from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from exchange_desk.exceptions import ConflictError, DuplicateEmailError, NotFoundError
from exchange_desk.models.user import User
from exchange_desk.security import hash_password
from exchange_desk.services import role_service

logger = logging.getLogger(__name__)


async def get_user(db: AsyncSession, user_id: uuid.UUID) -> User:
    result = await db.execute(select(User).where(User.id == user_id))
    user = result.scalar_one_or_none()
    if user is None:
        raise NotFoundError("User", user_id)
    return user


async def get_user_by_email(db: AsyncSession, email: str) -> User | None:
    result = await db.execute(select(User).where(User.email == email.lower()))
    return result.scalar_one_or_none()


async def _check_name_free(db: AsyncSession, name: str, exclude_id: uuid.UUID | None = None) -> None:
    query = select(User.id).where(func.lower(User.name) == name.lower())
    if exclude_id is not None:
        query = query.where(User.id != exclude_id)
    if await db.scalar(query) is not None:
        raise ConflictError(f"A user named {name!r} already exists")


async def list_users(db: AsyncSession, limit: int = 100, offset: int = 0) -> list[User]:
    result = await db.execute(
        select(User).order_by(User.created_at.desc()).limit(limit).offset(offset)
    )
    return list(result.scalars().all())


async def list_users_with_role(db: AsyncSession, role_name: str) -> list[User]:
    result = await db.execute(
        select(User)
        .where(User.role_name == role_name, User.is_active.is_(True))
        .order_by(User.name)
    )
    return list(result.scalars().all())


async def create_user(
    db: AsyncSession,
    email: str,
    password: str,
    name: str,
    phone: str | None = None,
    role_id: uuid.UUID | None = None,
) -> User:
    """
    Create a staff account, optionally with a role, on a manager's behalf.

    Raises:
        DuplicateEmailError: If the email is already registered.
        ConflictError: If another user already has this name.
        NotFoundError: If the role doesn't exist.
    """
    email = email.lower()
    if await get_user_by_email(db, email):
        raise DuplicateEmailError(email)
    await _check_name_free(db, name)

    user = User(
        email=email,
        name=name,
        phone=phone,
        hashed_password=hash_password(password),
    )
    if role_id is not None:
        role_service.apply_role(user, await role_service.get_role(db, role_id))

    db.add(user)
    await db.flush()
    logger.info("User %s created with role %s", user.id, user.role_name)
    return user


async def update_user(
    db: AsyncSession,
    user_id: uuid.UUID,
    name: str | None = None,
    phone: str | None = None,
    role_id: uuid.UUID | None = None,
    is_active: bool | None = None,
) -> User:
    """Manager edit of another user. Fields left as None are unchanged."""
    user = await get_user(db, user_id)
    if name is not None and name != user.name:
        await _check_name_free(db, name, exclude_id=user.id)
        user.name = name
    if phone is not None:
        user.phone = phone
    if role_id is not None:
        role_service.apply_role(user, await role_service.get_role(db, role_id))
    if is_active is not None:
        user.is_active = is_active
    await db.flush()
    logger.info("User %s updated", user.id)
    return user


async def update_user_profile(
    db: AsyncSession,
    user_id: uuid.UUID,
    name: str | None = None,
    phone: str | None = None,
) -> User:
    user = await get_user(db, user_id)
    if name is not None:
        user.name = name
    if phone is not None:
        user.phone = phone
    await db.flush()
    return user

"""
Role service — role catalog, role checks and role assignment.

A user's role is stored once: ``users.role_id`` (FK to roles) plus the
cached ``users.role_name`` label. Both are written together, and only by
``apply_role``, so they cannot drift apart.
"""

import logging
import uuid
from collections.abc import Iterable

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from exchange_desk.exceptions import NotFoundError, PermissionDeniedError
from exchange_desk.models.role import Role, RoleName
from exchange_desk.models.user import User

logger = logging.getLogger(__name__)


def has_any_role(user: User, role_names: Iterable[str]) -> bool:
    """
    True if ``user`` holds one of ``role_names``.

    An empty list admits everyone; a manager passes every check.
    """
    names = [str(getattr(name, "value", name)) for name in role_names]
    if not names:
        return True
    if user.role_name == RoleName.MANAGER.value:
        return True
    return user.role_name in names


async def list_roles(db: AsyncSession) -> list[Role]:
    result = await db.execute(select(Role).order_by(Role.name))
    return list(result.scalars().all())


async def get_role(db: AsyncSession, role_id: uuid.UUID) -> Role:
    result = await db.execute(select(Role).where(Role.id == role_id))
    role = result.scalar_one_or_none()
    if role is None:
        raise NotFoundError("Role", role_id)
    return role


async def get_role_by_name(db: AsyncSession, name: str) -> Role:
    result = await db.execute(select(Role).where(Role.name == name))
    role = result.scalar_one_or_none()
    if role is None:
        raise NotFoundError("Role", name)
    return role


def apply_role(user: User, role: Role) -> None:
    """Write both halves of the role representation."""
    user.role_id = role.id
    user.role_name = role.name


async def assign_role_to_user(
    db: AsyncSession,
    actor: User,
    user_id: uuid.UUID,
    role_id: uuid.UUID,
) -> User:
    """
    Give ``user_id`` the role ``role_id``.

    Raises:
        PermissionDeniedError: If the actor is not a manager.
        NotFoundError: If the user or the role doesn't exist.
    """
    if actor.role_name != RoleName.MANAGER.value:
        logger.warning("User %s attempted to assign a role without manager rights", actor.id)
        raise PermissionDeniedError("Only managers can assign roles")

    role = await get_role(db, role_id)

    result = await db.execute(select(User).where(User.id == user_id))
    user = result.scalar_one_or_none()
    if user is None:
        raise NotFoundError("User", user_id)

    apply_role(user, role)
    await db.flush()
    logger.info("User %s assigned role %s by %s", user.id, role.name, actor.id)
    return user

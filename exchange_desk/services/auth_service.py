"""
Authentication service — signup and login business logic.

Signup flow:
  1. Check if email is already registered
  2. Hash the password with Argon2id
  3. Create the User; the very first user of a fresh install becomes
     manager so somebody can administer it, everyone else starts with no
     role until a manager assigns one
  4. Return a JWT token so the user is immediately logged in

Login flow:
  1. Look up user by email
  2. Verify password against stored hash
  3. Return a JWT token

Login returns the same error for "wrong password" and "email not found"
to prevent user enumeration.
"""

import logging

from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from exchange_desk.exceptions import DuplicateEmailError, InvalidCredentialsError
from exchange_desk.models.role import RoleName
from exchange_desk.models.user import User
from exchange_desk.security import hash_password, verify_password, create_access_token
from exchange_desk.services import role_service, user_service

logger = logging.getLogger(__name__)


async def signup(
    db: AsyncSession,
    email: str,
    password: str,
    name: str,
    phone: str | None = None,
) -> tuple[User, str]:
    """
    Register a new user.

    Returns:
        Tuple of (User instance, JWT token string).

    Raises:
        DuplicateEmailError: If the email is already registered.
    """
    email = email.lower()

    if await user_service.get_user_by_email(db, email):
        raise DuplicateEmailError(email)

    user_count = await db.scalar(select(func.count()).select_from(User))

    user = User(
        email=email,
        name=name,
        phone=phone,
        hashed_password=hash_password(password),
    )
    if user_count == 0:
        role_service.apply_role(user, await role_service.get_role_by_name(db, RoleName.MANAGER.value))
        logger.info("First registered user %s bootstrapped as manager", email)

    db.add(user)
    # Flush to get user.id assigned for the token
    await db.flush()
    logger.info("User %s registered", user.id)

    token = create_access_token(data={"sub": str(user.id)})
    return user, token


async def login(
    db: AsyncSession,
    email: str,
    password: str,
) -> tuple[User, str]:
    """
    Authenticate a user and return a JWT token.

    Raises:
        InvalidCredentialsError: If the email doesn't exist, the password is
                                 wrong, or the user has been deactivated.
    """
    user = await user_service.get_user_by_email(db, email)

    # Same error for every case
    if not user:
        raise InvalidCredentialsError()

    if not verify_password(password, user.hashed_password):
        raise InvalidCredentialsError()

    if not user.is_active:
        raise InvalidCredentialsError()

    token = create_access_token(data={"sub": str(user.id)})
    return user, token

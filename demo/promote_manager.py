#!/usr/bin/env python3
"""
Operator script: give an existing user the manager role.

The first signup of a fresh database becomes manager automatically; this is
for recovering access when that account is lost. Run on the server:

    python demo/promote_manager.py someone@example.com
"""
import argparse
import asyncio

from sqlalchemy import select

from exchange_desk.config import get_settings
from exchange_desk.database import build_engine, build_session_factory
from exchange_desk.models.role import Role, RoleName
from exchange_desk.models.user import User
from exchange_desk.services.role_service import apply_role


async def promote(email: str) -> None:
    engine = build_engine(get_settings())
    sf = build_session_factory(engine)
    async with sf() as s:
        user = (await s.execute(select(User).where(User.email == email.lower()))).scalar_one_or_none()
        role = (
            await s.execute(select(Role).where(Role.name == RoleName.MANAGER.value))
        ).scalar_one()
        if user is None:
            print(f"No user with email {email}")
        else:
            apply_role(user, role)
            await s.commit()
            print(f"{user.email} is now a manager")
    await engine.dispose()


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Promote a user to manager")
    parser.add_argument("email")
    asyncio.run(promote(parser.parse_args().email))

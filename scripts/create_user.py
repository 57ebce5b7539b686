# -*- coding: utf-8 -*-
"""
Create a user and print a bearer token for it

Usage:
    python scripts/create_user.py --name Admin --email admin@example.com --role admin
"""
import argparse
import asyncio
import os
import sys

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from app.core.config import settings  # noqa: E402
from app.core.database import Database  # noqa: E402
from app.core.security import create_access_token  # noqa: E402
from app.crud import user_crud  # noqa: E402
from app.models import UserCreate, UserRole  # noqa: E402


def parse_args():
    parser = argparse.ArgumentParser(description="Create a user and print a token")
    parser.add_argument("--name", required=True)
    parser.add_argument("--email", required=True)
    parser.add_argument("--phone", default=None)
    parser.add_argument("--role", default=UserRole.USER.value, choices=[r.value for r in UserRole])
    parser.add_argument("--unapproved", action="store_true", help="leave the account unapproved")
    return parser.parse_args()


async def main(args) -> None:
    database = Database(settings.database_url, create_tables=settings.auto_create_tables)
    try:
        async with database.session() as session:
            user = await user_crud.get_by_email_and_role(session, args.email, args.role)
            if user is None:
                user = await user_crud.create_user(
                    session,
                    obj_in=UserCreate(
                        name=args.name,
                        email=args.email,
                        phone=args.phone,
                        role=args.role,
                        is_approved=not args.unapproved,
                    ),
                )
                await session.commit()
                print(f"Created user {user.id} ({user.role})")
            else:
                print(f"User already exists: {user.id} ({user.role})")
            print(create_access_token(user))
    finally:
        await database.disconnect()


if __name__ == "__main__":
    asyncio.run(main(parse_args()))

#!/usr/bin/env python3
"""
Create the single admin account and print an access token for it.

Accounts are normally provisioned by the auth service; this bootstraps the
admin for a fresh deployment. Fails if an admin already exists.

Usage:
    python scripts/create_admin.py --name "Store Admin" --email admin@example.com
"""

import argparse
import asyncio
import sys
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from db import create_db_and_tables, get_db_session
from enums.user_role import UserRole
from exceptions.base import ExpressKartException
from services.user import UserService
from utils.security import create_access_token


async def create_admin(name: str, email: str, phone: str | None, token_minutes: int | None):
    await create_db_and_tables()
    async with get_db_session() as session:
        admin = await UserService.create_user(name, email, session, role=UserRole.ADMIN, phone=phone)

    print(f"✅ Admin created: id={admin.id}, email={admin.email}")
    print(f"🔑 Access token:\n{create_access_token(admin.id, expires_minutes=token_minutes)}")


def main():
    parser = argparse.ArgumentParser(description="Create the ExpressKart admin account")
    parser.add_argument("--name", required=True)
    parser.add_argument("--email", required=True)
    parser.add_argument("--phone")
    parser.add_argument("--token-minutes", type=int, default=None,
                        help="Lifetime of the printed token (default: ACCESS_TOKEN_EXPIRE_MINUTES)")
    args = parser.parse_args()

    try:
        asyncio.run(create_admin(args.name, args.email, args.phone, args.token_minutes))
    except ExpressKartException as e:
        print(f"❌ {e.message}")
        sys.exit(1)


if __name__ == '__main__':
    main()

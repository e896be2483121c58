"""
Create an admin user, or reset an existing user's password.

Usage:
    python -m scripts.create_user <username> <password>

Admins log in at POST /api/auth/login; there is no self-registration.
"""

import argparse
import asyncio
import sys

# Ensure the project root is on the path
sys.path.insert(0, ".")

from featherlog.core.database import async_session_factory, engine
from featherlog.services.users import upsert_user


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Create or update a Featherlog admin user.")
    parser.add_argument("username")
    parser.add_argument("password")
    return parser.parse_args(argv)


async def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    if not args.username.strip() or not args.password:
        print("Username and password must not be empty.", file=sys.stderr)
        return 1

    try:
        async with async_session_factory() as session:
            user = await upsert_user(session, args.username.strip(), args.password)
    finally:
        await engine.dispose()

    print()
    print("=" * 60)
    print("  Admin user ready")
    print("=" * 60)
    print()
    print(f"  Username: {user.username}")
    print(f"  User ID:  {user.id}")
    print("=" * 60)
    print()
    return 0


if __name__ == "__main__":
    sys.exit(asyncio.run(main()))

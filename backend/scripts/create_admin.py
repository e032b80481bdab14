#!/usr/bin/env python3
"""Create an admin account for the back office."""

import argparse
import asyncio
import getpass
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

from app.database import DocumentStore
from app.errors import AppError
from app.models.admin import AdminRole
from app.services.admin_service import AdminService
from app.utils.logging import setup_logging


async def create_admin(email: str, password: str, name: str, role: AdminRole) -> None:
    store = DocumentStore()
    await store.connect()
    try:
        await store.ensure_indexes()
        admin = await AdminService(store).create(email, password, name=name, role=role)
        print(f"Created admin {admin['email']} ({admin['_id']})")
    finally:
        await store.close()


def main() -> int:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("email")
    parser.add_argument("--name", default="")
    parser.add_argument("--role", choices=[r.value for r in AdminRole], default=AdminRole.ADMIN.value)
    parser.add_argument("--password", help="prompted for when omitted")
    args = parser.parse_args()

    setup_logging(debug=False)
    password = args.password or getpass.getpass("Password: ")
    try:
        asyncio.run(create_admin(args.email, password, args.name, AdminRole(args.role)))
    except AppError as e:
        print(f"Error: {e.message}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())

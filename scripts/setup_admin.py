#!/usr/bin/env python3
"""CLI script to create the platform superadmin account.

Usage:
    uv run python scripts/setup_admin.py --email admin@syndicateplus.com --password 'Admin123!'
    uv run python scripts/setup_admin.py --email ops@example.com --password 'changeme1' --firm-name "Ops Desk"
    uv run python scripts/setup_admin.py --email existing@firm.com --promote

Connects directly to the database using DATABASE_URL from environment or .env file.
Without --promote the email must not be registered yet; with --promote an
existing firm is raised to superadmin and reactivated.
"""

from __future__ import annotations

import argparse
import asyncio
import os
import sys

# Ensure project root is on sys.path so we can import src.app
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from dotenv import load_dotenv  # noqa: E402

# Load .env from project root
load_dotenv(os.path.join(os.path.dirname(__file__), "..", ".env"))


async def setup_admin(email: str, password: str | None, firm_name: str, promote: bool) -> int:
    """Create or promote a superadmin. Returns the process exit code.

    Tables are created on the fly only in development; other environments
    must run ``alembic upgrade head`` first.
    """
    from pydantic import ValidationError

    from src.app.config import Environment, get_settings
    from src.app.core.database import close_db, get_session, init_db
    from src.app.core.security import hash_password
    from src.app.syndicate.errors import ConflictError
    from src.app.syndicate.repository import SyndicateRepository
    from src.app.syndicate.schemas import (
        DealSizeRange,
        FirmCreate,
        FirmProfile,
        FirmRole,
        FirmStatus,
    )

    data = None
    if not promote:
        try:
            data = FirmCreate(firm_name=firm_name, email=email, password=password)
        except ValidationError as exc:
            print("Invalid account details:")
            for error in exc.errors():
                field = ".".join(str(part) for part in error["loc"])
                print(f"  {field}: {error['msg']}")
            return 1

    if get_settings().ENVIRONMENT == Environment.development:
        await init_db()
    store = SyndicateRepository(session_factory=get_session)

    try:
        existing = await store.get_firm_credentials(email)
        if promote:
            if existing is None:
                print(f"No account found with email: {email}")
                return 1
            firm = await store.update_firm_role(existing.firm.id, FirmRole.SUPERADMIN)
            await store.update_firm_status(existing.firm.id, FirmStatus.ACTIVE)
            print("Account promoted to superadmin:")
            print(f"  Email: {firm.email}")
            print(f"  Firm:  {firm.firm_name}")
            return 0

        if existing is not None:
            print("An account already exists with this email.")
            print("Use --promote to raise it to superadmin, or choose a different email.")
            return 1

        try:
            firm = await store.create_firm(
                data,
                password_hash=hash_password(password),
                role=FirmRole.SUPERADMIN,
                profile=FirmProfile(typical_deal_size=DealSizeRange(min=0, max=0)),
            )
        except ConflictError as exc:
            print(exc.message)
            return 1

        print("Superadmin account created:")
        print(f"  ID:    {firm.id}")
        print(f"  Email: {firm.email}")
        print(f"  Firm:  {firm.firm_name}")
        print(f"  Role:  {firm.role.value}")
        return 0
    finally:
        await close_db()


def main() -> None:
    parser = argparse.ArgumentParser(description="Create or promote the platform superadmin")
    parser.add_argument("--email", required=True, help="Superadmin login email")
    parser.add_argument("--password", default=None, help="Password for a new account (min 8 chars)")
    parser.add_argument(
        "--firm-name",
        default="Syndicate+ Administration",
        help="Display name for a new account",
    )
    parser.add_argument(
        "--promote",
        action="store_true",
        help="Promote an existing account instead of creating one",
    )
    args = parser.parse_args()

    if not args.promote and not args.password:
        parser.error("--password is required unless --promote is given")
    if args.password is not None and len(args.password) < 8:
        parser.error("--password must be at least 8 characters")

    sys.exit(asyncio.run(setup_admin(args.email, args.password, args.firm_name, args.promote)))


if __name__ == "__main__":
    main()

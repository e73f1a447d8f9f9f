#!/usr/bin/env python3
"""CLI script to reset a firm's login password.

Usage:
    uv run python scripts/reset_password.py --email partner@firm.co.uk --password 'NewPassword1'

Connects directly to the database using DATABASE_URL from environment or .env file.
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


async def reset_password(email: str, password: str) -> int:
    """Replace the password hash for ``email``. Returns the process exit code."""
    from src.app.core.database import close_db, get_session
    from src.app.core.security import hash_password
    from src.app.syndicate.repository import SyndicateRepository

    store = SyndicateRepository(session_factory=get_session)
    try:
        credentials = await store.get_firm_credentials(email)
        if credentials is None:
            print(f"No account found with email: {email}")
            return 1

        firm = await store.update_firm_password(credentials.firm.id, hash_password(password))
        print("Password reset successfully:")
        print(f"  Email: {firm.email}")
        print(f"  Firm:  {firm.firm_name}")
        return 0
    finally:
        await close_db()


def main() -> None:
    parser = argparse.ArgumentParser(description="Reset a firm's login password")
    parser.add_argument("--email", required=True, help="Account email")
    parser.add_argument("--password", required=True, help="New password (min 8 chars)")
    args = parser.parse_args()

    if len(args.password) < 8:
        parser.error("--password must be at least 8 characters")

    sys.exit(asyncio.run(reset_password(args.email, args.password)))


if __name__ == "__main__":
    main()

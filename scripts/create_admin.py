#!/usr/bin/env python3
"""
Create (or promote) an administrator account.

Reads from .env:
    ADMIN_CONTACT    — admin contact number (required, unique per account)
    ADMIN_EMAIL      — admin email (optional)
    ADMIN_NAME       — display name (optional, defaults to "Administrator")

Usage:
    cd <backend root>
    python -m scripts.create_admin
"""
from __future__ import annotations

import asyncio
import os
import sys
from pathlib import Path

# Add backend root to path so imports resolve
sys.path.insert(0, str(Path(__file__).resolve().parent.parent / "services" / "connections"))
sys.path.insert(0, str(Path(__file__).resolve().parent.parent / "shared"))

from dotenv import load_dotenv

load_dotenv(Path(__file__).resolve().parent.parent / ".env")

from sqlalchemy import select

from shared.database.postgres import get_async_engine, session_factory_for
from app.accounts.constants import AccountStatus
from app.accounts.models import Account


async def main() -> None:
    contact = os.getenv("ADMIN_CONTACT")
    if not contact:
        print("Error: ADMIN_CONTACT must be set in .env")
        sys.exit(1)
    email = os.getenv("ADMIN_EMAIL")
    name = os.getenv("ADMIN_NAME", "Administrator")
    db_url = os.environ["CONNECTIONS_DATABASE_URL"]

    engine = get_async_engine(db_url)
    session_factory = session_factory_for(engine)

    async with session_factory() as session:
        result = await session.execute(select(Account).where(Account.contact == contact))
        existing = result.scalar_one_or_none()

        if existing is not None:
            print(f"Account {contact} already exists (id={existing.id}).")
            if existing.is_admin:
                print("  -> Already an administrator. Nothing to do.")
            else:
                existing.is_admin = True
                existing.status = AccountStatus.APPROVED
                await session.commit()
                print("  -> Promoted to administrator.")
            await engine.dispose()
            return

        account = Account(
            name=name,
            contact=contact,
            email=email,
            status=AccountStatus.APPROVED,
            is_admin=True,
        )
        session.add(account)
        await session.commit()
        print(f"Administrator created: {contact} (id={account.id})")

    await engine.dispose()


if __name__ == "__main__":
    asyncio.run(main())

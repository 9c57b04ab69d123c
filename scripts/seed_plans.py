#!/usr/bin/env python3
"""
Seed the default premium plans and the display policy row.

Existing plans (matched by name) are left untouched; the display policy row is
created with the quota defaults from settings if it does not exist yet.

Usage:
    cd <backend root>
    python -m scripts.seed_plans
"""
from __future__ import annotations

import asyncio
import os
import sys
from decimal import Decimal
from pathlib import Path

# Add backend root to path so imports resolve
sys.path.insert(0, str(Path(__file__).resolve().parent.parent / "services" / "connections"))
sys.path.insert(0, str(Path(__file__).resolve().parent.parent / "shared"))

from dotenv import load_dotenv

load_dotenv(Path(__file__).resolve().parent.parent / ".env")

from sqlalchemy import select

from shared.database.postgres import get_async_engine, session_factory_for
from app.policies.models import PremiumPlan
from app.policies.service import get_display_policy

_COMMON = ["Priority customer support", "Advanced search filters", "See who viewed your profile"]

DEFAULT_PLANS: list[dict] = [
    {
        "name": "1 Month Premium",
        "duration_months": 1,
        "price": Decimal("9.99"),
        "discount": 0,
        "request_limit": 50,
        "features": ["Send up to 50 requests per day", *_COMMON],
        "advanced_features": {"view_all_photos": False, "view_all_users": False},
    },
    {
        "name": "3 Month Premium",
        "duration_months": 3,
        "price": Decimal("24.99"),
        "discount": 15,
        "request_limit": 75,
        "features": [
            "Send up to 75 requests per day",
            *_COMMON,
            "Unlimited message storage",
            "Profile boost feature",
        ],
        "advanced_features": {"view_all_photos": False, "view_all_users": True},
    },
    {
        "name": "6 Month Premium",
        "duration_months": 6,
        "price": Decimal("44.99"),
        "discount": 25,
        "request_limit": 100,
        "features": [
            "Send up to 100 requests per day",
            *_COMMON,
            "Unlimited message storage",
            "Profile boost feature",
            "Exclusive premium badge",
            "Early access to new features",
        ],
        "advanced_features": {
            "view_all_photos": True,
            "view_all_users": True,
            "can_message_without_follow": True,
        },
    },
]


async def main() -> None:
    db_url = os.environ["CONNECTIONS_DATABASE_URL"]
    engine = get_async_engine(db_url)
    session_factory = session_factory_for(engine)

    async with session_factory() as session:
        for spec in DEFAULT_PLANS:
            result = await session.execute(
                select(PremiumPlan).where(PremiumPlan.name == spec["name"])
            )
            if result.scalar_one_or_none() is not None:
                print(f"- Plan already exists: {spec['name']}")
                continue
            session.add(PremiumPlan(**spec))
            print(f"Created premium plan: {spec['name']} ({spec['request_limit']} requests/day)")

        policy = await get_display_policy(session)
        await session.commit()
        print(
            "Display policy: free limit "
            f"{policy.free_request_limit}, premium limit {policy.premium_request_limit}"
        )

    await engine.dispose()


if __name__ == "__main__":
    asyncio.run(main())

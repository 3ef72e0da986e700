"""Create tables and seed the service catalog and plan catalog."""

from decimal import Decimal

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession

from aiportal import crud
from aiportal.core.logging import logger
from aiportal.models import Base, Plan, ServiceDefinition

UNLIMITED = 999_999_999

SERVICE_SEEDS = [
    {
        "service_type": "ai_text_writer",
        "name": "AI Text Writer",
        "description": "Blog posts, emails, social media and ad copy on demand",
        "category": "content",
    },
    {
        "service_type": "ai_image_generator",
        "name": "AI Image Generator",
        "description": "Images from text prompts",
        "category": "media",
    },
]


def _features(words: int, text_requests: int, images: int) -> dict:
    return {
        "ai_text_writer": {
            "enabled": True,
            "words_per_day": words,
            "requests_per_day": text_requests,
        },
        "ai_image_generator": {
            "enabled": True,
            "images_per_day": images,
            "requests_per_day": images,
        },
    }


PLAN_SEEDS = [
    {
        "name": "free",
        "display_name": "Free Plan",
        "description": "Perfect for trying out our AI services with basic features - Always free!",
        "plan_type": "free",
        "features": _features(500, 10, 3),
        "display_order": 1,
    },
    {
        "name": "basic",
        "display_name": "Basic Plan",
        "description": "Perfect for individuals and small teams getting started with AI",
        "plan_type": "basic",
        "price_monthly": Decimal("9.99"),
        "price_yearly": Decimal("99.99"),
        "features": _features(10_000, 100, 50),
        "display_order": 2,
    },
    {
        "name": "pro",
        "display_name": "Pro Plan",
        "description": "Advanced features for growing businesses and power users",
        "plan_type": "pro",
        "price_monthly": Decimal("29.99"),
        "price_yearly": Decimal("299.99"),
        "features": _features(50_000, 500, 150),
        "display_order": 3,
    },
    {
        "name": "enterprise",
        "display_name": "Enterprise Plan",
        "description": "Unlimited access with premium support and custom branding",
        "plan_type": "enterprise",
        "price_monthly": Decimal("99.99"),
        "price_yearly": Decimal("999.99"),
        "features": _features(UNLIMITED, UNLIMITED, UNLIMITED),
        "display_order": 4,
    },
    {
        "name": "trial",
        "display_name": "Free Trial",
        "description": "Seven days of expanded limits, once per user",
        "plan_type": "trial",
        "features": _features(1000, 10, 5),
        "trial": {
            "enabled": True,
            "duration_days": 7,
            "limits": _features(1000, 10, 5),
        },
        "display_order": 0,
    },
]


async def create_tables(engine: AsyncEngine) -> None:
    """Create any missing tables. Existing tables are left untouched."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def seed_catalog(db: AsyncSession) -> None:
    """Insert catalog services and plans that do not exist yet.

    Safe to run on every startup: rows are matched by their unique key and
    existing rows are never modified.
    """
    created = []

    for seed in SERVICE_SEEDS:
        if await crud.service_definition.get_by_type(db, service_type=seed["service_type"]):
            continue
        db.add(ServiceDefinition(**seed))
        created.append(seed["service_type"])

    for seed in PLAN_SEEDS:
        if await crud.plan.get_by_name(db, name=seed["name"]):
            continue
        db.add(Plan(**seed))
        created.append(f"plan:{seed['name']}")

    await db.commit()
    if created:
        logger.info(f"[init_db] Seeded {', '.join(created)}")

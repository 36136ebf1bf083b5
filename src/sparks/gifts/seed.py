"""Gift catalog seed data: 12 gifts across three price categories."""

from __future__ import annotations

import logging

from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.ext.asyncio import AsyncSession

from sparks.db.models import GiftCatalogEntry

logger = logging.getLogger(__name__)

GIFT_SEED_DATA: list[dict] = [
    # Quick reactions (5-20 coins)
    {"name": "Fire", "name_ja": "ファイヤー", "category": "quick_reaction", "coin_cost": 5, "sort_order": 1},
    {"name": "Clap", "name_ja": "拍手", "category": "quick_reaction", "coin_cost": 10, "sort_order": 2},
    {"name": "Heart Eyes", "name_ja": "ハート目", "category": "quick_reaction", "coin_cost": 10, "sort_order": 3},
    {"name": "LOL", "name_ja": "大爆笑", "category": "quick_reaction", "coin_cost": 15, "sort_order": 4},
    {"name": "Mind Blown", "name_ja": "マインドブロウン", "category": "quick_reaction", "coin_cost": 20, "sort_order": 5},
    # Standard (50-200 coins)
    {"name": "Star", "name_ja": "スター", "category": "standard", "coin_cost": 50, "sort_order": 10},
    {"name": "Trophy", "name_ja": "トロフィー", "category": "standard", "coin_cost": 100, "sort_order": 11},
    {"name": "Crown", "name_ja": "クラウン", "category": "standard", "coin_cost": 150, "sort_order": 12},
    {"name": "Diamond", "name_ja": "ダイヤモンド", "category": "standard", "coin_cost": 200, "sort_order": 13},
    # Premium (500-2000 coins)
    {"name": "Spotlight", "name_ja": "スポットライト", "category": "premium", "coin_cost": 500, "sort_order": 20},
    {"name": "Rocket", "name_ja": "ロケット", "category": "premium", "coin_cost": 1000, "sort_order": 21},
    {"name": "Legendary", "name_ja": "レジェンダリー", "category": "premium", "coin_cost": 2000, "sort_order": 22},
]


def asset_slug(name: str) -> str:
    """'Heart Eyes' -> 'heart_eyes'."""
    return "_".join(name.lower().split())


def catalog_row(gift: dict) -> dict:
    """Expand a seed entry into a full gift_catalog row (half goes to the creator)."""
    slug = asset_slug(gift["name"])
    return {
        **gift,
        "icon_url": f"/assets/gifts/{slug}.png",
        "animation_url": f"/assets/animations/{slug}.json",
        "creator_coin_share": gift["coin_cost"] // 2,
        "is_active": True,
    }


async def seed_gift_catalog(db: AsyncSession) -> int:
    """Upsert the gift catalog keyed on name. Returns number of gifts seeded."""
    seeded = 0
    for gift in GIFT_SEED_DATA:
        stmt = pg_insert(GiftCatalogEntry).values(**catalog_row(gift))
        stmt = stmt.on_conflict_do_update(
            index_elements=["name"],
            set_={
                "name_ja": stmt.excluded.name_ja,
                "icon_url": stmt.excluded.icon_url,
                "animation_url": stmt.excluded.animation_url,
                "category": stmt.excluded.category,
                "coin_cost": stmt.excluded.coin_cost,
                "creator_coin_share": stmt.excluded.creator_coin_share,
                "sort_order": stmt.excluded.sort_order,
            },
        )
        await db.execute(stmt)
        seeded += 1

    await db.commit()
    logger.info("Seeded %d gift catalog entries", seeded)
    return seeded

"""Gift argument checks, catalog grouping and seed data."""

from __future__ import annotations

from unittest.mock import AsyncMock

import pytest

from sparks.db.models import GiftCatalogEntry
from sparks.errors import ForbiddenError, ValidationError
from sparks.gifts.seed import GIFT_SEED_DATA, asset_slug, catalog_row
from sparks.gifts.service import group_catalog, send_gift


def _entry(name: str, category: str, cost: int) -> GiftCatalogEntry:
    return GiftCatalogEntry(
        id=f"id-{name}",
        name=name,
        icon_url=f"/assets/gifts/{name}.png",
        category=category,
        coin_cost=cost,
        creator_coin_share=cost // 2,
        sort_order=0,
    )


class TestSendGiftPreconditions:
    @pytest.mark.asyncio
    async def test_self_gift_forbidden(self):
        db = AsyncMock()
        with pytest.raises(ForbiddenError):
            await send_gift(db, None, "u1", "u1", "s1", "g1")
        db.execute.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_message_too_long(self):
        db = AsyncMock()
        with pytest.raises(ValidationError, match="Invalid message"):
            await send_gift(db, None, "u1", "u2", "s1", "g1", message="x" * 101)
        db.execute.assert_not_awaited()


class TestGroupCatalog:
    def test_groups_by_category_keeping_order(self):
        grouped = group_catalog([
            _entry("fire", "quick_reaction", 5),
            _entry("star", "standard", 50),
            _entry("clap", "quick_reaction", 10),
        ])
        assert [g["name"] for g in grouped["quick_reaction"]] == ["fire", "clap"]
        assert [g["name"] for g in grouped["standard"]] == ["star"]
        assert grouped["premium"] == []

    def test_empty_catalog_has_all_categories(self):
        assert group_catalog([]) == {"quick_reaction": [], "standard": [], "premium": []}


class TestSeedData:
    def test_twelve_gifts(self):
        assert len(GIFT_SEED_DATA) == 12
        counts = {}
        for gift in GIFT_SEED_DATA:
            counts[gift["category"]] = counts.get(gift["category"], 0) + 1
        assert counts == {"quick_reaction": 5, "standard": 4, "premium": 3}

    def test_asset_slug(self):
        assert asset_slug("Heart Eyes") == "heart_eyes"
        assert asset_slug("LOL") == "lol"

    def test_creator_gets_half_rounded_down(self):
        fire = catalog_row({"name": "Fire", "category": "quick_reaction", "coin_cost": 5, "sort_order": 1})
        assert fire["creator_coin_share"] == 2
        assert fire["icon_url"] == "/assets/gifts/fire.png"
        assert fire["animation_url"] == "/assets/animations/fire.json"
        assert fire["is_active"] is True

    def test_shares_never_exceed_cost(self):
        for gift in GIFT_SEED_DATA:
            row = catalog_row(gift)
            assert 0 <= row["creator_coin_share"] <= row["coin_cost"]

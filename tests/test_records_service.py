import logging

import pytest
from bson import ObjectId

from creator_analytics.core.config import settings
from creator_analytics.db.mongo import get_users_collection
from creator_analytics.services import records_service
from creator_analytics.services.records_service import created_between
from factories import add_pipeline_entry, add_user, days_before


@pytest.mark.asyncio
async def test_scan_warns_when_limit_is_reached(db, caplog):
    for i in range(3):
        add_user(db, f"u{i}")
    collection = get_users_collection()

    with caplog.at_level(logging.WARNING):
        docs = await records_service.scan(collection, {}, 2)

    assert len(docs) == 2
    assert "Scan of users hit its limit of 2 documents" in caplog.text


@pytest.mark.asyncio
async def test_scan_below_limit_is_quiet(db, caplog):
    add_user(db, "u1")
    collection = get_users_collection()

    with caplog.at_level(logging.WARNING):
        docs = await records_service.scan(collection, {}, 2)

    assert len(docs) == 1
    assert "hit its limit" not in caplog.text


@pytest.mark.asyncio
async def test_windowed_load_keeps_in_window_rows_at_the_cap(db, now, monkeypatch):
    monkeypatch.setattr(settings, "USER_SCAN_LIMIT", 2)
    for i in range(2):
        add_user(db, f"old_{i}", created_at=days_before(300))
    add_user(db, "recent", created_at=days_before(1))
    db["users"].insert_one({"_id": ObjectId.from_datetime(days_before(2)), "clerk_id": "legacy"})

    users = await records_service.load_users(
        created_between(days_before(30), now), sort=records_service.NEWEST_FIRST
    )

    assert sorted(user.clerk_id for user in users) == ["legacy", "recent"]


@pytest.mark.asyncio
async def test_created_between_is_inclusive_at_both_ends(db, now):
    add_user(db, "at_start", created_at=days_before(30))
    add_user(db, "at_end", created_at=now)
    add_user(db, "after", created_at=days_before(-1))

    users = await records_service.load_users(created_between(days_before(30), now))

    assert sorted(user.clerk_id for user in users) == ["at_end", "at_start"]


@pytest.mark.asyncio
async def test_pipeline_entries_default_to_latest_update_first(db):
    add_pipeline_entry(db, "older", "prospect", updated_at=days_before(20))
    add_pipeline_entry(db, "newer", "prospect", updated_at=days_before(2))

    entries = await records_service.load_pipeline_entries()

    assert [entry.user_id for entry in entries] == ["newer", "older"]

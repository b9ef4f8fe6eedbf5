import pytest
from bson import ObjectId

from creator_analytics.core.config import settings
from creator_analytics.core.exceptions import ResourceNotFoundError, ValidationError
from creator_analytics.pipeline.stages import PipelineStage, TouchType
from creator_analytics.services import pipeline_service
from factories import (
    add_course,
    add_pipeline_entry,
    add_product,
    add_purchase,
    add_store,
    add_user,
    days_before,
)


def seed_creators(db):
    """One creator per derived stage."""
    add_user(db, "signed")
    add_store(db, "signed")

    add_user(db, "drafter")
    drafter_store = add_store(db, "drafter")
    add_course(db, "drafter", drafter_store)

    add_user(db, "publisher")
    publisher_store = add_store(db, "publisher")
    add_product(db, publisher_store, is_published=True)

    add_user(db, "seller")
    seller_store = add_store(db, "seller")
    add_course(db, "seller", seller_store, is_published=True)
    add_purchase(db, seller_store, "buyer_1", amount=2500, days_ago=3)

    add_user(db, "lapsed")
    lapsed_store = add_store(db, "lapsed")
    add_purchase(db, lapsed_store, "buyer_2", days_ago=90)


@pytest.mark.asyncio
async def test_creators_by_derived_stage(db, now):
    seed_creators(db)

    drafting = await pipeline_service.get_creators_by_stage(PipelineStage.DRAFTING, now=now)
    assert [row["user_id"] for row in drafting] == ["drafter"]
    assert drafting[0]["product_count"] == 1

    active = await pipeline_service.get_creators_by_stage(PipelineStage.ACTIVE, now=now)
    assert [row["user_id"] for row in active] == ["seller"]
    assert active[0]["total_revenue"] == 25.0
    assert active[0]["name"] == "Creator seller"


@pytest.mark.asyncio
async def test_creators_without_stage_returns_all_stores(db, now):
    seed_creators(db)

    rows = await pipeline_service.get_creators_by_stage(None, now=now)
    stages = {row["user_id"]: row["stage"] for row in rows}
    assert stages == {
        "signed": "signed_up",
        "drafter": "drafting",
        "publisher": "published",
        "seller": "active",
        "lapsed": "churn_risk",
    }


@pytest.mark.asyncio
async def test_derived_rows_carry_pipeline_outreach_fields(db, now):
    seed_creators(db)
    add_pipeline_entry(db, "drafter", "drafting", instagram_handle="@drafter",
                       last_touch_at=days_before(4), last_touch_type="dm")

    rows = await pipeline_service.get_creators_by_stage(PipelineStage.DRAFTING, now=now)
    assert rows[0]["instagram_handle"] == "@drafter"
    assert rows[0]["last_touch_type"] == "dm"
    assert rows[0]["days_since_last_touch"] == 4


@pytest.mark.asyncio
async def test_manual_stage_lists_pipeline_entries(db, now):
    add_user(db, "lead", name=None, first_name="Lee")
    add_pipeline_entry(db, "lead", "prospect", niche="trap")
    add_pipeline_entry(db, "ghost", "prospect")
    add_pipeline_entry(db, "invitee", "invited")

    rows = await pipeline_service.get_creators_by_stage(PipelineStage.PROSPECT, now=now)
    names = {row["user_id"]: row["name"] for row in rows}
    assert names == {"lead": "Lee", "ghost": "Unknown"}
    assert all(row["stage"] == "prospect" for row in rows)


@pytest.mark.asyncio
async def test_pipeline_stats(db, now):
    seed_creators(db)
    add_pipeline_entry(db, "p1", "prospect")
    add_pipeline_entry(db, "p2", "invited")
    add_pipeline_entry(db, "p3", "invited")

    stats = await pipeline_service.get_pipeline_stats(now=now)
    assert stats == {
        "prospect": 1,
        "invited": 2,
        "signed_up": 1,
        "drafting": 1,
        "published": 1,
        "first_sale": 0,
        "active": 1,
        "churn_risk": 1,
    }


@pytest.mark.asyncio
async def test_stuck_creators(db, now):
    add_user(db, "slow_drafter")
    add_pipeline_entry(db, "slow_drafter", "drafting", drafting_at=days_before(5))
    add_pipeline_entry(db, "fresh_drafter", "drafting", drafting_at=days_before(2))
    add_pipeline_entry(db, "slow_publisher", "published",
                       drafting_at=days_before(40), published_at=days_before(20))
    add_pipeline_entry(db, "fresh_publisher", "published", published_at=days_before(10))
    add_pipeline_entry(db, "no_timestamp", "drafting")

    stuck = await pipeline_service.get_stuck_creators(now=now)
    by_user = {row["user_id"]: row for row in stuck}

    assert set(by_user) == {"slow_drafter", "slow_publisher"}
    assert by_user["slow_drafter"]["days_since_step"] == 5
    assert by_user["slow_drafter"]["recommended_action"] == "Send setup help email + scheduling link"
    assert by_user["slow_drafter"]["name"] == "Creator slow_drafter"
    # measured from published_at, not drafting_at
    assert by_user["slow_publisher"]["days_since_step"] == 20
    assert by_user["slow_publisher"]["recommended_action"] == "Review marketing strategy + promotional tips"
    assert by_user["slow_publisher"]["name"] == "Unknown"


@pytest.mark.asyncio
async def test_stuck_creators_found_past_scan_limit(db, now, monkeypatch):
    monkeypatch.setattr(settings, "PIPELINE_SCAN_LIMIT", 2)
    add_pipeline_entry(db, "stale", "drafting", drafting_at=days_before(40), updated_at=days_before(40))
    for i in range(3):
        add_pipeline_entry(db, f"fresh_{i}", "drafting", drafting_at=days_before(1), updated_at=days_before(1))

    stuck = await pipeline_service.get_stuck_creators(now=now)

    assert [row["user_id"] for row in stuck] == ["stale"]


@pytest.mark.asyncio
async def test_update_creator_stage_sets_stage_timestamp(db, now):
    entry = add_pipeline_entry(db, "lead", "prospect")

    result = await pipeline_service.update_creator_stage(
        str(entry["_id"]), PipelineStage.INVITED, note="Follow up Friday", now=now
    )

    assert result == {"success": True}
    stored = db["creator_pipeline"].find_one()
    assert stored["stage"] == "invited"
    assert stored["invited_at"] == now
    assert stored["updated_at"] == now
    assert stored["next_step_note"] == "Follow up Friday"


@pytest.mark.asyncio
async def test_update_to_stage_without_timestamp_keeps_note(db, now):
    entry = add_pipeline_entry(db, "seller", "first_sale", next_step_note="keep me")

    await pipeline_service.update_creator_stage(str(entry["_id"]), PipelineStage.ACTIVE, now=now)

    stored = db["creator_pipeline"].find_one()
    assert stored["stage"] == "active"
    assert stored["next_step_note"] == "keep me"
    assert "active_at" not in stored


@pytest.mark.asyncio
async def test_update_unknown_entry_raises(db, now):
    with pytest.raises(ResourceNotFoundError):
        await pipeline_service.update_creator_stage(str(ObjectId()), PipelineStage.ACTIVE, now=now)


@pytest.mark.asyncio
async def test_update_with_malformed_id_raises_validation_error(db, now):
    with pytest.raises(ValidationError):
        await pipeline_service.update_creator_stage("not-an-id", PipelineStage.ACTIVE, now=now)


@pytest.mark.asyncio
async def test_add_creator_touch(db, now):
    entry = add_pipeline_entry(db, "lead", "invited", next_step_note="old note")

    await pipeline_service.add_creator_touch(str(entry["_id"]), TouchType.DM, now=now)

    stored = db["creator_pipeline"].find_one()
    assert stored["last_touch_at"] == now
    assert stored["last_touch_type"] == "dm"
    assert stored["next_step_note"] is None
    assert stored["stage"] == "invited"


@pytest.mark.asyncio
async def test_add_touch_to_unknown_entry_raises(db, now):
    with pytest.raises(ResourceNotFoundError):
        await pipeline_service.add_creator_touch(str(ObjectId()), TouchType.EMAIL, now=now)


@pytest.mark.asyncio
async def test_upsert_inserts_then_updates(db, now):
    entry_id = await pipeline_service.upsert_creator_pipeline(
        "lead", PipelineStage.PROSPECT, metadata={"niche": "lofi", "unknown_field": "dropped"}, now=now
    )

    docs = list(db["creator_pipeline"].find())
    assert len(docs) == 1
    assert str(docs[0]["_id"]) == entry_id
    assert docs[0]["created_at"] == docs[0]["updated_at"] == now
    assert docs[0]["niche"] == "lofi"
    assert "unknown_field" not in docs[0]

    later = days_before(-1, now)
    same_id = await pipeline_service.upsert_creator_pipeline(
        "lead", PipelineStage.INVITED, metadata={"audience_size": 5000}, now=later
    )

    assert same_id == entry_id
    assert len(docs) == 1
    assert docs[0]["stage"] == "invited"
    assert docs[0]["audience_size"] == 5000
    assert docs[0]["niche"] == "lofi"
    assert docs[0]["created_at"] == now
    assert docs[0]["updated_at"] == later

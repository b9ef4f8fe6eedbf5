import pytest

from creator_analytics.db.indexes import create_indexes

INDEXED = ("users", "purchases", "creator_pipeline", "analytics_events")


@pytest.mark.asyncio
async def test_create_indexes_is_idempotent(db):
    await create_indexes()
    first = {name: db[name].index_information() for name in INDEXED}

    await create_indexes()

    assert first["creator_pipeline"]["pipeline_user_unique"]["unique"] is True
    assert "pipeline_stage_drafting_at_idx" in first["creator_pipeline"]
    assert "clerk_id_idx" in first["users"]
    assert "purchase_admin_user_created_idx" in first["purchases"]
    assert "event_timestamp_idx" in first["analytics_events"]
    for name in INDEXED:
        assert db[name].index_information() == first[name]

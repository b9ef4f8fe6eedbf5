"""
creator_analytics/services/pipeline_service.py

Purpose: Creator pipeline (outreach CRM)

- List creators by stage (manual entries or derived from store activity)
- Stage counts across the whole pipeline
- Stuck creators with recommended follow-ups
- Admin mutations: move stage, log a touch, upsert an entry
"""

from datetime import datetime
from typing import Any, Dict, List, Optional

from creator_analytics.analytics.activity import CreatorActivity, CreatorRecords
from creator_analytics.analytics.classification import count_stages, derive_stage
from creator_analytics.analytics.stuck import days_since_step, is_stuck, recommended_action, stuck_query
from creator_analytics.core.exceptions import ResourceNotFoundError
from creator_analytics.core.logging import LogContext, get_logger
from creator_analytics.db.mongo import get_creator_pipeline_collection
from creator_analytics.models.records import PipelineEntry, UserRecord
from creator_analytics.pipeline.stages import (
    PipelineStage,
    TouchType,
    get_stage_timestamp_field,
    is_manual_stage,
)
from creator_analytics.services import records_service
from utils.constants import UNKNOWN_USER_NAME
from utils.time_utils import days_since, utcnow
from utils.validation_utils import parse_object_id

logger = get_logger(__name__)

PIPELINE_METADATA_FIELDS = ("daw", "instagram_handle", "tiktok_handle", "audience_size", "niche")


def _user_fields(user: Optional[UserRecord]) -> Dict[str, Any]:
    return {
        "name": user.display_name(UNKNOWN_USER_NAME) if user else UNKNOWN_USER_NAME,
        "email": user.email if user else None,
        "image_url": user.image_url if user else None,
    }


def _entry_fields(entry: Optional[PipelineEntry], now: datetime) -> Dict[str, Any]:
    if entry is None:
        return {
            "pipeline_id": None,
            "daw": None,
            "instagram_handle": None,
            "tiktok_handle": None,
            "audience_size": None,
            "niche": None,
            "last_touch_at": None,
            "last_touch_type": None,
            "next_step_note": None,
            "days_since_last_touch": None,
        }
    return {
        "pipeline_id": entry.id,
        "daw": entry.daw,
        "instagram_handle": entry.instagram_handle,
        "tiktok_handle": entry.tiktok_handle,
        "audience_size": entry.audience_size,
        "niche": entry.niche,
        "last_touch_at": entry.last_touch_at,
        "last_touch_type": entry.last_touch_type,
        "next_step_note": entry.next_step_note,
        "days_since_last_touch": days_since(entry.last_touch_at, now),
    }


def _derived_row(records: CreatorRecords, activity: CreatorActivity, stage: PipelineStage, now: datetime) -> Dict[str, Any]:
    store = activity.store
    row = {
        "user_id": store.user_id,
        "store_id": store.id,
        "store_name": store.name,
        "stage": stage.value,
        "total_revenue": activity.total_revenue,
        "product_count": activity.content_count,
        "created_at": store.created_at,
    }
    row.update(_user_fields(records.user_for(store)))
    row.update(_entry_fields(records.pipeline_for(store), now))
    return row


async def _manual_stage_rows(stage: PipelineStage, now: datetime) -> List[Dict[str, Any]]:
    entries = await records_service.load_pipeline_entries({"stage": stage.value})
    users = await records_service.load_users_by_clerk_id(entry.user_id for entry in entries)

    rows = []
    for entry in entries:
        row = {
            "user_id": entry.user_id,
            "store_id": entry.store_id,
            "store_name": None,
            "stage": entry.stage,
            "total_revenue": entry.total_revenue or 0,
            "product_count": entry.product_count or 0,
            "created_at": entry.created_at,
        }
        row.update(_user_fields(users.get(entry.user_id)))
        row.update(_entry_fields(entry, now))
        rows.append(row)
    return rows


async def get_creators_by_stage(
    stage: Optional[PipelineStage] = None,
    now: Optional[datetime] = None,
) -> List[Dict[str, Any]]:
    """
    Lists creators in a pipeline stage.

    Args:
        stage: Stage filter; None returns every store with its derived stage
        now: Reference time (defaults to current UTC)

    Returns:
        Creator rows enriched with user and outreach fields
    """
    now = now or utcnow()
    stage = PipelineStage(stage) if stage is not None else None

    if stage is not None and is_manual_stage(stage):
        return await _manual_stage_rows(stage, now)

    records = await records_service.load_creator_records()
    rows = []
    for store in records.stores:
        activity = records.activity_for(store, now)
        derived = derive_stage(activity)
        if stage is None or derived == stage:
            rows.append(_derived_row(records, activity, derived, now))

    logger.info(f"Listed {len(rows)} creators for stage {stage.value if stage else 'all'}")
    return rows


async def get_pipeline_stats(now: Optional[datetime] = None) -> Dict[str, int]:
    """
    Counts creators in every stage.
    """
    now = now or utcnow()
    records = await records_service.load_creator_records(with_pipeline=False)
    manual_entries = await records_service.load_pipeline_entries(
        {"stage": {"$in": [PipelineStage.PROSPECT.value, PipelineStage.INVITED.value]}}
    )
    activities = [records.activity_for(store, now) for store in records.stores]
    return count_stages(activities, [entry.stage for entry in manual_entries])


async def get_stuck_creators(now: Optional[datetime] = None) -> List[Dict[str, Any]]:
    """
    Pipeline entries that have stalled in drafting or published.
    """
    now = now or utcnow()
    entries = await records_service.load_pipeline_entries(stuck_query(now), sort=[("updated_at", 1)])
    stuck = [entry for entry in entries if is_stuck(entry, now)]
    users = await records_service.load_users_by_clerk_id(entry.user_id for entry in stuck)

    results = []
    for entry in stuck:
        user = users.get(entry.user_id)
        results.append({
            "id": entry.id,
            "user_id": entry.user_id,
            "name": user.display_name(UNKNOWN_USER_NAME) if user else UNKNOWN_USER_NAME,
            "email": user.email if user else None,
            "stage": entry.stage,
            "days_since_step": days_since_step(entry, now),
            "recommended_action": recommended_action(entry),
        })

    if results:
        logger.info(f"Found {len(results)} stuck creators")
    return results


async def _require_entry(creator_id: str) -> Dict[str, Any]:
    object_id = parse_object_id(creator_id, "creator_id")
    doc = await get_creator_pipeline_collection().find_one({"_id": object_id})
    if not doc:
        raise ResourceNotFoundError("Creator not found in pipeline", details={"creator_id": creator_id})
    return doc


async def update_creator_stage(
    creator_id: str,
    new_stage: PipelineStage,
    note: Optional[str] = None,
    now: Optional[datetime] = None,
) -> Dict[str, Any]:
    """
    Moves a pipeline entry to a new stage.

    Args:
        creator_id: Pipeline entry id
        new_stage: Target stage (any stage; admins may override)
        note: Optional next-step note

    Returns:
        {"success": True}

    Raises:
        ResourceNotFoundError: If the entry does not exist
    """
    now = now or utcnow()
    new_stage = PipelineStage(new_stage)

    with LogContext(creator_id=creator_id, stage=new_stage.value):
        doc = await _require_entry(creator_id)

        updates: Dict[str, Any] = {"stage": new_stage.value, "updated_at": now}
        timestamp_field = get_stage_timestamp_field(new_stage)
        if timestamp_field:
            updates[timestamp_field] = now
        if note:
            updates["next_step_note"] = note

        await get_creator_pipeline_collection().update_one({"_id": doc["_id"]}, {"$set": updates})
        logger.info(f"Pipeline stage changed from {doc.get('stage')} to {new_stage.value}")

    return {"success": True}


async def add_creator_touch(
    creator_id: str,
    touch_type: TouchType,
    note: Optional[str] = None,
    now: Optional[datetime] = None,
) -> Dict[str, Any]:
    """
    Records an outreach touch on a pipeline entry.
    """
    now = now or utcnow()
    touch_type = TouchType(touch_type)

    with LogContext(creator_id=creator_id):
        doc = await _require_entry(creator_id)
        await get_creator_pipeline_collection().update_one(
            {"_id": doc["_id"]},
            {
                "$set": {
                    "last_touch_at": now,
                    "last_touch_type": touch_type.value,
                    "next_step_note": note,
                    "updated_at": now,
                }
            }
        )
        logger.info(f"Logged {touch_type.value} touch")

    return {"success": True}


async def upsert_creator_pipeline(
    user_id: str,
    stage: PipelineStage,
    store_id: Optional[str] = None,
    metadata: Optional[Dict[str, Any]] = None,
    now: Optional[datetime] = None,
) -> str:
    """
    Creates or updates the pipeline entry for a user.

    Args:
        user_id: Creator's clerk id
        stage: Stage to record
        store_id: Creator's store, if any
        metadata: Outreach fields (daw, instagram_handle, tiktok_handle, audience_size, niche)

    Returns:
        Pipeline entry id
    """
    now = now or utcnow()
    stage = PipelineStage(stage)
    fields = {
        key: value
        for key, value in (metadata or {}).items()
        if key in PIPELINE_METADATA_FIELDS and value is not None
    }

    collection = get_creator_pipeline_collection()

    with LogContext(user_id=user_id, stage=stage.value):
        existing = await collection.find_one({"user_id": user_id})

        if existing:
            updates: Dict[str, Any] = {"stage": stage.value, "updated_at": now, **fields}
            if store_id:
                updates["store_id"] = store_id
            await collection.update_one({"_id": existing["_id"]}, {"$set": updates})
            logger.info("Pipeline entry updated")
            return str(existing["_id"])

        doc: Dict[str, Any] = {
            "user_id": user_id,
            "stage": stage.value,
            "store_id": store_id,
            "created_at": now,
            "updated_at": now,
            **fields,
        }
        timestamp_field = get_stage_timestamp_field(stage)
        if timestamp_field:
            doc[timestamp_field] = now

        result = await collection.insert_one(doc)
        logger.info("Pipeline entry created")
        return str(result.inserted_id)

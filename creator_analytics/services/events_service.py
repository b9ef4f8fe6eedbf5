"""
creator_analytics/services/events_service.py

Purpose: Analytics event store

- Track a single event
- Backfill events from existing users, stores, content, purchases, enrollments
- Event counts (total, by type, last 7 / 28 days)
- Guarded bulk deletion

Backfill is idempotent: every insert is preceded by an existence check, so
running it twice creates nothing the second time.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional

from bson import ObjectId

from creator_analytics.core.config import settings
from creator_analytics.core.logging import LogContext, get_logger
from creator_analytics.db.mongo import (
    get_analytics_events_collection,
    get_courses_collection,
    get_digital_products_collection,
    get_enrollments_collection,
    get_purchases_collection,
    get_stores_collection,
    get_users_collection,
)
from creator_analytics.models.records import (
    ContentRecord,
    EnrollmentRecord,
    PurchaseRecord,
    StoreRecord,
    UserRecord,
    creation_time,
)
from creator_analytics.services.records_service import scan
from utils.constants import (
    EVENT_CREATOR_PUBLISHED,
    EVENT_CREATOR_STARTED,
    EVENT_ENROLLMENT,
    EVENT_PURCHASE,
    EVENT_SIGNUP,
)
from utils.time_utils import days_ago, utcnow
from utils.validation_utils import validate_clear_confirmation

logger = get_logger(__name__)

BACKFILL_PHASES = ("signups", "creator_started", "creator_published", "purchases", "enrollments")


async def track_event(
    event_type: str,
    user_id: Optional[str] = None,
    session_id: Optional[str] = None,
    store_id: Optional[str] = None,
    resource_id: Optional[str] = None,
    resource_type: Optional[str] = None,
    metadata: Optional[Dict[str, Any]] = None,
    timestamp: Optional[datetime] = None,
) -> str:
    """
    Records one analytics event.

    Args:
        event_type: One of the known event types
        user_id: Clerk id of the acting user, if signed in
        session_id: Anonymous session id
        store_id: Store the event relates to
        resource_id: Course or product id
        resource_type: "course" or "product"
        metadata: Free-form attributes (utm_source, referrer, value, ...)
        timestamp: Event time (defaults to now)

    Returns:
        Inserted event id
    """
    doc = {
        "event_type": event_type,
        "user_id": user_id,
        "session_id": session_id,
        "store_id": store_id,
        "resource_id": resource_id,
        "resource_type": resource_type,
        "metadata": metadata or {},
        "timestamp": timestamp or utcnow(),
    }
    result = await get_analytics_events_collection().insert_one(doc)
    logger.debug(f"Tracked {event_type} event")
    return str(result.inserted_id)


async def _event_exists(query: Dict[str, Any]) -> bool:
    return await get_analytics_events_collection().find_one(query) is not None


async def _insert_event(doc: Dict[str, Any]) -> None:
    doc.setdefault("metadata", {})
    await get_analytics_events_collection().insert_one(doc)


async def _store_for_owner(user_id: Optional[str], cache: Dict[str, Optional[StoreRecord]]) -> Optional[StoreRecord]:
    if not user_id:
        return None
    if user_id not in cache:
        doc = await get_stores_collection().find_one({"user_id": user_id})
        cache[user_id] = StoreRecord.from_document(doc) if doc else None
    return cache[user_id]


async def backfill_signups() -> int:
    docs = await scan(get_users_collection(), {}, settings.EVENT_SCAN_LIMIT)
    created = 0
    for user in (UserRecord.from_document(doc) for doc in docs):
        if not user.clerk_id:
            continue
        if await _event_exists({"user_id": user.clerk_id, "event_type": EVENT_SIGNUP}):
            continue
        await _insert_event({
            "user_id": user.clerk_id,
            "event_type": EVENT_SIGNUP,
            "timestamp": user.created_at or utcnow(),
        })
        created += 1
    return created


async def backfill_creator_started() -> int:
    docs = await scan(get_stores_collection(), {}, settings.STORE_SCAN_LIMIT)
    created = 0
    for store in (StoreRecord.from_document(doc) for doc in docs):
        if not store.user_id:
            continue
        if await _event_exists({"user_id": store.user_id, "event_type": EVENT_CREATOR_STARTED}):
            continue
        await _insert_event({
            "user_id": store.user_id,
            "store_id": store.id,
            "event_type": EVENT_CREATOR_STARTED,
            "timestamp": store.created_at or utcnow(),
        })
        created += 1
    return created


async def backfill_creator_published() -> int:
    """
    One creator_published event per store, from the first published course,
    then the first published product.
    """
    course_docs = await scan(get_courses_collection(), {"is_published": True}, settings.CONTENT_SCAN_LIMIT)
    product_docs = await scan(
        get_digital_products_collection(), {"is_published": True}, settings.CONTENT_SCAN_LIMIT
    )
    items: List[ContentRecord] = [ContentRecord.from_document(doc, "course") for doc in course_docs]
    items += [ContentRecord.from_document(doc, "product") for doc in product_docs]

    stores: Dict[str, Optional[StoreRecord]] = {}
    created = 0
    for item in items:
        if not item.is_published or not item.user_id:
            continue
        store = await _store_for_owner(item.user_id, stores)
        if store is None:
            continue
        if await _event_exists({"store_id": store.id, "event_type": EVENT_CREATOR_PUBLISHED}):
            continue
        await _insert_event({
            "user_id": item.user_id,
            "store_id": store.id,
            "event_type": EVENT_CREATOR_PUBLISHED,
            "resource_id": item.id,
            "resource_type": item.kind,
            "timestamp": item.published_at or item.created_at or utcnow(),
        })
        created += 1
    return created


async def backfill_purchases() -> int:
    docs = await scan(get_purchases_collection(), {}, settings.PURCHASE_SCAN_LIMIT)
    stores: Dict[str, Optional[StoreRecord]] = {}
    created = 0
    for purchase in (PurchaseRecord.from_document(doc) for doc in docs):
        if not purchase.user_id:
            continue
        resource_id = purchase.resource_id
        if await _event_exists({
            "user_id": purchase.user_id,
            "event_type": EVENT_PURCHASE,
            "resource_id": resource_id,
        }):
            continue

        store_id = purchase.store_id
        if not store_id:
            store = await _store_for_owner(purchase.admin_user_id, stores)
            store_id = store.id if store else None

        await _insert_event({
            "user_id": purchase.user_id,
            "store_id": store_id,
            "event_type": EVENT_PURCHASE,
            "resource_id": resource_id,
            "resource_type": "product" if purchase.product_id else "course",
            "timestamp": purchase.created_at or utcnow(),
            "metadata": {"value": purchase.amount, "currency": "USD"},
        })
        created += 1
    return created


async def backfill_enrollments() -> int:
    docs = await scan(get_enrollments_collection(), {}, settings.ENROLLMENT_SCAN_LIMIT)
    course_owners: Dict[str, Optional[str]] = {}
    stores: Dict[str, Optional[StoreRecord]] = {}
    created = 0
    for doc in docs:
        enrollment = EnrollmentRecord.from_document(doc)
        if not enrollment.user_id or not enrollment.course_id:
            continue
        if await _event_exists({
            "user_id": enrollment.user_id,
            "event_type": EVENT_ENROLLMENT,
            "resource_id": enrollment.course_id,
        }):
            continue

        if enrollment.course_id not in course_owners:
            course_owners[enrollment.course_id] = await _course_owner(enrollment.course_id)
        store = await _store_for_owner(course_owners[enrollment.course_id], stores)

        await _insert_event({
            "user_id": enrollment.user_id,
            "store_id": store.id if store else None,
            "event_type": EVENT_ENROLLMENT,
            "resource_id": enrollment.course_id,
            "resource_type": "course",
            "timestamp": enrollment.created_at or utcnow(),
        })
        created += 1
    return created


async def _course_owner(course_id: str) -> Optional[str]:
    if not ObjectId.is_valid(course_id):
        return None
    course = await get_courses_collection().find_one({"_id": ObjectId(course_id)})
    return course.get("user_id") if course else None


PHASE_RUNNERS = {
    "signups": backfill_signups,
    "creator_started": backfill_creator_started,
    "creator_published": backfill_creator_published,
    "purchases": backfill_purchases,
    "enrollments": backfill_enrollments,
}


async def backfill_all() -> Dict[str, Any]:
    """
    Derives missing analytics events from existing records.

    Each phase runs on its own; a failing phase is logged and reported in
    `errors` without stopping the phases after it.

    Returns:
        Per-phase created counts plus `errors`
    """
    results: Dict[str, Any] = {phase: 0 for phase in BACKFILL_PHASES}
    errors: List[str] = []

    for phase in BACKFILL_PHASES:
        with LogContext(event_type=phase):
            try:
                results[phase] = await PHASE_RUNNERS[phase]()
                logger.info(f"Backfill phase {phase} created {results[phase]} events")
            except Exception as e:
                logger.error(f"Backfill phase {phase} failed: {str(e)}", exc_info=True)
                errors.append(f"{phase}: {str(e)}")

    results["errors"] = errors
    return results


async def get_event_counts(now: Optional[datetime] = None) -> Dict[str, Any]:
    """
    Totals over the (scan-bounded) event collection.
    """
    now = now or utcnow()
    last_7d_start = days_ago(7, now)
    last_28d_start = days_ago(28, now)

    docs = await scan(get_analytics_events_collection(), {}, settings.EVENT_SCAN_LIMIT)

    by_type: Dict[str, int] = {}
    last_7d = 0
    last_28d = 0
    for doc in docs:
        event_type = doc.get("event_type") or "unknown"
        by_type[event_type] = by_type.get(event_type, 0) + 1
        timestamp = creation_time(doc, "timestamp")
        if timestamp is None:
            continue
        if timestamp >= last_7d_start:
            last_7d += 1
        if timestamp >= last_28d_start:
            last_28d += 1

    return {
        "total": len(docs),
        "by_type": by_type,
        "last_7d": last_7d,
        "last_28d": last_28d,
    }


async def clear_all_events(confirm: Optional[str]) -> Dict[str, int]:
    """
    Deletes every analytics event.

    Raises:
        ValidationError: Unless `confirm` is the exact confirmation phrase
    """
    validate_clear_confirmation(confirm)
    result = await get_analytics_events_collection().delete_many({})
    logger.warning(f"Deleted {result.deleted_count} analytics events")
    return {"deleted": result.deleted_count}

"""
creator_analytics/services/records_service.py

Purpose: Bounded record loading

- Every scan is capped by a configured limit (no unbounded collection reads)
- Time-window filters for the windowed queries
- Converts raw documents into typed records
- Assembles CreatorRecords for the creator-level aggregations
- Single-document lookups used by several services
"""

from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional

from bson import ObjectId

from creator_analytics.analytics.activity import CreatorRecords
from creator_analytics.core.config import settings
from creator_analytics.core.logging import get_logger
from creator_analytics.db.mongo import (
    get_course_analytics_collection,
    get_courses_collection,
    get_creator_pipeline_collection,
    get_digital_products_collection,
    get_enrollments_collection,
    get_purchases_collection,
    get_stores_collection,
    get_users_collection,
)
from creator_analytics.models.records import (
    ContentRecord,
    EnrollmentRecord,
    PipelineEntry,
    PurchaseRecord,
    StoreRecord,
    UserRecord,
)
from utils.constants import PURCHASE_COMPLETED

logger = get_logger(__name__)

NEWEST_FIRST = [("created_at", -1)]
OLDEST_FIRST = [("created_at", 1)]
NEWEST_UPDATE_FIRST = [("updated_at", -1)]


async def scan(collection, query: Dict[str, Any], limit: int, sort=None) -> List[Dict[str, Any]]:
    """
    Reads at most `limit` documents matching `query`.

    Args:
        collection: Motor collection
        query: Filter document
        limit: Maximum number of documents returned
        sort: Optional list of (field, direction) pairs

    Returns:
        Raw documents
    """
    cursor = collection.find(query)
    if sort:
        cursor = cursor.sort(sort)
    docs = await cursor.limit(limit).to_list(length=limit)
    if len(docs) >= limit:
        logger.warning(
            f"Scan of {collection.name} hit its limit of {limit} documents; results may be partial"
        )
    return docs


def created_between(start: datetime, end: Optional[datetime] = None) -> Dict[str, Any]:
    """
    Filter for documents created in `[start, end]`.

    Documents without `created_at` are matched on the ObjectId timestamp,
    the same fallback `creation_time` applies when reading them.
    """
    bounds: Dict[str, Any] = {"$gte": start}
    id_bounds: Dict[str, Any] = {"$gte": ObjectId.from_datetime(start)}
    if end is not None:
        bounds["$lte"] = end
        id_bounds["$lt"] = ObjectId.from_datetime(end + timedelta(seconds=1))
    return {"$or": [{"created_at": bounds}, {"created_at": None, "_id": id_bounds}]}


async def find_by_ids(collection, field: str, ids: List[Any]) -> List[Dict[str, Any]]:
    """Documents whose `field` is one of `ids`; bounded by the number of ids."""
    return await collection.find({field: {"$in": ids}}).to_list(length=len(ids))


async def load_stores() -> List[StoreRecord]:
    docs = await scan(get_stores_collection(), {}, settings.STORE_SCAN_LIMIT)
    return [StoreRecord.from_document(doc) for doc in docs]


async def load_courses(query: Optional[Dict[str, Any]] = None) -> List[ContentRecord]:
    docs = await scan(get_courses_collection(), query or {}, settings.CONTENT_SCAN_LIMIT)
    return [ContentRecord.from_document(doc, "course") for doc in docs]


async def load_products(query: Optional[Dict[str, Any]] = None) -> List[ContentRecord]:
    docs = await scan(get_digital_products_collection(), query or {}, settings.CONTENT_SCAN_LIMIT)
    return [ContentRecord.from_document(doc, "product") for doc in docs]


async def load_purchases(query: Optional[Dict[str, Any]] = None, sort=None) -> List[PurchaseRecord]:
    docs = await scan(get_purchases_collection(), query or {}, settings.PURCHASE_SCAN_LIMIT, sort=sort)
    return [PurchaseRecord.from_document(doc) for doc in docs]


async def load_enrollments(query: Optional[Dict[str, Any]] = None, sort=None) -> List[EnrollmentRecord]:
    docs = await scan(get_enrollments_collection(), query or {}, settings.ENROLLMENT_SCAN_LIMIT, sort=sort)
    return [EnrollmentRecord.from_document(doc) for doc in docs]


async def load_users(query: Optional[Dict[str, Any]] = None, sort=None) -> List[UserRecord]:
    docs = await scan(get_users_collection(), query or {}, settings.USER_SCAN_LIMIT, sort=sort)
    return [UserRecord.from_document(doc) for doc in docs]


async def load_users_by_clerk_id(clerk_ids) -> Dict[str, UserRecord]:
    """Users keyed by clerk id, for the given ids only."""
    ids = sorted({clerk_id for clerk_id in clerk_ids if clerk_id})
    if not ids:
        return {}
    docs = await find_by_ids(get_users_collection(), "clerk_id", ids)
    users = [UserRecord.from_document(doc) for doc in docs]
    return {user.clerk_id: user for user in users}


async def load_pipeline_entries(
    query: Optional[Dict[str, Any]] = None,
    sort=NEWEST_UPDATE_FIRST,
) -> List[PipelineEntry]:
    docs = await scan(get_creator_pipeline_collection(), query or {}, settings.PIPELINE_SCAN_LIMIT, sort=sort)
    return [PipelineEntry.from_document(doc) for doc in docs]


async def load_course_ratings(course_ids) -> Dict[str, float]:
    """Course id -> average rating, for courses that have analytics."""
    ids = [course_id for course_id in course_ids if course_id]
    if not ids:
        return {}
    docs = await scan(
        get_course_analytics_collection(),
        {"course_id": {"$in": ids}},
        settings.CONTENT_SCAN_LIMIT,
    )
    ratings: Dict[str, float] = {}
    for doc in docs:
        rating = doc.get("avg_rating") or 0
        course_id = str(doc.get("course_id"))
        if rating > 0 and course_id not in ratings:
            ratings[course_id] = rating
    return ratings


async def load_creator_records(with_pipeline: bool = True) -> CreatorRecords:
    """
    Loads everything the creator-level aggregations read.

    Purchases are limited to completed ones; users and pipeline entries are
    loaded only for store owners.
    """
    stores = await load_stores()
    courses = await load_courses()
    products = await load_products()
    purchases = await load_purchases({"status": PURCHASE_COMPLETED})
    enrollments = await load_enrollments()
    ratings = await load_course_ratings([course.id for course in courses])

    owner_ids = [store.user_id for store in stores]
    users = await load_users_by_clerk_id(owner_ids)

    pipeline: Dict[str, PipelineEntry] = {}
    if with_pipeline:
        entries = await load_pipeline_entries({"user_id": {"$in": sorted(set(owner_ids))}})
        for entry in entries:
            pipeline.setdefault(entry.user_id, entry)

    logger.debug(
        f"Loaded creator records: {len(stores)} stores, {len(courses)} courses, "
        f"{len(products)} products, {len(purchases)} completed purchases"
    )

    return CreatorRecords(
        stores=stores,
        courses=courses,
        products=products,
        purchases=purchases,
        enrollments=enrollments,
        course_ratings=ratings,
        users=users,
        pipeline=pipeline,
    )


async def get_user(clerk_id: str) -> Optional[UserRecord]:
    doc = await get_users_collection().find_one({"clerk_id": clerk_id})
    return UserRecord.from_document(doc) if doc else None


async def get_store_for_user(clerk_id: str) -> Optional[StoreRecord]:
    doc = await get_stores_collection().find_one({"user_id": clerk_id})
    return StoreRecord.from_document(doc) if doc else None


def in_window(moment: Optional[datetime], start: datetime, end: Optional[datetime] = None) -> bool:
    if moment is None or moment < start:
        return False
    return end is None or moment <= end

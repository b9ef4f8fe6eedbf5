"""
creator_analytics/services/health_service.py

Purpose: Creator health and success tracking

- Leaderboard ranked by revenue, health score, catalogue size or enrollments
- Creators needing attention (gone quiet, or published without sales)
- Bulk-email audiences
- Per-creator onboarding checklist
"""

from datetime import datetime
from typing import Any, Dict, List, Optional

from creator_analytics.analytics.activity import CreatorActivity, CreatorRecords
from creator_analytics.analytics.health import (
    attention_issue,
    attention_score,
    compute_health_score,
    health_status,
    onboarding_progress,
)
from creator_analytics.core.exceptions import ResourceNotFoundError
from creator_analytics.core.logging import LogContext, get_logger
from creator_analytics.pipeline.stages import SEVERITY_ORDER, BulkEmailFilter, LeaderboardSort, Severity
from creator_analytics.services import records_service
from utils.constants import (
    DEFAULT_CREATOR_NAME,
    DEFAULT_LEADERBOARD_LIMIT,
    NEW_CREATOR_WINDOW_DAYS,
    ONBOARDING_STEPS,
    PURCHASE_COMPLETED,
    TOP_PERFORMER_REVENUE,
    UNKNOWN_USER_NAME,
)
from utils.time_utils import days_ago, utcnow

logger = get_logger(__name__)

LEADERBOARD_SORT_KEYS = {
    LeaderboardSort.REVENUE: lambda row: row["total_revenue"],
    LeaderboardSort.HEALTH_SCORE: lambda row: row["health_score"],
    LeaderboardSort.PRODUCTS: lambda row: row["product_count"] + row["course_count"],
    LeaderboardSort.ENROLLMENTS: lambda row: row["total_enrollments"],
}


def _leaderboard_row(records: CreatorRecords, activity: CreatorActivity) -> Dict[str, Any]:
    store = activity.store
    user = records.user_for(store)
    entry = records.pipeline_for(store)

    total_enrollments = records.enrollment_count(activity.courses)
    average_rating = records.average_rating(activity.courses)
    score = compute_health_score(
        total_revenue=activity.total_revenue,
        revenue_this_month=activity.revenue_this_month,
        days_since_last_sale=activity.days_since_last_sale,
        content_count=activity.content_count,
        average_rating=average_rating,
        total_enrollments=total_enrollments,
    )

    return {
        "id": entry.id if entry else None,
        "user_id": store.user_id,
        "store_id": store.id,
        "user_name": user.name or user.first_name or user.email or UNKNOWN_USER_NAME,
        "user_email": user.email,
        "user_avatar": user.image_url,
        "store_name": store.name,
        "store_slug": store.slug,
        "health_score": score,
        "health_status": health_status(score).value,
        "total_revenue": activity.total_revenue,
        "revenue_this_month": activity.revenue_this_month,
        "product_count": len(activity.products),
        "course_count": len(activity.courses),
        "total_enrollments": total_enrollments,
        "average_rating": average_rating,
        "last_active_at": activity.last_sale_at,
        "days_since_last_sale": activity.days_since_last_sale,
        "onboarding_progress": onboarding_progress(activity),
    }


async def get_creator_leaderboard(
    limit: int = DEFAULT_LEADERBOARD_LIMIT,
    sort_by: LeaderboardSort = LeaderboardSort.REVENUE,
    now: Optional[datetime] = None,
) -> List[Dict[str, Any]]:
    """
    Ranks creators for the admin leaderboard.

    Args:
        limit: Maximum rows returned
        sort_by: Sort key (descending)
        now: Reference time

    Returns:
        Rows with `rank` 1..n, assigned after sorting
    """
    now = now or utcnow()
    records = await records_service.load_creator_records()

    rows = [
        _leaderboard_row(records, records.activity_for(store, now))
        for store in records.stores
        if records.user_for(store) is not None
    ]

    # sorted() is stable, so ties keep store scan order
    rows = sorted(rows, key=LEADERBOARD_SORT_KEYS[LeaderboardSort(sort_by)], reverse=True)[:limit]
    for rank, row in enumerate(rows, start=1):
        row["rank"] = rank

    return rows


async def get_creators_needing_attention(now: Optional[datetime] = None) -> List[Dict[str, Any]]:
    """
    Creators an admin should reach out to, most severe first.
    """
    now = now or utcnow()
    records = await records_service.load_creator_records(with_pipeline=False)

    results = []
    for store in records.stores:
        user = records.user_for(store)
        if user is None:
            continue

        activity = records.activity_for(store, now)
        issue = attention_issue(activity)
        if issue is None:
            continue

        results.append({
            "user_id": store.user_id,
            "user_name": user.display_name(UNKNOWN_USER_NAME),
            "user_email": user.email,
            "store_name": store.name,
            "issue": issue.issue,
            "severity": issue.severity.value,
            "health_score": attention_score(activity),
            "recommended_action": issue.recommended_action,
            "days_since_last_sale": activity.days_since_last_sale,
        })

    results.sort(key=lambda row: SEVERITY_ORDER[Severity(row["severity"])])
    logger.info(f"{len(results)} creators need attention")
    return results


def _matches_filter(activity: CreatorActivity, audience: BulkEmailFilter, now: datetime) -> bool:
    if audience == BulkEmailFilter.NO_SALES_30D:
        return activity.total_revenue > 0 and not activity.has_recent_sales
    if audience == BulkEmailFilter.LOW_HEALTH:
        return activity.total_revenue == 0 and activity.has_content
    if audience == BulkEmailFilter.NEW_CREATORS:
        created_at = activity.store.created_at
        return created_at is not None and created_at > days_ago(NEW_CREATOR_WINDOW_DAYS, now)
    if audience == BulkEmailFilter.TOP_PERFORMERS:
        return activity.total_revenue >= TOP_PERFORMER_REVENUE
    return True


async def get_creators_for_bulk_email(
    audience: BulkEmailFilter = BulkEmailFilter.ALL,
    now: Optional[datetime] = None,
) -> List[Dict[str, Any]]:
    """
    Creators with an email address matching a bulk-email audience.
    """
    now = now or utcnow()
    audience = BulkEmailFilter(audience)
    records = await records_service.load_creator_records(with_pipeline=False)

    results = []
    for store in records.stores:
        user = records.user_for(store)
        if user is None or not user.email:
            continue
        activity = records.activity_for(store, now)
        if not _matches_filter(activity, audience, now):
            continue
        results.append({
            "user_id": store.user_id,
            "name": user.display_name(DEFAULT_CREATOR_NAME),
            "email": user.email,
            "store_name": store.name,
            "total_revenue": activity.total_revenue,
            "product_count": activity.content_count,
            "last_sale_at": activity.last_sale_at,
        })

    results.sort(key=lambda row: row["total_revenue"], reverse=True)
    return results


def _earliest(moments) -> Optional[datetime]:
    known = [moment for moment in moments if moment is not None]
    return min(known) if known else None


async def get_creator_onboarding_status(user_id: str) -> Dict[str, Any]:
    """
    Onboarding checklist for one creator.

    Args:
        user_id: Creator's clerk id

    Returns:
        {"steps": [...], "overall_progress": 0-100}

    Raises:
        ResourceNotFoundError: If the user does not exist
    """
    with LogContext(user_id=user_id):
        user = await records_service.get_user(user_id)
        if user is None:
            raise ResourceNotFoundError("User not found", details={"user_id": user_id})

        store = await records_service.get_store_for_user(user_id)
        courses = await records_service.load_courses({"user_id": user_id})
        products = []
        sales = []
        if store is not None:
            products = await records_service.load_products({"store_id": store.id})
            sales = await records_service.load_purchases(
                {"store_id": store.id, "status": PURCHASE_COMPLETED}, sort=records_service.OLDEST_FIRST
            )

        product_at = _earliest(course.created_at for course in courses) or _earliest(
            product.created_at for product in products
        )
        publish_at = _earliest(course.published_at for course in courses if course.is_published)
        has_published = any(item.is_published for item in courses + products)
        first_sale_at = _earliest(sale.created_at for sale in sales)

        completion = {
            "account": (True, user.created_at),
            "store": (store is not None, store.created_at if store else None),
            "product": (bool(courses or products), product_at),
            "publish": (has_published, publish_at),
            "first_sale": (bool(sales), first_sale_at),
        }

        steps = []
        for step_id, title, description in ONBOARDING_STEPS:
            completed, completed_at = completion[step_id]
            steps.append({
                "id": step_id,
                "title": title,
                "description": description,
                "completed": completed,
                "completed_at": completed_at if completed else None,
            })

        done = sum(1 for step in steps if step["completed"])
        return {
            "user_id": user_id,
            "steps": steps,
            "overall_progress": round(done / len(steps) * 100),
        }

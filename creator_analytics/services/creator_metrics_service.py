"""
creator_analytics/services/creator_metrics_service.py

Purpose: Creator-facing revenue and product analytics

- Revenue over a date range with fee breakdown and daily buckets
- Per-item performance (views, sales, revenue, conversion, rating)
- Overview for a 7d / 30d / 90d / 1y window with period-over-period changes
"""

import math
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional

from creator_analytics.analytics.funnel import percentage
from creator_analytics.core.config import settings
from creator_analytics.core.exceptions import ResourceNotFoundError
from creator_analytics.core.logging import LogContext, get_logger
from creator_analytics.db.mongo import get_analytics_events_collection
from creator_analytics.models.records import AnalyticsEvent, PurchaseRecord
from creator_analytics.pipeline.stages import TIME_RANGE_DAYS, TimeRange
from creator_analytics.services import records_service
from creator_analytics.services.records_service import NEWEST_FIRST, created_between, in_window, scan
from utils.constants import (
    EVENT_COURSE_VIEW,
    EVENT_PRODUCT_VIEW,
    MAX_DAILY_BUCKETS,
    MAX_REVENUE_PERIODS,
    NET_REVENUE_RATE,
    PLATFORM_FEE_RATE,
    PROCESSING_FEE_RATE,
    TOP_PRODUCTS_LIMIT,
)
from utils.time_utils import SECONDS_PER_DAY, format_day, utcnow
from utils.validation_utils import validate_date_range

logger = get_logger(__name__)


def _dollars(cents: float) -> float:
    return round(cents) / 100


async def get_revenue_analytics(user_id: str, start: datetime, end: datetime) -> Dict[str, Any]:
    """
    Revenue for a creator between `start` and `end` (inclusive).

    Args:
        user_id: Creator's clerk id (matched against purchase `admin_user_id`)
        start: Range start (naive UTC)
        end: Range end (naive UTC)

    Returns:
        Gross, fee and net totals in dollars plus up to 30 daily buckets

    Raises:
        ValidationError: If end is before start
    """
    validate_date_range(start, end)

    with LogContext(user_id=user_id):
        purchases = await records_service.load_purchases(
            {"admin_user_id": user_id, **created_between(start, end)}, sort=NEWEST_FIRST
        )
        in_range = [purchase for purchase in purchases if in_window(purchase.created_at, start, end)]

        gross = sum(purchase.amount for purchase in in_range)

        day_count = min(math.ceil((end - start).total_seconds() / SECONDS_PER_DAY), MAX_DAILY_BUCKETS)
        daily = []
        for offset in range(day_count):
            day_start = start + timedelta(days=offset)
            day_end = day_start + timedelta(days=1)
            day_sales = [p for p in in_range if day_start <= p.created_at < day_end]
            daily.append({
                "date": format_day(day_start),
                "revenue": _dollars(sum(p.amount for p in day_sales) * NET_REVENUE_RATE),
                "sales": len(day_sales),
            })

        logger.info(f"Revenue analytics over {len(in_range)} purchases")

        return {
            "total_revenue": _dollars(gross),
            "platform_fee": _dollars(gross * PLATFORM_FEE_RATE),
            "processing_fee": _dollars(gross * PROCESSING_FEE_RATE),
            "net_revenue": _dollars(gross * NET_REVENUE_RATE),
            "sales": len(in_range),
            "daily_revenue": daily,
        }


async def _view_events(resource_ids: List[str], since: Optional[datetime] = None) -> List[AnalyticsEvent]:
    """Course and product view events for the given items, newest first."""
    if not resource_ids:
        return []
    query: Dict[str, Any] = {
        "event_type": {"$in": [EVENT_COURSE_VIEW, EVENT_PRODUCT_VIEW]},
        "resource_id": {"$in": resource_ids},
    }
    if since is not None:
        query["timestamp"] = {"$gte": since}
    docs = await scan(
        get_analytics_events_collection(),
        query,
        settings.EVENT_SCAN_LIMIT,
        sort=[("timestamp", -1)],
    )
    return [AnalyticsEvent.from_document(doc) for doc in docs]


def _count_by_resource(resource_ids) -> Dict[str, int]:
    counts: Dict[str, int] = {}
    for resource_id in resource_ids:
        if resource_id:
            counts[resource_id] = counts.get(resource_id, 0) + 1
    return counts


async def get_product_analytics(user_id: str) -> List[Dict[str, Any]]:
    """
    Performance of every course and digital product a creator owns,
    highest revenue first.

    Raises:
        ResourceNotFoundError: If the user does not exist
    """
    with LogContext(user_id=user_id):
        user = await records_service.get_user(user_id)
        if user is None:
            raise ResourceNotFoundError("User not found", details={"user_id": user_id})

        courses = await records_service.load_courses({"user_id": user_id})
        products = await records_service.load_products({"user_id": user_id})
        items = courses + products
        item_ids = [item.id for item in items]

        views = _count_by_resource(event.resource_id for event in await _view_events(item_ids))
        ratings = await records_service.load_course_ratings([course.id for course in courses])

        sales: Dict[str, int] = {}
        if item_ids:
            purchases = await records_service.load_purchases({
                "$or": [{"course_id": {"$in": item_ids}}, {"product_id": {"$in": item_ids}}]
            })
            sales = _count_by_resource(purchase.resource_id for purchase in purchases)

        results = []
        for item in items:
            item_views = views.get(item.id, 0)
            item_sales = sales.get(item.id, 0)
            conversion = item_sales / item_views * 100 if item_views else 0
            results.append({
                "id": item.id,
                "title": item.title or ("Untitled Course" if item.kind == "course" else "Untitled Product"),
                "type": item.kind,
                "is_published": item.is_published,
                "views": item_views,
                "sales": item_sales,
                "revenue": item_sales * (item.price or 0),
                "conversion_rate": round(conversion, 2),
                "rating": ratings.get(item.id, 0),
                "created_at": item.created_at,
            })

        results.sort(key=lambda row: row["revenue"], reverse=True)
        return results


def _percent_change(current: float, previous: float) -> float:
    if not previous:
        return 0
    return round((current - previous) / previous * 100, 1)


def _period_label(time_range: TimeRange, index: int, period_start: datetime) -> str:
    if time_range == TimeRange.YEAR:
        return period_start.strftime("%b")
    if time_range == TimeRange.QUARTER:
        return f"Week {index + 1}"
    return f"{period_start:%b} {period_start.day}"


def _revenue_periods(time_range: TimeRange, start: datetime, length: timedelta, sales: List[PurchaseRecord]) -> List[Dict[str, Any]]:
    count = min(TIME_RANGE_DAYS[time_range], MAX_REVENUE_PERIODS)
    period_length = length / count
    periods = []
    for index in range(count):
        period_start = start + period_length * index
        period_end = period_start + period_length
        period_sales = [p for p in sales if period_start <= p.created_at < period_end]
        periods.append({
            "period": _period_label(time_range, index, period_start),
            "revenue": _dollars(sum(p.amount for p in period_sales)),
            "sales": len(period_sales),
        })
    return periods


async def get_creator_analytics(
    user_id: str,
    time_range: TimeRange = TimeRange.MONTH,
    now: Optional[datetime] = None,
) -> Dict[str, Any]:
    """
    Sales, views and catalogue overview for a creator over a reporting window,
    with changes measured against the window of the same length before it.

    Args:
        user_id: Creator's clerk id
        time_range: 7d, 30d, 90d or 1y
        now: Reference time (defaults to current UTC)

    Returns:
        {"time_range", "overview", "revenue_data", "top_products", "revenue_share"}

    Raises:
        ResourceNotFoundError: If the user does not exist
    """
    now = now or utcnow()
    time_range = TimeRange(time_range)
    length = timedelta(days=TIME_RANGE_DAYS[time_range])
    start = now - length
    previous_start = start - length

    with LogContext(user_id=user_id):
        user = await records_service.get_user(user_id)
        if user is None:
            raise ResourceNotFoundError("User not found", details={"user_id": user_id})

        courses = await records_service.load_courses({"user_id": user_id})
        products = await records_service.load_products({"user_id": user_id})
        items = courses + products

        purchases = await records_service.load_purchases(
            {"admin_user_id": user_id, **created_between(previous_start, now)}, sort=NEWEST_FIRST
        )
        sales = [p for p in purchases if in_window(p.created_at, start, now)]
        previous_sales = [p for p in purchases if in_window(p.created_at, previous_start) and p.created_at < start]

        view_events = await _view_events([item.id for item in items], since=previous_start)
        views = [event for event in view_events if in_window(event.timestamp, start, now)]
        previous_views = [
            event for event in view_events
            if in_window(event.timestamp, previous_start) and event.timestamp < start
        ]

        buyers = await records_service.load_purchases({"admin_user_id": user_id})
        ratings = await records_service.load_course_ratings([course.id for course in courses])

        revenue_cents = sum(p.amount for p in sales)
        previous_revenue_cents = sum(p.amount for p in previous_sales)
        conversion = percentage(len(sales), len(views))
        previous_conversion = percentage(len(previous_sales), len(previous_views))
        course_ratings = [rating for rating in ratings.values() if rating > 0]

        overview = {
            "total_revenue": _dollars(revenue_cents),
            "total_sales": len(sales),
            "total_views": len(views),
            "conversion_rate": round(conversion, 2),
            "total_products": len(items),
            "published_products": sum(1 for item in items if item.is_published),
            "total_students": len({p.user_id for p in buyers if p.user_id}),
            "avg_rating": round(sum(course_ratings) / len(course_ratings), 1) if course_ratings else 0,
            "revenue_change": _percent_change(revenue_cents, previous_revenue_cents),
            "sales_change": _percent_change(len(sales), len(previous_sales)),
            "views_change": _percent_change(len(views), len(previous_views)),
            "conversion_change": _percent_change(conversion, previous_conversion),
        }

        item_revenue: Dict[str, int] = {}
        for purchase in sales:
            if purchase.resource_id:
                item_revenue[purchase.resource_id] = item_revenue.get(purchase.resource_id, 0) + purchase.amount
        item_sales = _count_by_resource(p.resource_id for p in sales)
        item_views = _count_by_resource(event.resource_id for event in views)

        top_products = sorted(
            (
                {
                    "id": item.id,
                    "title": item.title or ("Untitled Course" if item.kind == "course" else "Untitled Product"),
                    "type": item.kind,
                    "revenue": _dollars(item_revenue.get(item.id, 0)),
                    "sales": item_sales.get(item.id, 0),
                    "views": item_views.get(item.id, 0),
                    "rating": ratings.get(item.id, 0),
                }
                for item in items
            ),
            key=lambda row: row["revenue"],
            reverse=True,
        )

        course_cents = sum(item_revenue.get(course.id, 0) for course in courses)
        product_cents = sum(item_revenue.get(product.id, 0) for product in products)
        catalogue_cents = course_cents + product_cents

        logger.info(
            f"Creator analytics over {time_range.value}: {len(sales)} sales, {len(views)} views"
        )

        return {
            "time_range": time_range.value,
            "overview": overview,
            "revenue_data": _revenue_periods(time_range, start, length, sales),
            "top_products": top_products[:TOP_PRODUCTS_LIMIT],
            "revenue_share": {
                "courses": round(percentage(course_cents, catalogue_cents)),
                "products": round(percentage(product_cents, catalogue_cents)),
            },
        }

"""
creator_analytics/services/conversion_service.py

Purpose: Conversion optimization queries

- Purchase funnel for a rolling window
- Platform-wide conversion metrics
- Abandoned carts
- Coupon performance
- Conversion by traffic source
"""

from collections import defaultdict
from dataclasses import asdict
from datetime import datetime
from typing import Any, Dict, List, Optional

from bson import ObjectId

from creator_analytics.analytics.funnel import (
    average_days_to_convert,
    build_funnel_steps,
    event_value_cents,
    percentage,
    traffic_source,
)
from creator_analytics.core.config import settings
from creator_analytics.core.logging import get_logger
from creator_analytics.db.mongo import (
    get_analytics_events_collection,
    get_coupon_usages_collection,
    get_coupons_collection,
    get_courses_collection,
    get_digital_products_collection,
)
from creator_analytics.models.records import AnalyticsEvent, document_id
from creator_analytics.services import records_service
from creator_analytics.services.records_service import (
    NEWEST_FIRST,
    created_between,
    find_by_ids,
    in_window,
    scan,
)
from utils.constants import (
    DEFAULT_FUNNEL_DAYS,
    EVENT_COURSE_VIEW,
    EVENT_PURCHASE,
    EVENT_SIGNUP,
    PURCHASE_COMPLETED,
    PURCHASE_REFUNDED,
    RECENT_COUPON_USAGES_LIMIT,
    TOP_COUPONS_LIMIT,
    TOP_SOURCES_LIMIT,
)
from utils.time_utils import days_ago, days_since, utcnow
from utils.validation_utils import validate_window_days

logger = get_logger(__name__)


async def _load_events(query: Dict[str, Any]) -> List[AnalyticsEvent]:
    docs = await scan(get_analytics_events_collection(), query, settings.EVENT_SCAN_LIMIT)
    return [AnalyticsEvent.from_document(doc) for doc in docs]


async def get_purchase_funnel(days: int = DEFAULT_FUNNEL_DAYS, now: Optional[datetime] = None) -> Dict[str, Any]:
    """
    Builds the Visit -> Sign Up -> View Course -> Enroll -> Purchase funnel.

    Args:
        days: Window length, ending now
        now: Reference time

    Returns:
        {"steps": [...], "overall_conversion": float, "average_time_to_convert": float}
    """
    validate_window_days(days)
    now = now or utcnow()
    start = days_ago(days, now)

    window = created_between(start, now)
    users = await records_service.load_users(window, sort=NEWEST_FIRST)
    enrollments = await records_service.load_enrollments(window, sort=NEWEST_FIRST)
    purchases = await records_service.load_purchases(
        {"status": PURCHASE_COMPLETED, **window}, sort=NEWEST_FIRST
    )
    course_views = await _load_events(
        {"event_type": EVENT_COURSE_VIEW, "timestamp": {"$gte": start, "$lte": now}}
    )

    signups = {
        user.clerk_id: user.created_at
        for user in users
        if in_window(user.created_at, start, now)
    }
    recent_views = [event for event in course_views if in_window(event.timestamp, start, now)]
    recent_purchases = [purchase for purchase in purchases if in_window(purchase.created_at, start, now)]

    signup_count = len(signups)
    visit_count = signup_count + len(recent_views)
    view_count = len({event.user_id for event in recent_views})
    enroll_count = len({
        enrollment.user_id
        for enrollment in enrollments
        if in_window(enrollment.created_at, start, now)
    })
    purchase_count = len({purchase.user_id for purchase in recent_purchases})

    steps = build_funnel_steps([visit_count, signup_count, view_count, enroll_count, purchase_count])
    logger.info(f"Funnel over {days} days: {visit_count} visits, {purchase_count} purchasers")

    return {
        "steps": [asdict(step) for step in steps],
        "overall_conversion": percentage(purchase_count, visit_count),
        "average_time_to_convert": average_days_to_convert(signups, recent_purchases),
    }


async def get_conversion_metrics() -> Dict[str, float]:
    """
    Platform-wide conversion rates, all as percentages except average order value.
    """
    users = await records_service.load_users()
    enrollments = await records_service.load_enrollments()
    purchases = await records_service.load_purchases()
    visitor_events = await _load_events({})

    completed = [purchase for purchase in purchases if purchase.is_completed]

    user_ids = {user.clerk_id for user in users if user.clerk_id}
    enrolled = {enrollment.user_id for enrollment in enrollments if enrollment.user_id}
    buyers: Dict[str, int] = defaultdict(int)
    for purchase in completed:
        if purchase.user_id:
            buyers[purchase.user_id] += 1

    visitors = {event.visitor_key for event in visitor_events if event.visitor_key}
    if visitors:
        visit_to_signup = percentage(len(visitors & user_ids), len(visitors))
    else:
        visit_to_signup = 100

    revenue = sum(purchase.dollars for purchase in completed)
    abandoned = [purchase for purchase in purchases if purchase.is_abandoned]
    repeat_buyers = sum(1 for count in buyers.values() if count > 1)

    return {
        "visit_to_signup": visit_to_signup,
        "signup_to_enroll": percentage(len(enrolled), len(users)),
        "enroll_to_purchase": percentage(len(buyers), len(enrolled)),
        "overall_conversion": percentage(len(buyers), len(users)),
        "average_order_value": revenue / len(completed) if completed else 0,
        "cart_abandonment_rate": percentage(len(abandoned), len(purchases)),
        "repeat_purchase_rate": percentage(repeat_buyers, len(buyers)),
    }


async def _titles(collection, ids) -> Dict[str, str]:
    object_ids = [ObjectId(value) for value in ids if ObjectId.is_valid(value)]
    if not object_ids:
        return {}
    docs = await find_by_ids(collection, "_id", object_ids)
    return {document_id(doc): doc.get("title") for doc in docs}


async def get_abandoned_carts(days: int = DEFAULT_FUNNEL_DAYS, now: Optional[datetime] = None) -> List[Dict[str, Any]]:
    """
    Purchases neither completed nor refunded, newest first.
    """
    validate_window_days(days)
    now = now or utcnow()
    start = days_ago(days, now)

    purchases = await records_service.load_purchases(
        {"status": {"$nin": [PURCHASE_COMPLETED, PURCHASE_REFUNDED]}, **created_between(start, now)},
        sort=NEWEST_FIRST,
    )
    abandoned = [
        purchase for purchase in purchases
        if purchase.is_abandoned and in_window(purchase.created_at, start, now)
    ]

    users = await records_service.load_users_by_clerk_id(purchase.user_id for purchase in abandoned)
    course_titles = await _titles(
        get_courses_collection(), {p.course_id for p in abandoned if p.course_id}
    )
    product_titles = await _titles(
        get_digital_products_collection(), {p.product_id for p in abandoned if p.product_id}
    )

    results = []
    for purchase in abandoned:
        user = users.get(purchase.user_id)
        if purchase.course_id:
            product_type = "course"
            product_name = course_titles.get(purchase.course_id) or "Unknown Course"
        elif purchase.product_id:
            product_type = "product"
            product_name = product_titles.get(purchase.product_id) or "Unknown Product"
        else:
            product_type = "unknown"
            product_name = "Unknown"

        results.append({
            "user_id": purchase.user_id,
            "user_name": (user.name or user.first_name) if user else None,
            "user_email": user.email if user else None,
            "product_type": product_type,
            "product_name": product_name,
            "amount": purchase.dollars,
            "abandoned_at": purchase.created_at,
            "days_since_abandoned": days_since(purchase.created_at, now),
        })

    results.sort(key=lambda row: row["abandoned_at"], reverse=True)
    return results


async def get_coupon_performance() -> Dict[str, Any]:
    """
    Coupon usage totals, top coupons by usage and the latest redemptions.
    """
    coupons = await scan(get_coupons_collection(), {}, settings.CONTENT_SCAN_LIMIT)
    usages = await scan(get_coupon_usages_collection(), {}, settings.PURCHASE_SCAN_LIMIT)

    stats: Dict[str, Dict[str, Any]] = {}
    for coupon in coupons:
        stats[document_id(coupon)] = {
            "code": coupon.get("code"),
            "usage_count": 0,
            "discount_given": 0,
            "is_active": bool(coupon.get("is_active", False)),
        }

    total_discount_cents = 0
    for usage in usages:
        discount = usage.get("discount_applied") or 0
        total_discount_cents += discount
        coupon_stats = stats.get(str(usage.get("coupon_id")))
        if coupon_stats:
            coupon_stats["usage_count"] += 1
            coupon_stats["discount_given"] += discount / 100

    top_coupons = sorted(stats.values(), key=lambda row: row["usage_count"], reverse=True)
    top_coupons = [{**row, "conversion_rate": 0} for row in top_coupons[:TOP_COUPONS_LIMIT]]

    recent = sorted(
        usages,
        key=lambda usage: usage.get("used_at") or datetime.min,
        reverse=True,
    )[:RECENT_COUPON_USAGES_LIMIT]
    users = await records_service.load_users_by_clerk_id(usage.get("user_id") for usage in recent)

    recent_usages = []
    for usage in recent:
        coupon_stats = stats.get(str(usage.get("coupon_id")))
        user = users.get(usage.get("user_id"))
        recent_usages.append({
            "code": coupon_stats["code"] if coupon_stats else "Unknown",
            "user_name": (user.name or user.first_name) if user else None,
            "discount_applied": (usage.get("discount_applied") or 0) / 100,
            "used_at": usage.get("used_at"),
        })

    return {
        "total_coupons": len(coupons),
        "active_coupons": sum(1 for coupon in coupons if coupon.get("is_active")),
        "total_usages": len(usages),
        "total_discount_given": total_discount_cents / 100,
        "top_coupons": top_coupons,
        "recent_usages": recent_usages,
    }


async def get_conversion_by_source(days: int = DEFAULT_FUNNEL_DAYS, now: Optional[datetime] = None) -> List[Dict[str, Any]]:
    """
    Visitors, signups, purchases and revenue grouped by traffic source.
    """
    validate_window_days(days)
    now = now or utcnow()
    start = days_ago(days, now)

    events = await _load_events({"timestamp": {"$gte": start, "$lte": now}})

    sources: Dict[str, Dict[str, Any]] = {}
    for event in events:
        if not in_window(event.timestamp, start, now):
            continue
        source = traffic_source(event)
        data = sources.setdefault(source, {"visitors": set(), "signups": 0, "purchases": 0, "revenue_cents": 0})
        if event.visitor_key:
            data["visitors"].add(event.visitor_key)
        if event.event_type == EVENT_SIGNUP:
            data["signups"] += 1
        elif event.event_type == EVENT_PURCHASE:
            data["purchases"] += 1
            data["revenue_cents"] += event_value_cents(event)

    results = [
        {
            "source": source,
            "visitors": len(data["visitors"]),
            "signups": data["signups"],
            "purchases": data["purchases"],
            "revenue": data["revenue_cents"] / 100,
            "conversion_rate": percentage(data["purchases"], len(data["visitors"])),
        }
        for source, data in sources.items()
    ]
    results.sort(key=lambda row: row["revenue"], reverse=True)
    return results[:TOP_SOURCES_LIMIT]

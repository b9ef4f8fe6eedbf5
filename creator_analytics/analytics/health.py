"""
creator_analytics/analytics/health.py

Purpose: Creator health scoring

- 0-100 additive health score (revenue, recency, diversity, rating, engagement)
- Status bands for a score
- Onboarding progress (five 20-point checkpoints)
- Attention score and the issue raised for a creator, if any
"""

from dataclasses import dataclass
from typing import Optional, Sequence, Tuple

from creator_analytics.analytics.activity import CreatorActivity
from creator_analytics.pipeline.stages import HealthStatus, Severity
from utils.constants import (
    ANY_REVENUE_POINTS,
    ATTENTION_HAS_COURSE_POINTS,
    ATTENTION_RECENT_SALE_POINTS,
    ATTENTION_REVENUE_POINTS,
    CHURN_RISK_WINDOW_DAYS,
    ENROLLMENT_POINTS,
    HEALTH_STATUS_BANDS,
    HEALTH_STATUS_FLOOR,
    NO_RECENT_SALES_ACTION,
    NO_SALES_EVER_ACTION,
    NO_SALES_EVER_ISSUE,
    ONBOARDING_STEP_POINTS,
    PRODUCT_COUNT_POINTS,
    RATING_POINTS,
    RECENT_REVENUE_POINTS,
    RECENT_SALES_WINDOW_DAYS,
    REVENUE_POINTS,
    SALE_WITHIN_30_DAYS_POINTS,
    SALE_WITHIN_60_DAYS_POINTS,
)


def band_points(value: float, bands: Sequence[Tuple[float, int]]) -> int:
    """
    Points for the first (minimum, points) band that `value` reaches.
    """
    for minimum, points in bands:
        if value >= minimum:
            return points
    return 0


def revenue_points(total_revenue: float) -> int:
    points = band_points(total_revenue, REVENUE_POINTS)
    if points == 0 and total_revenue > 0:
        return ANY_REVENUE_POINTS
    return points


def recency_points(revenue_this_month: float, days_since_last_sale: Optional[int]) -> int:
    if revenue_this_month > 0:
        return RECENT_REVENUE_POINTS
    if days_since_last_sale is None:
        return 0
    if days_since_last_sale < RECENT_SALES_WINDOW_DAYS:
        return SALE_WITHIN_30_DAYS_POINTS
    if days_since_last_sale < CHURN_RISK_WINDOW_DAYS:
        return SALE_WITHIN_60_DAYS_POINTS
    return 0


def compute_health_score(
    total_revenue: float,
    revenue_this_month: float,
    days_since_last_sale: Optional[int],
    content_count: int,
    average_rating: float,
    total_enrollments: int,
) -> int:
    """
    Calculates the creator health score.

    Args:
        total_revenue: Lifetime completed revenue (dollars)
        revenue_this_month: Completed revenue in the last 30 days (dollars)
        days_since_last_sale: Whole days since the last completed sale, None if never sold
        content_count: Courses plus digital products
        average_rating: Mean course rating, 0 when unrated
        total_enrollments: Enrollments across the creator's courses

    Returns:
        Score between 0 and 100
    """
    score = (
        revenue_points(total_revenue)
        + recency_points(revenue_this_month, days_since_last_sale)
        + band_points(content_count, PRODUCT_COUNT_POINTS)
        + band_points(average_rating, RATING_POINTS)
        + band_points(total_enrollments, ENROLLMENT_POINTS)
    )
    return min(score, 100)


def health_status(score: int) -> HealthStatus:
    for minimum, status in HEALTH_STATUS_BANDS:
        if score >= minimum:
            return HealthStatus(status)
    return HealthStatus(HEALTH_STATUS_FLOOR)


def onboarding_progress(activity: CreatorActivity) -> int:
    checkpoints = [
        bool(activity.store.name),
        activity.has_content,
        activity.has_published,
        activity.total_revenue > 0,
        activity.revenue_this_month > 0,
    ]
    return sum(ONBOARDING_STEP_POINTS for reached in checkpoints if reached)


@dataclass
class AttentionIssue:
    issue: str
    severity: Severity
    recommended_action: str


def attention_score(activity: CreatorActivity) -> int:
    score = 0
    if activity.total_revenue > 0:
        score += ATTENTION_REVENUE_POINTS
    if activity.has_recent_sales:
        score += ATTENTION_RECENT_SALE_POINTS
    if activity.courses:
        score += ATTENTION_HAS_COURSE_POINTS
    return score


def attention_issue(activity: CreatorActivity) -> Optional[AttentionIssue]:
    """
    The issue an admin should follow up on for this creator, if any.

    A creator who used to sell but has gone quiet outranks one whose
    published courses never sold.
    """
    days_quiet = activity.days_since_last_sale

    if (
        activity.total_revenue > 0
        and not activity.has_recent_sales
        and days_quiet is not None
        and days_quiet >= RECENT_SALES_WINDOW_DAYS
    ):
        severity = Severity.HIGH if days_quiet >= CHURN_RISK_WINDOW_DAYS else Severity.MEDIUM
        return AttentionIssue(
            issue=f"No sales in {days_quiet} days",
            severity=severity,
            recommended_action=NO_RECENT_SALES_ACTION,
        )

    if activity.courses and activity.total_revenue == 0 and activity.has_published_course:
        return AttentionIssue(
            issue=NO_SALES_EVER_ISSUE,
            severity=Severity.MEDIUM,
            recommended_action=NO_SALES_EVER_ACTION,
        )

    return None
"""
creator_analytics/analytics/funnel.py

Purpose: Funnel and conversion arithmetic

- Ordered purchase funnel with step conversion / drop-off rates
- Percentage helper (0 on an empty denominator)
- Average signup-to-first-purchase time
- Traffic source attribution for analytics events
"""

import math
from dataclasses import dataclass
from datetime import datetime
from typing import Dict, Iterable, List, Sequence

from creator_analytics.models.records import AnalyticsEvent, PurchaseRecord
from utils.constants import DIRECT_TRAFFIC_SOURCE
from utils.time_utils import SECONDS_PER_DAY

FUNNEL_STEP_NAMES = ("Visit", "Sign Up", "View Course", "Enroll", "Purchase")


@dataclass
class FunnelStep:
    name: str
    count: int
    conversion_rate: float
    drop_off_rate: float


def percentage(part: float, whole: float) -> float:
    if not whole:
        return 0
    return part / whole * 100


def build_funnel_steps(counts: Sequence[int]) -> List[FunnelStep]:
    """
    Builds the ordered funnel from per-step counts.

    Args:
        counts: Visit, Sign Up, View Course, Enroll and Purchase counts, in order

    Returns:
        FunnelStep list; the first step converts at 100 with no drop-off
    """
    if len(counts) != len(FUNNEL_STEP_NAMES):
        raise ValueError(f"Expected {len(FUNNEL_STEP_NAMES)} funnel counts, got {len(counts)}")

    steps = [FunnelStep(FUNNEL_STEP_NAMES[0], counts[0], 100, 0)]
    for name, previous, count in zip(FUNNEL_STEP_NAMES[1:], counts, counts[1:]):
        steps.append(
            FunnelStep(
                name=name,
                count=count,
                conversion_rate=percentage(count, previous),
                drop_off_rate=percentage(previous - count, previous),
            )
        )
    return steps


def average_days_to_convert(
    signups: Dict[str, datetime],
    purchases: Iterable[PurchaseRecord],
) -> float:
    """
    Mean days between signup and first completed purchase.

    Only users present in `signups` (clerk id -> creation time) count.
    """
    first_purchase: Dict[str, datetime] = {}
    for purchase in purchases:
        if not purchase.is_completed or not purchase.user_id or purchase.created_at is None:
            continue
        if purchase.user_id not in signups:
            continue
        seen = first_purchase.get(purchase.user_id)
        if seen is None or purchase.created_at < seen:
            first_purchase[purchase.user_id] = purchase.created_at

    durations = [
        max((bought_at - signups[user_id]).total_seconds(), 0) / SECONDS_PER_DAY
        for user_id, bought_at in first_purchase.items()
    ]
    if not durations:
        return 0
    return sum(durations) / len(durations)


def traffic_source(event: AnalyticsEvent) -> str:
    metadata = event.metadata or {}
    source = metadata.get("utm_source") or metadata.get("referrer")
    return str(source) if source else DIRECT_TRAFFIC_SOURCE


def event_value_cents(event: AnalyticsEvent) -> int:
    """
    Purchase value carried in event metadata, in cents.

    Events are posted by clients, so anything that is not a finite number
    (strings, booleans, NaN) counts as 0.
    """
    value = (event.metadata or {}).get("value")
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return 0
    if not math.isfinite(value):
        return 0
    return int(value)

"""
creator_analytics/analytics/classification.py

Purpose: Pipeline stage derivation

Maps a creator's activity to one derived stage. Precedence, first match wins:

    churn_risk  last sale before the 60-day window
    active      a sale within the last 30 days
    first_sale  any sale (last sale 30-60 days ago)
    published   anything published
    drafting    any course or product
    signed_up   store only
"""

from typing import Dict, Iterable

from creator_analytics.analytics.activity import CreatorActivity
from creator_analytics.pipeline.stages import PipelineStage, empty_stage_counts
from utils.constants import CHURN_RISK_WINDOW_DAYS
from utils.time_utils import days_ago


def is_churn_risk(activity: CreatorActivity) -> bool:
    last_sale_at = activity.last_sale_at
    if not activity.has_sales or last_sale_at is None:
        return False
    return last_sale_at < days_ago(CHURN_RISK_WINDOW_DAYS, activity.now)


def derive_stage(activity: CreatorActivity) -> PipelineStage:
    """
    Derives the pipeline stage for one store.

    Args:
        activity: Rolled-up store activity

    Returns:
        One of the derived (non-manual) stages
    """
    if is_churn_risk(activity):
        return PipelineStage.CHURN_RISK
    if activity.has_recent_sales:
        return PipelineStage.ACTIVE
    if activity.has_sales:
        return PipelineStage.FIRST_SALE
    if activity.has_published:
        return PipelineStage.PUBLISHED
    if activity.has_content:
        return PipelineStage.DRAFTING
    return PipelineStage.SIGNED_UP


def count_stages(
    activities: Iterable[CreatorActivity],
    manual_stages: Iterable[str] = (),
) -> Dict[str, int]:
    """
    Counts creators per stage.

    Derived stages count each store once. `manual_stages` are the stages of
    admin-entered pipeline entries; only prospect/invited values are counted
    from them.
    """
    counts = empty_stage_counts()

    for activity in activities:
        counts[derive_stage(activity).value] += 1

    for stage in manual_stages:
        if stage in (PipelineStage.PROSPECT.value, PipelineStage.INVITED.value):
            counts[stage] += 1

    return counts

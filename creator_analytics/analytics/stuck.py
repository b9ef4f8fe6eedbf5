"""
creator_analytics/analytics/stuck.py

Purpose: Stuck creator detection

A pipeline entry is stuck when it has sat in `drafting` for more than 3 days
or in `published` for more than 14 days, measured from that stage's timestamp.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, Optional

from creator_analytics.models.records import PipelineEntry
from creator_analytics.pipeline.stages import PipelineStage, get_stage_timestamp_field
from utils.constants import (
    DRAFTING_STUCK_DAYS,
    PUBLISHED_STUCK_DAYS,
    STUCK_DRAFTING_ACTION,
    STUCK_PUBLISHED_ACTION,
)
from utils.time_utils import days_ago, days_since


@dataclass(frozen=True)
class StuckRule:
    stage: PipelineStage
    threshold_days: int
    recommended_action: str


STUCK_RULES: Dict[str, StuckRule] = {
    PipelineStage.DRAFTING.value: StuckRule(
        PipelineStage.DRAFTING, DRAFTING_STUCK_DAYS, STUCK_DRAFTING_ACTION
    ),
    PipelineStage.PUBLISHED.value: StuckRule(
        PipelineStage.PUBLISHED, PUBLISHED_STUCK_DAYS, STUCK_PUBLISHED_ACTION
    ),
}


def stage_entered_at(entry: PipelineEntry) -> Optional[datetime]:
    field_name = get_stage_timestamp_field(entry.stage)
    if field_name is None:
        return None
    return entry.stage_times.get(field_name)


def stuck_query(now: datetime) -> Dict[str, Any]:
    """Filter selecting entries past their stage threshold at `now`."""
    return {
        "$or": [
            {
                "stage": rule.stage.value,
                get_stage_timestamp_field(rule.stage): {"$lt": days_ago(rule.threshold_days, now)},
            }
            for rule in STUCK_RULES.values()
        ]
    }


def is_stuck(entry: PipelineEntry, now: datetime) -> bool:
    rule = STUCK_RULES.get(entry.stage)
    if rule is None:
        return False
    entered_at = stage_entered_at(entry)
    if entered_at is None:
        return False
    return entered_at < days_ago(rule.threshold_days, now)


def days_since_step(entry: PipelineEntry, now: datetime) -> int:
    return days_since(stage_entered_at(entry), now) or 0


def recommended_action(entry: PipelineEntry) -> str:
    return STUCK_RULES[entry.stage].recommended_action

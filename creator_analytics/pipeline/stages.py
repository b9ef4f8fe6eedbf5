"""
creator_analytics/pipeline/stages.py

Purpose: Defines the creator pipeline vocabulary

- Enum for each stage of the creator journey
  (PROSPECT, INVITED, SIGNED_UP, DRAFTING, PUBLISHED, FIRST_SALE, ACTIVE, CHURN_RISK)
- Which stages are entered manually by admins and which are derived from store activity
- Per-stage metadata (display name, order, transition timestamp field)
- Enums shared by the health, outreach, bulk-email and creator analytics queries
"""

from enum import Enum
from typing import Dict, List, Optional
from dataclasses import dataclass


class PipelineStage(str, Enum):
    """
    Stages in the creator journey, ordered from first contact to churn.
    """

    # Manual stages (outreach CRM only)
    PROSPECT = "prospect"
    INVITED = "invited"

    # Derived from stores, content and purchases
    SIGNED_UP = "signed_up"
    DRAFTING = "drafting"
    PUBLISHED = "published"
    FIRST_SALE = "first_sale"
    ACTIVE = "active"
    CHURN_RISK = "churn_risk"


class TouchType(str, Enum):
    """Outreach channels recorded on a pipeline entry."""
    DM = "dm"
    EMAIL = "email"
    COMMENT = "comment"
    CALL = "call"


class HealthStatus(str, Enum):
    EXCELLENT = "excellent"
    GOOD = "good"
    FAIR = "fair"
    POOR = "poor"
    CRITICAL = "critical"


class Severity(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


SEVERITY_ORDER: Dict[Severity, int] = {
    Severity.HIGH: 0,
    Severity.MEDIUM: 1,
    Severity.LOW: 2,
}


class LeaderboardSort(str, Enum):
    REVENUE = "revenue"
    HEALTH_SCORE = "healthScore"
    PRODUCTS = "products"
    ENROLLMENTS = "enrollments"


class BulkEmailFilter(str, Enum):
    ALL = "all"
    NO_SALES_30D = "no_sales_30d"
    LOW_HEALTH = "low_health"
    NEW_CREATORS = "new_creators"
    TOP_PERFORMERS = "top_performers"


class TimeRange(str, Enum):
    """Reporting windows for the creator analytics overview."""
    WEEK = "7d"
    MONTH = "30d"
    QUARTER = "90d"
    YEAR = "1y"


TIME_RANGE_DAYS: Dict[TimeRange, int] = {
    TimeRange.WEEK: 7,
    TimeRange.MONTH: 30,
    TimeRange.QUARTER: 90,
    TimeRange.YEAR: 365,
}


@dataclass
class StageMetadata:
    """
    Metadata associated with each pipeline stage.
    """
    name: PipelineStage
    display_name: str
    order: int
    is_manual: bool = False  # Only set by admins, never derived
    timestamp_field: Optional[str] = None  # Written when an admin moves an entry into this stage
    description: str = ""


STAGE_METADATA: Dict[PipelineStage, StageMetadata] = {
    PipelineStage.PROSPECT: StageMetadata(
        name=PipelineStage.PROSPECT,
        display_name="Prospect",
        order=0,
        is_manual=True,
        description="Identified for outreach, not yet contacted"
    ),
    PipelineStage.INVITED: StageMetadata(
        name=PipelineStage.INVITED,
        display_name="Invited",
        order=1,
        is_manual=True,
        timestamp_field="invited_at",
        description="Invitation sent, no account yet"
    ),
    PipelineStage.SIGNED_UP: StageMetadata(
        name=PipelineStage.SIGNED_UP,
        display_name="Signed Up",
        order=2,
        timestamp_field="signed_up_at",
        description="Store exists, no content yet"
    ),
    PipelineStage.DRAFTING: StageMetadata(
        name=PipelineStage.DRAFTING,
        display_name="Drafting",
        order=3,
        timestamp_field="drafting_at",
        description="Has courses or products, nothing published"
    ),
    PipelineStage.PUBLISHED: StageMetadata(
        name=PipelineStage.PUBLISHED,
        display_name="Published",
        order=4,
        timestamp_field="published_at",
        description="At least one live course or product, no sales"
    ),
    PipelineStage.FIRST_SALE: StageMetadata(
        name=PipelineStage.FIRST_SALE,
        display_name="First Sale",
        order=5,
        timestamp_field="first_sale_at",
        description="Has sold, but not within the activity window"
    ),
    PipelineStage.ACTIVE: StageMetadata(
        name=PipelineStage.ACTIVE,
        display_name="Active",
        order=6,
        description="Sold within the last 30 days"
    ),
    PipelineStage.CHURN_RISK: StageMetadata(
        name=PipelineStage.CHURN_RISK,
        display_name="Churn Risk",
        order=7,
        description="Last sale older than 60 days"
    ),
}


MANUAL_STAGES: List[PipelineStage] = [
    stage for stage, meta in STAGE_METADATA.items() if meta.is_manual
]

DERIVED_STAGES: List[PipelineStage] = [
    stage for stage, meta in STAGE_METADATA.items() if not meta.is_manual
]


def is_manual_stage(stage: PipelineStage) -> bool:
    """True for stages that only exist as admin-entered pipeline entries."""
    return get_stage_metadata(stage).is_manual


def get_stage_metadata(stage: PipelineStage) -> StageMetadata:
    """
    Retrieves metadata for a given stage.

    Args:
        stage: Pipeline stage

    Returns:
        StageMetadata for the stage
    """
    return STAGE_METADATA[PipelineStage(stage)]


def get_stage_timestamp_field(stage: PipelineStage) -> Optional[str]:
    """Field recording when an entry entered `stage`, if the stage tracks one."""
    return get_stage_metadata(stage).timestamp_field


def empty_stage_counts() -> Dict[str, int]:
    """Zeroed counter for every stage, in pipeline order."""
    ordered = sorted(STAGE_METADATA.values(), key=lambda meta: meta.order)
    return {meta.name.value: 0 for meta in ordered}

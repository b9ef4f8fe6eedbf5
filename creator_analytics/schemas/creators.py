"""
creator_analytics/schemas/creators.py

Purpose: Creator health response schemas
"""

from datetime import datetime
from typing import List, Optional

from creator_analytics.pipeline.stages import HealthStatus, Severity
from creator_analytics.schemas.response import CamelModel


class LeaderboardEntry(CamelModel):
    rank: int
    id: Optional[str] = None  # pipeline entry, when the creator has one
    user_id: str
    store_id: str
    user_name: str
    user_email: Optional[str] = None
    user_avatar: Optional[str] = None
    store_name: Optional[str] = None
    store_slug: Optional[str] = None
    health_score: int
    health_status: HealthStatus
    total_revenue: float
    revenue_this_month: float
    product_count: int
    course_count: int
    total_enrollments: int
    average_rating: float
    last_active_at: Optional[datetime] = None
    days_since_last_sale: Optional[int] = None
    onboarding_progress: int


class AttentionEntry(CamelModel):
    user_id: str
    user_name: str
    user_email: Optional[str] = None
    store_name: Optional[str] = None
    issue: str
    severity: Severity
    health_score: int
    recommended_action: str
    days_since_last_sale: Optional[int] = None


class BulkEmailRecipient(CamelModel):
    user_id: str
    name: str
    email: str
    store_name: Optional[str] = None
    total_revenue: float
    product_count: int
    last_sale_at: Optional[datetime] = None


class OnboardingStep(CamelModel):
    id: str
    title: str
    description: str
    completed: bool
    completed_at: Optional[datetime] = None


class OnboardingStatus(CamelModel):
    user_id: str
    steps: List[OnboardingStep]
    overall_progress: int

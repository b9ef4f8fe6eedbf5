"""
creator_analytics/schemas/pipeline.py

Purpose: Creator pipeline request/response schemas

- Pipeline rows, stage counts and stuck creators
- Stage change, touch and upsert request bodies
"""

from datetime import datetime
from typing import Optional

from pydantic import ConfigDict, Field

from creator_analytics.pipeline.stages import PipelineStage, TouchType
from creator_analytics.schemas.response import CamelModel


class PipelineCreator(CamelModel):
    user_id: str
    store_id: Optional[str] = None
    store_name: Optional[str] = None
    name: str
    email: Optional[str] = None
    image_url: Optional[str] = None
    stage: PipelineStage
    pipeline_id: Optional[str] = None
    daw: Optional[str] = None
    instagram_handle: Optional[str] = None
    tiktok_handle: Optional[str] = None
    audience_size: Optional[int] = None
    niche: Optional[str] = None
    last_touch_at: Optional[datetime] = None
    # raw stored value, not checked against TouchType
    last_touch_type: Optional[str] = None
    next_step_note: Optional[str] = None
    days_since_last_touch: Optional[int] = None
    total_revenue: float = 0
    product_count: int = 0
    created_at: Optional[datetime] = None


class PipelineStats(CamelModel):
    prospect: int = 0
    invited: int = 0
    signed_up: int = 0
    drafting: int = 0
    published: int = 0
    first_sale: int = 0
    active: int = 0
    churn_risk: int = 0


class StuckCreator(CamelModel):
    id: str
    user_id: str
    name: str
    email: Optional[str] = None
    stage: PipelineStage
    days_since_step: int
    recommended_action: str


class StageUpdateRequest(CamelModel):
    stage: PipelineStage
    note: Optional[str] = None


class TouchRequest(CamelModel):
    touch_type: TouchType
    note: Optional[str] = None


class PipelineUpsertRequest(CamelModel):
    """
    Creates or updates the pipeline entry for a user.
    """
    user_id: str = Field(..., min_length=1)
    stage: PipelineStage
    store_id: Optional[str] = None
    daw: Optional[str] = None
    instagram_handle: Optional[str] = None
    tiktok_handle: Optional[str] = None
    audience_size: Optional[int] = Field(default=None, ge=0)
    niche: Optional[str] = None

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "userId": "user_2abc",
                "stage": "prospect",
                "instagramHandle": "@beatsbyjay",
                "audienceSize": 12000,
                "niche": "lofi",
            }
        }
    )


class PipelineUpsertResponse(CamelModel):
    id: str


class SuccessResponse(CamelModel):
    success: bool = True

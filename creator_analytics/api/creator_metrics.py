"""
creator_analytics/api/creator_metrics.py

Purpose: Creator revenue, product and overview analytics endpoints
"""

from datetime import datetime
from typing import List

from fastapi import APIRouter, Depends, Query

from creator_analytics.api.deps import require_admin
from creator_analytics.pipeline.stages import TimeRange
from creator_analytics.schemas.creator_metrics import CreatorAnalytics, ProductPerformance, RevenueAnalytics
from creator_analytics.services import creator_metrics_service
from utils.time_utils import to_naive_utc

router = APIRouter(prefix="/creators", tags=["creator-metrics"], dependencies=[Depends(require_admin)])


@router.get("/{user_id}/revenue", response_model=RevenueAnalytics)
async def revenue_analytics(
    user_id: str,
    start: datetime = Query(...),
    end: datetime = Query(...),
):
    return await creator_metrics_service.get_revenue_analytics(
        user_id, to_naive_utc(start), to_naive_utc(end)
    )


@router.get("/{user_id}/products", response_model=List[ProductPerformance])
async def product_analytics(user_id: str):
    return await creator_metrics_service.get_product_analytics(user_id)


@router.get("/{user_id}/analytics", response_model=CreatorAnalytics)
async def creator_analytics(user_id: str, time_range: TimeRange = Query(default=TimeRange.MONTH)):
    return await creator_metrics_service.get_creator_analytics(user_id, time_range)

"""
creator_analytics/api/conversions.py

Purpose: Admin conversion optimization endpoints

- Purchase funnel, conversion metrics, abandoned carts
- Coupon performance, conversion by traffic source
"""

from typing import List

from fastapi import APIRouter, Depends, Query

from creator_analytics.api.deps import require_admin
from creator_analytics.schemas.conversions import (
    AbandonedCart,
    ConversionMetrics,
    CouponPerformance,
    PurchaseFunnel,
    SourceConversion,
)
from creator_analytics.services import conversion_service
from utils.constants import DEFAULT_FUNNEL_DAYS, MAX_WINDOW_DAYS

router = APIRouter(prefix="/admin/conversions", tags=["conversions"], dependencies=[Depends(require_admin)])


def window_days(days: int = Query(default=DEFAULT_FUNNEL_DAYS, ge=1, le=MAX_WINDOW_DAYS)) -> int:
    return days


@router.get("/funnel", response_model=PurchaseFunnel)
async def purchase_funnel(days: int = Depends(window_days)):
    return await conversion_service.get_purchase_funnel(days)


@router.get("/metrics", response_model=ConversionMetrics)
async def conversion_metrics():
    return await conversion_service.get_conversion_metrics()


@router.get("/abandoned-carts", response_model=List[AbandonedCart])
async def abandoned_carts(days: int = Depends(window_days)):
    return await conversion_service.get_abandoned_carts(days)


@router.get("/coupons", response_model=CouponPerformance)
async def coupon_performance():
    return await conversion_service.get_coupon_performance()


@router.get("/sources", response_model=List[SourceConversion])
async def conversion_by_source(days: int = Depends(window_days)):
    return await conversion_service.get_conversion_by_source(days)

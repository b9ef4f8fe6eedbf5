"""
creator_analytics/schemas/conversions.py

Purpose: Conversion optimization response schemas
"""

from datetime import datetime
from typing import List, Optional

from creator_analytics.schemas.response import CamelModel


class FunnelStepOut(CamelModel):
    name: str
    count: int
    conversion_rate: float
    drop_off_rate: float


class PurchaseFunnel(CamelModel):
    steps: List[FunnelStepOut]
    overall_conversion: float
    average_time_to_convert: float


class ConversionMetrics(CamelModel):
    visit_to_signup: float
    signup_to_enroll: float
    enroll_to_purchase: float
    overall_conversion: float
    average_order_value: float
    cart_abandonment_rate: float
    repeat_purchase_rate: float


class AbandonedCart(CamelModel):
    user_id: Optional[str] = None
    user_name: Optional[str] = None
    user_email: Optional[str] = None
    product_type: str
    product_name: str
    amount: float
    abandoned_at: datetime
    days_since_abandoned: int


class CouponStats(CamelModel):
    code: Optional[str] = None
    usage_count: int
    discount_given: float
    conversion_rate: float
    is_active: bool


class CouponUsage(CamelModel):
    code: str
    user_name: Optional[str] = None
    discount_applied: float
    used_at: Optional[datetime] = None


class CouponPerformance(CamelModel):
    total_coupons: int
    active_coupons: int
    total_usages: int
    total_discount_given: float
    top_coupons: List[CouponStats]
    recent_usages: List[CouponUsage]


class SourceConversion(CamelModel):
    source: str
    visitors: int
    signups: int
    purchases: int
    revenue: float
    conversion_rate: float

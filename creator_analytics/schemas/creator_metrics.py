"""
creator_analytics/schemas/creator_metrics.py

Purpose: Creator revenue and product analytics schemas
"""

from datetime import datetime
from typing import List, Optional

from creator_analytics.pipeline.stages import TimeRange
from creator_analytics.schemas.response import CamelModel


class DailyRevenue(CamelModel):
    date: str
    revenue: float
    sales: int


class RevenueAnalytics(CamelModel):
    total_revenue: float
    platform_fee: float
    processing_fee: float
    net_revenue: float
    sales: int
    daily_revenue: List[DailyRevenue]


class ProductPerformance(CamelModel):
    id: str
    title: str
    type: str
    is_published: bool
    views: int
    sales: int
    revenue: float
    conversion_rate: float
    rating: float
    created_at: Optional[datetime] = None


class AnalyticsOverview(CamelModel):
    total_revenue: float
    total_sales: int
    total_views: int
    conversion_rate: float
    total_products: int
    published_products: int
    total_students: int
    avg_rating: float
    revenue_change: float
    sales_change: float
    views_change: float
    conversion_change: float


class RevenuePeriod(CamelModel):
    period: str
    revenue: float
    sales: int


class TopProduct(CamelModel):
    id: str
    title: str
    type: str
    revenue: float
    sales: int
    views: int
    rating: float


class RevenueShare(CamelModel):
    """Percent of window revenue from courses and from digital products."""
    courses: int
    products: int


class CreatorAnalytics(CamelModel):
    time_range: TimeRange
    overview: AnalyticsOverview
    revenue_data: List[RevenuePeriod]
    top_products: List[TopProduct]
    revenue_share: RevenueShare

"""
creator_analytics/analytics/activity.py

Purpose: Per-creator roll-up of raw records

- CreatorRecords: the bounded record sets read for one request, indexed for lookups
- CreatorActivity: everything derived about one store at a fixed `now`
  (content, publish state, completed sales, revenue windows)

Pure code: no database access, so every metric built on it is deterministic.
"""

from collections import defaultdict
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, Optional

from creator_analytics.models.records import (
    ContentRecord,
    EnrollmentRecord,
    PipelineEntry,
    PurchaseRecord,
    StoreRecord,
    UserRecord,
)
from utils.constants import RECENT_SALES_WINDOW_DAYS
from utils.time_utils import days_ago, days_since


@dataclass
class CreatorRecords:
    """
    Record sets loaded for one aggregation pass.

    Courses belong to a creator through `user_id`; digital products and
    purchases belong to a store through `store_id`.
    """
    stores: List[StoreRecord] = field(default_factory=list)
    courses: List[ContentRecord] = field(default_factory=list)
    products: List[ContentRecord] = field(default_factory=list)
    purchases: List[PurchaseRecord] = field(default_factory=list)
    enrollments: List[EnrollmentRecord] = field(default_factory=list)
    course_ratings: Dict[str, float] = field(default_factory=dict)
    users: Dict[str, UserRecord] = field(default_factory=dict)
    pipeline: Dict[str, PipelineEntry] = field(default_factory=dict)

    def __post_init__(self):
        self._courses_by_user: Dict[str, List[ContentRecord]] = defaultdict(list)
        for course in self.courses:
            if course.user_id:
                self._courses_by_user[course.user_id].append(course)

        self._products_by_store: Dict[str, List[ContentRecord]] = defaultdict(list)
        for product in self.products:
            if product.store_id:
                self._products_by_store[product.store_id].append(product)

        self._sales_by_store: Dict[str, List[PurchaseRecord]] = defaultdict(list)
        for purchase in self.purchases:
            if purchase.is_completed and purchase.store_id:
                self._sales_by_store[purchase.store_id].append(purchase)

        self._enrollments_by_course: Dict[str, int] = defaultdict(int)
        for enrollment in self.enrollments:
            if enrollment.course_id:
                self._enrollments_by_course[enrollment.course_id] += 1

    def user_for(self, store: StoreRecord) -> Optional[UserRecord]:
        return self.users.get(store.user_id)

    def pipeline_for(self, store: StoreRecord) -> Optional[PipelineEntry]:
        return self.pipeline.get(store.user_id)

    def enrollment_count(self, courses: List[ContentRecord]) -> int:
        return sum(self._enrollments_by_course.get(course.id, 0) for course in courses)

    def average_rating(self, courses: List[ContentRecord]) -> float:
        """Mean of the positive course ratings; 0 when no course is rated."""
        ratings = [
            self.course_ratings[course.id]
            for course in courses
            if self.course_ratings.get(course.id, 0) > 0
        ]
        if not ratings:
            return 0
        return sum(ratings) / len(ratings)

    def activity_for(self, store: StoreRecord, now: datetime) -> "CreatorActivity":
        sales = sorted(
            self._sales_by_store.get(store.id, []),
            key=lambda purchase: purchase.created_at or datetime.min,
            reverse=True,
        )
        return CreatorActivity(
            store=store,
            courses=list(self._courses_by_user.get(store.user_id, [])),
            products=list(self._products_by_store.get(store.id, [])),
            sales=sales,
            now=now,
        )


@dataclass
class CreatorActivity:
    store: StoreRecord
    courses: List[ContentRecord]
    products: List[ContentRecord]
    sales: List[PurchaseRecord]  # completed purchases, newest first
    now: datetime

    @property
    def content_count(self) -> int:
        return len(self.courses) + len(self.products)

    @property
    def has_content(self) -> bool:
        return self.content_count > 0

    @property
    def has_published(self) -> bool:
        return any(item.is_published for item in self.courses) or any(
            item.is_published for item in self.products
        )

    @property
    def has_published_course(self) -> bool:
        return any(course.is_published for course in self.courses)

    @property
    def has_sales(self) -> bool:
        return len(self.sales) > 0

    @property
    def recent_window_start(self) -> datetime:
        return days_ago(RECENT_SALES_WINDOW_DAYS, self.now)

    @property
    def recent_sales(self) -> List[PurchaseRecord]:
        start = self.recent_window_start
        return [sale for sale in self.sales if sale.created_at and sale.created_at > start]

    @property
    def has_recent_sales(self) -> bool:
        return len(self.recent_sales) > 0

    @property
    def last_sale_at(self) -> Optional[datetime]:
        if not self.sales:
            return None
        return self.sales[0].created_at

    @property
    def days_since_last_sale(self) -> Optional[int]:
        return days_since(self.last_sale_at, self.now)

    @property
    def total_revenue(self) -> float:
        return sum(sale.amount for sale in self.sales) / 100

    @property
    def revenue_this_month(self) -> float:
        return sum(sale.amount for sale in self.recent_sales) / 100

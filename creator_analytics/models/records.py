"""
creator_analytics/models/records.py

Purpose: Typed views over raw store documents

- One dataclass per collection the analytics layer reads
- `from_document` tolerates missing optional fields
- Ids are normalized to strings; cross references are stored as strings
- Creation time falls back to the ObjectId timestamp when `created_at` is absent
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Optional

from bson import ObjectId

from utils.constants import PURCHASE_COMPLETED, PURCHASE_REFUNDED
from utils.time_utils import to_naive_utc


def document_id(doc: Dict[str, Any]) -> Optional[str]:
    raw = doc.get("_id")
    return str(raw) if raw is not None else None


def creation_time(doc: Dict[str, Any], field_name: str = "created_at") -> Optional[datetime]:
    """
    Returns the document's creation time as naive UTC.

    Uses `field_name` when present, otherwise the ObjectId's embedded timestamp.
    """
    value = doc.get(field_name)
    if isinstance(value, datetime):
        return to_naive_utc(value)
    raw_id = doc.get("_id")
    if isinstance(raw_id, ObjectId):
        return to_naive_utc(raw_id.generation_time)
    return None


def _ref(value: Any) -> Optional[str]:
    return str(value) if value is not None else None


@dataclass
class UserRecord:
    clerk_id: str
    name: Optional[str] = None
    first_name: Optional[str] = None
    email: Optional[str] = None
    image_url: Optional[str] = None
    admin: bool = False
    created_at: Optional[datetime] = None

    @classmethod
    def from_document(cls, doc: Dict[str, Any]) -> "UserRecord":
        return cls(
            clerk_id=doc.get("clerk_id") or "",
            name=doc.get("name"),
            first_name=doc.get("first_name"),
            email=doc.get("email"),
            image_url=doc.get("image_url"),
            admin=bool(doc.get("admin", False)),
            created_at=creation_time(doc),
        )

    def display_name(self, fallback: str) -> str:
        return self.name or self.first_name or fallback


@dataclass
class StoreRecord:
    id: str
    user_id: str
    name: Optional[str] = None
    slug: Optional[str] = None
    created_at: Optional[datetime] = None

    @classmethod
    def from_document(cls, doc: Dict[str, Any]) -> "StoreRecord":
        return cls(
            id=document_id(doc) or "",
            user_id=doc.get("user_id") or "",
            name=doc.get("name"),
            slug=doc.get("slug"),
            created_at=creation_time(doc),
        )


@dataclass
class ContentRecord:
    """A course or a digital product."""
    id: str
    kind: str  # "course" | "product"
    user_id: Optional[str] = None
    store_id: Optional[str] = None
    title: Optional[str] = None
    price: float = 0
    is_published: bool = False
    published_at: Optional[datetime] = None
    created_at: Optional[datetime] = None

    @classmethod
    def from_document(cls, doc: Dict[str, Any], kind: str) -> "ContentRecord":
        published_at = doc.get("published_at")
        return cls(
            id=document_id(doc) or "",
            kind=kind,
            user_id=doc.get("user_id"),
            store_id=_ref(doc.get("store_id")),
            title=doc.get("title"),
            price=doc.get("price") or 0,
            is_published=bool(doc.get("is_published", False)),
            published_at=to_naive_utc(published_at) if isinstance(published_at, datetime) else None,
            created_at=creation_time(doc),
        )


@dataclass
class PurchaseRecord:
    id: str
    user_id: Optional[str] = None
    store_id: Optional[str] = None
    admin_user_id: Optional[str] = None
    course_id: Optional[str] = None
    product_id: Optional[str] = None
    amount: int = 0  # cents
    status: str = "pending"
    created_at: Optional[datetime] = None

    @classmethod
    def from_document(cls, doc: Dict[str, Any]) -> "PurchaseRecord":
        return cls(
            id=document_id(doc) or "",
            user_id=doc.get("user_id"),
            store_id=_ref(doc.get("store_id")),
            admin_user_id=doc.get("admin_user_id"),
            course_id=_ref(doc.get("course_id")),
            product_id=_ref(doc.get("product_id")),
            amount=doc.get("amount") or 0,
            status=doc.get("status") or "pending",
            created_at=creation_time(doc),
        )

    @property
    def is_completed(self) -> bool:
        return self.status == PURCHASE_COMPLETED

    @property
    def is_abandoned(self) -> bool:
        """Neither completed nor refunded."""
        return self.status not in (PURCHASE_COMPLETED, PURCHASE_REFUNDED)

    @property
    def dollars(self) -> float:
        return self.amount / 100

    @property
    def resource_id(self) -> Optional[str]:
        return self.product_id or self.course_id


@dataclass
class EnrollmentRecord:
    user_id: Optional[str]
    course_id: Optional[str]
    created_at: Optional[datetime] = None

    @classmethod
    def from_document(cls, doc: Dict[str, Any]) -> "EnrollmentRecord":
        return cls(
            user_id=doc.get("user_id"),
            course_id=_ref(doc.get("course_id")),
            created_at=creation_time(doc),
        )


@dataclass
class PipelineEntry:
    id: str
    user_id: str
    stage: str
    store_id: Optional[str] = None
    daw: Optional[str] = None
    instagram_handle: Optional[str] = None
    tiktok_handle: Optional[str] = None
    audience_size: Optional[int] = None
    niche: Optional[str] = None
    total_revenue: Optional[float] = None
    product_count: Optional[int] = None
    last_touch_at: Optional[datetime] = None
    last_touch_type: Optional[str] = None
    next_step_note: Optional[str] = None
    assigned_to: Optional[str] = None
    stage_times: Dict[str, datetime] = field(default_factory=dict)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    STAGE_TIME_FIELDS = ("invited_at", "signed_up_at", "drafting_at", "published_at", "first_sale_at")

    @classmethod
    def from_document(cls, doc: Dict[str, Any]) -> "PipelineEntry":
        stage_times = {
            name: to_naive_utc(doc[name])
            for name in cls.STAGE_TIME_FIELDS
            if isinstance(doc.get(name), datetime)
        }
        last_touch_at = doc.get("last_touch_at")
        updated_at = doc.get("updated_at")
        return cls(
            id=document_id(doc) or "",
            user_id=doc.get("user_id") or "",
            stage=doc.get("stage") or "",
            store_id=_ref(doc.get("store_id")),
            daw=doc.get("daw"),
            instagram_handle=doc.get("instagram_handle"),
            tiktok_handle=doc.get("tiktok_handle"),
            audience_size=doc.get("audience_size"),
            niche=doc.get("niche"),
            total_revenue=doc.get("total_revenue"),
            product_count=doc.get("product_count"),
            last_touch_at=to_naive_utc(last_touch_at) if isinstance(last_touch_at, datetime) else None,
            last_touch_type=doc.get("last_touch_type"),
            next_step_note=doc.get("next_step_note"),
            assigned_to=doc.get("assigned_to"),
            stage_times=stage_times,
            created_at=creation_time(doc),
            updated_at=to_naive_utc(updated_at) if isinstance(updated_at, datetime) else None,
        )


@dataclass
class AnalyticsEvent:
    event_type: str
    timestamp: Optional[datetime]
    user_id: Optional[str] = None
    session_id: Optional[str] = None
    store_id: Optional[str] = None
    resource_id: Optional[str] = None
    resource_type: Optional[str] = None
    metadata: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_document(cls, doc: Dict[str, Any]) -> "AnalyticsEvent":
        return cls(
            event_type=doc.get("event_type") or "",
            timestamp=creation_time(doc, "timestamp"),
            user_id=doc.get("user_id"),
            session_id=doc.get("session_id"),
            store_id=_ref(doc.get("store_id")),
            resource_id=_ref(doc.get("resource_id")),
            resource_type=doc.get("resource_type"),
            metadata=doc.get("metadata") or {},
        )

    @property
    def visitor_key(self) -> Optional[str]:
        return self.user_id or self.session_id

"""
creator_analytics/schemas/events.py

Purpose: Analytics event schemas

- Tracking request body (validated event type)
- Backfill, count and deletion results
"""

from datetime import datetime
from typing import Any, Dict, List, Literal, Optional

from pydantic import ConfigDict, Field

from creator_analytics.schemas.response import CamelModel

EventType = Literal[
    "signup",
    "creator_started",
    "creator_published",
    "course_view",
    "product_view",
    "enrollment",
    "purchase",
    "page_view",
]


class TrackEventRequest(CamelModel):
    event_type: EventType
    user_id: Optional[str] = None
    session_id: Optional[str] = None
    store_id: Optional[str] = None
    resource_id: Optional[str] = None
    resource_type: Optional[str] = None
    metadata: Dict[str, Any] = Field(default_factory=dict)
    timestamp: Optional[datetime] = None

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "eventType": "course_view",
                "sessionId": "sess_8f2c",
                "resourceId": "65f1c0ffee0000000000abcd",
                "resourceType": "course",
                "metadata": {"utm_source": "instagram"},
            }
        }
    )


class TrackEventResponse(CamelModel):
    id: str


class BackfillResult(CamelModel):
    signups: int = 0
    creator_started: int = 0
    creator_published: int = 0
    purchases: int = 0
    enrollments: int = 0
    errors: List[str] = Field(default_factory=list)


class EventCounts(CamelModel):
    total: int
    by_type: Dict[str, int]
    last_7d: int
    last_28d: int


class ClearEventsResult(CamelModel):
    deleted: int

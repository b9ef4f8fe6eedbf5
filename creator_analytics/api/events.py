"""
creator_analytics/api/events.py

Purpose: Analytics event endpoints

- POST   /events                  track an event (public)
- POST   /admin/events/backfill   derive events from existing records
- GET    /admin/events/counts     event totals
- DELETE /admin/events            delete all events (requires confirm phrase)
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query

from creator_analytics.api.deps import require_admin
from creator_analytics.schemas.events import (
    BackfillResult,
    ClearEventsResult,
    EventCounts,
    TrackEventRequest,
    TrackEventResponse,
)
from creator_analytics.services import events_service

router = APIRouter(tags=["events"])
admin_router = APIRouter(prefix="/admin/events", tags=["events"], dependencies=[Depends(require_admin)])


@router.post("/events", response_model=TrackEventResponse, status_code=201)
async def track_event(body: TrackEventRequest):
    event_id = await events_service.track_event(**body.model_dump())
    return {"id": event_id}


@admin_router.post("/backfill", response_model=BackfillResult)
async def backfill_events():
    return await events_service.backfill_all()


@admin_router.get("/counts", response_model=EventCounts)
async def event_counts():
    return await events_service.get_event_counts()


@admin_router.delete("", response_model=ClearEventsResult)
async def clear_events(confirm: Optional[str] = Query(default=None)):
    return await events_service.clear_all_events(confirm)

"""
creator_analytics/api/creators.py

Purpose: Admin creator health endpoints
"""

from typing import List

from fastapi import APIRouter, Depends, Query

from creator_analytics.api.deps import require_admin
from creator_analytics.pipeline.stages import BulkEmailFilter, LeaderboardSort
from creator_analytics.schemas.creators import (
    AttentionEntry,
    BulkEmailRecipient,
    LeaderboardEntry,
    OnboardingStatus,
)
from creator_analytics.services import health_service
from utils.constants import DEFAULT_LEADERBOARD_LIMIT, MAX_LEADERBOARD_LIMIT

router = APIRouter(prefix="/admin/creators", tags=["creators"], dependencies=[Depends(require_admin)])


@router.get("/leaderboard", response_model=List[LeaderboardEntry])
async def leaderboard(
    limit: int = Query(default=DEFAULT_LEADERBOARD_LIMIT, ge=1, le=MAX_LEADERBOARD_LIMIT),
    sort_by: LeaderboardSort = Query(default=LeaderboardSort.REVENUE),
):
    return await health_service.get_creator_leaderboard(limit=limit, sort_by=sort_by)


@router.get("/attention", response_model=List[AttentionEntry])
async def needing_attention():
    return await health_service.get_creators_needing_attention()


@router.get("/bulk-email", response_model=List[BulkEmailRecipient])
async def bulk_email_audience(audience: BulkEmailFilter = Query(default=BulkEmailFilter.ALL, alias="filter")):
    return await health_service.get_creators_for_bulk_email(audience)


@router.get("/{user_id}/onboarding", response_model=OnboardingStatus)
async def onboarding_status(user_id: str):
    return await health_service.get_creator_onboarding_status(user_id)

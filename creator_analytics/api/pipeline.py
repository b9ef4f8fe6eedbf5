"""
creator_analytics/api/pipeline.py

Purpose: Admin creator pipeline endpoints

- GET   /admin/pipeline/creators           creators by stage
- GET   /admin/pipeline/stats              stage counts
- GET   /admin/pipeline/stuck              stuck creators
- POST  /admin/pipeline                    create / update an entry
- PATCH /admin/pipeline/{id}/stage         move stage
- POST  /admin/pipeline/{id}/touches       log an outreach touch
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, Query

from creator_analytics.api.deps import require_admin
from creator_analytics.pipeline.stages import PipelineStage
from creator_analytics.schemas.pipeline import (
    PipelineCreator,
    PipelineStats,
    PipelineUpsertRequest,
    PipelineUpsertResponse,
    StageUpdateRequest,
    StuckCreator,
    SuccessResponse,
    TouchRequest,
)
from creator_analytics.services import pipeline_service

router = APIRouter(prefix="/admin/pipeline", tags=["pipeline"], dependencies=[Depends(require_admin)])


@router.get("/creators", response_model=List[PipelineCreator])
async def list_creators(stage: Optional[PipelineStage] = Query(default=None)):
    return await pipeline_service.get_creators_by_stage(stage)


@router.get("/stats", response_model=PipelineStats)
async def pipeline_stats():
    return await pipeline_service.get_pipeline_stats()


@router.get("/stuck", response_model=List[StuckCreator])
async def stuck_creators():
    return await pipeline_service.get_stuck_creators()


@router.post("", response_model=PipelineUpsertResponse)
async def upsert_creator(body: PipelineUpsertRequest):
    metadata = body.model_dump(
        include={"daw", "instagram_handle", "tiktok_handle", "audience_size", "niche"},
        exclude_none=True,
    )
    entry_id = await pipeline_service.upsert_creator_pipeline(
        user_id=body.user_id,
        stage=body.stage,
        store_id=body.store_id,
        metadata=metadata,
    )
    return {"id": entry_id}


@router.patch("/{creator_id}/stage", response_model=SuccessResponse)
async def update_stage(creator_id: str, body: StageUpdateRequest):
    return await pipeline_service.update_creator_stage(creator_id, body.stage, body.note)


@router.post("/{creator_id}/touches", response_model=SuccessResponse)
async def add_touch(creator_id: str, body: TouchRequest):
    return await pipeline_service.add_creator_touch(creator_id, body.touch_type, body.note)

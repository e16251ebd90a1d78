"""
Content Engine - Idea Routes
============================
Manual idea intake and on-demand generation of a single idea.
"""

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from content_engine.agents.generation_orchestrator import generation_orchestrator
from content_engine.api.envelope import success_envelope
from content_engine.core.database import get_db
from content_engine.core.logging import get_logger
from content_engine.models import IdeaStatus
from content_engine.repositories.content_repository import content_repository
from content_engine.schemas import IdeaCreate, IdeaResponse, IdeaSuggestion
from content_engine.services.idea_service import idea_service

logger = get_logger("api.ideas")
router = APIRouter(prefix="/ideas", tags=["Ideas"])


@router.post("")
async def create_idea(payload: IdeaCreate, db: AsyncSession = Depends(get_db)):
    result = await idea_service.submit_idea(db, IdeaSuggestion(**payload.model_dump()))
    idea = result.idea
    body = IdeaResponse(
        id=idea.id,
        title=idea.title,
        status=idea.status.value,
        notes=idea.notes,
        article_id=idea.article_id,
    ).model_dump()
    return success_envelope(
        body,
        status_code=201 if result.accepted else 409,
        meta={"duplicate_of": result.duplicate_of},
    )


@router.post("/{idea_id}/generate")
async def generate_from_idea(idea_id: int, db: AsyncSession = Depends(get_db)):
    idea = await content_repository.get_idea(db, idea_id)
    if idea is None:
        raise HTTPException(404, "Idea not found")
    if idea.status not in (IdeaStatus.PENDING, IdeaStatus.APPROVED):
        raise HTTPException(409, f"Idea is {idea.status.value}")
    result = await generation_orchestrator.generate(db, idea)
    body = {
        "idea_id": result.idea_id,
        "trace_id": result.trace_id,
        "stage": result.stage.value,
        "article_id": result.article_id,
        "quality_score": result.quality_score,
        "risk_level": result.risk_level,
        "reason": result.reason,
        "history": [stage.value for stage in result.history],
    }
    return success_envelope(body, status_code=201 if result.succeeded else 200)

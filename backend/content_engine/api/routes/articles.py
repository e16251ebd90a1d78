"""
Content Engine - Article Routes
===============================
Human-in-the-loop revisions and manual publishing.
"""

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from content_engine.api.envelope import pipeline_error_envelope, success_envelope
from content_engine.core.database import get_db
from content_engine.core.errors import PipelineError
from content_engine.models import VersionOrigin
from content_engine.repositories.content_repository import content_repository
from content_engine.services.publish_service import publish_service
from content_engine.services.revision_service import revision_service
from content_engine.services.revision_validation_service import generate_validation_report

router = APIRouter(prefix="/articles", tags=["Articles"])


class RevisionRequest(BaseModel):
    content: str
    origin: VersionOrigin = VersionOrigin.MANUAL_EDIT
    note: str | None = None


class PublishRequest(BaseModel):
    override: bool = False


async def _article_or_404(db: AsyncSession, article_id: int):
    article = await content_repository.get_article(db, article_id)
    if article is None:
        raise HTTPException(404, "Article not found")
    return article


@router.post("/{article_id}/revisions")
async def revise_article(article_id: int, payload: RevisionRequest, db: AsyncSession = Depends(get_db)):
    article = await _article_or_404(db, article_id)
    outcome = await revision_service.apply_revision(
        db, article, payload.content, origin=payload.origin, note=payload.note,
    )
    return success_envelope({
        "article_id": article_id,
        "version": outcome.version.version_number if outcome.version else None,
        "quality": outcome.quality.model_dump(mode="json"),
        "validation": outcome.validation.model_dump(mode="json"),
        "report": generate_validation_report(outcome.validation),
    })


@router.get("/{article_id}/versions")
async def list_versions(article_id: int, db: AsyncSession = Depends(get_db)):
    await _article_or_404(db, article_id)
    versions = await content_repository.list_versions(db, article_id)
    return success_envelope([
        {
            "id": v.id,
            "version_number": v.version_number,
            "change_origin": v.change_origin.value,
            "content_hash": v.content_hash,
            "note": v.note,
            "created_at": v.created_at.isoformat() if v.created_at else None,
        }
        for v in versions
    ])


@router.post("/{article_id}/publish")
async def publish_article(article_id: int, payload: PublishRequest, db: AsyncSession = Depends(get_db)):
    article = await _article_or_404(db, article_id)
    try:
        result = await publish_service.publish(db, article, override=payload.override)
    except PipelineError as exc:
        return pipeline_error_envelope(exc, meta={"article_id": article_id})
    return success_envelope({"article_id": result.article_id, "id": result.post_id, "link": result.link})

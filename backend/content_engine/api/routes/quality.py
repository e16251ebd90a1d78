"""
Content Engine - Quality Routes
===============================
Stateless scoring and revision validation endpoints.
"""

from fastapi import APIRouter, Depends

from content_engine.api.envelope import success_envelope
from content_engine.schemas import QualityScoreRequest, QualityThresholds, RevisionValidateRequest
from content_engine.schemas.quality import ArticleMeta
from content_engine.services.quality_score_service import quality_score_service
from content_engine.services.revision_validation_service import revision_validator
from content_engine.services.settings_service import settings_service

router = APIRouter(tags=["Quality"])


async def get_quality_thresholds() -> QualityThresholds:
    return await settings_service.quality_thresholds()


@router.post("/quality/score")
async def score_content(
    payload: QualityScoreRequest,
    thresholds: QualityThresholds = Depends(get_quality_thresholds),
):
    meta = ArticleMeta(
        title=payload.title,
        target_keywords=payload.target_keywords,
        focus_keyword=payload.focus_keyword,
        faqs=payload.faqs,
    )
    assessment = quality_score_service.score(payload.content, meta, thresholds.merged(payload.thresholds))
    return success_envelope(assessment.model_dump(mode="json"))


@router.post("/revisions/validate")
async def validate_revision(payload: RevisionValidateRequest):
    result = revision_validator.validate(payload.original, payload.revised, payload.feedback_items)
    return success_envelope(result.model_dump(mode="json"))

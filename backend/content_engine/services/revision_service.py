"""
Content Engine - Revision Service
=================================
Applies a content change (AI revision or manual edit) to an article:
snapshot a new immutable version, re-score, and attach the advisory
feedback validation. Validation outcome never blocks the save.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from content_engine.core.logging import get_logger
from content_engine.models import Article, ArticleVersion, FeedbackItem, VersionOrigin
from content_engine.repositories.content_repository import ContentRepository, content_repository
from content_engine.schemas.quality import QualityAssessment
from content_engine.schemas.revision import RevisionValidationResult
from content_engine.services.quality_score_service import (
    QualityScoreService,
    apply_scores,
    article_meta,
    quality_score_service,
)
from content_engine.services.revision_validation_service import RevisionValidator, revision_validator
from content_engine.services.risk_assessment_service import RiskAssessmentService, risk_assessment_service
from content_engine.services.settings_service import SettingsService, settings_service
from content_engine.utils.hashing import generate_content_hash

logger = get_logger("revision_service")


@dataclass(slots=True)
class RevisionOutcome:
    article: Article
    version: ArticleVersion | None
    quality: QualityAssessment
    validation: RevisionValidationResult


class RevisionService:
    def __init__(
        self,
        *,
        repository: ContentRepository | None = None,
        validator: RevisionValidator | None = None,
        scorer: QualityScoreService | None = None,
        risk: RiskAssessmentService | None = None,
        settings_provider: SettingsService | None = None,
    ):
        self.repository = repository or content_repository
        self.validator = validator or revision_validator
        self.scorer = scorer or quality_score_service
        self.risk = risk or risk_assessment_service
        self.settings_provider = settings_provider or settings_service

    async def apply_revision(
        self,
        db: AsyncSession,
        article: Article,
        revised_content: str,
        *,
        origin: VersionOrigin = VersionOrigin.MANUAL_EDIT,
        feedback_items: list[Any] | None = None,
        note: str | None = None,
    ) -> RevisionOutcome:
        original = article.content or ""
        if feedback_items is None:
            feedback_items = await self.repository.list_feedback(db, article.id)
        validation = self.validator.validate(original, revised_content, feedback_items)

        for item, verdict in zip(feedback_items, validation.items):
            if isinstance(item, FeedbackItem):
                item.validation_status = verdict.status.value

        quality = self.scorer.score(revised_content, article_meta(article), await self.settings_provider.quality_thresholds())

        version = None
        if generate_content_hash(original) != generate_content_hash(revised_content):
            risk = self.risk.assess(revised_content, quality)
            article.content = revised_content
            apply_scores(article, quality, risk)
            version = await self.repository.create_version(db, article, origin=origin, note=note)
        await db.commit()

        logger.info(
            "article_revised",
            article_id=article.id,
            origin=origin.value,
            version=getattr(version, "version_number", None),
            quality_score=quality.score,
            feedback_success=validation.success,
            feedback_failed=validation.failed_count,
        )
        return RevisionOutcome(article=article, version=version, quality=quality, validation=validation)


revision_service = RevisionService()

"""
Content Engine - Generation Orchestrator
========================================
Turns one idea into a persisted draft article:

  pending → drafting → humanizing → linking → scored → persisted

Stages run strictly in order, one external call each, no retries. Any
PipelineError aborts the run with nothing persisted and the idea left in
its previous status so the next cycle can pick it up again.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from content_engine.core.config import get_settings
from content_engine.core.errors import PipelineError
from content_engine.core.logging import get_logger
from content_engine.domain.generation.stages import GenerationStage, can_advance
from content_engine.models import ArticleStatus, Idea, IdeaStatus, VersionOrigin
from content_engine.repositories.content_repository import ContentRepository, content_repository
from content_engine.schemas.generation import DraftRequest
from content_engine.schemas.quality import ArticleMeta
from content_engine.services.ai_service import AIService, ai_service
from content_engine.services.contributor_service import ContributorMatcher, contributor_matcher
from content_engine.services.link_catalog_service import (
    MIN_LINK_CANDIDATES,
    LinkCatalogService,
    link_catalog_service,
)
from content_engine.services.quality_score_service import QualityScoreService, quality_score_service
from content_engine.services.risk_assessment_service import RiskAssessmentService, risk_assessment_service
from content_engine.services.settings_service import SettingsService, settings_service
from content_engine.utils.hashing import generate_trace_id
from content_engine.utils.similarity import find_exact_title
from content_engine.utils.text_processing import clean_title, ensure_html_structure, slugify

logger = get_logger("agent.generation")
settings = get_settings()


def _sanitize_generated_html(html: str) -> str:
    html = (html or "").strip()
    html = re.sub(r"^```(?:html)?\s*|\s*```$", "", html)
    html = re.sub(r"<!--[\s\S]*?-->", "", html)
    html = re.sub(r"<script[\s\S]*?</script>", "", html, flags=re.IGNORECASE)
    html = re.sub(r"<style[\s\S]*?</style>", "", html, flags=re.IGNORECASE)
    return ensure_html_structure(re.sub(r"\n{3,}", "\n\n", html).strip())


@dataclass
class GenerationResult:
    idea_id: int
    trace_id: str
    stage: GenerationStage = GenerationStage.PENDING
    article_id: int | None = None
    quality_score: int | None = None
    risk_level: str | None = None
    contributor_id: int | None = None
    reason: str | None = None
    history: list[GenerationStage] = field(default_factory=lambda: [GenerationStage.PENDING])

    @property
    def succeeded(self) -> bool:
        return self.stage == GenerationStage.PERSISTED

    def advance(self, target: GenerationStage) -> None:
        if not can_advance(self.stage, target):
            raise RuntimeError(f"illegal generation transition {self.stage} -> {target}")
        self.stage = target
        self.history.append(target)
        logger.info("generation_stage", idea_id=self.idea_id, trace_id=self.trace_id, stage=target.value)


class GenerationOrchestrator:
    """Sequential per-idea pipeline. Collaborators are injectable for tests."""

    def __init__(
        self,
        *,
        ai: AIService | None = None,
        repository: ContentRepository | None = None,
        matcher: ContributorMatcher | None = None,
        scorer: QualityScoreService | None = None,
        risk: RiskAssessmentService | None = None,
        catalog: LinkCatalogService | None = None,
        settings_provider: SettingsService | None = None,
    ):
        self.ai = ai or ai_service
        self.repository = repository or content_repository
        self.matcher = matcher or contributor_matcher
        self.scorer = scorer or quality_score_service
        self.risk = risk or risk_assessment_service
        self.catalog = catalog or link_catalog_service
        self.settings_provider = settings_provider or settings_service

    async def _match_contributor(self, db: AsyncSession, idea: Idea):
        try:
            contributors = await self.repository.list_contributors(db)
        except SQLAlchemyError as exc:
            logger.warning("contributor_fetch_failed", idea_id=idea.id, error=str(exc))
            return None
        match = self.matcher.match(idea, contributors)
        if match is None:
            logger.info("contributor_unassigned", idea_id=idea.id)
            return None
        logger.info(
            "contributor_assigned",
            idea_id=idea.id,
            contributor_id=getattr(match.contributor, "id", None),
            score=match.score,
            reasons=match.reasons,
        )
        return match.contributor

    async def _insert_links(self, db: AsyncSession, idea_id: int, title: str, content: str) -> str:
        candidates = await self.catalog.candidates_for(db, title)
        if len(candidates) < MIN_LINK_CANDIDATES:
            logger.info("link_insertion_skipped", idea_id=idea_id, candidates=len(candidates))
            return content
        try:
            return _sanitize_generated_html(await self.ai.insert_links(content, candidates))
        except PipelineError as exc:
            logger.warning("link_insertion_failed", idea_id=idea_id, error=str(exc))
            return content

    async def generate(self, db: AsyncSession, idea: Idea) -> GenerationResult:
        result = GenerationResult(idea_id=idea.id, trace_id=generate_trace_id())
        try:
            result.advance(GenerationStage.DRAFTING)
            draft = await self.ai.generate_draft(DraftRequest(
                idea_title=idea.title,
                description=idea.description or "",
                keywords=list(idea.keywords or []),
                content_type=idea.content_type or "guide",
                target_word_count=settings.target_word_count,
            ))
            content = _sanitize_generated_html(draft.content)
            title = clean_title(draft.title) or clean_title(idea.title)

            contributor = await self._match_contributor(db, idea)
            style_profile = getattr(contributor, "style_profile", None) if contributor else None

            result.advance(GenerationStage.HUMANIZING)
            content = _sanitize_generated_html(await self.ai.humanize(content, style_profile))

            result.advance(GenerationStage.LINKING)
            content = await self._insert_links(db, idea.id, title, content)

            keywords = list(idea.keywords or [])
            meta = ArticleMeta(
                title=title,
                target_keywords=keywords,
                focus_keyword=draft.focus_keyword or None,
                faqs=draft.faqs,
            )
            quality = self.scorer.score(content, meta, await self.settings_provider.quality_thresholds())
            risk = self.risk.assess(content, quality)
            result.quality_score = quality.score
            result.risk_level = risk.risk_level.value
            result.advance(GenerationStage.SCORED)

            existing = await self.repository.list_article_titles(db)
            duplicate = find_exact_title(title, existing) or find_exact_title(idea.title, existing)
            if duplicate:
                await self.repository.set_idea_status(
                    db, idea, IdeaStatus.REJECTED, note=f"Duplicate of existing article: {duplicate}",
                )
                await db.commit()
                result.reason = f"duplicate_title:{duplicate}"
                result.advance(GenerationStage.REJECTED)
                logger.warning("generation_duplicate_rejected", idea_id=idea.id, duplicate_of=duplicate)
                return result

            article = await self.repository.create_article(
                db,
                idea_id=idea.id,
                title=title,
                slug=slugify(title),
                content=content,
                excerpt=draft.excerpt,
                meta_title=draft.meta_title or title,
                meta_description=draft.meta_description,
                focus_keyword=draft.focus_keyword or (keywords[0] if keywords else None),
                target_keywords=keywords,
                faqs=[faq.model_dump() for faq in draft.faqs],
                word_count=quality.word_count,
                internal_links_count=quality.internal_links,
                external_citations_count=quality.external_links,
                status=ArticleStatus.DRAFT,
                quality_score=quality.score,
                quality_issues=[issue.model_dump(mode="json") for issue in quality.issues],
                can_publish=quality.can_publish,
                risk_level=risk.risk_level,
                risk_flags=risk.flags,
                contributor_id=getattr(contributor, "id", None),
            )
            await self.repository.create_version(db, article, origin=VersionOrigin.ORIGINAL)
            await self.repository.set_idea_status(db, idea, IdeaStatus.COMPLETED, article_id=article.id)
            await db.commit()

            result.article_id = article.id
            result.contributor_id = getattr(contributor, "id", None)
            result.advance(GenerationStage.PERSISTED)
            logger.info(
                "generation_persisted",
                idea_id=idea.id,
                article_id=article.id,
                quality_score=quality.score,
                can_publish=quality.can_publish,
                risk_level=risk.risk_level.value,
            )
            return result
        except PipelineError as exc:
            await db.rollback()
            failed_at = result.stage
            result.reason = str(exc)
            result.advance(GenerationStage.FAILED)
            logger.error(
                "generation_failed",
                idea_id=result.idea_id,
                trace_id=result.trace_id,
                stage=failed_at.value,
                error_code=exc.code,
                error=str(exc),
            )
            return result


generation_orchestrator = GenerationOrchestrator()

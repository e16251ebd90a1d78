"""
Content Engine - Publish Scheduler
==================================
Interval-driven automation. Each tick:

1. snapshots persisted state (articles, approved idea queue, connection)
2. asks the pure policy what to do (domain.automation.policy.tick)
3. executes the actions, isolating every failure to its own article/idea

The only in-memory state carried between ticks is the single-flight
handle for idea generation; everything else is recomputed from the store.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from datetime import datetime, timezone

from sqlalchemy.exc import SQLAlchemyError

from content_engine.agents.generation_orchestrator import GenerationOrchestrator, generation_orchestrator
from content_engine.core.errors import PipelineError
from content_engine.core.logging import get_logger
from content_engine.domain.articles.state_machine import can_transition
from content_engine.domain.automation.policy import (
    ApproveArticle,
    ArticleView,
    AutomationState,
    GenerateArticle,
    GenerateIdeas,
    IN_PROGRESS_STATUSES,
    IdeaView,
    PublishArticle,
    TickPlan,
    tick,
)
from content_engine.models import Article, ArticleStatus, IdeaStatus
from content_engine.repositories.content_repository import ContentRepository, content_repository
from content_engine.services.idea_service import IdeaService, idea_service
from content_engine.services.publish_service import PublishService, publish_service
from content_engine.services.settings_service import SettingsService, settings_service

logger = get_logger("agent.publish_scheduler")

# Statuses the tick acts on: drafts count against the generation cap, approvals may publish.
ACTIVE_STATUSES = [*IN_PROGRESS_STATUSES, ArticleStatus.APPROVED]


@dataclass
class TickReport:
    started_at: datetime
    published: list[int] = field(default_factory=list)
    approved: list[int] = field(default_factory=list)
    generated: list[int] = field(default_factory=list)
    rejected_ideas: list[int] = field(default_factory=list)
    failed: list[str] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)
    ideas_triggered: bool = False
    publish_blocked: bool = False

    def as_dict(self) -> dict:
        return {
            "started_at": self.started_at.isoformat(),
            "published": self.published,
            "approved": self.approved,
            "generated": self.generated,
            "rejected_ideas": self.rejected_ideas,
            "failed": self.failed,
            "skipped": self.skipped,
            "ideas_triggered": self.ideas_triggered,
            "publish_blocked": self.publish_blocked,
        }


def article_view(article: Article) -> ArticleView:
    return ArticleView(
        id=article.id,
        title=article.title or "",
        status=article.status,
        word_count=article.word_count or 0,
        content_length=len(article.content or ""),
        has_keywords=bool(article.target_keywords or article.focus_keyword),
        internal_links=article.internal_links_count or 0,
        external_links=article.external_citations_count or 0,
        risk_level=article.risk_level,
        can_publish=bool(article.can_publish),
        publish_status=article.publish_status,
        auto_publish_deadline=article.auto_publish_deadline,
    )


class PublishScheduler:
    def __init__(
        self,
        *,
        session_factory=None,
        repository: ContentRepository | None = None,
        settings_provider: SettingsService | None = None,
        orchestrator: GenerationOrchestrator | None = None,
        ideas: IdeaService | None = None,
        publisher: PublishService | None = None,
    ):
        self._session_factory = session_factory
        self.repository = repository or content_repository
        self.settings_provider = settings_provider or settings_service
        self.orchestrator = orchestrator or generation_orchestrator
        self.ideas = ideas or idea_service
        self.publisher = publisher or publish_service
        self._idea_task: asyncio.Task | None = None

    def _sessions(self):
        if self._session_factory is None:
            from content_engine.core.database import async_session

            self._session_factory = async_session
        return self._session_factory

    @property
    def idea_generation_in_flight(self) -> bool:
        return self._idea_task is not None and not self._idea_task.done()

    async def snapshot(self, db) -> AutomationState:
        articles = await self.repository.list_articles(db, statuses=ACTIVE_STATUSES)
        titles = await self.repository.list_article_titles(db)
        ideas = await self.repository.list_ideas(db, statuses=[IdeaStatus.APPROVED])
        connection = await self.repository.get_default_connection(db)
        return AutomationState(
            articles=[article_view(a) for a in articles],
            existing_titles=titles,
            approved_ideas=[IdeaView(id=i.id, title=i.title or "", priority=i.priority or 5) for i in ideas],
            has_publish_connection=connection is not None,
            idea_generation_in_flight=self.idea_generation_in_flight,
        )

    # ── Action executors ──

    async def _approve(self, action: ApproveArticle, report: TickReport) -> None:
        try:
            async with self._sessions()() as db:
                article = await self.repository.get_article(db, action.article_id)
                if article is None or not can_transition(article.status, ArticleStatus.APPROVED):
                    report.skipped.append(f"approve:article:{action.article_id}:invalid_state")
                    return
                article.status = ArticleStatus.APPROVED
                article.auto_publish_deadline = action.auto_publish_deadline
                await db.commit()
        except SQLAlchemyError as exc:
            report.failed.append(f"approve:article:{action.article_id}")
            logger.error("auto_approve_failed", article_id=action.article_id, error=str(exc))
            return
        report.approved.append(action.article_id)
        logger.info(
            "article_auto_approved",
            article_id=action.article_id,
            criteria_met=action.criteria_met,
            auto_publish_deadline=action.auto_publish_deadline.isoformat(),
        )

    async def _publish(self, action: PublishArticle, report: TickReport) -> None:
        try:
            async with self._sessions()() as db:
                article = await self.repository.get_article(db, action.article_id)
                if article is None:
                    report.skipped.append(f"publish:article:{action.article_id}:missing")
                    return
                await self.publisher.publish(db, article, automated=True)
            report.published.append(action.article_id)
        except (PipelineError, SQLAlchemyError) as exc:
            report.failed.append(f"publish:article:{action.article_id}")
            logger.error("auto_publish_failed", article_id=action.article_id, error=str(exc))

    async def _generate(self, action: GenerateArticle, report: TickReport) -> None:
        try:
            async with self._sessions()() as db:
                idea = await self.repository.get_idea(db, action.idea_id)
                if idea is None or idea.status != IdeaStatus.APPROVED:
                    report.skipped.append(f"generation:idea:{action.idea_id}:not_approved")
                    return
                result = await self.orchestrator.generate(db, idea)
        except SQLAlchemyError as exc:
            report.failed.append(f"generation:idea:{action.idea_id}")
            logger.error("auto_generation_failed", idea_id=action.idea_id, error=str(exc))
            return
        if result.succeeded:
            report.generated.append(result.article_id)
        elif result.reason and result.reason.startswith("duplicate_title"):
            report.rejected_ideas.append(action.idea_id)
        else:
            report.failed.append(f"generation:idea:{action.idea_id}")

    async def _generate_ideas(self, action: GenerateIdeas) -> None:
        try:
            async with self._sessions()() as db:
                await self.ideas.generate_ideas(db, action.count, auto_approve=action.auto_approve)
        except (PipelineError, SQLAlchemyError) as exc:
            logger.error("auto_idea_generation_failed", error=str(exc))

    # ── Tick ──

    async def run_tick(self, now: datetime | None = None) -> TickReport:
        now = now or datetime.now(timezone.utc)
        report = TickReport(started_at=now)
        cfg = await self.settings_provider.automation_settings()
        async with self._sessions()() as db:
            state = await self.snapshot(db)
        plan: TickPlan = tick(state, cfg, now)
        report.skipped.extend(plan.skipped)
        report.publish_blocked = plan.publish_blocked

        for action in plan.of_type(ApproveArticle):
            await self._approve(action, report)

        # Sequential: one failed article must not affect the others.
        for action in plan.of_type(PublishArticle):
            await self._publish(action, report)

        for action in plan.of_type(GenerateIdeas):
            if not self.idea_generation_in_flight:
                self._idea_task = asyncio.create_task(self._generate_ideas(action))
                report.ideas_triggered = True

        generations = plan.of_type(GenerateArticle)
        if generations:
            await asyncio.gather(*(self._generate(action, report) for action in generations))

        logger.info(
            "automation_tick_done",
            level=cfg.automation_level.value,
            published=len(report.published),
            approved=len(report.approved),
            generated=len(report.generated),
            failed=len(report.failed),
            skipped=len(report.skipped),
            publish_blocked=report.publish_blocked,
        )
        return report

    async def shutdown(self) -> None:
        if self._idea_task and not self._idea_task.done():
            self._idea_task.cancel()
            await asyncio.gather(self._idea_task, return_exceptions=True)


publish_scheduler = PublishScheduler()

"""
Content Engine - Idea Service
=============================
Idea intake (manual or LLM-generated) with near-duplicate rejection.
"""

from __future__ import annotations

from dataclasses import dataclass

from sqlalchemy.ext.asyncio import AsyncSession

from content_engine.core.config import get_settings
from content_engine.core.logging import get_logger
from content_engine.models import Idea, IdeaStatus
from content_engine.repositories.content_repository import ContentRepository, content_repository
from content_engine.schemas.generation import IdeaSuggestion
from content_engine.services.ai_service import AIService, ai_service
from content_engine.utils.similarity import filter_duplicates, is_near_duplicate
from content_engine.utils.text_processing import clean_title

logger = get_logger("idea_service")
settings = get_settings()


@dataclass(slots=True)
class IntakeResult:
    idea: Idea
    accepted: bool
    duplicate_of: str | None = None


class IdeaService:
    def __init__(
        self,
        *,
        repository: ContentRepository | None = None,
        ai: AIService | None = None,
        threshold: float | None = None,
    ):
        self.repository = repository or content_repository
        self.ai = ai or ai_service
        self.threshold = settings.similarity_threshold if threshold is None else threshold

    async def _known_titles(self, db: AsyncSession) -> list[str]:
        return [
            *await self.repository.list_idea_titles(db),
            *await self.repository.list_article_titles(db),
        ]

    async def submit_idea(self, db: AsyncSession, suggestion: IdeaSuggestion, *, source_tag: str = "manual") -> IntakeResult:
        """Store the idea as pending, or as rejected with a note when it duplicates a known title."""
        title = clean_title(suggestion.title)
        duplicate = is_near_duplicate(title, await self._known_titles(db), self.threshold)
        idea = await self.repository.create_idea(
            db,
            title=title,
            description=suggestion.description,
            keywords=suggestion.keywords,
            content_type=suggestion.content_type,
            priority=suggestion.priority,
            status=IdeaStatus.REJECTED if duplicate else IdeaStatus.PENDING,
            source_tag=source_tag,
            notes=f"Near-duplicate of: {duplicate}" if duplicate else None,
        )
        await db.commit()
        if duplicate:
            logger.warning("idea_rejected_duplicate", idea_id=idea.id, title=title, duplicate_of=duplicate)
        else:
            logger.info("idea_submitted", idea_id=idea.id, title=title)
        return IntakeResult(idea=idea, accepted=duplicate is None, duplicate_of=duplicate)

    async def generate_ideas(
        self,
        db: AsyncSession,
        count: int,
        *,
        auto_approve: bool = True,
        focus: str | None = None,
    ) -> list[Idea]:
        """Ask the LLM for new ideas and queue the ones that are not near-duplicates."""
        known = await self._known_titles(db)
        suggestions = await self.ai.generate_ideas(count, known, focus)
        for suggestion in suggestions:
            suggestion.title = clean_title(suggestion.title)
        unique, duplicates = filter_duplicates(suggestions, known, threshold=self.threshold)

        status = IdeaStatus.APPROVED if auto_approve else IdeaStatus.PENDING
        created = [
            await self.repository.create_idea(
                db,
                title=s.title,
                description=s.description,
                keywords=s.keywords,
                content_type=s.content_type,
                priority=s.priority,
                status=status,
                source_tag="ai_generated",
            )
            for s in unique
            if s.title
        ]
        await db.commit()
        logger.info(
            "ideas_generated",
            requested=count,
            created=len(created),
            dropped_duplicates=[item.title for item, _ in duplicates],
        )
        return created


idea_service = IdeaService()

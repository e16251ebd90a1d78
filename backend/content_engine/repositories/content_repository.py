from __future__ import annotations

from collections.abc import Iterable

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from content_engine.models import (
    Article,
    ArticleStatus,
    ArticleVersion,
    CatalogArticle,
    Contributor,
    FeedbackItem,
    Idea,
    IdeaStatus,
    PublishConnection,
    VersionOrigin,
)
from content_engine.utils.hashing import generate_content_hash


class ContentRepository:
    # ── Ideas ──

    async def get_idea(self, db: AsyncSession, idea_id: int) -> Idea | None:
        return await db.get(Idea, idea_id)

    async def list_ideas(self, db: AsyncSession, *, statuses: Iterable[IdeaStatus], limit: int = 200) -> list[Idea]:
        rows = await db.execute(
            select(Idea)
            .where(Idea.status.in_(list(statuses)))
            .order_by(Idea.priority.desc(), Idea.id.asc())
            .limit(max(1, min(limit, 1000)))
        )
        return list(rows.scalars().all())

    async def list_idea_titles(self, db: AsyncSession) -> list[str]:
        rows = await db.execute(select(Idea.title).where(Idea.status != IdeaStatus.REJECTED))
        return [title for title in rows.scalars().all() if title]

    async def create_idea(
        self,
        db: AsyncSession,
        *,
        title: str,
        description: str | None = None,
        keywords: list[str] | None = None,
        content_type: str = "guide",
        priority: int = 5,
        status: IdeaStatus = IdeaStatus.PENDING,
        source_tag: str = "manual",
        notes: str | None = None,
    ) -> Idea:
        idea = Idea(
            title=title,
            description=description,
            keywords=list(keywords or []),
            content_type=content_type,
            priority=priority,
            status=status,
            source_tag=source_tag,
            notes=notes,
        )
        db.add(idea)
        await db.flush()
        return idea

    async def set_idea_status(
        self,
        db: AsyncSession,
        idea: Idea,
        status: IdeaStatus,
        *,
        note: str | None = None,
        article_id: int | None = None,
    ) -> Idea:
        idea.status = status
        if note:
            idea.notes = f"{idea.notes}\n{note}" if idea.notes else note
        if article_id is not None:
            idea.article_id = article_id
        await db.flush()
        return idea

    # ── Articles ──

    async def get_article(self, db: AsyncSession, article_id: int) -> Article | None:
        return await db.get(Article, article_id)

    async def list_articles(
        self,
        db: AsyncSession,
        *,
        statuses: Iterable[ArticleStatus] | None = None,
        limit: int | None = None,
    ) -> list[Article]:
        query = select(Article).order_by(Article.id.asc())
        if limit is not None:
            query = query.limit(max(1, limit))
        if statuses is not None:
            query = query.where(Article.status.in_(list(statuses)))
        rows = await db.execute(query)
        return list(rows.scalars().all())

    async def list_article_titles(self, db: AsyncSession) -> list[str]:
        rows = await db.execute(select(Article.title))
        return [title for title in rows.scalars().all() if title]

    async def create_article(self, db: AsyncSession, **fields) -> Article:
        article = Article(**fields)
        db.add(article)
        await db.flush()
        return article

    # ── Versions ──

    async def next_version_number(self, db: AsyncSession, article_id: int) -> int:
        current = await db.scalar(
            select(func.max(ArticleVersion.version_number)).where(ArticleVersion.article_id == article_id)
        )
        return int(current or 0) + 1

    async def create_version(
        self,
        db: AsyncSession,
        article: Article,
        *,
        origin: VersionOrigin,
        note: str | None = None,
    ) -> ArticleVersion:
        version = ArticleVersion(
            article_id=article.id,
            version_number=await self.next_version_number(db, article.id),
            title=article.title,
            content=article.content or "",
            content_hash=generate_content_hash(article.content or ""),
            change_origin=origin,
            note=note,
        )
        db.add(version)
        await db.flush()
        article.current_version_id = version.id
        await db.flush()
        return version

    async def list_versions(self, db: AsyncSession, article_id: int) -> list[ArticleVersion]:
        rows = await db.execute(
            select(ArticleVersion)
            .where(ArticleVersion.article_id == article_id)
            .order_by(ArticleVersion.version_number.asc())
        )
        return list(rows.scalars().all())

    # ── Feedback / contributors / catalog / connections ──

    async def list_feedback(self, db: AsyncSession, article_id: int) -> list[FeedbackItem]:
        rows = await db.execute(
            select(FeedbackItem).where(FeedbackItem.article_id == article_id).order_by(FeedbackItem.id.asc())
        )
        return list(rows.scalars().all())

    async def list_contributors(self, db: AsyncSession) -> list[Contributor]:
        rows = await db.execute(
            select(Contributor).where(Contributor.active.is_(True)).order_by(Contributor.id.asc())
        )
        return list(rows.scalars().all())

    async def list_catalog(self, db: AsyncSession, *, limit: int = 200) -> list[CatalogArticle]:
        rows = await db.execute(
            select(CatalogArticle)
            .order_by(CatalogArticle.times_linked_to.asc(), CatalogArticle.id.asc())
            .limit(max(1, min(limit, 2000)))
        )
        return list(rows.scalars().all())

    async def get_default_connection(self, db: AsyncSession) -> PublishConnection | None:
        rows = await db.execute(
            select(PublishConnection)
            .where(PublishConnection.is_default.is_(True), PublishConnection.is_connected.is_(True))
            .order_by(PublishConnection.id.asc())
            .limit(1)
        )
        return rows.scalar_one_or_none()


content_repository = ContentRepository()

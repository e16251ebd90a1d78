"""
Content Engine - Link Catalog
=============================
Ranks existing site pages as internal-link candidates for a new article.
title word overlap +10 each, topic overlap +15 each; less-linked pages
first on ties.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from content_engine.core.config import get_settings
from content_engine.repositories.content_repository import ContentRepository, content_repository
from content_engine.schemas.generation import CatalogLink

settings = get_settings()

MIN_LINK_CANDIDATES = 3


def _title_words(title: str) -> list[str]:
    return [w for w in (title or "").lower().split() if len(w) > 3]


def relevance(title: str, entry: Any) -> int:
    words = _title_words(title)
    entry_words = (getattr(entry, "title", "") or "").lower().split()
    score = 10 * sum(1 for w in words if any(w in ew for ew in entry_words))
    topics = [str(t).lower() for t in (getattr(entry, "topics", None) or [])]
    score += 15 * sum(1 for topic in topics if any(w in topic for w in words))
    return score


def rank_catalog(title: str, entries: Sequence[Any], limit: int) -> list[CatalogLink]:
    scored = [(relevance(title, e), getattr(e, "times_linked_to", 0) or 0, idx, e) for idx, e in enumerate(entries)]
    scored = [row for row in scored if row[0] > 0]
    scored.sort(key=lambda row: (-row[0], row[1], row[2]))
    return [CatalogLink(title=e.title, url=e.url) for _, _, _, e in scored[:limit]]


class LinkCatalogService:
    def __init__(self, repository: ContentRepository | None = None):
        self.repository = repository or content_repository

    async def candidates_for(self, db: AsyncSession, title: str, limit: int | None = None) -> list[CatalogLink]:
        entries = await self.repository.list_catalog(db)
        return rank_catalog(title, entries, limit or settings.link_catalog_limit)


link_catalog_service = LinkCatalogService()

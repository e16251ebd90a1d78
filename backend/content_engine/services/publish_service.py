"""
Content Engine - Publish Service
================================
WordPress REST publishing with hard pre-publish gates:

1. a default, connected site with credentials (ConfigurationError otherwise)
2. quality gate (can_publish) unless a human overrides
3. automated runs additionally refuse HIGH/CRITICAL risk
4. shortcode allow-list + monetization presence (never overridable)

Transport/HTTP failures leave the article retriable on the next tick;
gate failures mark it failed with the reason until a human intervenes.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone

import httpx
from sqlalchemy.ext.asyncio import AsyncSession

from content_engine.core.config import Settings, get_settings
from content_engine.core.errors import ConfigurationError, ExternalServiceError, ValidationFailure
from content_engine.core.logging import get_logger
from content_engine.domain.articles.state_machine import validate_transition
from content_engine.domain.automation.policy import AUTO_PUBLISH_FORBIDDEN_RISK
from content_engine.models import Article, ArticleStatus, PublishConnection, PublishStatus
from content_engine.repositories.content_repository import ContentRepository, content_repository
from content_engine.services.shortcode_service import ShortcodeService, shortcode_service

logger = get_logger("publish_service")


@dataclass(slots=True)
class PublishResult:
    article_id: int
    post_id: str
    link: str


class PublishService:
    def __init__(
        self,
        *,
        repository: ContentRepository | None = None,
        shortcodes: ShortcodeService | None = None,
        config: Settings | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.repository = repository or content_repository
        self.shortcodes = shortcodes or shortcode_service
        self.config = config or get_settings()
        self._transport = transport

    @staticmethod
    def _require_credentials(connection: PublishConnection | None) -> PublishConnection:
        if connection is None:
            raise ConfigurationError("publish_connection", "no default connected publish connection")
        for key in ("site_url", "username", "application_password"):
            if not getattr(connection, key, None):
                raise ConfigurationError(key, f"publish connection {connection.id} is missing {key}")
        return connection

    def check_preconditions(self, article: Article, *, override: bool = False, automated: bool = False) -> None:
        transition = validate_transition(article.status, ArticleStatus.PUBLISHED)
        if not transition.valid:
            raise ValidationFailure(
                f"article cannot move from {article.status.value} to published",
                details={"allowed": [s.value for s in transition.allowed_targets]},
            )
        if automated and override:
            raise ValidationFailure("automated publishing cannot override the quality gate")
        if not article.can_publish and not override:
            raise ValidationFailure("quality gate failed: a critical check did not pass")
        if automated and article.risk_level in AUTO_PUBLISH_FORBIDDEN_RISK:
            raise ValidationFailure(f"{article.risk_level.value} risk articles require manual review")
        self.shortcodes.ensure_publishable(article.content or "")

    def _payload(self, article: Article, connection: PublishConnection) -> dict:
        payload = {
            "title": article.title,
            "content": article.content,
            "excerpt": article.excerpt or "",
            "status": connection.default_status or "draft",
            "slug": article.slug or None,
            "meta": {
                "_yoast_wpseo_title": article.meta_title or article.title,
                "_yoast_wpseo_metadesc": article.meta_description or "",
            },
        }
        if connection.default_category_id:
            payload["categories"] = [connection.default_category_id]
        return {k: v for k, v in payload.items() if v is not None}

    async def _post(self, connection: PublishConnection, payload: dict) -> dict:
        url = f"{connection.site_url.rstrip('/')}/wp-json/wp/v2/posts"
        try:
            async with httpx.AsyncClient(
                timeout=self.config.publish_timeout_seconds, transport=self._transport
            ) as client:
                resp = await client.post(
                    url,
                    json=payload,
                    auth=(connection.username, connection.application_password),
                )
        except httpx.HTTPError as exc:
            raise ExternalServiceError("wordpress", f"request failed: {exc}") from exc
        if resp.status_code >= 400:
            raise ExternalServiceError("wordpress", f"HTTP {resp.status_code}: {resp.text[:200]}", status_code=resp.status_code)
        try:
            data = resp.json()
            return {"id": str(data["id"]), "link": str(data.get("link") or "")}
        except (ValueError, KeyError, TypeError) as exc:
            raise ExternalServiceError("wordpress", "unexpected response shape") from exc

    async def publish(
        self,
        db: AsyncSession,
        article: Article,
        *,
        connection: PublishConnection | None = None,
        override: bool = False,
        automated: bool = False,
    ) -> PublishResult:
        connection = self._require_credentials(connection or await self.repository.get_default_connection(db))
        try:
            self.check_preconditions(article, override=override, automated=automated)
        except ValidationFailure as exc:
            article.publish_status = PublishStatus.FAILED
            article.publish_error = exc.reason
            await db.commit()
            logger.warning("publish_rejected", article_id=article.id, reason=exc.reason, automated=automated)
            raise

        article.publish_status = PublishStatus.PUBLISHING
        await db.flush()
        try:
            data = await self._post(connection, self._payload(article, connection))
        except ExternalServiceError as exc:
            article.publish_status = PublishStatus.PENDING
            article.publish_error = str(exc)
            await db.commit()
            logger.error("publish_failed", article_id=article.id, connection_id=connection.id, error=str(exc))
            raise

        article.status = ArticleStatus.PUBLISHED
        article.publish_status = PublishStatus.PUBLISHED
        article.published_post_id = data["id"]
        article.published_url = data["link"]
        article.published_at = datetime.now(timezone.utc)
        article.publish_error = None
        await db.commit()
        logger.info(
            "article_published",
            article_id=article.id,
            post_id=data["id"],
            link=data["link"],
            override=override,
            automated=automated,
        )
        return PublishResult(article_id=article.id, post_id=data["id"], link=data["link"])


publish_service = PublishService()

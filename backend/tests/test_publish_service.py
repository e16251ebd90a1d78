from __future__ import annotations

import base64
import json
from types import SimpleNamespace

import httpx
import pytest

from content_engine.core.config import Settings
from content_engine.core.errors import ConfigurationError, ExternalServiceError, ValidationFailure
from content_engine.models import ArticleStatus, PublishStatus, RiskLevel
from content_engine.services.publish_service import PublishService

CONTENT = '<h2>Intro</h2><p>Body.</p>[degree_table category="nursing"]'


def _article(**overrides) -> SimpleNamespace:
    fields = {
        "id": 42,
        "title": "Online Nursing Degrees",
        "slug": "online-nursing-degrees",
        "content": CONTENT,
        "excerpt": "Short",
        "meta_title": None,
        "meta_description": "Nursing guide",
        "status": ArticleStatus.APPROVED,
        "can_publish": True,
        "risk_level": RiskLevel.LOW,
        "publish_status": PublishStatus.PENDING,
        "publish_error": None,
        "published_post_id": None,
        "published_url": None,
        "published_at": None,
    }
    fields.update(overrides)
    return SimpleNamespace(**fields)


def _connection(**overrides) -> SimpleNamespace:
    fields = {
        "id": 1,
        "site_url": "https://wp.example.com/",
        "username": "editor",
        "application_password": "app pass",
        "default_status": "publish",
        "default_category_id": 12,
    }
    fields.update(overrides)
    return SimpleNamespace(**fields)


class _RepoStub:
    def __init__(self, connection):
        self.connection = connection

    async def get_default_connection(self, db):
        return self.connection


class _DbSessionStub:
    def __init__(self):
        self.commits = 0
        self.flushes = 0

    async def commit(self):
        self.commits += 1

    async def flush(self):
        self.flushes += 1


def _service(handler, connection=None) -> PublishService:
    return PublishService(
        repository=_RepoStub(connection if connection is not None else _connection()),
        config=Settings(),
        transport=httpx.MockTransport(handler),
    )


def _never_called(request: httpx.Request) -> httpx.Response:
    raise AssertionError("no request expected")


@pytest.mark.asyncio
async def test_publish_posts_to_wordpress_and_records_result() -> None:
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["url"] = str(request.url)
        seen["auth"] = request.headers["authorization"]
        seen["body"] = json.loads(request.content)
        return httpx.Response(201, json={"id": 991, "link": "https://wp.example.com/nursing/"})

    article, db = _article(), _DbSessionStub()
    result = await _service(handler).publish(db, article)

    assert seen["url"] == "https://wp.example.com/wp-json/wp/v2/posts"
    assert seen["auth"] == "Basic " + base64.b64encode(b"editor:app pass").decode()
    assert seen["body"]["status"] == "publish"
    assert seen["body"]["categories"] == [12]
    assert seen["body"]["meta"]["_yoast_wpseo_title"] == "Online Nursing Degrees"
    assert result.post_id == "991"
    assert article.status == ArticleStatus.PUBLISHED
    assert article.publish_status == PublishStatus.PUBLISHED
    assert article.published_url == "https://wp.example.com/nursing/"
    assert article.published_at is not None
    assert db.commits == 1


@pytest.mark.asyncio
async def test_quality_gate_blocks_without_override() -> None:
    article, db = _article(can_publish=False), _DbSessionStub()

    with pytest.raises(ValidationFailure):
        await _service(_never_called).publish(db, article)

    assert article.publish_status == PublishStatus.FAILED
    assert article.publish_error.startswith("quality gate failed")
    assert article.status == ArticleStatus.APPROVED


@pytest.mark.asyncio
async def test_manual_override_bypasses_quality_gate() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(201, json={"id": 5, "link": "https://wp.example.com/x/"})

    article = _article(can_publish=False)
    await _service(handler).publish(_DbSessionStub(), article, override=True)
    assert article.status == ArticleStatus.PUBLISHED


@pytest.mark.asyncio
async def test_automated_runs_cannot_override() -> None:
    with pytest.raises(ValidationFailure):
        await _service(_never_called).publish(_DbSessionStub(), _article(), override=True, automated=True)


@pytest.mark.asyncio
async def test_automated_runs_refuse_high_risk() -> None:
    article = _article(risk_level=RiskLevel.HIGH)
    with pytest.raises(ValidationFailure) as exc_info:
        await _service(_never_called).publish(_DbSessionStub(), article, automated=True)
    assert exc_info.value.reason == "HIGH risk articles require manual review"


@pytest.mark.asyncio
async def test_shortcode_gate_is_never_overridable() -> None:
    article = _article(content="<p>No monetization</p>[popup]")
    with pytest.raises(ValidationFailure):
        await _service(_never_called).publish(_DbSessionStub(), article, override=True)
    assert article.publish_status == PublishStatus.FAILED


@pytest.mark.asyncio
async def test_draft_articles_cannot_be_published() -> None:
    with pytest.raises(ValidationFailure):
        await _service(_never_called).publish(_DbSessionStub(), _article(status=ArticleStatus.DRAFT))


@pytest.mark.asyncio
async def test_missing_connection_is_configuration_error() -> None:
    service = PublishService(repository=_RepoStub(None), config=Settings(), transport=httpx.MockTransport(_never_called))
    with pytest.raises(ConfigurationError):
        await service.publish(_DbSessionStub(), _article())

    with pytest.raises(ConfigurationError) as exc_info:
        await _service(_never_called, _connection(application_password="")).publish(_DbSessionStub(), _article())
    assert exc_info.value.key == "application_password"


@pytest.mark.asyncio
async def test_wordpress_error_leaves_article_retriable() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(500, text="boom")

    article, db = _article(), _DbSessionStub()
    with pytest.raises(ExternalServiceError) as exc_info:
        await _service(handler).publish(db, article)

    assert exc_info.value.status_code == 500
    assert article.publish_status == PublishStatus.PENDING
    assert article.status == ArticleStatus.APPROVED
    assert "HTTP 500" in article.publish_error
    assert db.commits == 1

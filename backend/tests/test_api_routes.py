from __future__ import annotations

from types import SimpleNamespace

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from content_engine.api.routes import ideas as ideas_routes
from content_engine.api.routes.quality import get_quality_thresholds, router as quality_router
from content_engine.core.database import get_db
from content_engine.models import IdeaStatus
from content_engine.schemas.quality import QualityThresholds
from content_engine.services.idea_service import IntakeResult


def _app() -> FastAPI:
    app = FastAPI()
    app.include_router(quality_router, prefix="/api/v1")
    app.include_router(ideas_routes.router, prefix="/api/v1")
    app.dependency_overrides[get_quality_thresholds] = lambda: QualityThresholds(min_readability=0, max_readability=100)

    async def _no_db():
        yield None

    app.dependency_overrides[get_db] = _no_db
    return app


def test_score_endpoint_reports_critical_gate() -> None:
    client = TestClient(_app())
    body = " ".join(["study"] * 900)
    response = client.post(
        "/api/v1/quality/score",
        json={"content": f"<h2>A</h2><h2>B</h2><h2>C</h2><p>{body}.</p><img src='/x.png' alt='x'>"},
    )

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["can_publish"] is False
    assert data["checks"]["internal_links"]["passed"] is False
    assert any(issue["critical"] for issue in data["issues"])


def test_score_endpoint_applies_threshold_overrides() -> None:
    client = TestClient(_app())
    response = client.post(
        "/api/v1/quality/score",
        json={
            "content": "<h2>A</h2><p>Short text.</p>",
            "thresholds": {"min_internal_links": 0, "min_word_count": 1},
        },
    )
    data = response.json()["data"]
    assert data["checks"]["internal_links"]["passed"] is True
    assert data["checks"]["word_count"]["passed"] is True


def test_validate_revision_endpoint() -> None:
    client = TestClient(_app())
    response = client.post(
        "/api/v1/revisions/validate",
        json={
            "original": "<p>Keep this.</p><p>Drop this sentence.</p>",
            "revised": "<p>Keep this.</p>",
            "feedback_items": [{"id": 1, "comment": "Remove this sentence", "selected_text": "Drop this sentence."}],
        },
    )
    data = response.json()["data"]
    assert data["success"] is True
    assert data["items"][0]["status"] == "addressed"
    assert data["summary"] == "All 1 feedback items were successfully addressed"


class _IdeaServiceStub:
    def __init__(self, duplicate_of: str | None):
        self.duplicate_of = duplicate_of

    async def submit_idea(self, db, suggestion, *, source_tag="manual"):
        status = IdeaStatus.REJECTED if self.duplicate_of else IdeaStatus.PENDING
        idea = SimpleNamespace(
            id=3,
            title=suggestion.title,
            status=status,
            notes=f"Near-duplicate of: {self.duplicate_of}" if self.duplicate_of else None,
            article_id=None,
        )
        return IntakeResult(idea=idea, accepted=self.duplicate_of is None, duplicate_of=self.duplicate_of)


@pytest.mark.parametrize(
    ("duplicate_of", "expected_status", "idea_status"),
    [(None, 201, "pending"), ("Online MBA Programs", 409, "rejected")],
)
def test_create_idea_endpoint(monkeypatch, duplicate_of, expected_status, idea_status) -> None:
    monkeypatch.setattr(ideas_routes, "idea_service", _IdeaServiceStub(duplicate_of))
    client = TestClient(_app())

    response = client.post("/api/v1/ideas", json={"title": "Online MBA Program Guide"})

    assert response.status_code == expected_status
    payload = response.json()
    assert payload["data"]["status"] == idea_status
    assert payload["meta"]["duplicate_of"] == duplicate_of


def test_create_idea_validates_payload() -> None:
    client = TestClient(_app())
    assert client.post("/api/v1/ideas", json={"title": "abc"}).status_code == 422

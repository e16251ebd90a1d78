"""
Content Engine - Pydantic Schemas
=================================
Request/Response schemas for the API layer.
"""

from typing import Optional

from pydantic import BaseModel, Field

from content_engine.schemas.generation import DraftRequest, DraftResult, IdeaSuggestion
from content_engine.schemas.quality import (
    FAQ,
    ArticleMeta,
    QualityAssessment,
    QualityThresholds,
)
from content_engine.schemas.revision import FeedbackInput, RevisionValidationResult


class HealthResponse(BaseModel):
    status: str = "healthy"
    version: str
    uptime_seconds: float
    services: dict[str, str] = Field(default_factory=dict)


class QualityScoreRequest(BaseModel):
    content: str
    title: str = ""
    target_keywords: list[str] = Field(default_factory=list)
    focus_keyword: Optional[str] = None
    faqs: list[FAQ] = Field(default_factory=list)
    thresholds: Optional[dict] = None


class RevisionValidateRequest(BaseModel):
    original: str
    revised: str
    feedback_items: list[FeedbackInput] = Field(default_factory=list)


class IdeaCreate(BaseModel):
    title: str = Field(..., min_length=5, max_length=500)
    description: str = ""
    keywords: list[str] = Field(default_factory=list)
    content_type: str = "guide"
    priority: int = Field(5, ge=1, le=10)


class IdeaResponse(BaseModel):
    id: int
    title: str
    status: str
    notes: Optional[str] = None
    article_id: Optional[int] = None


__all__ = [
    "ArticleMeta",
    "DraftRequest",
    "DraftResult",
    "FAQ",
    "FeedbackInput",
    "HealthResponse",
    "IdeaCreate",
    "IdeaResponse",
    "IdeaSuggestion",
    "QualityAssessment",
    "QualityScoreRequest",
    "QualityThresholds",
    "RevisionValidateRequest",
    "RevisionValidationResult",
]

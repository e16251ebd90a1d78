"""RevisionValidator inputs and advisory results."""

from __future__ import annotations

from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field


class ValidationStatus(StrEnum):
    ADDRESSED = "addressed"
    PARTIAL = "partial"
    FAILED = "failed"
    UNKNOWN = "unknown"


class FeedbackIntent(StrEnum):
    LINK_REQUEST = "link_request"
    TEXT_CORRECTION = "text_correction"
    REMOVAL_REQUEST = "removal_request"
    ADDITION_REQUEST = "addition_request"
    GENERIC = "generic"


class FeedbackInput(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int | str | None = None
    category: str | None = None
    severity: str | None = None
    selected_text: str | None = None
    comment: str | None = ""


class ItemValidation(BaseModel):
    feedback_id: int | str | None = None
    intent: FeedbackIntent
    status: ValidationStatus
    evidence: list[str] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)
    comment: str = ""


class RevisionValidationResult(BaseModel):
    success: bool
    addressed_count: int = 0
    partial_count: int = 0
    failed_count: int = 0
    items: list[ItemValidation] = Field(default_factory=list)
    summary: str = ""

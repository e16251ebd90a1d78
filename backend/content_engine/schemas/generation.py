"""Boundary schemas for external LLM calls. A mismatch is an ExternalServiceError."""

from __future__ import annotations

from pydantic import AliasChoices, BaseModel, Field, field_validator

from content_engine.schemas.quality import FAQ


class DraftRequest(BaseModel):
    idea_title: str
    description: str = ""
    keywords: list[str] = Field(default_factory=list)
    content_type: str = "guide"
    target_word_count: int = 1500


class DraftResult(BaseModel):
    title: str = Field(..., min_length=3)
    excerpt: str = ""
    content: str = Field(..., min_length=50)
    meta_title: str = Field("", validation_alias=AliasChoices("meta_title", "metaTitle"))
    meta_description: str = Field("", validation_alias=AliasChoices("meta_description", "metaDescription"))
    focus_keyword: str = Field("", validation_alias=AliasChoices("focus_keyword", "focusKeyword"))
    faqs: list[FAQ] = Field(default_factory=list)

    @field_validator("content")
    @classmethod
    def _content_is_html(cls, value: str) -> str:
        if "<" not in value:
            raise ValueError("content must be HTML")
        return value


class CatalogLink(BaseModel):
    title: str
    url: str


class IdeaSuggestion(BaseModel):
    title: str = Field(..., min_length=5)
    description: str = ""
    keywords: list[str] = Field(default_factory=list)
    content_type: str = "guide"
    priority: int = Field(5, ge=1, le=10)


class IdeaSuggestionBatch(BaseModel):
    ideas: list[IdeaSuggestion] = Field(default_factory=list)

"""Quality gate schemas: thresholds, per-check results and the assessment."""

from __future__ import annotations

from enum import StrEnum
from typing import Any, Mapping

from pydantic import BaseModel, Field


class IssueSeverity(StrEnum):
    MAJOR = "major"
    MINOR = "minor"


def _as_int(raw: Any, default: int) -> int:
    try:
        return int(str(raw).strip())
    except (TypeError, ValueError):
        return default


def _as_float(raw: Any, default: float) -> float:
    try:
        return float(str(raw).strip())
    except (TypeError, ValueError):
        return default


def _as_flag(raw: Any, default: bool) -> bool:
    if raw is None:
        return default
    value = str(raw).strip().lower()
    if value in {"true", "1", "yes", "on"}:
        return True
    if value in {"false", "0", "no", "off"}:
        return False
    return default


class QualityThresholds(BaseModel):
    min_word_count: int = 800
    max_word_count: int = 2500
    min_internal_links: int = 3
    min_external_links: int = 1
    require_faq: bool = False
    require_bls: bool = False
    require_headings: bool = True
    min_heading_count: int = 3
    min_images: int = 1
    require_image_alt: bool = True
    keyword_density_min: float = 0.5
    keyword_density_max: float = 2.5
    min_readability: float = 60.0
    max_readability: float = 80.0

    @classmethod
    def from_settings_map(cls, values: Mapping[str, Any] | None) -> "QualityThresholds":
        """Parse the flat string settings map; missing or bad keys keep defaults."""
        values = values or {}
        d = cls()

        def get(key: str):
            raw = values.get(key)
            return None if raw is None or str(raw).strip() == "" else raw

        return cls(
            min_word_count=_as_int(get("min_word_count"), d.min_word_count),
            max_word_count=_as_int(get("max_word_count"), d.max_word_count),
            min_internal_links=_as_int(get("min_internal_links"), d.min_internal_links),
            min_external_links=_as_int(get("min_external_links"), d.min_external_links),
            require_faq=_as_flag(get("require_faq_schema"), d.require_faq),
            require_bls=_as_flag(get("require_bls_citation"), d.require_bls),
            require_headings=_as_flag(get("require_headings"), d.require_headings),
            min_heading_count=_as_int(get("min_heading_count"), d.min_heading_count),
            min_images=_as_int(get("min_images"), d.min_images),
            require_image_alt=_as_flag(get("require_image_alt_text"), d.require_image_alt),
            keyword_density_min=_as_float(get("keyword_density_min"), d.keyword_density_min),
            keyword_density_max=_as_float(get("keyword_density_max"), d.keyword_density_max),
            min_readability=_as_float(get("min_readability_score"), d.min_readability),
            max_readability=_as_float(get("max_readability_score"), d.max_readability),
        )

    def merged(self, overrides: Mapping[str, Any] | None) -> "QualityThresholds":
        if not overrides:
            return self
        return self.model_copy(update={k: v for k, v in overrides.items() if v is not None})


class FAQ(BaseModel):
    question: str
    answer: str


class ArticleMeta(BaseModel):
    title: str = ""
    target_keywords: list[str] = Field(default_factory=list)
    focus_keyword: str | None = None
    faqs: list[FAQ] = Field(default_factory=list)

    @property
    def primary_keyword(self) -> str:
        for keyword in self.target_keywords:
            if keyword and keyword.strip():
                return keyword.strip().lower()
        return (self.focus_keyword or "").strip().lower()


class QualityCheck(BaseModel):
    passed: bool
    critical: bool = False
    enabled: bool = True
    value: float | int | bool | None = None
    target: str = ""
    issue: str | None = None


class QualityIssue(BaseModel):
    check: str
    description: str
    critical: bool
    severity: IssueSeverity


class QualityAssessment(BaseModel):
    score: int = Field(0, ge=0, le=100)
    checks: dict[str, QualityCheck] = Field(default_factory=dict)
    issues: list[QualityIssue] = Field(default_factory=list)
    can_publish: bool = False
    word_count: int = 0
    internal_links: int = 0
    external_links: int = 0

    @property
    def failed_checks(self) -> list[str]:
        return [name for name, check in self.checks.items() if check.enabled and not check.passed]

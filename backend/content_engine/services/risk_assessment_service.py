"""
Content Engine - Risk Assessment Service
========================================
Coarse LOW/MEDIUM/HIGH/CRITICAL classification of an article's exposure,
derived from failed quality checks and shortcode compliance. Independent
of the numeric quality score except through the score floors below.
"""

from __future__ import annotations

from pydantic import BaseModel, Field

from content_engine.models.content import RiskLevel
from content_engine.schemas.quality import QualityAssessment
from content_engine.services.shortcode_service import ShortcodeService, shortcode_service

ISSUE_WEIGHTS: dict[str, int] = {
    "unknown_shortcode": 100,
    "missing_internal_links": 25,
    "missing_external_links": 20,
    "word_count_low": 20,
    "poor_readability": 15,
    "weak_headings": 15,
    "missing_faqs": 10,
    "missing_bls_citation": 10,
    "word_count_high": 5,
    "keyword_density_issue": 5,
    "missing_images": 5,
    "missing_image_alt": 5,
}
ISSUE_MESSAGES: dict[str, str] = {
    "unknown_shortcode": "Contains shortcodes that are not on the allow-list",
    "missing_internal_links": "Not enough internal links to site content",
    "missing_external_links": "Missing authoritative external citations",
    "word_count_low": "Article is below minimum word count",
    "word_count_high": "Article exceeds recommended word count",
    "poor_readability": "Readability score needs improvement",
    "weak_headings": "Heading structure needs improvement",
    "missing_faqs": "Missing FAQ section",
    "missing_bls_citation": "Missing BLS citation for salary/career data",
    "keyword_density_issue": "Focus keyword density outside optimal range",
    "missing_images": "Not enough images",
    "missing_image_alt": "Images are missing alt text",
}
_CHECK_FLAGS = {
    "internal_links": "missing_internal_links",
    "external_links": "missing_external_links",
    "readability": "poor_readability",
    "headings": "weak_headings",
    "faq_schema": "missing_faqs",
    "bls_citation": "missing_bls_citation",
    "keyword_density": "keyword_density_issue",
    "images": "missing_images",
    "image_alt": "missing_image_alt",
}
BLOCKING_FLAGS = {"unknown_shortcode"}
HIGH_QUALITY_FLOOR = 70
MEDIUM_QUALITY_FLOOR = 85


class RiskIssue(BaseModel):
    flag: str
    weight: int
    severity: str
    message: str


class RiskAssessment(BaseModel):
    risk_level: RiskLevel
    risk_score: int = 0
    quality_score: int = 0
    issues: list[RiskIssue] = Field(default_factory=list)
    blocking: list[str] = Field(default_factory=list)
    summary: str = ""

    @property
    def flags(self) -> list[str]:
        return [issue.flag for issue in self.issues]


def risk_flags_for(assessment: QualityAssessment) -> list[str]:
    flags: list[str] = []
    for name in assessment.failed_checks:
        if name == "word_count":
            check = assessment.checks[name]
            flags.append("word_count_high" if (check.issue or "").startswith("Remove") else "word_count_low")
        elif name in _CHECK_FLAGS:
            flags.append(_CHECK_FLAGS[name])
    return flags


def _summary(level: RiskLevel, issues: list[RiskIssue], blocking: list[str], quality: int) -> str:
    if level == RiskLevel.CRITICAL:
        return f"Publishing blocked: {len(blocking)} critical issue(s) must be resolved."
    if level == RiskLevel.HIGH:
        return f"High risk: {len(issues)} issue(s) require attention. Quality score: {quality}."
    if level == RiskLevel.MEDIUM:
        return f"Review recommended: {len(issues)} minor issue(s). Quality score: {quality}."
    return f"Ready for publishing. Quality score: {quality}."


class RiskAssessmentService:
    def __init__(self, shortcodes: ShortcodeService | None = None):
        self.shortcodes = shortcodes or shortcode_service

    def assess(self, content: str, quality: QualityAssessment) -> RiskAssessment:
        flags = risk_flags_for(quality)
        if self.shortcodes.find_unknown(content):
            flags.append("unknown_shortcode")

        issues = [
            RiskIssue(
                flag=flag,
                weight=ISSUE_WEIGHTS.get(flag, 10),
                severity="major" if ISSUE_WEIGHTS.get(flag, 10) >= 20 else "minor",
                message=ISSUE_MESSAGES.get(flag, flag),
            )
            for flag in flags
        ]
        risk_score = sum(issue.weight for issue in issues)
        blocking = [flag for flag in flags if flag in BLOCKING_FLAGS]

        if blocking:
            level = RiskLevel.CRITICAL
        elif risk_score >= 50 or quality.score < HIGH_QUALITY_FLOOR:
            level = RiskLevel.HIGH
        elif risk_score >= 20 or quality.score < MEDIUM_QUALITY_FLOOR:
            level = RiskLevel.MEDIUM
        else:
            level = RiskLevel.LOW

        return RiskAssessment(
            risk_level=level,
            risk_score=risk_score,
            quality_score=quality.score,
            issues=issues,
            blocking=blocking,
            summary=_summary(level, issues, blocking, quality.score),
        )


risk_assessment_service = RiskAssessmentService()

"""
Content Engine - Quality Score Service
======================================
Deterministic multi-check publish gate over article HTML.

score       = round(100 * passed_enabled / enabled)
can_publish = no enabled critical check failed (score itself never gates)
"""

from __future__ import annotations

import math
import re
from dataclasses import dataclass
from urllib.parse import urlparse

from bs4 import BeautifulSoup

from content_engine.core.config import get_settings
from content_engine.schemas.quality import (
    ArticleMeta,
    IssueSeverity,
    QualityAssessment,
    QualityCheck,
    QualityIssue,
    QualityThresholds,
)

settings = get_settings()

_SENTENCE_SPLIT = re.compile(r"[.!?]+")
_NON_VOWELS = re.compile(r"[^aeiou]", re.IGNORECASE)
_BLS_MARKERS = ("bls.gov", "bureau of labor")


@dataclass(slots=True)
class LinkCounts:
    internal: int
    external: int
    hrefs: list[str]


def _plural(count: int, noun: str) -> str:
    return f"{count} {noun}" + ("" if count == 1 else "s")


class QualityScoreService:
    """Pure scorer; thresholds are always passed in by the caller."""

    def __init__(self, internal_domains: list[str] | None = None):
        self.internal_domains = [d.lower() for d in (internal_domains or settings.internal_link_domains_list)]

    # ── Measurements ──

    def is_internal(self, href: str) -> bool:
        href = (href or "").strip()
        if href.startswith("/") and not href.startswith("//"):
            return True
        host = (urlparse(href if "//" in href else f"//{href}").hostname or "").lower()
        return any(host == d or host.endswith(f".{d}") for d in self.internal_domains)

    def count_links(self, soup: BeautifulSoup) -> LinkCounts:
        hrefs = [a["href"].strip() for a in soup.find_all("a", href=True) if a["href"].strip()]
        internal = sum(1 for href in hrefs if self.is_internal(href))
        external = sum(
            1 for href in hrefs
            if href.lower().startswith(("http://", "https://")) and not self.is_internal(href)
        )
        return LinkCounts(internal=internal, external=external, hrefs=hrefs)

    def count_links_in(self, content: str) -> LinkCounts:
        return self.count_links(BeautifulSoup(content or "", "html.parser"))

    @staticmethod
    def readability(text: str) -> float:
        """Flesch Reading Ease clamped to 0..100; 50 when there is nothing to measure."""
        words = text.split()
        sentences = [s for s in _SENTENCE_SPLIT.split(text) if s.strip()]
        if not words or not sentences:
            return 50.0
        syllables = sum(max(1, len(_NON_VOWELS.sub("", w))) for w in words)
        score = 206.835 - 1.015 * (len(words) / len(sentences)) - 84.6 * (syllables / len(words))
        return round(min(100.0, max(0.0, score)), 1)

    # ── Scoring ──

    def score(
        self,
        content: str,
        meta: ArticleMeta | None = None,
        thresholds: QualityThresholds | None = None,
    ) -> QualityAssessment:
        meta = meta or ArticleMeta()
        t = thresholds or QualityThresholds()
        if not (content or "").strip():
            return QualityAssessment(score=0, checks={}, issues=[], can_publish=False)

        soup = BeautifulSoup(content, "html.parser")
        text = re.sub(r"\s+", " ", soup.get_text(" ")).strip()
        word_count = len(text.split())
        links = self.count_links(soup)
        lowered = content.lower()
        checks: dict[str, QualityCheck] = {}

        # 1. word count
        issue = None
        if word_count < t.min_word_count:
            issue = f"Add {t.min_word_count - word_count} more words"
        elif word_count > t.max_word_count:
            issue = f"Remove {word_count - t.max_word_count} words"
        checks["word_count"] = QualityCheck(
            passed=issue is None, value=word_count,
            target=f"{t.min_word_count}-{t.max_word_count}", issue=issue,
        )

        # 2. internal links (critical)
        missing = t.min_internal_links - links.internal
        checks["internal_links"] = QualityCheck(
            passed=missing <= 0, critical=True, value=links.internal,
            target=f">={t.min_internal_links}",
            issue=f"Add {_plural(missing, 'more internal link')}" if missing > 0 else None,
        )

        # 3. external citations
        missing = t.min_external_links - links.external
        checks["external_links"] = QualityCheck(
            passed=missing <= 0, value=links.external, target=f">={t.min_external_links}",
            issue=f"Add {_plural(missing, 'more external citation')}" if missing > 0 else None,
        )

        # 4. FAQ schema
        has_faq = bool(meta.faqs)
        checks["faq_schema"] = QualityCheck(
            passed=has_faq, critical=t.require_faq, enabled=t.require_faq, value=has_faq,
            issue=None if has_faq else "Add FAQ schema markup",
        )

        # 5. BLS citation
        has_bls = any(marker in lowered for marker in _BLS_MARKERS)
        checks["bls_citation"] = QualityCheck(
            passed=has_bls, critical=t.require_bls, enabled=t.require_bls, value=has_bls,
            issue=None if has_bls else "Add BLS citation",
        )

        # 6. headings
        headings = len(soup.find_all(["h2", "h3"]))
        missing = t.min_heading_count - headings
        checks["headings"] = QualityCheck(
            passed=missing <= 0, enabled=t.require_headings, value=headings,
            target=f">={t.min_heading_count}",
            issue=f"Add {_plural(missing, 'more heading')}" if missing > 0 else None,
        )

        # 7. images + alt coverage
        images = soup.find_all("img")
        missing = t.min_images - len(images)
        checks["images"] = QualityCheck(
            passed=missing <= 0, enabled=t.min_images > 0, value=len(images),
            target=f">={t.min_images}",
            issue=f"Add {_plural(missing, 'more image')}" if missing > 0 else None,
        )
        without_alt = sum(1 for img in images if not (img.get("alt") or "").strip())
        coverage = (len(images) - without_alt) / len(images) if images else 1.0
        checks["image_alt"] = QualityCheck(
            passed=without_alt == 0, enabled=t.require_image_alt and bool(images),
            value=round(coverage, 3), target="1.0",
            issue=f"Add alt text to {_plural(without_alt, 'image')}" if without_alt else None,
        )

        # 8. keyword density
        keyword = meta.primary_keyword
        density = 0.0
        if keyword and word_count:
            density = round(text.lower().count(keyword) / word_count * 100, 2)
        issue = None
        if density < t.keyword_density_min:
            issue = "Increase keyword usage"
        elif density > t.keyword_density_max:
            issue = "Reduce keyword usage (potential stuffing)"
        checks["keyword_density"] = QualityCheck(
            passed=issue is None, enabled=bool(keyword), value=density,
            target=f"{t.keyword_density_min}-{t.keyword_density_max}%", issue=issue,
        )

        # 9. readability
        reading_ease = self.readability(text)
        issue = None
        if reading_ease < t.min_readability:
            issue = "Simplify sentence structure"
        elif reading_ease > t.max_readability:
            issue = "Add more complexity for target audience"
        checks["readability"] = QualityCheck(
            passed=issue is None, value=reading_ease,
            target=f"{t.min_readability}-{t.max_readability}", issue=issue,
        )

        enabled = [c for c in checks.values() if c.enabled]
        passed = sum(1 for c in enabled if c.passed)
        issues = [
            QualityIssue(
                check=name,
                description=check.issue or name,
                critical=check.critical,
                severity=IssueSeverity.MAJOR if check.critical else IssueSeverity.MINOR,
            )
            for name, check in checks.items()
            if check.enabled and not check.passed
        ]
        return QualityAssessment(
            score=math.floor(100 * passed / len(enabled) + 0.5) if enabled else 0,
            checks=checks,
            issues=issues,
            can_publish=not any(i.critical for i in issues),
            word_count=word_count,
            internal_links=links.internal,
            external_links=links.external,
        )


quality_score_service = QualityScoreService()


def article_meta(article) -> ArticleMeta:
    return ArticleMeta(
        title=article.title or "",
        target_keywords=list(article.target_keywords or []),
        focus_keyword=article.focus_keyword,
        faqs=list(article.faqs or []),
    )


def apply_scores(article, quality: QualityAssessment, risk) -> None:
    """Copy the latest assessment snapshot onto an Article row."""
    article.word_count = quality.word_count
    article.internal_links_count = quality.internal_links
    article.external_citations_count = quality.external_links
    article.quality_score = quality.score
    article.quality_issues = [issue.model_dump(mode="json") for issue in quality.issues]
    article.can_publish = quality.can_publish
    article.risk_level = risk.risk_level
    article.risk_flags = risk.flags

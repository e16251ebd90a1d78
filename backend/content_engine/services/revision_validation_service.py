"""
Content Engine - Revision Validation Service
============================================
Checks whether a revised article shows evidence that each reviewer
feedback item was applied. Advisory only: results are attached to the
review, they never block a save.

Intent is decided by an ordered rule list; the first matching rule wins.
"""

from __future__ import annotations

import re
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from typing import Any

from bs4 import BeautifulSoup

from content_engine.core.logging import get_logger
from content_engine.schemas.revision import (
    FeedbackInput,
    FeedbackIntent,
    ItemValidation,
    RevisionValidationResult,
    ValidationStatus,
)

logger = get_logger("revision_validation_service")

LINK_KEYWORDS = (
    "link", "href", "url", "ranking report", "add a link", "needs a link",
    "should link", "link to", "hyperlink", "reference", "cite", "source",
)
CORRECTION_KEYWORDS = (
    "typo", "error", "incorrect", "wrong", "fix", "correct", "should be",
    "change to", "replace with", "update to",
)
REMOVAL_KEYWORDS = (
    "remove", "delete", "cut", "eliminate", "get rid of", "should not",
    "shouldn't", "don't need", "unnecessary",
)
ADDITION_KEYWORDS = (
    "add", "include", "insert", "needs", "missing", "should have",
    "should include", "please add", "could use",
)

_CURRENCY_TOKEN = re.compile(r"\$[\d,]+(?:\.\d+)?")
_WELL_FORMED_AMOUNT = re.compile(r"\$(?:\d{1,3}(?:,\d{3})+|\d+)(?:\.\d+)?")
_PARAGRAPH_CLOSE = re.compile(r"</p>|</h[2-6]>|</li>", re.IGNORECASE)

PARAGRAPH_DELTA = 0.10
DOCUMENT_DELTA = 0.05
MIN_CONTEXT_SELECTION = 5


def has_malformed_currency(text: str | None) -> bool:
    """True for amounts like $15,5006 whose digit grouping is broken."""
    for token in _CURRENCY_TOKEN.findall(text or ""):
        if not _WELL_FORMED_AMOUNT.fullmatch(token.rstrip(",")):
            return True
    return False


@dataclass(slots=True, frozen=True)
class IntentRule:
    intent: FeedbackIntent
    keywords: tuple[str, ...]
    selection_test: Callable[[str | None], bool] | None = None

    def matches(self, comment: str, selected_text: str | None) -> bool:
        if any(keyword in comment for keyword in self.keywords):
            return True
        return bool(self.selection_test and self.selection_test(selected_text))


INTENT_RULES: tuple[IntentRule, ...] = (
    IntentRule(FeedbackIntent.LINK_REQUEST, LINK_KEYWORDS),
    IntentRule(FeedbackIntent.TEXT_CORRECTION, CORRECTION_KEYWORDS, has_malformed_currency),
    IntentRule(FeedbackIntent.REMOVAL_REQUEST, REMOVAL_KEYWORDS),
    IntentRule(FeedbackIntent.ADDITION_REQUEST, ADDITION_KEYWORDS),
)


def classify_intent(comment: str | None, selected_text: str | None = None) -> FeedbackIntent:
    lowered = (comment or "").lower()
    for rule in INTENT_RULES:
        if rule.matches(lowered, selected_text):
            return rule.intent
    return FeedbackIntent.GENERIC


class _Document:
    """Raw HTML plus its derived text, anchors and paragraph blocks."""

    def __init__(self, html: str):
        self.html = html or ""
        soup = BeautifulSoup(self.html, "html.parser")
        self.text = re.sub(r"\s+", " ", soup.get_text(" ")).strip()
        self.anchors = [(a["href"].strip(), a.get_text(" ").strip()) for a in soup.find_all("a", href=True)]
        self.hrefs = [href for href, _ in self.anchors]
        self.paragraphs = _PARAGRAPH_CLOSE.split(self.html)

    def contains(self, fragment: str) -> bool:
        normalized = re.sub(r"\s+", " ", fragment).strip()
        return fragment in self.html or (bool(normalized) and normalized in self.text)

    def paragraph_index(self, fragment: str) -> int | None:
        probe = re.sub(r"\s+", " ", fragment[:50]).strip()
        for idx, block in enumerate(self.paragraphs):
            if probe in block or probe in _plain(block):
                return idx
        return None


def _plain(html: str) -> str:
    return re.sub(r"\s+", " ", BeautifulSoup(html or "", "html.parser").get_text(" ")).strip()


def _verdict(item: FeedbackInput, intent: FeedbackIntent, status: ValidationStatus, *,
             evidence: Iterable[str] = (), warnings: Iterable[str] = ()) -> ItemValidation:
    return ItemValidation(
        feedback_id=item.id,
        intent=intent,
        status=status,
        evidence=list(evidence),
        warnings=list(warnings),
        comment=item.comment or "",
    )


class RevisionValidator:
    """Per-intent evidence checks over (original, revised) HTML."""

    def __init__(self):
        self._checks: dict[FeedbackIntent, Callable[[FeedbackInput, _Document, _Document], ItemValidation]] = {
            FeedbackIntent.LINK_REQUEST: self._check_link,
            FeedbackIntent.TEXT_CORRECTION: self._check_correction,
            FeedbackIntent.REMOVAL_REQUEST: self._check_removal,
            FeedbackIntent.ADDITION_REQUEST: self._check_addition,
            FeedbackIntent.GENERIC: self._check_generic,
        }

    # ── Intent checks ──

    def _check_link(self, item: FeedbackInput, original: _Document, revised: _Document) -> ItemValidation:
        intent = FeedbackIntent.LINK_REQUEST
        comment = (item.comment or "").lower()
        before, after = len(original.hrefs), len(revised.hrefs)

        if "ranking" in comment or "report" in comment:
            for href, anchor_text in revised.anchors:
                if "rank" in href.lower() or "rank" in anchor_text.lower():
                    return _verdict(item, intent, ValidationStatus.ADDRESSED,
                                    evidence=[f"Found ranking link: {href}"])
            if "ranking" in revised.text.lower() and after > before:
                return _verdict(item, intent, ValidationStatus.ADDRESSED,
                                evidence=[f"Link count increased from {before} to {after} near ranking text"])
            return _verdict(item, intent, ValidationStatus.FAILED,
                            warnings=["No link to a ranking report was found"])

        if after > before:
            return _verdict(item, intent, ValidationStatus.ADDRESSED,
                            evidence=[f"Link count increased from {before} to {after}"])
        if after == before:
            new_hrefs = sorted(set(revised.hrefs) - set(original.hrefs))
            if new_hrefs:
                return _verdict(item, intent, ValidationStatus.ADDRESSED,
                                evidence=[f"New link(s) added: {', '.join(new_hrefs)}"])
            return _verdict(item, intent, ValidationStatus.FAILED, warnings=["No new links were added"])
        return _verdict(item, intent, ValidationStatus.PARTIAL,
                        warnings=[f"Link count decreased from {before} to {after}"])

    def _selection_gone(self, item: FeedbackInput, intent: FeedbackIntent,
                        original: _Document, revised: _Document) -> ItemValidation:
        selected = item.selected_text or ""
        if not original.contains(selected):
            return _verdict(item, intent, ValidationStatus.PARTIAL,
                            warnings=["Selected text not found in original content; cannot verify"])
        if revised.contains(selected):
            return _verdict(item, intent, ValidationStatus.FAILED,
                            warnings=["Selected text is still present in the revised content"])
        return _verdict(item, intent, ValidationStatus.ADDRESSED,
                        evidence=["Selected text no longer appears in the revised content"])

    def _check_correction(self, item: FeedbackInput, original: _Document, revised: _Document) -> ItemValidation:
        if not (item.selected_text or "").strip():
            return _verdict(item, FeedbackIntent.TEXT_CORRECTION, ValidationStatus.PARTIAL,
                            warnings=["No text was selected; correction cannot be verified"])
        return self._selection_gone(item, FeedbackIntent.TEXT_CORRECTION, original, revised)

    def _check_removal(self, item: FeedbackInput, original: _Document, revised: _Document) -> ItemValidation:
        if not (item.selected_text or "").strip():
            return _verdict(item, FeedbackIntent.REMOVAL_REQUEST, ValidationStatus.PARTIAL,
                            warnings=["No text was selected; removal cannot be verified"])
        return self._selection_gone(item, FeedbackIntent.REMOVAL_REQUEST, original, revised)

    def _check_addition(self, item: FeedbackInput, original: _Document, revised: _Document) -> ItemValidation:
        grown = len(revised.html) - len(original.html)
        if grown > 0:
            return _verdict(item, FeedbackIntent.ADDITION_REQUEST, ValidationStatus.ADDRESSED,
                            evidence=[f"Content grew by {grown} characters"])
        return _verdict(item, FeedbackIntent.ADDITION_REQUEST, ValidationStatus.PARTIAL,
                        warnings=["Content did not grow; verify the addition manually"])

    def _check_generic(self, item: FeedbackInput, original: _Document, revised: _Document) -> ItemValidation:
        intent = FeedbackIntent.GENERIC
        if original.html == revised.html:
            return _verdict(item, intent, ValidationStatus.FAILED, warnings=["No changes detected in content"])

        selected = (item.selected_text or "").strip()
        if selected and original.contains(selected) and not revised.contains(selected):
            return _verdict(item, intent, ValidationStatus.ADDRESSED,
                            evidence=["Selected text was modified"])

        if len(selected) >= MIN_CONTEXT_SELECTION:
            idx = original.paragraph_index(selected)
            if idx is not None and idx < len(revised.paragraphs):
                before = _plain(original.paragraphs[idx])
                after = _plain(revised.paragraphs[idx])
                delta = abs(len(after) - len(before)) / max(len(before), 1)
                if delta >= PARAGRAPH_DELTA:
                    return _verdict(item, intent, ValidationStatus.ADDRESSED,
                                    evidence=[f"Surrounding paragraph changed by {delta:.0%}"])

        words_before, words_after = len(original.text.split()), len(revised.text.split())
        word_delta = abs(words_after - words_before) / max(words_before, words_after, 1)
        char_delta = abs(len(revised.html) - len(original.html)) / max(len(original.html), 1)
        if word_delta > DOCUMENT_DELTA or char_delta > DOCUMENT_DELTA:
            return _verdict(item, intent, ValidationStatus.ADDRESSED,
                            evidence=[f"Document changed (words {word_delta:.0%}, characters {char_delta:.0%})"])
        return _verdict(item, intent, ValidationStatus.PARTIAL,
                        warnings=["Please verify this change manually"])

    # ── Public API ──

    @staticmethod
    def _coerce(item: Any) -> FeedbackInput:
        if isinstance(item, FeedbackInput):
            return item
        if isinstance(item, dict):
            return FeedbackInput.model_validate(item)
        return FeedbackInput.model_validate(item, from_attributes=True)

    def validate_item(self, original: str, revised: str, item: Any) -> ItemValidation:
        feedback = self._coerce(item)
        intent = classify_intent(feedback.comment, feedback.selected_text)
        return self._checks[intent](feedback, _Document(original), _Document(revised))

    def validate(self, original: str, revised: str, feedback_items: Iterable[Any]) -> RevisionValidationResult:
        before, after = _Document(original), _Document(revised)
        items: list[ItemValidation] = []
        for raw in feedback_items or []:
            feedback = self._coerce(raw)
            intent = classify_intent(feedback.comment, feedback.selected_text)
            items.append(self._checks[intent](feedback, before, after))

        addressed = sum(1 for i in items if i.status == ValidationStatus.ADDRESSED)
        partial = sum(1 for i in items if i.status == ValidationStatus.PARTIAL)
        failed = sum(1 for i in items if i.status == ValidationStatus.FAILED)
        result = RevisionValidationResult(
            success=failed == 0,
            addressed_count=addressed,
            partial_count=partial,
            failed_count=failed,
            items=items,
            summary=summarize(len(items), addressed, partial, failed),
        )
        logger.info(
            "revision_validated",
            items=len(items),
            addressed=addressed,
            partial=partial,
            failed=failed,
        )
        return result


def summarize(total: int, addressed: int, partial: int, failed: int) -> str:
    if total == 0:
        return "No feedback items to validate"
    if addressed == total:
        return f"All {total} feedback items were successfully addressed"
    if failed > 0:
        return f"{failed} of {total} items may not have been fully addressed. Please review."
    return f"{addressed} items addressed, {partial} partially addressed"


def generate_validation_report(result: RevisionValidationResult) -> str:
    """Multi-line plain-text rollup for reviewer notes."""
    lines = [
        f"Revision validation: {result.summary}",
        f"  addressed: {result.addressed_count} | partial: {result.partial_count} | failed: {result.failed_count}",
    ]
    for item in result.items:
        comment = item.comment if len(item.comment) <= 80 else item.comment[:77] + "..."
        lines.append(f"  [{item.status.value}] {item.intent.value}: {comment}")
        lines.extend(f"      + {line}" for line in item.evidence)
        lines.extend(f"      ! {line}" for line in item.warnings)
    return "\n".join(lines)


revision_validator = RevisionValidator()

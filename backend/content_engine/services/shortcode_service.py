"""
Content Engine - Shortcode Service
==================================
Pre-publish shortcode compliance. Both rules are hard preconditions:
* every [tag ...] / [/tag] token must be on the allow-list
* at least one monetization-class shortcode must be present
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field

from content_engine.core.errors import ValidationFailure

ALLOWED_SHORTCODE_TAGS = frozenset({
    "ge_monetization",
    "degree_table",
    "degree_offer",
    "ge_internal_link",
    "ge_external_cited",
})
MONETIZATION_TAGS = frozenset({"ge_monetization", "degree_table", "degree_offer"})

_TOKEN = re.compile(r"\[(/?)([\w-]+)([^\]]*)\]")


@dataclass(slots=True, frozen=True)
class ShortcodeToken:
    raw: str
    tag: str
    is_closing: bool
    attributes: str
    position: int


@dataclass(slots=True, frozen=True)
class ShortcodeIssue:
    code: str
    message: str
    tags: tuple[str, ...] = ()


@dataclass(slots=True)
class ShortcodeCheck:
    """Every issue blocks publishing."""

    issues: list[ShortcodeIssue] = field(default_factory=list)

    @property
    def blockers(self) -> list[ShortcodeIssue]:
        return list(self.issues)

    @property
    def passed(self) -> bool:
        return not self.issues


class ShortcodeService:
    def __init__(self, extra_allowed: set[str] | None = None):
        self.allowed = ALLOWED_SHORTCODE_TAGS | {t.lower() for t in (extra_allowed or set())}

    @staticmethod
    def extract_tokens(content: str) -> list[ShortcodeToken]:
        return [
            ShortcodeToken(
                raw=m.group(0),
                tag=m.group(2).lower(),
                is_closing=m.group(1) == "/",
                attributes=m.group(3).strip(),
                position=m.start(),
            )
            for m in _TOKEN.finditer(content or "")
        ]

    def find_unknown(self, content: str) -> list[ShortcodeToken]:
        return [t for t in self.extract_tokens(content) if t.tag not in self.allowed]

    def monetization_count(self, content: str) -> int:
        return sum(
            1 for t in self.extract_tokens(content)
            if not t.is_closing and t.tag in MONETIZATION_TAGS
        )

    def check(self, content: str) -> ShortcodeCheck:
        issues: list[ShortcodeIssue] = []
        unknown = self.find_unknown(content)
        if unknown:
            tags = sorted({t.tag for t in unknown})
            issues.append(ShortcodeIssue(
                code="unknown_shortcode",
                message=f"Found {len(unknown)} unknown shortcode(s): {', '.join(tags)}",
                tags=tuple(tags),
            ))
        if self.monetization_count(content) == 0:
            issues.append(ShortcodeIssue(
                code="missing_monetization",
                message="Add at least one monetization shortcode (degree_table or degree_offer recommended)",
            ))
        return ShortcodeCheck(issues=issues)

    def ensure_publishable(self, content: str) -> ShortcodeCheck:
        """Raise ValidationFailure when any blocker is present."""
        result = self.check(content)
        if not result.passed:
            raise ValidationFailure(
                "; ".join(issue.message for issue in result.blockers),
                details={"codes": [issue.code for issue in result.blockers]},
            )
        return result


shortcode_service = ShortcodeService()

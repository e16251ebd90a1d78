"""
Content Engine - Contributor Matching
=====================================
Point-based author assignment:
  +100  configured default author for the content type
  +50   an expertise area matches an idea keyword/topic
  +30   content-type preference matches
  +20   an expertise area appears in the idea title
Highest score wins; ties keep input order.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any


@dataclass(slots=True)
class ContributorMatch:
    contributor: Any
    score: int
    reasons: list[str] = field(default_factory=list)


def _lower_list(values) -> list[str]:
    return [str(v).strip().lower() for v in (values or []) if str(v).strip()]


class ContributorMatcher:
    def __init__(self, default_by_content_type: Mapping[str, str] | None = None):
        self.default_by_content_type = {
            k.lower(): v.lower() for k, v in (default_by_content_type or {}).items()
        }

    def score(self, contributor, *, title: str, topics: Sequence[str], content_type: str) -> ContributorMatch:
        areas = _lower_list(getattr(contributor, "expertise_areas", None))
        preferences = _lower_list(getattr(contributor, "content_type_preferences", None))
        topics_lower = _lower_list(topics)
        title_lower = (title or "").lower()
        content_type = (content_type or "").lower()
        score = 0
        reasons: list[str] = []

        default_name = self.default_by_content_type.get(content_type)
        if default_name and (getattr(contributor, "name", "") or "").lower() == default_name:
            score += 100
            reasons.append(f"Default author for {content_type}")

        matched = [a for a in areas if any(a in topic for topic in topics_lower)]
        if matched:
            score += 50
            reasons.append(f"Expertise match: {', '.join(matched)}")

        if content_type and content_type in preferences:
            score += 30
            reasons.append(f"Content type match: {content_type}")

        if any(a in title_lower for a in areas):
            score += 20
            reasons.append("Title matches expertise")

        return ContributorMatch(contributor=contributor, score=score, reasons=reasons)

    def rank(self, idea, contributors: Sequence[Any], content_type: str | None = None) -> list[ContributorMatch]:
        title = getattr(idea, "title", "") or ""
        topics = list(getattr(idea, "keywords", None) or [])
        ctype = content_type or getattr(idea, "content_type", "") or ""
        matches = [self.score(c, title=title, topics=topics, content_type=ctype) for c in contributors]
        # sorted() is stable: equal scores keep input order
        return sorted(matches, key=lambda m: m.score, reverse=True)

    def match(self, idea, contributors: Sequence[Any] | None, content_type: str | None = None) -> ContributorMatch | None:
        if not contributors:
            return None
        return self.rank(idea, contributors, content_type)[0]


contributor_matcher = ContributorMatcher()

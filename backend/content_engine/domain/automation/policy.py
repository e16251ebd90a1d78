"""
Automation decision policy.

``tick(state, settings, now)`` is a pure function: it inspects a snapshot of
persisted state plus the runtime settings and returns the actions the
scheduler should execute. It performs no I/O.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, time, timedelta, timezone
from enum import StrEnum
from typing import Any, Mapping
from zoneinfo import ZoneInfo

from content_engine.models.content import ArticleStatus, PublishStatus, RiskLevel
from content_engine.utils.similarity import titles_overlap

RISK_ORDER: dict[RiskLevel, int] = {
    RiskLevel.LOW: 0,
    RiskLevel.MEDIUM: 1,
    RiskLevel.HIGH: 2,
    RiskLevel.CRITICAL: 3,
}
AUTO_PUBLISH_FORBIDDEN_RISK = {RiskLevel.HIGH, RiskLevel.CRITICAL}
IN_PROGRESS_STATUSES = {ArticleStatus.DRAFT, ArticleStatus.IN_REVIEW}
PUBLISHABLE_STATES = {None, PublishStatus.PENDING}


class AutomationLevel(StrEnum):
    MANUAL = "manual"
    ASSISTED = "assisted"
    FULL_AUTO = "full_auto"


def parse_time_of_day(raw: Any) -> time | None:
    """'HH:MM' → time; anything unparsable disables the bound."""
    if raw is None:
        return None
    try:
        hours, minutes = str(raw).strip().split(":")[:2]
        return time(hour=int(hours), minute=int(minutes))
    except (TypeError, ValueError):
        return None


@dataclass(slots=True, frozen=True)
class PublishWindow:
    """Daily no-publish window in local time; may wrap past midnight."""

    block_start: time | None = None
    block_end: time | None = None

    def is_blocked(self, local_time: time) -> bool:
        start, end = self.block_start, self.block_end
        if start is None or end is None or start == end:
            return False
        current = local_time.replace(second=0, microsecond=0, tzinfo=None)
        if start < end:
            return start <= current < end
        return current >= start or current < end


def _int(values: Mapping[str, Any], key: str, default: int) -> int:
    try:
        return int(str(values.get(key, default)).strip())
    except (TypeError, ValueError):
        return default


def _flag(values: Mapping[str, Any], key: str, default: bool) -> bool:
    raw = values.get(key)
    if raw is None or str(raw).strip() == "":
        return default
    return str(raw).strip().lower() == "true"


@dataclass(slots=True)
class AutomationSettings:
    automation_level: AutomationLevel = AutomationLevel.MANUAL
    auto_post_enabled: bool = False
    auto_post_days: int = 5
    max_posts_per_tick: int = 10
    max_auto_publish_risk: RiskLevel = RiskLevel.MEDIUM
    window: PublishWindow = field(default_factory=PublishWindow)
    auto_generate_ideas: bool = False
    auto_approve_ideas: bool = True
    idea_queue_minimum: int = 5
    idea_batch_size: int = 10
    max_concurrent_generation: int = 2
    auto_approve_articles: bool = True
    # 4 of 5 still waits for a human; tenants may lower this to 4.
    auto_approve_min_criteria: int = 5
    timezone: str = "UTC"

    @classmethod
    def from_settings_map(cls, values: Mapping[str, Any] | None, tz: str = "UTC") -> "AutomationSettings":
        values = values or {}
        defaults = cls()
        try:
            level = AutomationLevel(str(values.get("automation_level", defaults.automation_level)).strip())
        except ValueError:
            level = defaults.automation_level
        try:
            max_risk = RiskLevel(str(values.get("auto_publish_max_risk", defaults.max_auto_publish_risk.value)).upper())
        except ValueError:
            max_risk = defaults.max_auto_publish_risk
        if max_risk in AUTO_PUBLISH_FORBIDDEN_RISK:
            max_risk = RiskLevel.MEDIUM
        return cls(
            automation_level=level,
            auto_post_enabled=_flag(values, "auto_post_enabled", defaults.auto_post_enabled),
            auto_post_days=max(0, _int(values, "auto_post_days", defaults.auto_post_days)),
            max_posts_per_tick=max(1, _int(values, "auto_post_max_per_tick", defaults.max_posts_per_tick)),
            max_auto_publish_risk=max_risk,
            window=PublishWindow(
                block_start=parse_time_of_day(values.get("posting_block_start")),
                block_end=parse_time_of_day(values.get("posting_block_end")),
            ),
            auto_generate_ideas=_flag(values, "auto_generate_ideas", defaults.auto_generate_ideas),
            auto_approve_ideas=_flag(values, "auto_approve_ideas", defaults.auto_approve_ideas),
            idea_queue_minimum=max(0, _int(values, "idea_queue_minimum", defaults.idea_queue_minimum)),
            idea_batch_size=max(1, _int(values, "idea_batch_size", defaults.idea_batch_size)),
            max_concurrent_generation=max(0, _int(values, "max_concurrent_generation", defaults.max_concurrent_generation)),
            auto_approve_articles=_flag(values, "auto_approve_articles", defaults.auto_approve_articles),
            auto_approve_min_criteria=min(5, max(1, _int(values, "auto_approve_min_criteria", defaults.auto_approve_min_criteria))),
            timezone=str(values.get("automation_timezone") or tz),
        )


# ── State snapshot ──

@dataclass(slots=True)
class ArticleView:
    id: int
    title: str
    status: ArticleStatus
    word_count: int = 0
    content_length: int = 0
    has_keywords: bool = False
    internal_links: int = 0
    external_links: int = 0
    risk_level: RiskLevel = RiskLevel.LOW
    can_publish: bool = False
    publish_status: PublishStatus | None = None
    auto_publish_deadline: datetime | None = None


@dataclass(slots=True)
class IdeaView:
    id: int
    title: str
    priority: int = 5


@dataclass(slots=True)
class AutomationState:
    articles: list[ArticleView] = field(default_factory=list)
    existing_titles: list[str] = field(default_factory=list)
    approved_ideas: list[IdeaView] = field(default_factory=list)
    has_publish_connection: bool = False
    idea_generation_in_flight: bool = False


# ── Actions ──

@dataclass(slots=True, frozen=True)
class PublishArticle:
    article_id: int


@dataclass(slots=True, frozen=True)
class GenerateIdeas:
    count: int
    auto_approve: bool = True


@dataclass(slots=True, frozen=True)
class GenerateArticle:
    idea_id: int


@dataclass(slots=True, frozen=True)
class ApproveArticle:
    article_id: int
    auto_publish_deadline: datetime
    criteria_met: int


Action = PublishArticle | GenerateIdeas | GenerateArticle | ApproveArticle


@dataclass(slots=True)
class TickPlan:
    actions: list[Action] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)
    publish_blocked: bool = False

    def of_type(self, kind: type) -> list:
        return [a for a in self.actions if isinstance(a, kind)]


# ── Rules ──

def approval_criteria(article: ArticleView) -> dict[str, bool]:
    return {
        "word_count": article.word_count >= 850,
        "content_length": article.content_length > 3000,
        "has_keywords": article.has_keywords,
        "internal_links": article.internal_links >= 2,
        "external_links": article.external_links >= 1,
    }


def risk_allows_auto_publish(level: RiskLevel, ceiling: RiskLevel = RiskLevel.MEDIUM) -> bool:
    if level in AUTO_PUBLISH_FORBIDDEN_RISK:
        return False
    return RISK_ORDER[level] <= RISK_ORDER[ceiling]


def _aware(value: datetime) -> datetime:
    return value if value.tzinfo else value.replace(tzinfo=timezone.utc)


def is_publish_blocked(window: PublishWindow, now: datetime, tz: str = "UTC") -> bool:
    return window.is_blocked(_aware(now).astimezone(ZoneInfo(tz)).time())


def _plan_auto_post(plan: TickPlan, state: AutomationState, cfg: AutomationSettings, now: datetime) -> None:
    if not cfg.auto_post_enabled:
        return
    if is_publish_blocked(cfg.window, now, cfg.timezone):
        plan.publish_blocked = True
        plan.skipped.append("auto_post:block_window")
        return
    if not state.has_publish_connection:
        plan.skipped.append("auto_post:no_default_connection")
        return

    eligible: list[ArticleView] = []
    for article in state.articles:
        if article.status != ArticleStatus.APPROVED or article.publish_status not in PUBLISHABLE_STATES:
            continue
        if not risk_allows_auto_publish(article.risk_level, cfg.max_auto_publish_risk):
            plan.skipped.append(f"auto_post:article:{article.id}:risk_{article.risk_level.value}")
            continue
        if not article.can_publish:
            plan.skipped.append(f"auto_post:article:{article.id}:quality_gate")
            continue
        if article.auto_publish_deadline and _aware(article.auto_publish_deadline) > _aware(now):
            continue
        eligible.append(article)

    eligible.sort(key=lambda a: (_aware(a.auto_publish_deadline) if a.auto_publish_deadline else _aware(now), a.id))
    plan.actions.extend(PublishArticle(article_id=a.id) for a in eligible[: cfg.max_posts_per_tick])


def _plan_idea_refill(plan: TickPlan, state: AutomationState, cfg: AutomationSettings) -> None:
    if not cfg.auto_generate_ideas:
        return
    if len(state.approved_ideas) >= cfg.idea_queue_minimum:
        return
    if state.idea_generation_in_flight:
        plan.skipped.append("ideas:generation_in_flight")
        return
    plan.actions.append(GenerateIdeas(count=cfg.idea_batch_size, auto_approve=cfg.auto_approve_ideas))


def _plan_generation(plan: TickPlan, state: AutomationState, cfg: AutomationSettings) -> None:
    in_progress = sum(1 for a in state.articles if a.status in IN_PROGRESS_STATUSES)
    slots = cfg.max_concurrent_generation - in_progress
    if slots <= 0:
        if state.approved_ideas:
            plan.skipped.append(f"generation:at_capacity:{in_progress}")
        return

    taken_titles = [*state.existing_titles, *(a.title for a in state.articles)]
    queue = sorted(state.approved_ideas, key=lambda i: (-i.priority, i.id))
    for idea in queue:
        if slots <= 0:
            break
        if any(titles_overlap(idea.title, existing) for existing in taken_titles):
            plan.skipped.append(f"generation:idea:{idea.id}:duplicate_title")
            continue
        plan.actions.append(GenerateArticle(idea_id=idea.id))
        taken_titles.append(idea.title)
        slots -= 1


def _plan_auto_approve(plan: TickPlan, state: AutomationState, cfg: AutomationSettings, now: datetime) -> None:
    if not cfg.auto_approve_articles:
        return
    deadline = _aware(now) + timedelta(days=cfg.auto_post_days)
    for article in state.articles:
        if article.status not in IN_PROGRESS_STATUSES:
            continue
        met = sum(approval_criteria(article).values())
        if met >= cfg.auto_approve_min_criteria:
            plan.actions.append(ApproveArticle(article.id, deadline, met))


def tick(state: AutomationState, cfg: AutomationSettings, now: datetime) -> TickPlan:
    plan = TickPlan()
    _plan_auto_post(plan, state, cfg, now)
    _plan_idea_refill(plan, state, cfg)
    if cfg.automation_level == AutomationLevel.FULL_AUTO:
        _plan_generation(plan, state, cfg)
        _plan_auto_approve(plan, state, cfg, now)
    return plan

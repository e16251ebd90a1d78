from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass

from content_engine.models.content import ArticleStatus


STATE_TRANSITIONS: dict[ArticleStatus, set[ArticleStatus]] = {
    ArticleStatus.DRAFT: {
        ArticleStatus.IN_REVIEW,
        ArticleStatus.REFINEMENT,
        ArticleStatus.APPROVED,
        ArticleStatus.NEEDS_REVISION,
    },
    ArticleStatus.IN_REVIEW: {
        ArticleStatus.REFINEMENT,
        ArticleStatus.QA_REVIEW,
        ArticleStatus.APPROVED,
        ArticleStatus.NEEDS_REVISION,
        ArticleStatus.DRAFT,
    },
    ArticleStatus.REFINEMENT: {ArticleStatus.IN_REVIEW, ArticleStatus.QA_REVIEW, ArticleStatus.DRAFT},
    ArticleStatus.QA_REVIEW: {ArticleStatus.APPROVED, ArticleStatus.NEEDS_REVISION, ArticleStatus.REFINEMENT},
    ArticleStatus.NEEDS_REVISION: {ArticleStatus.REFINEMENT, ArticleStatus.IN_REVIEW, ArticleStatus.DRAFT},
    ArticleStatus.APPROVED: {ArticleStatus.PUBLISHED, ArticleStatus.NEEDS_REVISION, ArticleStatus.IN_REVIEW},
    ArticleStatus.PUBLISHED: {ArticleStatus.NEEDS_REVISION},
}


@dataclass(slots=True)
class TransitionValidationResult:
    valid: bool
    from_state: ArticleStatus
    to_state: ArticleStatus
    allowed_targets: list[ArticleStatus]


def allowed_targets(from_state: ArticleStatus) -> set[ArticleStatus]:
    return set(STATE_TRANSITIONS.get(from_state, set()))


def can_transition(from_state: ArticleStatus, to_state: ArticleStatus) -> bool:
    if from_state == to_state:
        return True
    return to_state in allowed_targets(from_state)


def validate_transition(from_state: ArticleStatus, to_state: ArticleStatus) -> TransitionValidationResult:
    targets = sorted(allowed_targets(from_state), key=lambda item: item.value)
    return TransitionValidationResult(
        valid=can_transition(from_state, to_state),
        from_state=from_state,
        to_state=to_state,
        allowed_targets=targets,
    )


def validate_path(states: Iterable[ArticleStatus]) -> bool:
    sequence = list(states)
    if len(sequence) <= 1:
        return True
    return all(can_transition(sequence[idx], sequence[idx + 1]) for idx in range(0, len(sequence) - 1))

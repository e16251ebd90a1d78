"""Per-idea generation stages, in the only order they may run."""

from __future__ import annotations

from enum import StrEnum


class GenerationStage(StrEnum):
    PENDING = "pending"
    DRAFTING = "drafting"
    HUMANIZING = "humanizing"
    LINKING = "linking"
    SCORED = "scored"
    PERSISTED = "persisted"
    REJECTED = "rejected"
    FAILED = "failed"


STAGE_ORDER: tuple[GenerationStage, ...] = (
    GenerationStage.PENDING,
    GenerationStage.DRAFTING,
    GenerationStage.HUMANIZING,
    GenerationStage.LINKING,
    GenerationStage.SCORED,
    GenerationStage.PERSISTED,
)

TERMINAL_STAGES = {GenerationStage.PERSISTED, GenerationStage.REJECTED, GenerationStage.FAILED}


def can_advance(current: GenerationStage, target: GenerationStage) -> bool:
    """Forward by exactly one step, or into a terminal failure/rejection from any live stage."""
    if current in TERMINAL_STAGES:
        return False
    if target in (GenerationStage.FAILED, GenerationStage.REJECTED):
        return True
    try:
        return STAGE_ORDER.index(target) == STAGE_ORDER.index(current) + 1
    except ValueError:
        return False

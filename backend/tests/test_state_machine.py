from content_engine.domain.articles.state_machine import can_transition, validate_path, validate_transition
from content_engine.domain.generation.stages import GenerationStage, can_advance
from content_engine.models.content import ArticleStatus


def test_valid_transition_draft_to_approved() -> None:
    assert can_transition(ArticleStatus.DRAFT, ArticleStatus.APPROVED)


def test_invalid_transition_published_to_draft() -> None:
    result = validate_transition(ArticleStatus.PUBLISHED, ArticleStatus.DRAFT)
    assert result.valid is False
    assert result.allowed_targets == [ArticleStatus.NEEDS_REVISION]


def test_publish_requires_approval_first() -> None:
    assert not can_transition(ArticleStatus.DRAFT, ArticleStatus.PUBLISHED)
    assert validate_path([ArticleStatus.DRAFT, ArticleStatus.APPROVED, ArticleStatus.PUBLISHED])


def test_same_state_is_a_no_op_transition() -> None:
    assert can_transition(ArticleStatus.QA_REVIEW, ArticleStatus.QA_REVIEW)


def test_generation_stages_advance_one_step_at_a_time() -> None:
    assert can_advance(GenerationStage.PENDING, GenerationStage.DRAFTING)
    assert can_advance(GenerationStage.LINKING, GenerationStage.SCORED)
    assert not can_advance(GenerationStage.DRAFTING, GenerationStage.LINKING)
    assert not can_advance(GenerationStage.SCORED, GenerationStage.DRAFTING)


def test_generation_stages_can_fail_from_any_live_stage() -> None:
    assert can_advance(GenerationStage.HUMANIZING, GenerationStage.FAILED)
    assert can_advance(GenerationStage.SCORED, GenerationStage.REJECTED)
    assert not can_advance(GenerationStage.PERSISTED, GenerationStage.FAILED)
    assert not can_advance(GenerationStage.FAILED, GenerationStage.DRAFTING)

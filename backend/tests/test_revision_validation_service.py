import pytest

from content_engine.schemas.revision import FeedbackInput, FeedbackIntent, ValidationStatus
from content_engine.services.revision_validation_service import (
    classify_intent,
    generate_validation_report,
    has_malformed_currency,
    revision_validator,
    summarize,
)

ORIGINAL = (
    "<h2>Costs</h2>"
    "<p>Tuition averages $15,5006 per year at most online schools.</p>"
    "<p>This sentence is filler and says nothing.</p>"
    '<p>See <a href="https://example.org/a">the report</a> for details.</p>'
)

FILLER = "<p>Each filler paragraph keeps the same steady wording.</p>" * 40


def _item(comment: str, selected_text: str | None = None, item_id: int = 1) -> FeedbackInput:
    return FeedbackInput(id=item_id, comment=comment, selected_text=selected_text)


class TestClassifyIntent:
    @pytest.mark.parametrize(
        ("comment", "expected"),
        [
            ("Please add a link to the ranking report", FeedbackIntent.LINK_REQUEST),
            ("Cite the BLS here", FeedbackIntent.LINK_REQUEST),
            ("Typo in this heading", FeedbackIntent.TEXT_CORRECTION),
            ("Remove this sentence", FeedbackIntent.REMOVAL_REQUEST),
            ("Include tuition for part-time students", FeedbackIntent.ADDITION_REQUEST),
            ("Tone feels off here", FeedbackIntent.GENERIC),
            ("", FeedbackIntent.GENERIC),
        ],
    )
    def test_rules_in_order(self, comment, expected):
        assert classify_intent(comment) == expected

    def test_malformed_currency_selection_forces_correction(self):
        assert classify_intent("Hmm?", "$15,5006") == FeedbackIntent.TEXT_CORRECTION

    def test_link_wins_over_removal(self):
        assert classify_intent("Remove this link") == FeedbackIntent.LINK_REQUEST


class TestMalformedCurrency:
    def test_detects_broken_grouping(self):
        assert has_malformed_currency("costs $15,5006 a year")
        assert has_malformed_currency("$1,23")

    def test_accepts_well_formed_amounts(self):
        assert not has_malformed_currency("costs $15,500 or $1200.50, and $3")
        assert not has_malformed_currency(None)


class TestRemoval:
    def test_removed_sentence_is_addressed(self):
        revised = ORIGINAL.replace("<p>This sentence is filler and says nothing.</p>", "")
        result = revision_validator.validate_item(
            ORIGINAL, revised, _item("Remove this sentence", "This sentence is filler and says nothing.")
        )
        assert result.intent == FeedbackIntent.REMOVAL_REQUEST
        assert result.status == ValidationStatus.ADDRESSED

    def test_sentence_still_present_fails(self):
        result = revision_validator.validate_item(
            ORIGINAL, ORIGINAL + "<p>More.</p>", _item("Remove this sentence", "This sentence is filler")
        )
        assert result.status == ValidationStatus.FAILED

    def test_selection_missing_from_original_is_partial(self):
        result = revision_validator.validate_item(ORIGINAL, "", _item("Delete it", "not in the article"))
        assert result.status == ValidationStatus.PARTIAL

    def test_no_selection_is_partial(self):
        result = revision_validator.validate_item(ORIGINAL, "", _item("Delete it"))
        assert result.status == ValidationStatus.PARTIAL


class TestCorrection:
    def test_fixed_currency_is_addressed(self):
        revised = ORIGINAL.replace("$15,5006", "$15,500")
        result = revision_validator.validate_item(ORIGINAL, revised, _item("Number looks odd", "$15,5006"))
        assert result.intent == FeedbackIntent.TEXT_CORRECTION
        assert result.status == ValidationStatus.ADDRESSED

    def test_uncorrected_text_fails(self):
        result = revision_validator.validate_item(ORIGINAL, ORIGINAL, _item("Fix this", "$15,5006"))
        assert result.status == ValidationStatus.FAILED


class TestLinks:
    def test_new_link_is_addressed(self):
        revised = ORIGINAL + '<p><a href="https://nces.ed.gov">NCES</a></p>'
        result = revision_validator.validate_item(ORIGINAL, revised, _item("Needs a link here"))
        assert result.status == ValidationStatus.ADDRESSED
        assert result.evidence == ["Link count increased from 1 to 2"]

    def test_swapped_link_is_addressed(self):
        revised = ORIGINAL.replace("https://example.org/a", "https://example.org/b")
        result = revision_validator.validate_item(ORIGINAL, revised, _item("Use a better url"))
        assert result.status == ValidationStatus.ADDRESSED

    def test_no_new_link_fails(self):
        result = revision_validator.validate_item(ORIGINAL, ORIGINAL, _item("Add a link"))
        assert result.status == ValidationStatus.FAILED

    def test_fewer_links_is_partial(self):
        revised = ORIGINAL.replace('<a href="https://example.org/a">the report</a>', "the report")
        result = revision_validator.validate_item(ORIGINAL, revised, _item("Fix the link"))
        assert result.status == ValidationStatus.PARTIAL

    def test_ranking_report_link(self):
        revised = ORIGINAL + '<p><a href="/online-degrees/rankings">our rankings</a></p>'
        result = revision_validator.validate_item(ORIGINAL, revised, _item("Link to the ranking report"))
        assert result.status == ValidationStatus.ADDRESSED

        missing = revision_validator.validate_item(
            ORIGINAL, ORIGINAL + '<p><a href="/faq">faq</a></p>', _item("Link to the ranking report")
        )
        assert missing.status == ValidationStatus.FAILED


class TestAdditionAndGeneric:
    def test_growth_is_addressed(self):
        result = revision_validator.validate_item(
            ORIGINAL, ORIGINAL + "<p>Part-time tuition is lower.</p>", _item("Include part-time tuition")
        )
        assert result.intent == FeedbackIntent.ADDITION_REQUEST
        assert result.status == ValidationStatus.ADDRESSED

    def test_no_growth_is_partial(self):
        result = revision_validator.validate_item(ORIGINAL, ORIGINAL, _item("Include part-time tuition"))
        assert result.status == ValidationStatus.PARTIAL

    def test_unchanged_content_fails(self):
        result = revision_validator.validate_item(ORIGINAL, ORIGINAL, _item("Tone feels off"))
        assert result.status == ValidationStatus.FAILED

    def test_changed_selection_is_addressed(self):
        revised = ORIGINAL.replace("says nothing", "says very little")
        result = revision_validator.validate_item(ORIGINAL, revised, _item("Tone feels off", "says nothing"))
        assert result.status == ValidationStatus.ADDRESSED

    def test_tiny_unrelated_edit_is_partial(self):
        revised = ORIGINAL.replace("Costs", "Cost")
        result = revision_validator.validate_item(ORIGINAL, revised, _item("Tone feels off"))
        assert result.status == ValidationStatus.PARTIAL
        assert result.warnings == ["Please verify this change manually"]

    def test_kept_selection_with_rewritten_paragraph_is_addressed(self):
        before = "<p>Nursing students often work full time.</p>" + FILLER
        after = "<p>Nursing students often work full time and study at night.</p>" + FILLER
        result = revision_validator.validate_item(before, after, _item("Tone feels off", "Nursing students"))
        assert result.status == ValidationStatus.ADDRESSED
        assert result.evidence[0].startswith("Surrounding paragraph changed by")

    def test_paragraph_change_under_ten_percent_is_partial(self):
        paragraph = "Nursing students " + " ".join(["study"] * 20)
        before = f"<p>{paragraph}</p>" + FILLER
        after = f"<p>{paragraph} weekly plan</p>" + FILLER
        # 12 of 136 characters
        result = revision_validator.validate_item(before, after, _item("Tone feels off", "Nursing students"))
        assert result.status == ValidationStatus.PARTIAL

    def test_document_wide_change_is_addressed(self):
        grown = ORIGINAL + "<p>Financial aid covers part of the cost for many students.</p>"
        result = revision_validator.validate_item(ORIGINAL, grown, _item("Tone feels off"))
        assert result.status == ValidationStatus.ADDRESSED
        assert result.evidence[0].startswith("Document changed")

        relinked = ORIGINAL.replace("https://example.org/a", "https://example.org/reports/annual-tuition-survey")
        result = revision_validator.validate_item(ORIGINAL, relinked, _item("Tone feels off"))
        assert result.status == ValidationStatus.ADDRESSED


class TestAggregate:
    def test_validate_counts_and_summary(self):
        revised = ORIGINAL.replace("<p>This sentence is filler and says nothing.</p>", "")
        result = revision_validator.validate(
            ORIGINAL,
            revised,
            [
                _item("Remove this sentence", "This sentence is filler and says nothing.", 1),
                {"id": 2, "comment": "Fix this", "selected_text": "$15,5006"},
            ],
        )
        assert result.addressed_count == 1
        assert result.failed_count == 1
        assert result.success is False
        assert result.summary == "1 of 2 items may not have been fully addressed. Please review."
        assert [item.feedback_id for item in result.items] == [1, 2]

        report = generate_validation_report(result)
        assert report.splitlines()[0] == f"Revision validation: {result.summary}"
        assert "[failed] text_correction: Fix this" in report

    def test_validate_accepts_orm_like_rows(self):
        class _Row:
            id = 9
            category = "style"
            severity = "minor"
            selected_text = None
            comment = "Include an example"

        result = revision_validator.validate(ORIGINAL, ORIGINAL + "<p>Example.</p>", [_Row()])
        assert result.success is True
        assert result.summary == "All 1 feedback items were successfully addressed"

    def test_summaries(self):
        assert summarize(0, 0, 0, 0) == "No feedback items to validate"
        assert summarize(3, 1, 2, 0) == "1 items addressed, 2 partially addressed"
        empty = revision_validator.validate(ORIGINAL, ORIGINAL, [])
        assert empty.success is True
        assert empty.items == []

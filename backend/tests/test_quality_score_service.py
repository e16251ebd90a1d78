from content_engine.schemas.quality import ArticleMeta, FAQ, QualityThresholds
from content_engine.services.quality_score_service import QualityScoreService, apply_scores

# Readability depends on prose style; most tests open the band so it always passes.
_OPEN_READABILITY = {"min_readability": 0.0, "max_readability": 100.0}


def _article_html(
    *,
    words: int = 1200,
    internal: int = 3,
    external: int = 1,
    headings: int = 3,
    images: int = 1,
    alt: bool = True,
    extra: str = "",
) -> str:
    parts = [f"<h2>Section {i}</h2>" for i in range(headings)]
    parts.append("<p>" + " ".join(["study"] * words) + ".</p>")
    parts += [f'<a href="/guides/page-{i}">guide</a>' for i in range(internal)]
    parts += [f'<a href="https://source{i}.org/report">source</a>' for i in range(external)]
    alt_attr = ' alt="chart"' if alt else ""
    parts += [f'<img src="/img/{i}.png"{alt_attr}>' for i in range(images)]
    parts.append(extra)
    return "\n".join(parts)


def _thresholds(**overrides) -> QualityThresholds:
    return QualityThresholds().merged({**_OPEN_READABILITY, **overrides})


def _service() -> QualityScoreService:
    return QualityScoreService(internal_domains=["geteducated.com"])


def test_missing_internal_links_blocks_publish_despite_high_score() -> None:
    assessment = _service().score(_article_html(internal=0), ArticleMeta(), _thresholds())

    assert assessment.score >= 80
    assert assessment.can_publish is False
    assert assessment.checks["internal_links"].passed is False
    assert assessment.checks["internal_links"].critical is True
    critical = [issue for issue in assessment.issues if issue.critical]
    assert [issue.description for issue in critical] == ["Add 3 more internal links"]


def test_fully_passing_article_scores_100() -> None:
    assessment = _service().score(_article_html(), ArticleMeta(), _thresholds())

    assert assessment.score == 100
    assert assessment.can_publish is True
    assert assessment.issues == []
    assert assessment.internal_links == 3
    assert assessment.external_links == 1


def test_non_critical_failures_lower_score_but_allow_publish() -> None:
    assessment = _service().score(
        _article_html(words=300, external=0, headings=1), ArticleMeta(), _thresholds()
    )

    assert assessment.can_publish is True
    assert set(assessment.failed_checks) == {"word_count", "external_links", "headings"}
    descriptions = {issue.check: issue.description for issue in assessment.issues}
    assert descriptions["external_links"] == "Add 1 more external citation"
    assert descriptions["headings"] == "Add 2 more headings"
    assert descriptions["word_count"].startswith("Add ")
    assert all(issue.severity == "minor" for issue in assessment.issues)


def test_scoring_is_deterministic() -> None:
    html = _article_html(internal=1, images=2, alt=False)
    meta = ArticleMeta(target_keywords=["study"])
    first = _service().score(html, meta, _thresholds())
    second = _service().score(html, meta, _thresholds())
    assert first.model_dump() == second.model_dump()


def test_empty_content_scores_zero() -> None:
    assessment = _service().score("   ", ArticleMeta(), QualityThresholds())
    assert assessment.score == 0
    assert assessment.can_publish is False
    assert assessment.checks == {}


def test_disabled_checks_do_not_count() -> None:
    service = _service()
    html = _article_html()
    without = service.score(html, ArticleMeta(), _thresholds())
    with_faq = service.score(html, ArticleMeta(), _thresholds(require_faq=True))

    assert without.checks["faq_schema"].enabled is False
    assert without.score == 100
    assert with_faq.checks["faq_schema"].critical is True
    assert with_faq.can_publish is False

    meta = ArticleMeta(faqs=[FAQ(question="Is it accredited?", answer="Yes.")])
    assert service.score(html, meta, _thresholds(require_faq=True)).can_publish is True


def test_bls_citation_detection() -> None:
    html = _article_html(extra='<p>Data from the <a href="https://www.bls.gov/ooh/">BLS</a>.</p>')
    assessment = _service().score(html, ArticleMeta(), _thresholds(require_bls=True))
    assert assessment.checks["bls_citation"].passed is True


def test_keyword_density_uses_first_target_keyword() -> None:
    meta = ArticleMeta(target_keywords=["", "Study"], focus_keyword="ignored")
    assert meta.primary_keyword == "study"

    stuffed = _service().score(_article_html(), meta, _thresholds())
    check = stuffed.checks["keyword_density"]
    assert check.enabled is True
    assert check.passed is False
    assert check.issue == "Reduce keyword usage (potential stuffing)"

    missing = _service().score(_article_html(), ArticleMeta(focus_keyword="nursing"), _thresholds())
    assert missing.checks["keyword_density"].issue == "Increase keyword usage"


def test_image_alt_coverage() -> None:
    assessment = _service().score(_article_html(images=2, alt=False), ArticleMeta(), _thresholds())
    check = assessment.checks["image_alt"]
    assert check.passed is False
    assert check.value == 0.0
    assert check.issue == "Add alt text to 2 images"


def test_internal_link_classification() -> None:
    service = _service()
    assert service.is_internal("/degrees/nursing")
    assert service.is_internal("https://www.geteducated.com/rankings")
    assert service.is_internal("https://geteducated.com")
    assert not service.is_internal("//cdn.example.com/x.js")
    assert not service.is_internal("https://notgeteducated.com/")

    counts = service.count_links_in(
        '<a href="/a">a</a><a href="https://geteducated.com/b">b</a>'
        '<a href="https://nces.ed.gov">c</a><a href="mailto:x@y.z">d</a>'
    )
    assert (counts.internal, counts.external) == (2, 1)


def test_readability_bounds() -> None:
    assert QualityScoreService.readability("") == 50.0
    assert 0.0 <= QualityScoreService.readability("Go. Run. Sit.") <= 100.0
    assert QualityScoreService.readability("Go. Run. Sit.") == 100.0


def test_thresholds_from_settings_map_falls_back_on_bad_values() -> None:
    thresholds = QualityThresholds.from_settings_map(
        {
            "min_word_count": "1000",
            "max_word_count": "lots",
            "min_internal_links": " 2 ",
            "require_faq_schema": "true",
            "require_headings": "maybe",
            "keyword_density_max": "3.5",
            "min_readability_score": "",
        }
    )
    assert thresholds.min_word_count == 1000
    assert thresholds.max_word_count == 2500
    assert thresholds.min_internal_links == 2
    assert thresholds.require_faq is True
    assert thresholds.require_headings is True
    assert thresholds.keyword_density_max == 3.5
    assert thresholds.min_readability == 60.0


class _ArticleRow:
    pass


class _Risk:
    risk_level = "LOW"
    flags = ["missing_external_links"]


def test_apply_scores_copies_snapshot() -> None:
    article = _ArticleRow()
    assessment = _service().score(_article_html(internal=0), ArticleMeta(), _thresholds())
    apply_scores(article, assessment, _Risk())

    assert article.quality_score == assessment.score
    assert article.can_publish is False
    assert article.internal_links_count == 0
    assert article.quality_issues[0]["check"] == "internal_links"
    assert article.risk_level == "LOW"

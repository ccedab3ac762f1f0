import pytest

from answer_quality.application.validation import (
    BrandSafetyRule,
    CitationRule,
    RelevanceRule,
    ValidationContext,
    ValidationRule,
    build_rules,
)
from answer_quality.application.validation.citations import citation_breakdown, count_citations
from answer_quality.application.validation.rules import extract_key_terms
from answer_quality.config import AnswerQualityConfig, ValidationCriteria
from answer_quality.domain.answer import ValidationStatus, ValidationType
from answer_quality.domain.errors import ConfigError

QUERY = "How does photosynthesis convert sunlight into energy?"


def _context(content, query=QUERY, metadata=None):
    return ValidationContext(
        query_id="q-1",
        answer_content=content,
        provider="mock",
        query_text=query,
        provider_metadata=metadata or {},
    )


def test_extract_key_terms_drops_stop_words_and_punctuation():
    assert extract_key_terms(QUERY) == ["photosynthesis", "convert", "sunlight", "into", "energy"]


def test_relevance_rule_passes_when_terms_overlap():
    verdict = RelevanceRule().validate(
        _context("Photosynthesis lets plants convert sunlight into chemical energy.")
    )

    assert verdict.type == ValidationType.RELEVANCE
    assert verdict.status == ValidationStatus.PASSED
    assert verdict.confidence == 0.8
    assert verdict.details["relevance_score"] == 1.0


def test_relevance_rule_warns_on_partial_overlap():
    verdict = RelevanceRule().validate(_context("Photosynthesis needs sunlight."))

    assert verdict.status == ValidationStatus.WARNING
    assert verdict.confidence == 0.6
    assert verdict.details["common_terms"] == ["photosynthesis", "sunlight"]


def test_relevance_rule_fails_on_unrelated_answer():
    verdict = RelevanceRule().validate(_context("Bananas are yellow."))

    assert verdict.status == ValidationStatus.FAILED
    assert verdict.message == "Answer appears to be irrelevant to the query"
    assert verdict.confidence == 0.7


def test_relevance_rule_warns_without_query_text():
    verdict = RelevanceRule().validate(_context("anything", query=None))

    assert verdict.status == ValidationStatus.WARNING
    assert verdict.confidence == 0.5


def test_relevance_rule_warns_when_query_has_only_stop_words():
    verdict = RelevanceRule().validate(_context("anything", query="how is it"))

    assert verdict.status == ValidationStatus.WARNING
    assert verdict.details == {"query_terms": []}


def test_citation_breakdown_counts_each_pattern():
    text = "As shown [2], and (Smith, 2020), plus a note [^3]."

    assert citation_breakdown(text) == {"bracket": 1, "author_year": 1, "footnote": 2}
    assert count_citations(text) == 4
    assert count_citations("") == 0


def test_citation_rule_adds_provider_citations():
    rule = CitationRule(min_citations=3)

    without = rule.validate(_context("See [1]."))
    with_provider = rule.validate(_context("See [1].", metadata={"citations": [{"source": "x"}]}))

    assert without.status == ValidationStatus.FAILED
    assert without.details["total"] == 2
    assert with_provider.status == ValidationStatus.PASSED
    assert with_provider.details["provider"] == 1


def test_citation_rule_warns_when_nothing_is_cited():
    verdict = CitationRule().validate(_context("No sources here."))

    assert verdict.status == ValidationStatus.WARNING
    assert verdict.details["total"] == 0


def test_brand_safety_rule_matches_case_insensitively():
    rule = BrandSafetyRule(["Acme Corp", "scam"])

    bad = rule.validate(_context("Everyone knows acme corp products break."))
    good = rule.validate(_context("A neutral description."))

    assert bad.status == ValidationStatus.FAILED
    assert bad.details["matched_terms"] == ["Acme Corp"]
    assert good.status == ValidationStatus.PASSED


def test_rules_satisfy_protocol():
    for rule in (RelevanceRule(), CitationRule(), BrandSafetyRule()):
        assert isinstance(rule, ValidationRule)


def test_build_rules_follows_configured_order():
    config = AnswerQualityConfig(
        criteria=ValidationCriteria(min_citations=2, prohibited_elements=["spam"]),
        rules=["brand_safety", "citation", "relevance"],
    )

    rules = build_rules(config)

    assert [rule.get_type() for rule in rules] == [
        ValidationType.BRAND_SAFETY,
        ValidationType.CITATION,
        ValidationType.RELEVANCE,
    ]
    assert rules[0].prohibited_terms == ["spam"]
    assert rules[1].min_citations == 2


def test_build_rules_rejects_unknown_name():
    with pytest.raises(ConfigError, match="unknown validation rule"):
        build_rules(AnswerQualityConfig(), ["relevance", "toxicity"])

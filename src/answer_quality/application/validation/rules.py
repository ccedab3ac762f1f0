from __future__ import annotations

import re
from typing import Iterable, List, Optional, Sequence

from answer_quality.application.validation.base_rule import (
    BaseValidationRule,
    RuleVerdict,
    ValidationContext,
    ValidationRule,
)
from answer_quality.application.validation.citations import citation_breakdown
from answer_quality.config import KNOWN_RULES, AnswerQualityConfig
from answer_quality.domain.answer import ValidationType
from answer_quality.domain.errors import ConfigError

STOP_WORDS = frozenset(
    """
    a an the and or but in on at to for with is are was were be been being have has had
    do does did will would shall should can could may might must of by as if then else
    when where why how all any both each few more most some such no nor not only own
    same so than too very
    """.split()
)

_PUNCTUATION_RE = re.compile(r"[^\w\s]")


def extract_key_terms(text: str) -> List[str]:
    cleaned = _PUNCTUATION_RE.sub("", (text or "").lower())
    return [word for word in cleaned.split() if len(word) > 2 and word not in STOP_WORDS]


class RelevanceRule(BaseValidationRule):
    """Checks how many key terms of the query reappear in the answer."""

    rule_type = ValidationType.RELEVANCE

    def __init__(self, fail_below: float = 0.3, warn_below: float = 0.6) -> None:
        super().__init__()
        self.fail_below = fail_below
        self.warn_below = warn_below

    def validate(self, context: ValidationContext) -> RuleVerdict:
        if not context.query_text:
            return self.warning("Cannot validate relevance without query text", 0.5)

        query_terms = extract_key_terms(context.query_text)
        if not query_terms:
            return self.warning("Query has no key terms to compare against", 0.5, {"query_terms": []})

        answer_terms = set(extract_key_terms(context.answer_content))
        common_terms = [term for term in query_terms if term in answer_terms]
        ratio = len(common_terms) / len(query_terms)
        details = {
            "relevance_score": round(ratio, 4),
            "query_terms": query_terms,
            "common_terms": common_terms,
        }

        if ratio < self.fail_below:
            return self.failed("Answer appears to be irrelevant to the query", 0.7, details)
        if ratio < self.warn_below:
            return self.warning("Answer may not be fully relevant to the query", 0.6, details)
        return self.passed("Answer is relevant to the query", 0.8, details)


class CitationRule(BaseValidationRule):
    rule_type = ValidationType.CITATION

    def __init__(self, min_citations: int = 0) -> None:
        super().__init__()
        self.min_citations = max(0, int(min_citations))

    def validate(self, context: ValidationContext) -> RuleVerdict:
        breakdown = citation_breakdown(context.answer_content)
        provider_citations = context.provider_metadata.get("citations") or []
        if not isinstance(provider_citations, list):
            provider_citations = []
        total = sum(breakdown.values()) + len(provider_citations)
        details = {
            **breakdown,
            "provider": len(provider_citations),
            "total": total,
            "minimum": self.min_citations,
        }

        if total < self.min_citations:
            return self.failed(
                f"Answer has insufficient citations ({total}, minimum {self.min_citations})",
                0.9,
                details,
            )
        if total == 0:
            return self.warning("Answer does not cite any sources", 0.6, details)
        return self.passed(f"Answer cites {total} source(s)", 0.9, details)


class BrandSafetyRule(BaseValidationRule):
    rule_type = ValidationType.BRAND_SAFETY

    def __init__(self, prohibited_terms: Optional[Iterable[str]] = None) -> None:
        super().__init__()
        self.prohibited_terms = [t for t in (prohibited_terms or []) if t]

    def validate(self, context: ValidationContext) -> RuleVerdict:
        lowered = (context.answer_content or "").lower()
        matched = [term for term in self.prohibited_terms if term.lower() in lowered]
        if matched:
            return self.failed(
                f"Answer contains prohibited terms: {', '.join(matched)}",
                1.0,
                {"matched_terms": matched},
            )
        return self.passed("No prohibited terms found", 1.0, {"checked_terms": len(self.prohibited_terms)})


def build_rules(config: AnswerQualityConfig, names: Optional[Sequence[str]] = None) -> List[ValidationRule]:
    """Instantiate the named rules in order; defaults to ``config.rules``."""
    rules: List[ValidationRule] = []
    for name in names if names is not None else config.rules:
        if name == "relevance":
            rules.append(RelevanceRule())
        elif name == "citation":
            rules.append(CitationRule(min_citations=config.criteria.min_citations))
        elif name == "brand_safety":
            rules.append(BrandSafetyRule(prohibited_terms=config.criteria.prohibited_elements))
        else:
            raise ConfigError(f"unknown validation rule '{name}', expected one of {', '.join(KNOWN_RULES)}")
    return rules

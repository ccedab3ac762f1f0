from .base_rule import BaseValidationRule, RuleVerdict, ValidationContext, ValidationRule
from .citations import count_citations
from .rules import BrandSafetyRule, CitationRule, RelevanceRule, build_rules

__all__ = [
    "BaseValidationRule",
    "RuleVerdict",
    "ValidationContext",
    "ValidationRule",
    "count_citations",
    "BrandSafetyRule",
    "CitationRule",
    "RelevanceRule",
    "build_rules",
]

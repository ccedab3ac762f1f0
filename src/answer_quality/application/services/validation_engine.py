from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

from answer_quality.application.ports import ValidationResultStore
from answer_quality.application.validation import (
    ValidationContext,
    ValidationRule,
    build_rules,
    count_citations,
)
from answer_quality.config import AnswerQualityConfig, ValidationCriteria, get_config
from answer_quality.domain.answer import Answer, ValidationResult, ValidationStatus, ValidationType

logger = logging.getLogger(__name__)


@dataclass
class CriteriaCheck:
    is_valid: bool
    reasons: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {"is_valid": self.is_valid, "reasons": list(self.reasons)}


class ValidationEngine:
    """Two independent validation modes over an answer.

    ``check_criteria`` is a pure length/terms/citations gate used for the
    generator's inline pass and ad-hoc checks. ``run_rules`` runs the
    registered rule set and persists one verdict per rule.
    """

    def __init__(
        self,
        result_store: ValidationResultStore,
        rules: Optional[Sequence[ValidationRule]] = None,
        *,
        config: Optional[AnswerQualityConfig] = None,
    ) -> None:
        self._config = config or get_config()
        self._store = result_store
        self._rules: List[Tuple[ValidationType, ValidationRule]] = []
        for rule in rules if rules is not None else build_rules(self._config):
            self.register_rule(rule)

    @property
    def rules(self) -> List[ValidationRule]:
        return [rule for _, rule in self._rules]

    def register_rule(self, rule: ValidationRule) -> None:
        """Register ``rule``; its type is resolved once, here."""
        self._rules.append((ValidationType(rule.get_type()), rule))

    def check_criteria(
        self,
        content: str,
        query: str,
        criteria: Optional[Mapping[str, Any]] = None,
    ) -> CriteriaCheck:
        reasons: List[str] = []
        try:
            logger.debug("Checking criteria for query=%s", (query or "")[:80])
            c: ValidationCriteria = self._config.criteria.merged(criteria)
            length = len(content)

            if c.min_length and length < c.min_length:
                reasons.append(f"Answer is too short ({length} chars, minimum {c.min_length})")
            if c.max_length and length > c.max_length:
                reasons.append(f"Answer is too long ({length} chars, maximum {c.max_length})")

            for element in c.required_elements or []:
                if element not in content:
                    reasons.append(f"Answer is missing required element: {element}")
            for element in c.prohibited_elements or []:
                if element in content:
                    reasons.append(f"Answer contains prohibited element: {element}")

            if c.min_citations and c.min_citations > 0:
                citations = count_citations(content)
                if citations < c.min_citations:
                    reasons.append(
                        f"Answer has insufficient citations ({citations}, minimum {c.min_citations})"
                    )
        except Exception as exc:
            logger.error("Criteria check failed: %s", exc)
            return CriteriaCheck(is_valid=False, reasons=[f"Error during validation: {exc}"])

        return CriteriaCheck(is_valid=not reasons, reasons=reasons)

    def run_rules(self, answer: Answer, query_text: Optional[str]) -> List[ValidationResult]:
        logger.info("Validating answer %s with %d rule(s)", answer.id, len(self._rules))
        context = ValidationContext(
            query_id=answer.query_id,
            query_text=query_text,
            answer_content=answer.content,
            provider=answer.provider,
            provider_metadata=dict(answer.provider_metadata or {}),
        )

        results: List[ValidationResult] = []
        for rule_type, rule in self._rules:
            try:
                verdict = rule.validate(context)
                record = ValidationResult(
                    answer_id=answer.id,
                    validation_type=verdict.type,
                    status=verdict.status,
                    message=verdict.message,
                    confidence=verdict.confidence,
                    details=dict(verdict.details),
                )
            except Exception as exc:
                logger.error("Validation rule %s failed: %s", rule_type.value, exc)
                record = ValidationResult(
                    answer_id=answer.id,
                    validation_type=rule_type,
                    status=ValidationStatus.FAILED,
                    message=f"Error during validation: {exc}",
                    confidence=1.0,
                )
            results.append(self._store.insert(record))
        return results

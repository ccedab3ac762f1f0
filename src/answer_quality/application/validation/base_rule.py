"""Validation rule contract and a base class with verdict helpers."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Protocol, runtime_checkable

from answer_quality.domain.answer import ValidationStatus, ValidationType


@dataclass(frozen=True)
class ValidationContext:
    """Uniform input handed to every rule."""

    query_id: str
    answer_content: str
    provider: str
    query_text: Optional[str] = None
    provider_metadata: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class RuleVerdict:
    type: ValidationType
    status: ValidationStatus
    message: str = ""
    confidence: float = 1.0
    details: Dict[str, Any] = field(default_factory=dict)


@runtime_checkable
class ValidationRule(Protocol):
    """Rules must not keep per-call state; one instance serves every run."""

    def get_type(self) -> ValidationType: ...

    def validate(self, context: ValidationContext) -> RuleVerdict: ...


class BaseValidationRule(ABC):
    rule_type: ValidationType

    def __init__(self, rule_type: Optional[ValidationType] = None) -> None:
        if rule_type is not None:
            self.rule_type = rule_type

    def get_type(self) -> ValidationType:
        return self.rule_type

    @abstractmethod
    def validate(self, context: ValidationContext) -> RuleVerdict:
        raise NotImplementedError

    def passed(
        self, message: str = "", confidence: float = 1.0, details: Optional[Dict[str, Any]] = None
    ) -> RuleVerdict:
        return self._verdict(ValidationStatus.PASSED, message, confidence, details)

    def failed(
        self, message: str, confidence: float = 1.0, details: Optional[Dict[str, Any]] = None
    ) -> RuleVerdict:
        return self._verdict(ValidationStatus.FAILED, message, confidence, details)

    def warning(
        self, message: str, confidence: float = 1.0, details: Optional[Dict[str, Any]] = None
    ) -> RuleVerdict:
        return self._verdict(ValidationStatus.WARNING, message, confidence, details)

    def _verdict(
        self,
        status: ValidationStatus,
        message: str,
        confidence: float,
        details: Optional[Dict[str, Any]],
    ) -> RuleVerdict:
        return RuleVerdict(
            type=self.get_type(),
            status=status,
            message=message,
            confidence=max(0.0, min(1.0, float(confidence))),
            details=dict(details or {}),
        )

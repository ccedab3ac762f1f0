"""Answer aggregate and its append-only child records."""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional


def new_answer_id() -> str:
    return str(uuid.uuid4())


class AnswerStatus(str, Enum):
    PENDING = "pending"
    VALIDATED = "validated"
    REJECTED = "rejected"


class ValidationType(str, Enum):
    RELEVANCE = "relevance"
    FACTUAL_ACCURACY = "factual_accuracy"
    COMPLETENESS = "completeness"
    BRAND_SAFETY = "brand_safety"
    CITATION = "citation"


class ValidationStatus(str, Enum):
    PASSED = "passed"
    FAILED = "failed"
    WARNING = "warning"


class ScoreMetricType(str, Enum):
    RELEVANCE = "relevance"
    ACCURACY = "accuracy"
    COMPLETENESS = "completeness"
    # reserved, not populated by the scoring formula
    HELPFULNESS = "helpfulness"
    BRAND_ALIGNMENT = "brand_alignment"
    OVERALL = "overall"


class MetadataValueType(str, Enum):
    TEXT = "text"
    NUMERIC = "numeric"
    JSON = "json"


@dataclass
class Answer:
    """One generation attempt: content, scores and lifecycle status."""

    query_id: str
    content: str
    provider: str
    provider_metadata: Dict[str, Any] = field(default_factory=dict)
    id: str = field(default_factory=new_answer_id)
    relevance_score: float = 0.0
    accuracy_score: float = 0.0
    completeness_score: float = 0.0
    overall_score: float = 0.0
    is_validated: bool = False
    status: AnswerStatus = AnswerStatus.PENDING
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @property
    def is_terminal(self) -> bool:
        return self.status in (AnswerStatus.VALIDATED, AnswerStatus.REJECTED)

    def apply_scores(self, scores: "Scores") -> None:
        self.relevance_score = scores.relevance
        self.accuracy_score = scores.accuracy
        self.completeness_score = scores.completeness
        self.overall_score = scores.overall

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "query_id": self.query_id,
            "content": self.content,
            "provider": self.provider,
            "provider_metadata": dict(self.provider_metadata or {}),
            "relevance_score": float(self.relevance_score),
            "accuracy_score": float(self.accuracy_score),
            "completeness_score": float(self.completeness_score),
            "overall_score": float(self.overall_score),
            "is_validated": bool(self.is_validated),
            "status": self.status.value,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }


@dataclass(frozen=True)
class Scores:
    relevance: float = 0.0
    accuracy: float = 0.0
    completeness: float = 0.0
    overall: float = 0.0

    def to_dict(self) -> Dict[str, float]:
        return {
            "relevance": self.relevance,
            "accuracy": self.accuracy,
            "completeness": self.completeness,
            "overall": self.overall,
        }


@dataclass
class ValidationResult:
    """Verdict of one rule against one answer. Never mutated once stored."""

    answer_id: str
    validation_type: ValidationType
    status: ValidationStatus
    message: str = ""
    confidence: float = 1.0
    details: Dict[str, Any] = field(default_factory=dict)
    id: Optional[int] = None
    created_at: Optional[datetime] = None

    @property
    def is_failure(self) -> bool:
        return self.status == ValidationStatus.FAILED

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "answer_id": self.answer_id,
            "validation_type": self.validation_type.value,
            "status": self.status.value,
            "message": self.message,
            "confidence": float(self.confidence),
            "details": dict(self.details or {}),
        }


@dataclass
class ScoreRecord:
    answer_id: str
    metric_type: ScoreMetricType
    score: float
    weight: float
    explanation: str = ""
    id: Optional[int] = None
    created_at: Optional[datetime] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "answer_id": self.answer_id,
            "metric_type": self.metric_type.value,
            "score": float(self.score),
            "weight": float(self.weight),
            "explanation": self.explanation,
        }


@dataclass
class MetadataEntry:
    key: str
    value_type: MetadataValueType = MetadataValueType.JSON
    text_value: Optional[str] = None
    numeric_value: Optional[float] = None
    json_value: Optional[Dict[str, Any]] = None
    answer_id: Optional[str] = None

    @classmethod
    def of_json(cls, key: str, value: Dict[str, Any]) -> "MetadataEntry":
        return cls(key=key, value_type=MetadataValueType.JSON, json_value=dict(value))

    def value(self) -> Any:
        if self.value_type == MetadataValueType.TEXT:
            return self.text_value
        if self.value_type == MetadataValueType.NUMERIC:
            return self.numeric_value
        return self.json_value


@dataclass
class AnswerRequest:
    """Input of one generation. Unset options fall back to configured defaults."""

    query_id: str
    query: str
    provider: Optional[str] = None
    max_tokens: Optional[int] = None
    temperature: Optional[float] = None
    include_metadata: Optional[bool] = None
    validate_answer: Optional[bool] = None

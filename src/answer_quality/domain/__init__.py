"""Domain value objects for the answer quality pipeline."""

from .answer import (
    Answer,
    AnswerRequest,
    AnswerStatus,
    MetadataEntry,
    MetadataValueType,
    ScoreMetricType,
    ScoreRecord,
    Scores,
    ValidationResult,
    ValidationStatus,
    ValidationType,
)
from .errors import AnswerNotFoundError, AnswerQualityError, ConfigError, NoAnswerGeneratedError

__all__ = [
    "Answer",
    "AnswerRequest",
    "AnswerStatus",
    "MetadataEntry",
    "MetadataValueType",
    "ScoreMetricType",
    "ScoreRecord",
    "Scores",
    "ValidationResult",
    "ValidationStatus",
    "ValidationType",
    "AnswerQualityError",
    "AnswerNotFoundError",
    "NoAnswerGeneratedError",
    "ConfigError",
]

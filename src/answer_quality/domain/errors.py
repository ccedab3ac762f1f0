"""Domain error types."""

from __future__ import annotations


class AnswerQualityError(Exception):
    """Base class for errors raised by the answer pipeline."""


class AnswerNotFoundError(AnswerQualityError, LookupError):
    def __init__(self, answer_id: str):
        super().__init__(f"Failed to retrieve answer with ID: {answer_id}")
        self.answer_id = answer_id


class NoAnswerGeneratedError(AnswerQualityError):
    """A batch finished without a single completed answer."""


class ConfigError(AnswerQualityError, ValueError):
    """Invalid configuration values."""

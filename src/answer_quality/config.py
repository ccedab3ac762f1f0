"""
Runtime configuration for the answer pipeline.

Values come from ``ANSWERQ_*`` environment variables or from a YAML file with
the same keys grouped by section::

    generation:
      provider: openai
      max_tokens: 1000
      temperature: 0.7
    criteria:
      min_length: 50
      prohibited_elements: ["lorem ipsum"]
    weights:
      relevance: 0.4
      accuracy: 0.4
      completeness: 0.2
    rules: [relevance, citation]
    batch:
      failure_policy: fail_fast
      best_of: 3

Configuration is read once at startup and validated before use.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

from answer_quality.domain.errors import ConfigError

KNOWN_RULES = ("relevance", "citation", "brand_safety")
FAILURE_POLICIES = ("fail_fast", "skip")
_WEIGHT_TOLERANCE = 1e-6
_TRUE_VALUES = ("1", "true", "yes", "y")


@dataclass(frozen=True)
class GenerationDefaults:
    provider: str = "openai"
    max_tokens: int = 1000
    temperature: float = 0.7
    include_metadata: bool = True
    validate_answer: bool = True


@dataclass(frozen=True)
class ValidationCriteria:
    min_length: int = 50
    max_length: int = 4000
    required_elements: List[str] = field(default_factory=list)
    prohibited_elements: List[str] = field(default_factory=list)
    min_citations: int = 0

    def merged(self, overrides: Optional[Mapping[str, Any]] = None) -> "ValidationCriteria":
        """Return a copy where every non-None override replaces the default."""
        if not overrides:
            return self
        values = {
            "min_length": self.min_length,
            "max_length": self.max_length,
            "required_elements": list(self.required_elements),
            "prohibited_elements": list(self.prohibited_elements),
            "min_citations": self.min_citations,
        }
        for key, value in overrides.items():
            if key in values and value is not None:
                values[key] = value
        return ValidationCriteria(**values)


@dataclass(frozen=True)
class ScoringWeights:
    relevance: float = 0.4
    accuracy: float = 0.4
    completeness: float = 0.2

    def total(self) -> float:
        return float(self.relevance) + float(self.accuracy) + float(self.completeness)


@dataclass(frozen=True)
class BatchSettings:
    base_temperature: float = 0.7
    temperature_jitter: float = 0.1
    failure_policy: str = "fail_fast"
    best_of: int = 3


@dataclass(frozen=True)
class AnswerQualityConfig:
    generation: GenerationDefaults = field(default_factory=GenerationDefaults)
    criteria: ValidationCriteria = field(default_factory=ValidationCriteria)
    weights: ScoringWeights = field(default_factory=ScoringWeights)
    rules: List[str] = field(default_factory=lambda: ["relevance"])
    batch: BatchSettings = field(default_factory=BatchSettings)
    ideal_length: int = 500

    def validate(self) -> "AnswerQualityConfig":
        for name in ("relevance", "accuracy", "completeness"):
            weight = float(getattr(self.weights, name))
            if not 0.0 <= weight <= 1.0:
                raise ConfigError(f"weight '{name}' must be within [0, 1], got {weight}")
        if abs(self.weights.total() - 1.0) > _WEIGHT_TOLERANCE:
            raise ConfigError(f"scoring weights must sum to 1.0, got {self.weights.total():.4f}")

        if self.criteria.min_length < 0 or self.criteria.max_length < 0:
            raise ConfigError("criteria lengths must be non-negative")
        if self.criteria.min_length > self.criteria.max_length:
            raise ConfigError(
                f"min_length ({self.criteria.min_length}) exceeds max_length ({self.criteria.max_length})"
            )
        if self.criteria.min_citations < 0:
            raise ConfigError("min_citations must be non-negative")

        if not 0.0 <= float(self.generation.temperature) <= 1.0:
            raise ConfigError(f"temperature must be within [0, 1], got {self.generation.temperature}")
        if not 0.0 <= float(self.batch.base_temperature) <= 1.0:
            raise ConfigError("batch base temperature must be within [0, 1]")

        unknown = [name for name in self.rules if name not in KNOWN_RULES]
        if unknown:
            raise ConfigError(f"unknown validation rules: {', '.join(unknown)}")
        if self.batch.failure_policy not in FAILURE_POLICIES:
            raise ConfigError(f"unknown batch failure policy: {self.batch.failure_policy}")
        if self.batch.best_of < 1:
            raise ConfigError("best_of must be at least 1")
        if self.ideal_length <= 0:
            raise ConfigError("ideal_length must be positive")
        return self

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "AnswerQualityConfig":
        env = os.environ if environ is None else environ
        defaults = cls()

        def _get(name: str) -> Optional[str]:
            raw = env.get(name)
            if raw is None or str(raw).strip() == "":
                return None
            return str(raw).strip()

        def _int(name: str, default: int) -> int:
            raw = _get(name)
            if raw is None:
                return default
            try:
                return int(raw)
            except ValueError as exc:
                raise ConfigError(f"{name} must be an integer, got {raw!r}") from exc

        def _float(name: str, default: float) -> float:
            raw = _get(name)
            if raw is None:
                return default
            try:
                return float(raw)
            except ValueError as exc:
                raise ConfigError(f"{name} must be a number, got {raw!r}") from exc

        def _bool(name: str, default: bool) -> bool:
            raw = _get(name)
            if raw is None:
                return default
            return raw.lower() in _TRUE_VALUES

        def _csv(name: str, default: List[str]) -> List[str]:
            raw = _get(name)
            if raw is None:
                return list(default)
            return [item.strip() for item in raw.split(",") if item.strip()]

        g, c, w, b = defaults.generation, defaults.criteria, defaults.weights, defaults.batch
        config = cls(
            generation=GenerationDefaults(
                provider=_get("ANSWERQ_PROVIDER") or g.provider,
                max_tokens=_int("ANSWERQ_MAX_TOKENS", g.max_tokens),
                temperature=_float("ANSWERQ_TEMPERATURE", g.temperature),
                include_metadata=_bool("ANSWERQ_INCLUDE_METADATA", g.include_metadata),
                validate_answer=_bool("ANSWERQ_VALIDATE_ANSWER", g.validate_answer),
            ),
            criteria=ValidationCriteria(
                min_length=_int("ANSWERQ_MIN_LENGTH", c.min_length),
                max_length=_int("ANSWERQ_MAX_LENGTH", c.max_length),
                required_elements=_csv("ANSWERQ_REQUIRED_ELEMENTS", c.required_elements),
                prohibited_elements=_csv("ANSWERQ_PROHIBITED_ELEMENTS", c.prohibited_elements),
                min_citations=_int("ANSWERQ_MIN_CITATIONS", c.min_citations),
            ),
            weights=ScoringWeights(
                relevance=_float("ANSWERQ_WEIGHT_RELEVANCE", w.relevance),
                accuracy=_float("ANSWERQ_WEIGHT_ACCURACY", w.accuracy),
                completeness=_float("ANSWERQ_WEIGHT_COMPLETENESS", w.completeness),
            ),
            rules=_csv("ANSWERQ_RULES", defaults.rules),
            batch=BatchSettings(
                base_temperature=_float("ANSWERQ_BATCH_BASE_TEMPERATURE", b.base_temperature),
                temperature_jitter=_float("ANSWERQ_BATCH_TEMPERATURE_JITTER", b.temperature_jitter),
                failure_policy=_get("ANSWERQ_BATCH_FAILURE_POLICY") or b.failure_policy,
                best_of=_int("ANSWERQ_BEST_OF", b.best_of),
            ),
            ideal_length=_int("ANSWERQ_IDEAL_LENGTH", defaults.ideal_length),
        )
        return config.validate()

    @classmethod
    def from_yaml(cls, path: str | Path) -> "AnswerQualityConfig":
        import yaml

        with open(path, "r", encoding="utf-8") as f:
            raw = yaml.safe_load(f) or {}
        if not isinstance(raw, dict):
            raise ConfigError(f"config file {path} must contain a mapping")
        return cls.from_mapping(raw)

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any]) -> "AnswerQualityConfig":
        def _section(name: str) -> Dict[str, Any]:
            value = raw.get(name) or {}
            if not isinstance(value, dict):
                raise ConfigError(f"config section '{name}' must be a mapping")
            return value

        try:
            config = cls(
                generation=GenerationDefaults(**_section("generation")),
                criteria=ValidationCriteria(**_section("criteria")),
                weights=ScoringWeights(**_section("weights")),
                rules=["relevance"] if raw.get("rules") is None else list(raw["rules"]),
                batch=BatchSettings(**_section("batch")),
                ideal_length=500 if raw.get("ideal_length") is None else int(raw["ideal_length"]),
            )
        except (TypeError, ValueError) as exc:
            raise ConfigError(f"invalid config: {exc}") from exc
        return config.validate()


_default_config: Optional[AnswerQualityConfig] = None


def get_config() -> AnswerQualityConfig:
    global _default_config
    if _default_config is None:
        _default_config = AnswerQualityConfig.from_env()
    return _default_config

from __future__ import annotations

import logging
import random
import re
from typing import Callable, List, Optional

from answer_quality.application.ports import ScoreStore
from answer_quality.config import AnswerQualityConfig, ScoringWeights, get_config
from answer_quality.domain.answer import Answer, ScoreMetricType, ScoreRecord, Scores

logger = logging.getLogger(__name__)

# (content, query, rng) -> score in [0, 1]
AccuracyScorer = Callable[[str, str, random.Random], float]

SIGNAL_WEIGHT = 0.7
NOISE_WEIGHT = 0.3
LENGTH_FACTOR_WEIGHT = 0.6
STRUCTURE_FACTOR_WEIGHT = 0.4
TARGET_PARAGRAPHS = 3
NEUTRAL_RELEVANCE = 0.5

_PARAGRAPH_SPLIT_RE = re.compile(r"\n\s*\n")


def baseline_accuracy(content: str, query: str, rng: random.Random) -> float:
    """Placeholder until a fact-checking scorer is plugged in: uniform in [0.6, 1.0]."""
    return 0.6 + rng.random() * 0.4


def weighted_overall(
    relevance: float,
    accuracy: float,
    completeness: float,
    weights: ScoringWeights,
) -> float:
    return (
        float(relevance) * float(weights.relevance)
        + float(accuracy) * float(weights.accuracy)
        + float(completeness) * float(weights.completeness)
    )


def query_terms(query: str) -> List[str]:
    return [term for term in (query or "").lower().split() if len(term) > 3]


def _clamp(value: float) -> float:
    return max(0.0, min(1.0, float(value)))


class ScoringEngine:
    """Relevance/accuracy/completeness scores and their weighted overall.

    All randomness is drawn from the injected ``rng``; pass a seeded
    ``random.Random`` for reproducible scores.
    """

    def __init__(
        self,
        score_store: ScoreStore,
        *,
        config: Optional[AnswerQualityConfig] = None,
        rng: Optional[random.Random] = None,
        accuracy_scorer: Optional[AccuracyScorer] = None,
    ) -> None:
        self._config = config or get_config()
        self._store = score_store
        self._rng = rng or random.Random()
        self._accuracy_scorer = accuracy_scorer or baseline_accuracy

    @property
    def weights(self) -> ScoringWeights:
        return self._config.weights

    def score(self, content: str, query: str) -> Scores:
        try:
            relevance = self._relevance(content, query)
            accuracy = _clamp(self._accuracy_scorer(content, query, self._rng))
            completeness = self._completeness(content)
            overall = weighted_overall(relevance, accuracy, completeness, self.weights)
            return Scores(
                relevance=round(relevance, 2),
                accuracy=round(accuracy, 2),
                completeness=round(completeness, 2),
                overall=round(overall, 2),
            )
        except Exception as exc:
            logger.error("Scoring failed for query=%s error=%s", (query or "")[:80], exc)
            return Scores()

    def score_and_persist(self, answer: Answer, query_text: str) -> Answer:
        logger.info("Scoring answer %s", answer.id)
        scores = self.score(answer.content, query_text)
        weights = self.weights

        rows = [
            (ScoreMetricType.RELEVANCE, scores.relevance, weights.relevance,
             "Relevance score based on query term matching"),
            (ScoreMetricType.ACCURACY, scores.accuracy, weights.accuracy,
             "Accuracy score based on factual correctness"),
            (ScoreMetricType.COMPLETENESS, scores.completeness, weights.completeness,
             "Completeness score based on answer structure and length"),
            (ScoreMetricType.OVERALL, scores.overall, 1.0,
             "Overall score based on weighted average of individual scores"),
        ]
        for metric, value, weight, explanation in rows:
            self._store.insert(
                ScoreRecord(
                    answer_id=answer.id,
                    metric_type=metric,
                    score=value,
                    weight=float(weight),
                    explanation=explanation,
                )
            )

        answer.apply_scores(scores)
        return answer

    def _relevance(self, content: str, query: str) -> float:
        terms = query_terms(query)
        lowered = content.lower()
        if terms:
            fraction = sum(1 for term in terms if term in lowered) / len(terms)
        else:
            fraction = NEUTRAL_RELEVANCE
        return self._blend(fraction)

    def _completeness(self, content: str) -> float:
        length_factor = min(1.0, len(content) / float(self._config.ideal_length))
        paragraphs = len(_PARAGRAPH_SPLIT_RE.split(content))
        structure_factor = min(1.0, paragraphs / float(TARGET_PARAGRAPHS))
        signal = length_factor * LENGTH_FACTOR_WEIGHT + structure_factor * STRUCTURE_FACTOR_WEIGHT
        return self._blend(signal)

    def _blend(self, signal: float) -> float:
        return _clamp(signal * SIGNAL_WEIGHT + self._rng.random() * NOISE_WEIGHT)

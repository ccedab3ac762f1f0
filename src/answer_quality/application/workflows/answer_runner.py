"""
Answer runner: generate -> validate -> score -> resolve status.

``run`` owns the full lifecycle of one freshly minted answer. ``run_multiple``
repeats it with jittered temperatures and ``run_best`` keeps the candidate
with the highest overall score (the earliest one on ties).
"""

from __future__ import annotations

import logging
import random
from dataclasses import replace
from typing import List, Optional

from answer_quality.application.ports import AnswerStore
from answer_quality.application.services.answer_generator import AnswerGenerator, clamp_temperature
from answer_quality.application.services.scoring_engine import ScoringEngine
from answer_quality.application.services.validation_engine import ValidationEngine
from answer_quality.config import AnswerQualityConfig, get_config
from answer_quality.domain.answer import Answer, AnswerRequest, AnswerStatus, ValidationStatus
from answer_quality.domain.errors import NoAnswerGeneratedError
from answer_quality.utils.logging_config import clear_trace_id, get_trace_id, set_trace_id

logger = logging.getLogger(__name__)


def jitter_temperature(
    base: Optional[float],
    rng: random.Random,
    *,
    default: float = 0.7,
    spread: float = 0.1,
) -> float:
    """Uniform offset in [-spread, +spread] around ``base``, clamped to [0, 1]."""
    start = default if base is None else float(base)
    return clamp_temperature(start + rng.uniform(-spread, spread))


def select_best(answers: List[Answer]) -> Answer:
    """Highest overall score; only a strictly greater score replaces the leader."""
    if not answers:
        raise NoAnswerGeneratedError("no answers to select from")
    best = answers[0]
    for answer in answers[1:]:
        if answer.overall_score > best.overall_score:
            best = answer
    return best


class AnswerRunner:
    def __init__(
        self,
        generator: AnswerGenerator,
        validation_engine: ValidationEngine,
        scoring_engine: ScoringEngine,
        answer_store: AnswerStore,
        *,
        config: Optional[AnswerQualityConfig] = None,
        rng: Optional[random.Random] = None,
    ) -> None:
        self._generator = generator
        self._validation = validation_engine
        self._scoring = scoring_engine
        self._answers = answer_store
        self._config = config or get_config()
        self._rng = rng or random.Random()

    def run(self, request: AnswerRequest) -> Answer:
        owns_trace = get_trace_id() is None
        if owns_trace:
            set_trace_id()
        try:
            logger.info("Running answer generation for query_id=%s", request.query_id)

            answer = self._generator.generate(request)
            results = self._validation.run_rules(answer, request.query)
            answer = self._scoring.score_and_persist(answer, request.query)

            has_failures = any(r.status == ValidationStatus.FAILED for r in results)
            answer.is_validated = True
            answer.status = AnswerStatus.REJECTED if has_failures else AnswerStatus.VALIDATED

            final = self._answers.update_final(
                answer.id,
                {
                    "is_validated": answer.is_validated,
                    "status": answer.status,
                    "relevance_score": answer.relevance_score,
                    "accuracy_score": answer.accuracy_score,
                    "completeness_score": answer.completeness_score,
                    "overall_score": answer.overall_score,
                },
            )
            logger.info(
                "Answer %s finished status=%s overall=%.2f",
                final.id,
                final.status.value,
                final.overall_score,
            )
            return final
        except Exception as exc:
            logger.error("Answer run failed for query_id=%s: %s", request.query_id, exc)
            raise
        finally:
            if owns_trace:
                clear_trace_id()

    def run_multiple(self, request: AnswerRequest, count: int) -> List[Answer]:
        if count < 1:
            raise ValueError(f"count must be at least 1, got {count}")

        batch = self._config.batch
        skip_failures = batch.failure_policy == "skip"
        logger.info("Running %d answer generations for query_id=%s", count, request.query_id)

        answers: List[Answer] = []
        for index in range(count):
            temperature = jitter_temperature(
                request.temperature,
                self._rng,
                default=batch.base_temperature,
                spread=batch.temperature_jitter,
            )
            try:
                answers.append(self.run(replace(request, temperature=temperature)))
            except Exception as exc:
                if not skip_failures:
                    raise
                logger.warning("Skipping failed iteration %d/%d: %s", index + 1, count, exc)
        return answers

    def run_best(self, request: AnswerRequest, count: Optional[int] = None) -> Answer:
        """Best of ``count`` candidates; ``count`` defaults to ``batch.best_of``."""
        if count is None:
            count = self._config.batch.best_of
        answers = self.run_multiple(request, count)
        if not answers:
            raise NoAnswerGeneratedError(
                f"all {count} generations failed for query_id={request.query_id}"
            )
        best = select_best(answers)
        logger.info(
            "Best of %d for query_id=%s is %s (overall=%.2f)",
            len(answers),
            request.query_id,
            best.id,
            best.overall_score,
        )
        return best

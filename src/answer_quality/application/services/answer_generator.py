from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from answer_quality.application.ports import (
    AnswerStore,
    GenerationOptions,
    MetadataStore,
    ProviderClient,
)
from answer_quality.application.services.scoring_engine import ScoringEngine
from answer_quality.application.services.validation_engine import ValidationEngine
from answer_quality.config import AnswerQualityConfig, get_config
from answer_quality.domain.answer import Answer, AnswerRequest, AnswerStatus, MetadataEntry
from answer_quality.domain.errors import AnswerNotFoundError

logger = logging.getLogger(__name__)


def clamp_temperature(value: float) -> float:
    return max(0.0, min(1.0, float(value)))


class AnswerGenerator:
    """Calls the provider, persists the answer shell and its citations.

    With ``validate_answer`` the generator also runs a lightweight criteria
    check and scoring pass to give the stored answer an initial status. That
    pass never uses the rule engine; ``AnswerRunner`` supersedes its result.
    """

    def __init__(
        self,
        provider: ProviderClient,
        answer_store: AnswerStore,
        metadata_store: MetadataStore,
        validation_engine: ValidationEngine,
        scoring_engine: ScoringEngine,
        *,
        config: Optional[AnswerQualityConfig] = None,
    ) -> None:
        self._provider = provider
        self._answers = answer_store
        self._metadata = metadata_store
        self._validation = validation_engine
        self._scoring = scoring_engine
        self._config = config or get_config()

    def resolve_options(self, request: AnswerRequest) -> Dict[str, Any]:
        defaults = self._config.generation
        temperature = defaults.temperature if request.temperature is None else request.temperature
        return {
            "provider": request.provider or defaults.provider,
            "max_tokens": defaults.max_tokens if request.max_tokens is None else request.max_tokens,
            "temperature": clamp_temperature(temperature),
            "include_metadata": (
                defaults.include_metadata if request.include_metadata is None else request.include_metadata
            ),
            "validate_answer": (
                defaults.validate_answer if request.validate_answer is None else request.validate_answer
            ),
        }

    def generate(self, request: AnswerRequest) -> Answer:
        try:
            logger.info("Generating answer for query_id=%s", request.query_id)
            options = self.resolve_options(request)

            completion = self._provider.complete(
                request.query,
                GenerationOptions(
                    provider=options["provider"],
                    max_tokens=options["max_tokens"],
                    temperature=options["temperature"],
                ),
            )
            provider_metadata = dict(completion.metadata or {})
            answer = Answer(
                query_id=request.query_id,
                content=completion.text or "",
                provider=completion.provider or options["provider"],
                provider_metadata=provider_metadata,
            )
            answer_id = self._answers.create_shell(answer)

            citations = provider_metadata.get("citations")
            if options["include_metadata"] and isinstance(citations, list) and citations:
                self._store_citations(answer_id, citations)

            if options["validate_answer"]:
                self._inline_criteria_pass(answer_id, request.query, answer.content)

            stored = self._answers.find_by_id(answer_id)
            if stored is None:
                raise AnswerNotFoundError(answer_id)
            return stored
        except Exception as exc:
            logger.error("Error generating answer for query_id=%s: %s", request.query_id, exc)
            raise

    def _store_citations(self, answer_id: str, citations: List[Any]) -> None:
        try:
            entries = []
            for index, citation in enumerate(citations):
                payload = citation if isinstance(citation, dict) else {"source": str(citation)}
                entries.append(MetadataEntry.of_json(f"citation_{index}", payload))
            self._metadata.append_many(answer_id, entries)
        except Exception as exc:
            logger.error("Error storing citations for answer %s: %s", answer_id, exc)

    def _inline_criteria_pass(self, answer_id: str, query: str, content: str) -> None:
        try:
            check = self._validation.check_criteria(content, query)
            scores = self._scoring.score(content, query)
            self._answers.update_final(
                answer_id,
                {
                    "is_validated": check.is_valid,
                    "status": AnswerStatus.VALIDATED if check.is_valid else AnswerStatus.REJECTED,
                    "relevance_score": scores.relevance,
                    "accuracy_score": scores.accuracy,
                    "completeness_score": scores.completeness,
                    "overall_score": scores.overall,
                },
            )
            if check.reasons:
                self._metadata.append_many(
                    answer_id,
                    [MetadataEntry.of_json("validation_reasons", {"reasons": list(check.reasons)})],
                )
        except Exception as exc:
            logger.error("Inline validation failed for answer %s: %s", answer_id, exc)

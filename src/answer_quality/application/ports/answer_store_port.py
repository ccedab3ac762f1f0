"""Persistence ports for the answer aggregate and its child records."""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Protocol, Sequence, runtime_checkable

from answer_quality.domain.answer import Answer, MetadataEntry, ScoreRecord, ValidationResult


@runtime_checkable
class AnswerStore(Protocol):
    """Key-value upsert of answers keyed by answer id."""

    def create_shell(self, answer: Answer) -> str: ...

    def update_final(self, answer_id: str, fields: Dict[str, Any]) -> Answer: ...

    def find_by_id(self, answer_id: str) -> Optional[Answer]: ...

    def list_by_query(self, query_id: str, *, limit: int = 50) -> List[Answer]: ...

    def average_scores_by_query(self, query_id: str) -> Dict[str, Any]: ...


@runtime_checkable
class MetadataStore(Protocol):
    def append_many(self, answer_id: str, entries: Sequence[MetadataEntry]) -> None: ...

    def list_for_answer(self, answer_id: str) -> List[MetadataEntry]: ...


@runtime_checkable
class ValidationResultStore(Protocol):
    """Append-only history of rule verdicts."""

    def insert(self, record: ValidationResult) -> ValidationResult: ...


@runtime_checkable
class ScoreStore(Protocol):
    """Append-only history of metric scores."""

    def insert(self, record: ScoreRecord) -> ScoreRecord: ...

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Sequence

from sqlalchemy import func, select

from answer_quality.domain.answer import (
    Answer,
    AnswerStatus,
    MetadataEntry,
    MetadataValueType,
    ScoreRecord,
    ValidationResult,
)
from answer_quality.domain.errors import AnswerNotFoundError
from answer_quality.infrastructure.stores.models import (
    AnswerMetadataModel,
    AnswerModel,
    AnswerScoreModel,
    AnswerValidationModel,
    Base,
)
from answer_quality.infrastructure.stores.sqlalchemy_db import SessionProvider, get_db_url

_UPDATABLE_FIELDS = frozenset(
    {
        "relevance_score",
        "accuracy_score",
        "completeness_score",
        "overall_score",
        "is_validated",
        "status",
    }
)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _to_answer(row: AnswerModel) -> Answer:
    return Answer(
        id=row.id,
        query_id=row.query_id,
        content=row.content or "",
        provider=row.provider or "",
        provider_metadata=row.get_provider_metadata(),
        relevance_score=float(row.relevance_score or 0.0),
        accuracy_score=float(row.accuracy_score or 0.0),
        completeness_score=float(row.completeness_score or 0.0),
        overall_score=float(row.overall_score or 0.0),
        is_validated=bool(row.is_validated),
        status=AnswerStatus(row.status or AnswerStatus.PENDING.value),
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


class _StoreBase:
    def __init__(
        self,
        db_url: Optional[str] = None,
        *,
        auto_create_schema: bool = True,
        session_provider: Optional[SessionProvider] = None,
    ):
        self._provider = session_provider or SessionProvider(db_url or get_db_url())
        self.db_url = self._provider.db_url
        if auto_create_schema:
            Base.metadata.create_all(self._provider.engine)

    def close(self) -> None:
        self._provider.engine.dispose()


class SqlAlchemyAnswerStore(_StoreBase):
    """Answers plus their metadata entries (AnswerStore + MetadataStore)."""

    def create_shell(self, answer: Answer) -> str:
        now = _utcnow()
        row = AnswerModel(
            id=answer.id,
            query_id=answer.query_id or "",
            content=answer.content or "",
            provider=answer.provider or "",
            relevance_score=0.0,
            accuracy_score=0.0,
            completeness_score=0.0,
            overall_score=0.0,
            is_validated=False,
            status=AnswerStatus.PENDING.value,
            created_at=now,
            updated_at=now,
        )
        row.set_provider_metadata(answer.provider_metadata)

        with self._provider.session() as session:
            session.add(row)
            session.commit()
        return answer.id

    def update_final(self, answer_id: str, fields: Dict[str, Any]) -> Answer:
        unknown = set(fields) - _UPDATABLE_FIELDS
        if unknown:
            raise ValueError(f"fields not updatable: {', '.join(sorted(unknown))}")

        with self._provider.session() as session:
            row = session.get(AnswerModel, answer_id)
            if row is None:
                raise AnswerNotFoundError(answer_id)
            for key, value in fields.items():
                if key == "status":
                    value = AnswerStatus(value).value
                elif key == "is_validated":
                    value = bool(value)
                else:
                    value = float(value)
                setattr(row, key, value)
            row.updated_at = _utcnow()
            session.commit()
            session.refresh(row)
            return _to_answer(row)

    def find_by_id(self, answer_id: str) -> Optional[Answer]:
        with self._provider.session() as session:
            row = session.get(AnswerModel, answer_id)
            return _to_answer(row) if row is not None else None

    def list_by_query(self, query_id: str, *, limit: int = 50) -> List[Answer]:
        stmt = (
            select(AnswerModel)
            .where(AnswerModel.query_id == query_id)
            .order_by(AnswerModel.created_at.desc())
            .limit(max(1, min(int(limit), 500)))
        )
        with self._provider.session() as session:
            rows = session.execute(stmt).scalars().all()
            return [_to_answer(row) for row in rows]

    def average_scores_by_query(self, query_id: str) -> Dict[str, Any]:
        stmt = select(
            func.count(AnswerModel.id),
            func.avg(AnswerModel.relevance_score),
            func.avg(AnswerModel.accuracy_score),
            func.avg(AnswerModel.completeness_score),
            func.avg(AnswerModel.overall_score),
        ).where(AnswerModel.query_id == query_id)

        with self._provider.session() as session:
            count, relevance, accuracy, completeness, overall = session.execute(stmt).one()

        return {
            "query_id": query_id,
            "count": int(count or 0),
            "relevance": round(float(relevance or 0.0), 4),
            "accuracy": round(float(accuracy or 0.0), 4),
            "completeness": round(float(completeness or 0.0), 4),
            "overall": round(float(overall or 0.0), 4),
        }

    def append_many(self, answer_id: str, entries: Sequence[MetadataEntry]) -> None:
        if not entries:
            return
        now = _utcnow()
        rows = []
        for entry in entries:
            row = AnswerMetadataModel(
                answer_id=answer_id,
                key=entry.key or "",
                value_type=MetadataValueType(entry.value_type).value,
                text_value=entry.text_value,
                numeric_value=entry.numeric_value,
                created_at=now,
            )
            row.set_json_value(entry.json_value)
            rows.append(row)

        with self._provider.session() as session:
            session.add_all(rows)
            session.commit()

    def list_for_answer(self, answer_id: str) -> List[MetadataEntry]:
        stmt = (
            select(AnswerMetadataModel)
            .where(AnswerMetadataModel.answer_id == answer_id)
            .order_by(AnswerMetadataModel.id.asc())
        )
        with self._provider.session() as session:
            rows = session.execute(stmt).scalars().all()
            return [
                MetadataEntry(
                    answer_id=row.answer_id,
                    key=row.key,
                    value_type=MetadataValueType(row.value_type),
                    text_value=row.text_value,
                    numeric_value=row.numeric_value,
                    json_value=row.get_json_value(),
                )
                for row in rows
            ]


class SqlAlchemyValidationResultStore(_StoreBase):
    def insert(self, record: ValidationResult) -> ValidationResult:
        row = AnswerValidationModel(
            answer_id=record.answer_id,
            validation_type=record.validation_type.value,
            status=record.status.value,
            message=record.message or "",
            confidence=max(0.0, min(1.0, float(record.confidence))),
            created_at=_utcnow(),
        )
        row.set_details(record.details)

        with self._provider.session() as session:
            session.add(row)
            session.commit()
            session.refresh(row)
            return ValidationResult(
                id=int(row.id),
                answer_id=row.answer_id,
                validation_type=record.validation_type,
                status=record.status,
                message=row.message,
                confidence=float(row.confidence),
                details=row.get_details(),
                created_at=row.created_at,
            )

    def list_for_answer(self, answer_id: str) -> List[Dict[str, Any]]:
        stmt = (
            select(AnswerValidationModel)
            .where(AnswerValidationModel.answer_id == answer_id)
            .order_by(AnswerValidationModel.id.asc())
        )
        with self._provider.session() as session:
            rows = session.execute(stmt).scalars().all()
            return [
                {
                    "id": int(row.id),
                    "validation_type": row.validation_type,
                    "status": row.status,
                    "message": row.message,
                    "confidence": float(row.confidence),
                    "details": row.get_details(),
                }
                for row in rows
            ]


class SqlAlchemyScoreStore(_StoreBase):
    def insert(self, record: ScoreRecord) -> ScoreRecord:
        row = AnswerScoreModel(
            answer_id=record.answer_id,
            metric_type=record.metric_type.value,
            score=float(record.score),
            weight=float(record.weight),
            explanation=record.explanation or "",
            created_at=_utcnow(),
        )
        with self._provider.session() as session:
            session.add(row)
            session.commit()
            session.refresh(row)
            return ScoreRecord(
                id=int(row.id),
                answer_id=row.answer_id,
                metric_type=record.metric_type,
                score=float(row.score),
                weight=float(row.weight),
                explanation=row.explanation,
                created_at=row.created_at,
            )

    def list_for_answer(self, answer_id: str) -> List[Dict[str, Any]]:
        stmt = (
            select(AnswerScoreModel)
            .where(AnswerScoreModel.answer_id == answer_id)
            .order_by(AnswerScoreModel.id.asc())
        )
        with self._provider.session() as session:
            rows = session.execute(stmt).scalars().all()
            return [
                {
                    "metric_type": row.metric_type,
                    "score": float(row.score),
                    "weight": float(row.weight),
                    "explanation": row.explanation,
                }
                for row in rows
            ]

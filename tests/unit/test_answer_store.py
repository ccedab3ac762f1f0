from __future__ import annotations

from pathlib import Path

import pytest
from sqlalchemy import select

from answer_quality.domain.answer import (
    Answer,
    AnswerStatus,
    MetadataEntry,
    MetadataValueType,
    ScoreMetricType,
    ScoreRecord,
    ValidationResult,
    ValidationStatus,
    ValidationType,
)
from answer_quality.domain.errors import AnswerNotFoundError
from answer_quality.infrastructure.stores import (
    SqlAlchemyAnswerStore,
    SqlAlchemyScoreStore,
    SqlAlchemyValidationResultStore,
)
from answer_quality.infrastructure.stores.models import AnswerModel
from answer_quality.infrastructure.stores.sqlalchemy_db import SessionProvider


def _answer(query_id="q-1", content="Saturn has rings made of ice.", **kwargs):
    return Answer(query_id=query_id, content=content, provider="mock", **kwargs)


def test_create_shell_persists_pending_answer(tmp_path: Path):
    store = SqlAlchemyAnswerStore(db_url=f"sqlite:///{tmp_path / 'answers.db'}")
    answer = _answer(provider_metadata={"model": "mock-model", "citations": [{"source": "NASA"}]})

    answer_id = store.create_shell(answer)
    loaded = store.find_by_id(answer_id)

    assert answer_id == answer.id
    assert loaded.status == AnswerStatus.PENDING
    assert loaded.is_validated is False
    assert loaded.overall_score == 0.0
    assert loaded.provider_metadata["citations"] == [{"source": "NASA"}]
    assert loaded.created_at is not None


def test_update_final_applies_scores_and_status(tmp_path: Path):
    store = SqlAlchemyAnswerStore(db_url=f"sqlite:///{tmp_path / 'answers.db'}")
    answer_id = store.create_shell(_answer())

    updated = store.update_final(
        answer_id,
        {
            "is_validated": True,
            "status": AnswerStatus.REJECTED,
            "relevance_score": 0.5,
            "accuracy_score": 0.75,
            "completeness_score": 0.25,
            "overall_score": 0.55,
        },
    )

    assert updated.status == AnswerStatus.REJECTED
    assert updated.is_validated is True
    assert updated.accuracy_score == 0.75

    with store._provider.session() as session:
        row = session.execute(select(AnswerModel)).scalar_one()
        assert row.status == "rejected"
        assert float(row.overall_score) == 0.55


def test_update_final_rejects_unknown_fields_and_missing_answers(tmp_path: Path):
    store = SqlAlchemyAnswerStore(db_url=f"sqlite:///{tmp_path / 'answers.db'}")
    answer_id = store.create_shell(_answer())

    with pytest.raises(ValueError, match="content"):
        store.update_final(answer_id, {"content": "rewritten"})
    with pytest.raises(AnswerNotFoundError):
        store.update_final("missing", {"status": "validated"})


def test_find_by_id_returns_none_for_unknown_answer(tmp_path: Path):
    store = SqlAlchemyAnswerStore(db_url=f"sqlite:///{tmp_path / 'answers.db'}")

    assert store.find_by_id("nope") is None


def test_list_and_average_scores_by_query(tmp_path: Path):
    store = SqlAlchemyAnswerStore(db_url=f"sqlite:///{tmp_path / 'answers.db'}")
    for overall in (0.4, 0.8):
        answer_id = store.create_shell(_answer())
        store.update_final(answer_id, {"overall_score": overall, "relevance_score": 1.0})
    store.create_shell(_answer(query_id="other"))

    answers = store.list_by_query("q-1")
    averages = store.average_scores_by_query("q-1")

    assert len(answers) == 2
    assert {a.query_id for a in answers} == {"q-1"}
    assert len(store.list_by_query("q-1", limit=1)) == 1
    assert averages["count"] == 2
    assert averages["overall"] == pytest.approx(0.6)
    assert averages["relevance"] == 1.0
    assert store.average_scores_by_query("unknown")["count"] == 0


def test_metadata_entries_round_trip_with_types(tmp_path: Path):
    store = SqlAlchemyAnswerStore(db_url=f"sqlite:///{tmp_path / 'answers.db'}")
    answer_id = store.create_shell(_answer())

    store.append_many(
        answer_id,
        [
            MetadataEntry.of_json("citation_0", {"source": "NASA", "authority": 0.9}),
            MetadataEntry(key="tokens", value_type=MetadataValueType.NUMERIC, numeric_value=42.0),
        ],
    )
    store.append_many(answer_id, [])
    entries = store.list_for_answer(answer_id)

    assert [e.key for e in entries] == ["citation_0", "tokens"]
    assert entries[0].value() == {"source": "NASA", "authority": 0.9}
    assert entries[1].value() == 42.0


def test_validation_and_score_stores_append_records(tmp_path: Path):
    db_url = f"sqlite:///{tmp_path / 'answers.db'}"
    answers = SqlAlchemyAnswerStore(db_url=db_url)
    validations = SqlAlchemyValidationResultStore(db_url=db_url)
    scores = SqlAlchemyScoreStore(db_url=db_url)
    answer_id = answers.create_shell(_answer())

    stored = validations.insert(
        ValidationResult(
            answer_id=answer_id,
            validation_type=ValidationType.RELEVANCE,
            status=ValidationStatus.WARNING,
            message="Answer may not be fully relevant to the query",
            confidence=0.6,
            details={"relevance_score": 0.5},
        )
    )
    scores.insert(
        ScoreRecord(answer_id=answer_id, metric_type=ScoreMetricType.OVERALL, score=0.66, weight=1.0)
    )

    assert stored.id is not None
    assert stored.details == {"relevance_score": 0.5}
    assert validations.list_for_answer(answer_id)[0]["status"] == "warning"
    assert scores.list_for_answer(answer_id) == [
        {"metric_type": "overall", "score": 0.66, "weight": 1.0, "explanation": ""}
    ]


def test_long_query_id_and_provider_round_trip_unchanged(tmp_path: Path):
    store = SqlAlchemyAnswerStore(db_url=f"sqlite:///{tmp_path / 'answers.db'}")
    query_id = "q-" + "x" * 198
    provider = "azure-openai/" + "deployment-" * 8
    answer = Answer(query_id=query_id, content="content", provider=provider)

    store.create_shell(answer)
    loaded = store.find_by_id(answer.id)

    assert loaded.query_id == query_id
    assert loaded.provider == provider
    assert [a.id for a in store.list_by_query(query_id)] == [answer.id]
    assert store.average_scores_by_query(query_id)["count"] == 1


def test_stores_can_share_one_session_provider(tmp_path: Path):
    sessions = SessionProvider(f"sqlite:///{tmp_path / 'shared.db'}")
    answers = SqlAlchemyAnswerStore(session_provider=sessions)
    scores = SqlAlchemyScoreStore(session_provider=sessions, auto_create_schema=False)
    answer_id = answers.create_shell(_answer())

    scores.insert(ScoreRecord(answer_id=answer_id, metric_type=ScoreMetricType.RELEVANCE, score=0.5, weight=0.4))

    assert answers._provider is sessions
    assert scores.db_url == sessions.db_url
    assert len(scores.list_for_answer(answer_id)) == 1
    sessions.engine.dispose()

import random

import pytest

from answer_quality.application.services.scoring_engine import (
    ScoringEngine,
    baseline_accuracy,
    query_terms,
    weighted_overall,
)
from answer_quality.config import AnswerQualityConfig, ScoringWeights
from answer_quality.domain.answer import Answer, ScoreMetricType, Scores


class _FakeScoreStore:
    def __init__(self, fail=False):
        self.records = []
        self.fail = fail

    def insert(self, record):
        if self.fail:
            raise RuntimeError("disk full")
        self.records.append(record)
        return record


class _FixedRandom(random.Random):
    def __init__(self, value):
        super().__init__(0)
        self.value = value

    def random(self):
        return self.value


def _engine(store=None, rng=None, accuracy_scorer=None):
    return ScoringEngine(
        store or _FakeScoreStore(),
        config=AnswerQualityConfig(),
        rng=rng or random.Random(7),
        accuracy_scorer=accuracy_scorer,
    )


def test_weighted_overall_uses_default_weights():
    overall = weighted_overall(0.8, 0.7, 0.6, ScoringWeights())

    assert overall == pytest.approx(0.72)
    assert round(overall, 2) == 0.72


def test_weighted_overall_respects_custom_weights():
    weights = ScoringWeights(relevance=1.0, accuracy=0.0, completeness=0.0)

    assert weighted_overall(0.3, 0.9, 0.9, weights) == pytest.approx(0.3)


def test_query_terms_keeps_words_longer_than_three_chars():
    assert query_terms("How do neural nets learn features") == ["neural", "nets", "learn", "features"]
    assert query_terms("") == []


def test_baseline_accuracy_stays_in_expected_band():
    rng = random.Random(3)
    values = [baseline_accuracy("c", "q", rng) for _ in range(200)]

    assert all(0.6 <= v <= 1.0 for v in values)


def test_score_is_reproducible_with_seeded_rng():
    content = "Transformers use attention.\n\nThey scale well with data."
    query = "how do transformers scale"

    first = _engine(rng=random.Random(42)).score(content, query)
    second = _engine(rng=random.Random(42)).score(content, query)

    assert first == second


def test_score_without_noise_matches_formula():
    engine = _engine(rng=_FixedRandom(0.0), accuracy_scorer=lambda c, q, rng: 0.7)
    content = "Machine learning is a field."

    scores = engine.score(content, "machine learning basics")

    # relevance: 2 of 3 terms found -> 0.6667 * 0.7
    assert scores.relevance == 0.47
    assert scores.accuracy == 0.7
    # completeness: (28/500 * 0.6 + 1/3 * 0.4) * 0.7
    assert scores.completeness == 0.12
    # overall is weighted from the unrounded sub-scores
    assert scores.overall == 0.49


def test_score_uses_neutral_relevance_when_query_has_no_long_terms():
    engine = _engine(rng=_FixedRandom(0.0), accuracy_scorer=lambda c, q, rng: 1.0)

    scores = engine.score("Anything at all here.", "why is it")

    assert scores.relevance == 0.35


def test_score_clamps_accuracy_from_custom_scorer():
    engine = _engine(rng=_FixedRandom(1.0), accuracy_scorer=lambda c, q, rng: 3.5)

    scores = engine.score("x" * 600 + "\n\n" + "y" * 10 + "\n\nz", "something")

    assert scores.accuracy == 1.0
    assert scores.completeness == 1.0


def test_score_returns_zeros_when_scorer_raises():
    def _broken(content, query, rng):
        raise ValueError("fact checker offline")

    scores = _engine(accuracy_scorer=_broken).score("content", "query")

    assert scores == Scores()


def test_score_and_persist_writes_four_records_and_updates_answer():
    store = _FakeScoreStore()
    engine = _engine(store=store, rng=_FixedRandom(0.5), accuracy_scorer=lambda c, q, rng: 0.8)
    answer = Answer(query_id="q-1", content="Solar panels convert sunlight.", provider="mock")

    result = engine.score_and_persist(answer, "how do solar panels work")

    assert result is answer
    assert [r.metric_type for r in store.records] == [
        ScoreMetricType.RELEVANCE,
        ScoreMetricType.ACCURACY,
        ScoreMetricType.COMPLETENESS,
        ScoreMetricType.OVERALL,
    ]
    assert [r.weight for r in store.records] == [0.4, 0.4, 0.2, 1.0]
    assert all(r.answer_id == answer.id for r in store.records)
    assert store.records[3].score == answer.overall_score
    assert answer.accuracy_score == 0.8
    assert store.records[0].explanation == "Relevance score based on query term matching"


def test_score_and_persist_propagates_store_errors():
    engine = _engine(store=_FakeScoreStore(fail=True))
    answer = Answer(query_id="q-1", content="text", provider="mock")

    with pytest.raises(RuntimeError, match="disk full"):
        engine.score_and_persist(answer, "query")
    assert answer.overall_score == 0.0

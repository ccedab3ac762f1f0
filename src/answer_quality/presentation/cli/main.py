"""
CLI entry point.

Runs the answer pipeline against the offline mock provider and a SQLAlchemy
store, and exposes the pure criteria check and scoring functions.
"""

from __future__ import annotations

import argparse
import json
import random
import sys
import uuid
from typing import Any, Dict, List, Optional

from dotenv import find_dotenv, load_dotenv

from answer_quality.application.ports import ProviderClient
from answer_quality.application.services import AnswerGenerator, ScoringEngine, ValidationEngine
from answer_quality.application.workflows import AnswerRunner
from answer_quality.config import AnswerQualityConfig
from answer_quality.domain.answer import Answer, AnswerRequest
from answer_quality.domain.errors import ConfigError
from answer_quality.infrastructure.providers import MockProviderClient
from answer_quality.infrastructure.stores import (
    SqlAlchemyAnswerStore,
    SqlAlchemyScoreStore,
    SqlAlchemyValidationResultStore,
)
from answer_quality.infrastructure.stores.sqlalchemy_db import SessionProvider
from answer_quality.utils.logging_config import LogFiles, Logger, setup_logging

load_dotenv(find_dotenv(usecwd=True), override=False)

VERSION = "0.1.0"


class _NullScoreStore:
    """Discards records; the ``score`` command never persists."""

    def insert(self, record):
        return record


class _NullValidationResultStore:
    def insert(self, record):
        return record


def create_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="answerq",
        description="Generate, validate and score answers to natural-language queries",
    )
    parser.add_argument("--config", "-c", help="YAML config file (defaults to ANSWERQ_* env vars)")
    parser.add_argument("--log-level", default=None, help="DEBUG/INFO/WARNING/ERROR")
    parser.add_argument("--version", "-v", action="store_true", help="show version")

    subparsers = parser.add_subparsers(dest="command", help="available commands")

    run_parser = subparsers.add_parser("run", help="generate, validate and score answers")
    run_parser.add_argument("--query", "-q", required=True, help="query text")
    run_parser.add_argument("--query-id", default=None, help="query id (random if omitted)")
    run_parser.add_argument(
        "--count", "-n", type=int, default=None, help="number of candidates (best_of with --best, else 1)"
    )
    run_parser.add_argument("--best", action="store_true", help="keep only the best candidate")
    run_parser.add_argument("--provider", default=None, help="provider name")
    run_parser.add_argument("--max-tokens", type=int, default=None)
    run_parser.add_argument("--temperature", type=float, default=None)
    run_parser.add_argument("--seed", type=int, default=None, help="seed for scores and jitter")
    run_parser.add_argument("--db-url", default=None, help="SQLAlchemy URL (ANSWERQ_DB_URL)")
    run_parser.add_argument("--json", action="store_true", help="print full JSON")

    check_parser = subparsers.add_parser("check", help="check content against quality criteria")
    check_parser.add_argument("--content", required=True)
    check_parser.add_argument("--query", "-q", default="")
    check_parser.add_argument("--min-length", type=int, default=None)
    check_parser.add_argument("--max-length", type=int, default=None)
    check_parser.add_argument("--require", action="append", dest="required", default=None)
    check_parser.add_argument("--prohibit", action="append", dest="prohibited", default=None)
    check_parser.add_argument("--min-citations", type=int, default=None)

    score_parser = subparsers.add_parser("score", help="score content against a query")
    score_parser.add_argument("--content", required=True)
    score_parser.add_argument("--query", "-q", required=True)
    score_parser.add_argument("--seed", type=int, default=None)

    history_parser = subparsers.add_parser("history", help="list stored answers for a query")
    history_parser.add_argument("--query-id", required=True)
    history_parser.add_argument("--limit", type=int, default=20)
    history_parser.add_argument("--db-url", default=None)

    return parser


def make_default_runner(
    config: AnswerQualityConfig,
    *,
    db_url: Optional[str] = None,
    provider: Optional[ProviderClient] = None,
    seed: Optional[int] = None,
    session_provider: Optional[SessionProvider] = None,
) -> AnswerRunner:
    """Wire the runner; all three stores share one engine."""
    sessions = session_provider or SessionProvider(db_url)
    answer_store = SqlAlchemyAnswerStore(session_provider=sessions)
    validation = ValidationEngine(
        SqlAlchemyValidationResultStore(session_provider=sessions, auto_create_schema=False),
        config=config,
    )
    scoring = ScoringEngine(
        SqlAlchemyScoreStore(session_provider=sessions, auto_create_schema=False),
        config=config,
        rng=random.Random(seed),
    )
    generator = AnswerGenerator(
        provider or MockProviderClient(),
        answer_store,
        answer_store,
        validation,
        scoring,
        config=config,
    )
    return AnswerRunner(
        generator,
        validation,
        scoring,
        answer_store,
        config=config,
        rng=random.Random(seed),
    )


def _load_config(parsed: argparse.Namespace) -> AnswerQualityConfig:
    if parsed.config:
        return AnswerQualityConfig.from_yaml(parsed.config)
    return AnswerQualityConfig.from_env()


def _print_answer(answer: Answer) -> None:
    print(
        f"{answer.id} [{answer.status.value}] overall={answer.overall_score:.2f} "
        f"(relevance={answer.relevance_score:.2f}, accuracy={answer.accuracy_score:.2f}, "
        f"completeness={answer.completeness_score:.2f})"
    )


def _run_pipeline(parsed: argparse.Namespace, config: AnswerQualityConfig) -> int:
    sessions = SessionProvider(parsed.db_url)
    try:
        runner = make_default_runner(config, session_provider=sessions, seed=parsed.seed)
        return _run_with_runner(parsed, config, runner)
    finally:
        sessions.engine.dispose()


def _run_with_runner(parsed: argparse.Namespace, config: AnswerQualityConfig, runner: AnswerRunner) -> int:
    request = AnswerRequest(
        query_id=parsed.query_id or str(uuid.uuid4()),
        query=parsed.query,
        provider=parsed.provider,
        max_tokens=parsed.max_tokens,
        temperature=parsed.temperature,
    )

    if parsed.best:
        count = None if parsed.count is None else max(1, int(parsed.count))
        answers: List[Answer] = [runner.run_best(request, count)]
    elif parsed.count is not None and int(parsed.count) > 1:
        answers = runner.run_multiple(request, int(parsed.count))
    else:
        answers = [runner.run(request)]

    for answer in answers:
        Logger.info(
            f"query_id={answer.query_id} answer_id={answer.id} status={answer.status.value} "
            f"overall={answer.overall_score:.2f}",
            file=LogFiles.RUNS,
        )

    if parsed.json:
        payload: Dict[str, Any] = {"query_id": request.query_id, "answers": [a.to_dict() for a in answers]}
        print(json.dumps(payload, ensure_ascii=False, indent=2))
        return 0

    for answer in answers:
        _print_answer(answer)
    return 0


def _run_check(parsed: argparse.Namespace, config: AnswerQualityConfig) -> int:
    engine = ValidationEngine(_NullValidationResultStore(), rules=[], config=config)
    result = engine.check_criteria(
        parsed.content,
        parsed.query,
        {
            "min_length": parsed.min_length,
            "max_length": parsed.max_length,
            "required_elements": parsed.required,
            "prohibited_elements": parsed.prohibited,
            "min_citations": parsed.min_citations,
        },
    )
    print(json.dumps(result.to_dict(), ensure_ascii=False, indent=2))
    return 0 if result.is_valid else 1


def _run_score(parsed: argparse.Namespace, config: AnswerQualityConfig) -> int:
    engine = ScoringEngine(_NullScoreStore(), config=config, rng=random.Random(parsed.seed))
    scores = engine.score(parsed.content, parsed.query)
    print(json.dumps(scores.to_dict(), ensure_ascii=False, indent=2))
    return 0


def _run_history(parsed: argparse.Namespace) -> int:
    store = SqlAlchemyAnswerStore(db_url=parsed.db_url)
    try:
        answers = store.list_by_query(parsed.query_id, limit=max(1, int(parsed.limit)))
        averages = store.average_scores_by_query(parsed.query_id)
    finally:
        store.close()

    for answer in answers:
        _print_answer(answer)
    print(
        f"{averages['count']} answer(s), avg overall={averages['overall']:.2f} "
        f"relevance={averages['relevance']:.2f} accuracy={averages['accuracy']:.2f} "
        f"completeness={averages['completeness']:.2f}"
    )
    return 0


def run_cli(args: Optional[list] = None) -> int:
    parser = create_parser()
    parsed = parser.parse_args(args)

    if parsed.version:
        print(f"answerq v{VERSION}")
        return 0

    if not parsed.command:
        parser.print_help()
        return 0

    setup_logging(parsed.log_level)

    try:
        config = _load_config(parsed)
    except ConfigError as exc:
        print(f"Config error: {exc}", file=sys.stderr)
        return 2

    try:
        if parsed.command == "run":
            return _run_pipeline(parsed, config)
        if parsed.command == "check":
            return _run_check(parsed, config)
        if parsed.command == "score":
            return _run_score(parsed, config)
        if parsed.command == "history":
            return _run_history(parsed)
        return 0
    except Exception as e:
        Logger.error(f"command={parsed.command} error={e}", file=LogFiles.ERROR)
        print(f"Error: {e}", file=sys.stderr)
        return 1


def main() -> None:
    sys.exit(run_cli())


if __name__ == "__main__":
    main()

import logging
from pathlib import Path

from answer_quality.utils.logging_config import (
    LogFiles,
    Logger,
    TraceIdFilter,
    clear_trace_id,
    generate_trace_id,
    get_trace_id,
    set_trace_id,
)


def test_trace_id_lifecycle():
    clear_trace_id()
    assert get_trace_id() is None

    tid = set_trace_id()
    assert tid.startswith("run-")
    assert get_trace_id() == tid

    assert set_trace_id("custom-1") == "custom-1"
    clear_trace_id()
    assert get_trace_id() is None


def test_generate_trace_id_is_unique():
    assert generate_trace_id() != generate_trace_id()


def test_trace_id_filter_stamps_records():
    record = logging.LogRecord("x", logging.INFO, __file__, 1, "msg", None, None)
    set_trace_id("run-abc")
    try:
        assert TraceIdFilter().filter(record) is True
        assert record.trace_id == "run-abc"
    finally:
        clear_trace_id()


def test_log_files_aliases():
    assert LogFiles.RUNS == "runs/runs.log"
    assert LogFiles.ERROR == "errors/error.log"
    assert LogFiles.get("reports") == "reports/reports.log"


def test_logger_writes_to_aliased_file(tmp_path: Path):
    Logger.init(level="INFO", base_dir=str(tmp_path), force=True)
    try:
        set_trace_id("run-test")
        Logger.info("answer abc validated", file=LogFiles.RUNS)
    finally:
        clear_trace_id()
        Logger.close()

    content = (tmp_path / "runs" / "runs.log").read_text(encoding="utf-8")
    assert "[INFO] [run-test] test_logging_config.py" in content
    assert "answer abc validated" in content
    assert content.count("\n") == 1


def test_logger_drops_messages_below_configured_level(tmp_path: Path):
    Logger.init(level="ERROR", base_dir=str(tmp_path), force=True)
    try:
        Logger.info("hidden below ERROR", file=LogFiles.ERROR)
        Logger.error("command=run error=boom", file=LogFiles.ERROR)
    finally:
        Logger.close()

    content = (tmp_path / "errors" / "error.log").read_text(encoding="utf-8")
    assert "command=run error=boom" in content
    assert "hidden below ERROR" not in content

# src/answer_quality/utils/logging_config.py
"""
Logging setup for the answer pipeline.

Usage:
    from answer_quality.utils.logging_config import Logger, LogFiles, setup_logging

    setup_logging("INFO")                    # stdlib logging with trace ids
    Logger.info("run finished", file=LogFiles.RUNS)  # audit line to logs/runs/runs.log

Configuration via environment variables:
    ANSWERQ_LOG_LEVEL: DEBUG, INFO, WARNING, ERROR, CRITICAL (default: INFO)
    ANSWERQ_LOG_DIR: Base directory for log files (default: logs/)
    ANSWERQ_LOG_MAX_BYTES: Max size per log file in bytes (default: 10MB)
    ANSWERQ_LOG_BACKUP_COUNT: Number of backup files to keep (default: 5)
"""

from __future__ import annotations

import inspect
import logging
import os
import uuid
from contextvars import ContextVar
from datetime import datetime
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional

_trace_id_var: ContextVar[Optional[str]] = ContextVar("trace_id", default=None)

DEFAULT_LOG_LEVEL = "INFO"
DEFAULT_LOG_DIR = "logs"
DEFAULT_LOG_FILE = "answer_quality.log"
DEFAULT_MAX_BYTES = 10 * 1024 * 1024  # 10 MB
DEFAULT_BACKUP_COUNT = 5
DEFAULT_FORMAT = "{timestamp} [{level}] [{trace_id}] {filename}:{lineno} - {message}"
DEFAULT_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
STDLIB_FORMAT = "%(asctime)s [%(levelname)s] [%(trace_id)s] %(name)s - %(message)s"
LOG_CONFIG_FILE = Path(__file__).parent / "log_config.yaml"


class _LogFilesMeta(type):
    """Allows attribute access like LogFiles.RUNS."""

    def __getattr__(cls, name: str) -> str:
        cls._load()
        if name in cls._files:
            return cls._files[name]
        key = name.lower()
        if key in cls._files:
            return cls._files[key]
        raise AttributeError(f"Log file '{name}' not found in config")


class LogFiles(metaclass=_LogFilesMeta):
    """Log file aliases loaded from log_config.yaml (section ``files``)."""

    _loaded = False
    _files: dict = {}

    @classmethod
    def _load(cls) -> None:
        if cls._loaded:
            return

        cls._files = {
            "runs": "runs/runs.log",
            "error": "errors/error.log",
        }

        try:
            import yaml

            if LOG_CONFIG_FILE.exists():
                with open(LOG_CONFIG_FILE, "r", encoding="utf-8") as f:
                    config = yaml.safe_load(f)
                if config and isinstance(config.get("files"), dict):
                    cls._files.update(config["files"])
        except Exception as exc:
            logging.getLogger(__name__).warning("Could not read %s: %s", LOG_CONFIG_FILE, exc)

        cls._loaded = True

    @classmethod
    def get(cls, name: str) -> str:
        cls._load()
        if name in cls._files:
            return cls._files[name]
        key = name.lower()
        if key in cls._files:
            return cls._files[key]
        return f"{name}/{name}.log"


LOG_LEVELS = {
    "DEBUG": 10,
    "INFO": 20,
    "WARNING": 30,
    "ERROR": 40,
    "CRITICAL": 50,
}

_initialized = False
_config: dict = {}
_file_handlers: dict[str, RotatingFileHandler] = {}


def _get_config() -> dict:
    return {
        "level": os.environ.get("ANSWERQ_LOG_LEVEL", DEFAULT_LOG_LEVEL).upper(),
        "base_dir": os.environ.get("ANSWERQ_LOG_DIR", DEFAULT_LOG_DIR),
        "max_bytes": int(os.environ.get("ANSWERQ_LOG_MAX_BYTES", DEFAULT_MAX_BYTES)),
        "backup_count": int(os.environ.get("ANSWERQ_LOG_BACKUP_COUNT", DEFAULT_BACKUP_COUNT)),
    }


def _get_file_handler(file_path: str) -> RotatingFileHandler:
    if file_path not in _file_handlers:
        path = Path(file_path)
        path.parent.mkdir(parents=True, exist_ok=True)
        _file_handlers[file_path] = RotatingFileHandler(
            filename=str(path),
            maxBytes=_config.get("max_bytes", DEFAULT_MAX_BYTES),
            backupCount=_config.get("backup_count", DEFAULT_BACKUP_COUNT),
            encoding="utf-8",
        )
    return _file_handlers[file_path]


def _format_message(level: str, message: str, filename: str, lineno: int) -> str:
    return DEFAULT_FORMAT.format(
        timestamp=datetime.now().strftime(DEFAULT_DATE_FORMAT),
        level=level,
        trace_id=_trace_id_var.get() or "-",
        filename=filename,
        lineno=lineno,
        message=message,
    )


def _resolve_file_path(file: Optional[str]) -> str:
    base_dir = _config.get("base_dir", DEFAULT_LOG_DIR)
    return str(Path(base_dir) / (file or DEFAULT_LOG_FILE))


def _should_log(level: str) -> bool:
    current_level = _config.get("level", DEFAULT_LOG_LEVEL)
    return LOG_LEVELS.get(level, 0) >= LOG_LEVELS.get(current_level, 0)


def _write_log(level: str, message: str, file: Optional[str] = None) -> None:
    if not _should_log(level):
        return

    # skip _write_log and the public Logger method
    frame = inspect.currentframe()
    caller_frame = frame.f_back.f_back if frame and frame.f_back else None
    if caller_frame:
        filename = os.path.basename(caller_frame.f_code.co_filename)
        lineno = caller_frame.f_lineno
    else:
        filename = "unknown"
        lineno = 0

    handler = _get_file_handler(_resolve_file_path(file))
    handler.stream.write(_format_message(level, message, filename, lineno) + "\n")
    handler.stream.flush()


class Logger:
    """
    Static file logger for audit lines that should outlive the console.

    Usage:
        Logger.init(base_dir="logs")
        Logger.info("answer validated", file=LogFiles.RUNS)
    """

    @staticmethod
    def init(
        level: Optional[str] = None,
        base_dir: Optional[str] = None,
        max_bytes: Optional[int] = None,
        backup_count: Optional[int] = None,
        *,
        force: bool = False,
    ) -> None:
        global _initialized, _config

        if _initialized and not force:
            return
        if force:
            Logger.close()

        _config = _get_config()
        if level:
            _config["level"] = level.upper()
        if base_dir:
            _config["base_dir"] = str(base_dir)
        if max_bytes:
            _config["max_bytes"] = max_bytes
        if backup_count:
            _config["backup_count"] = backup_count

        _initialized = True

    @staticmethod
    def _ensure_init() -> None:
        if not _initialized:
            Logger.init()

    @staticmethod
    def info(message: str, file: Optional[str] = None) -> None:
        Logger._ensure_init()
        _write_log("INFO", message, file)

    @staticmethod
    def error(message: str, file: Optional[str] = None) -> None:
        Logger._ensure_init()
        _write_log("ERROR", message, file)

    @staticmethod
    def close() -> None:
        for handler in _file_handlers.values():
            handler.close()
        _file_handlers.clear()


class TraceIdFilter(logging.Filter):
    """Stamps every stdlib record with the trace id of the current context."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.trace_id = _trace_id_var.get() or "-"
        return True


def setup_logging(level: Optional[str] = None) -> None:
    """Configure the root logger once; later calls only adjust the level."""
    resolved = (level or os.environ.get("ANSWERQ_LOG_LEVEL", DEFAULT_LOG_LEVEL)).upper()
    root = logging.getLogger()
    root.setLevel(LOG_LEVELS.get(resolved, logging.INFO))

    for handler in root.handlers:
        if getattr(handler, "_answerq_handler", False):
            return

    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(STDLIB_FORMAT))
    handler.addFilter(TraceIdFilter())
    handler._answerq_handler = True  # type: ignore[attr-defined]
    root.addHandler(handler)


# ============================================================================
# Trace ID Management
# ============================================================================

def generate_trace_id() -> str:
    return f"run-{uuid.uuid4().hex[:12]}"


def set_trace_id(trace_id: Optional[str] = None) -> str:
    """Set the trace id for the current context, generating one if needed."""
    tid = trace_id or generate_trace_id()
    _trace_id_var.set(tid)
    return tid


def get_trace_id() -> Optional[str]:
    return _trace_id_var.get()


def clear_trace_id() -> None:
    _trace_id_var.set(None)

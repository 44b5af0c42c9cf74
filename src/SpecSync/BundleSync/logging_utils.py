"""Structured logging helpers shared across bundle sync components."""

from __future__ import annotations

import gzip
import json
import logging
import sys
import uuid
from datetime import datetime, timedelta, timezone
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Dict, List, Optional

from .settings import LoggingSettings

__all__ = [
    "LOGGER_NAME",
    "JSONFormatter",
    "generate_run_id",
    "mask_sensitive_data",
    "setup_logging",
]

LOGGER_NAME = "SpecSync.BundleSync"

_SENSITIVE_KEYS = {"authorization", "api_key", "apikey", "token", "secret", "password", "cookie"}


def generate_run_id() -> str:
    """Return a twelve character identifier that links the log records of one run."""

    return uuid.uuid4().hex[:12]


def mask_sensitive_data(payload: Dict[str, object]) -> Dict[str, object]:
    """Return a copy of ``payload`` with common secret fields replaced.

    Examples:
        >>> mask_sensitive_data({"token": "secret", "status": "ok"})
        {'token': '***masked***', 'status': 'ok'}
    """

    masked: Dict[str, object] = {}
    for key, value in payload.items():
        if key.lower() in _SENSITIVE_KEYS:
            masked[key] = "***masked***"
        else:
            masked[key] = value
    return masked


class JSONFormatter(logging.Formatter):
    """Formatter emitting masked JSON log entries for sync runs."""

    _RESERVED = frozenset(logging.makeLogRecord({}).__dict__) | {"message", "asctime"}

    def format(self, record: logging.LogRecord) -> str:
        """Render ``record`` as a JSON string with run and stage context."""

        now = datetime.now(timezone.utc)
        payload: Dict[str, object] = {
            "timestamp": now.isoformat().replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "run_id": getattr(record, "run_id", None),
            "stage": getattr(record, "stage", None),
        }
        for key, value in record.__dict__.items():
            if key in self._RESERVED or key in payload:
                continue
            payload[key] = value
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(mask_sensitive_data(payload), default=str)


class _RunContextFilter(logging.Filter):
    """Stamp every record with the active run identifier."""

    def __init__(self, run_id: str) -> None:
        super().__init__()
        self.run_id = run_id

    def filter(self, record: logging.LogRecord) -> bool:
        if not hasattr(record, "run_id"):
            record.run_id = self.run_id
        return True


def _compress_old_log(path: Path) -> None:
    """Compress ``path`` into a ``.gz`` file and remove the original."""

    compressed_path = path.with_suffix(path.suffix + ".gz")
    with path.open("rb") as source, gzip.open(compressed_path, "wb") as target:
        target.write(source.read())
    path.unlink(missing_ok=True)


def _cleanup_logs(log_dir: Path, retention_days: int) -> List[str]:
    """Rotate or purge log files in ``log_dir`` based on retention policy."""

    actions: List[str] = []
    now = datetime.now(timezone.utc)
    retention_delta = timedelta(days=retention_days)
    for file in log_dir.glob("*.jsonl"):
        mtime = datetime.fromtimestamp(file.stat().st_mtime, tz=timezone.utc)
        if now - mtime > retention_delta:
            _compress_old_log(file)
            actions.append(f"Compressed {file.name}")
    for file in log_dir.glob("*.jsonl.gz"):
        mtime = datetime.fromtimestamp(file.stat().st_mtime, tz=timezone.utc)
        if now - mtime > retention_delta:
            file.unlink(missing_ok=True)
            actions.append(f"Deleted expired archive {file.name}")
    return actions


def setup_logging(
    config: Optional[LoggingSettings] = None,
    *,
    run_id: Optional[str] = None,
) -> logging.Logger:
    """Configure the package logger.

    Console records go to stderr so stdout stays reserved for the run report.
    When ``config.log_dir`` is set, a rotating JSONL file is added as well.
    Handlers installed by earlier calls are replaced, never duplicated.
    """

    cfg = config or LoggingSettings()
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(cfg.level_int())

    for handler in list(logger.handlers):
        if getattr(handler, "_specsync_managed", False):
            logger.removeHandler(handler)
            handler.close()

    context_filter = _RunContextFilter(run_id or generate_run_id())

    stream_handler = logging.StreamHandler(sys.stderr)
    if cfg.emit_json_logs:
        stream_handler.setFormatter(JSONFormatter())
    else:
        stream_handler.setFormatter(logging.Formatter("%(levelname)s: %(message)s"))
    stream_handler.addFilter(context_filter)
    stream_handler._specsync_managed = True  # type: ignore[attr-defined]
    logger.addHandler(stream_handler)

    if cfg.log_dir is not None:
        cfg.log_dir.mkdir(parents=True, exist_ok=True)
        _cleanup_logs(cfg.log_dir, cfg.retention_days)
        today = datetime.now(timezone.utc).strftime("%Y%m%d")
        file_handler = RotatingFileHandler(
            cfg.log_dir / f"specsync-{today}.jsonl",
            maxBytes=int(cfg.max_log_size_mb * 1024 * 1024),
            backupCount=5,
            encoding="utf-8",
        )
        file_handler.setFormatter(JSONFormatter())
        file_handler.addFilter(context_filter)
        file_handler._specsync_managed = True  # type: ignore[attr-defined]
        logger.addHandler(file_handler)

    logger.propagate = False
    return logger

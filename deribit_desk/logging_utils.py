"""
Logging utilities.
Configures console/file logging and an optional JSONL audit trail of API calls.
"""
from __future__ import annotations

import json
import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import Any

from deribit_desk.config import settings

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def _ensure_log_dir(log_dir: str | None = None) -> Path:
    """Ensure the log directory exists."""
    path = Path(log_dir or settings.log_dir)
    path.mkdir(parents=True, exist_ok=True)
    return path


def _get_call_log_path(log_dir: str | None = None) -> Path:
    """Get the path for today's call log file."""
    date_str = datetime.utcnow().strftime("%Y%m%d")
    return _ensure_log_dir(log_dir) / f"api_calls_{date_str}.jsonl"


def setup_logging(level: str | None = None, log_dir: str | None = None) -> None:
    """
    Configure the ``deribit_desk`` logger with a console handler and,
    when ``log_dir`` is writable, a file handler.
    """
    root = logging.getLogger("deribit_desk")
    root.setLevel((level or settings.log_level).upper())

    if root.handlers:
        return

    stream_handler = logging.StreamHandler(sys.stderr)
    stream_handler.setFormatter(logging.Formatter(LOG_FORMAT))
    root.addHandler(stream_handler)

    try:
        file_handler = logging.FileHandler(_ensure_log_dir(log_dir) / "deribit_desk.log")
    except OSError as e:
        logger.warning("File logging disabled: %s", e)
        return
    file_handler.setFormatter(logging.Formatter(LOG_FORMAT))
    root.addHandler(file_handler)


def log_api_call(
    method: str,
    request_id: int | None,
    status: str,
    error_kind: str | None = None,
    message: str = "",
    log_dir: str | None = None,
) -> None:
    """Append one completed call to the JSONL audit file. Never logs tokens."""
    entry = {
        "log_timestamp": datetime.utcnow().isoformat(),
        "method": method,
        "request_id": request_id,
        "status": status,
        "error_kind": error_kind,
        "message": message,
    }

    try:
        with open(_get_call_log_path(log_dir), "a", encoding="utf-8") as f:
            f.write(json.dumps(entry) + "\n")
    except OSError as e:
        logger.warning("Failed to write call log entry: %s", e)


def get_recent_calls(
    count: int = 10,
    date_str: str | None = None,
    log_dir: str | None = None,
) -> list[dict[str, Any]]:
    """
    Retrieve recent call log entries.

    Args:
        count: Number of entries to retrieve
        date_str: Optional date string (YYYYMMDD) to read from specific file
        log_dir: Override for settings.log_dir

    Returns:
        List of log entry dicts (most recent last)
    """
    if count <= 0:
        return []

    date_str = date_str or datetime.utcnow().strftime("%Y%m%d")
    log_file = Path(log_dir or settings.log_dir) / f"api_calls_{date_str}.jsonl"
    if not log_file.exists():
        return []

    entries = []
    try:
        with open(log_file, "r", encoding="utf-8") as f:
            for line in f:
                line = line.strip()
                if line:
                    try:
                        entries.append(json.loads(line))
                    except json.JSONDecodeError:
                        continue
    except OSError as e:
        logger.warning("Failed to read call log: %s", e)
        return []

    return entries[-count:]

"""
Structured logging configuration.

Emits human-readable logs to the console and, optionally, rotating
human and JSON log files. JSON records include:
- Timestamp
- Level
- Subsystem
- Run ID
- Node ID
- Example index
- Event type
- Latency metrics
"""
from __future__ import annotations

import json
import logging
import os
import sys
from datetime import datetime
from logging.handlers import RotatingFileHandler
from typing import Any, Dict, Optional


class JSONFormatter(logging.Formatter):
    """Format log records as JSON."""

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "ts": datetime.fromtimestamp(record.created).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        if hasattr(record, "subsystem"):
            log_data["subsystem"] = record.subsystem
        if getattr(record, "run_id", None):
            log_data["run_id"] = record.run_id
        if getattr(record, "node_id", None) is not None:
            log_data["node_id"] = record.node_id
        if getattr(record, "example_index", None) is not None:
            log_data["example_index"] = record.example_index
        if getattr(record, "event_type", None):
            log_data["event"] = record.event_type
        if getattr(record, "latency_ms", None) is not None:
            log_data["latency_ms"] = record.latency_ms
        if getattr(record, "extra_data", None):
            log_data.update(record.extra_data)

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_data)


class HumanFormatter(logging.Formatter):
    """Human-readable format with colors."""

    COLORS = {
        "DEBUG": "\033[36m",    # Cyan
        "INFO": "\033[32m",     # Green
        "WARNING": "\033[33m",  # Yellow
        "ERROR": "\033[31m",    # Red
        "CRITICAL": "\033[35m", # Magenta
    }
    RESET = "\033[0m"

    def __init__(self, use_colors: bool = True):
        super().__init__()
        self.use_colors = use_colors

    def format(self, record: logging.LogRecord) -> str:
        timestamp = datetime.fromtimestamp(record.created).strftime("%H:%M:%S.%f")[:-3]
        prefix_parts = [f"{timestamp} {record.levelname[:4]}"]

        subsystem = getattr(record, "subsystem", "general")
        if subsystem != "general":
            prefix_parts.append(f"[{subsystem}]")
        if getattr(record, "run_id", None):
            prefix_parts.append(f"run={record.run_id[:8]}")
        if getattr(record, "node_id", None) is not None:
            prefix_parts.append(f"node={record.node_id}")
        if getattr(record, "example_index", None) is not None:
            prefix_parts.append(f"ex={record.example_index}")

        message = record.getMessage()
        if getattr(record, "latency_ms", None) is not None:
            message = f"{message} ({record.latency_ms:.1f}ms)"

        line = f"{' '.join(prefix_parts)}: {message}"

        if self.use_colors and sys.stderr.isatty():
            color = self.COLORS.get(record.levelname, "")
            line = f"{color}{line}{self.RESET}"

        if record.exc_info:
            line += "\n" + self.formatException(record.exc_info)

        return line


class StructuredLogger(logging.LoggerAdapter):
    """
    Adapter adding structured logging methods to a plain logger.

    Fields passed through ``extra`` on the usual methods (``node_id``,
    ``example_index``, ``run_id``) reach the formatters unchanged.
    """

    def __init__(self, logger: logging.Logger, extra: Optional[Dict[str, Any]] = None):
        super().__init__(logger, extra or {})

    def process(self, msg: Any, kwargs: Dict[str, Any]):
        kwargs["extra"] = {**self.extra, **(kwargs.get("extra") or {})}
        return msg, kwargs

    def _log_structured(
        self,
        level: int,
        msg: str,
        run_id: Optional[str] = None,
        node_id: Optional[int] = None,
        example_index: Optional[int] = None,
        subsystem: str = "general",
        event_type: Optional[str] = None,
        latency_ms: Optional[float] = None,
        **extra: Any,
    ) -> None:
        self.log(level, msg, extra={
            "run_id": run_id,
            "node_id": node_id,
            "example_index": example_index,
            "subsystem": subsystem,
            "event_type": event_type,
            "latency_ms": latency_ms,
            "extra_data": extra,
        })

    def event(self, event_type: str, msg: str, **kwargs: Any) -> None:
        """Log an event."""
        self._log_structured(logging.INFO, msg, event_type=event_type, **kwargs)

    def latency(self, operation: str, latency_ms: float, **kwargs: Any) -> None:
        """Log a latency measurement."""
        self._log_structured(
            logging.DEBUG,
            f"{operation} completed",
            latency_ms=latency_ms,
            **kwargs,
        )


def configure_logging(
    level: str = "INFO",
    log_dir: Optional[str] = None,
    json_file: Optional[str] = None,
    max_bytes: int = 10 * 1024 * 1024,  # 10MB
    backup_count: int = 5,
) -> None:
    """
    Configure structured logging for the application.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR)
        log_dir: Directory for log files
        json_file: Path for JSON logs (in log_dir if relative)
        max_bytes: Max size per log file
        backup_count: Number of backup files to keep
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, level.upper()))
    root_logger.handlers = []

    console = logging.StreamHandler(sys.stderr)
    console.setFormatter(HumanFormatter())
    root_logger.addHandler(console)

    if log_dir:
        os.makedirs(log_dir, exist_ok=True)

        human_handler = RotatingFileHandler(
            os.path.join(log_dir, "offset_tree.log"),
            maxBytes=max_bytes,
            backupCount=backup_count,
        )
        human_handler.setFormatter(HumanFormatter(use_colors=False))
        root_logger.addHandler(human_handler)

        json_path = json_file or "offset_tree.json.log"
        if not os.path.isabs(json_path):
            json_path = os.path.join(log_dir, json_path)
        json_handler = RotatingFileHandler(
            json_path,
            maxBytes=max_bytes,
            backupCount=backup_count,
        )
        json_handler.setFormatter(JSONFormatter())
        root_logger.addHandler(json_handler)


def get_logger(name: str) -> StructuredLogger:
    """Get a structured logger wrapping ``logging.getLogger(name)``."""
    return StructuredLogger(logging.getLogger(name))

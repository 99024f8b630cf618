"""Structured logging for upload processing.

Every record emitted while an upload is in flight carries the upload's
correlation fields (upload id, showroom, file type, content hash), set via
LogContext by the orchestrator.
"""
import json
import logging
import sys
import uuid
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Any, Dict, Optional

current_upload_id: ContextVar[str] = ContextVar("upload_id", default="")
current_showroom_id: ContextVar[str] = ContextVar("showroom_id", default="")
current_file_type: ContextVar[str] = ContextVar("file_type", default="")
current_file_hash: ContextVar[str] = ContextVar("file_hash", default="")

_CONTEXT_VARS = {
    "upload_id": current_upload_id,
    "showroom_id": current_showroom_id,
    "file_type": current_file_type,
    "file_hash": current_file_hash,
}

# Short labels for the text format; file_hash is JSON-only
_TEXT_LABELS = {"upload_id": "upload", "showroom_id": "showroom", "file_type": "type"}


def generate_upload_id() -> str:
    """Generate a correlation ID for one upload attempt."""
    return f"upl_{datetime.now(timezone.utc).strftime('%Y%m%d_%H%M%S')}_{uuid.uuid4().hex[:8]}"


def clear_context() -> None:
    """Clear all upload context variables."""
    for var in _CONTEXT_VARS.values():
        var.set("")


def _context_fields() -> Dict[str, str]:
    return {name: value for name, var in _CONTEXT_VARS.items() if (value := var.get())}


class JSONFormatter(logging.Formatter):
    """One JSON object per line, upload context merged in."""

    def format(self, record: logging.LogRecord) -> str:
        log_data: Dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            **_context_fields(),
        }
        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)
        return json.dumps(log_data, ensure_ascii=False, default=str)


class TextFormatter(logging.Formatter):
    """Human-readable lines with a bracketed upload context."""

    def format(self, record: logging.LogRecord) -> str:
        timestamp = datetime.now(timezone.utc).strftime("%Y-%m-%d %H:%M:%S")
        fields = _context_fields()
        ctx_parts = [f"{label}={fields[name]}" for name, label in _TEXT_LABELS.items() if name in fields]
        ctx_str = f" [{', '.join(ctx_parts)}]" if ctx_parts else ""

        msg = f"{timestamp} {record.levelname:8s} {record.name}{ctx_str}: {record.getMessage()}"
        if record.exc_info:
            msg += "\n" + self.formatException(record.exc_info)
        return msg


def setup_logging(level: str = "INFO", format_type: str = "text") -> logging.Logger:
    """
    Configure the root logger for the API server or CLI.

    Args:
        level: Log level name (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        format_type: "json" for structured logs, anything else for text
    """
    log_level = getattr(logging, level.upper(), logging.INFO)
    logger = logging.getLogger()
    logger.setLevel(log_level)
    logger.handlers.clear()

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(log_level)
    handler.setFormatter(JSONFormatter() if format_type.lower() == "json" else TextFormatter())
    logger.addHandler(handler)
    return logger


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)


class LogContext:
    """Set upload context fields for the duration of a block, then restore them."""

    def __init__(
        self,
        upload_id: Optional[str] = None,
        showroom_id: Optional[str] = None,
        file_type: Optional[str] = None,
        file_hash: Optional[str] = None,
    ):
        self._values = {
            "upload_id": upload_id,
            "showroom_id": showroom_id,
            "file_type": file_type,
            "file_hash": file_hash,
        }
        self._tokens = {}

    def __enter__(self):
        for name, value in self._values.items():
            if value:
                self._tokens[name] = _CONTEXT_VARS[name].set(value)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        for name, token in self._tokens.items():
            _CONTEXT_VARS[name].reset(token)
        return False

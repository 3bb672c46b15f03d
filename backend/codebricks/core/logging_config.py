"""
Logging for the CodeBricks backend.

Console lines are colored for humans, the rotating log file is JSON for
machines. Prompts, chat messages and uploads can carry base64 images and
audio, so every handler runs ``MediaRedactionFilter`` and structured
``extra_fields`` go through ``filter_sensitive_data`` before they are written.
"""

import json
import logging
import logging.handlers
import re
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Iterable, Optional

from ..config.settings import Settings

# data:<mime>[;params];base64,<payload>
_DATA_URI_RE = re.compile(r"data:([\w.+-]+/[\w.+-]+)(?:;[\w.+-]+=[\w.+-]+)*;base64,[A-Za-z0-9+/=]+")

SENSITIVE_KEYS = ('password', 'token', 'secret', 'authorization', 'api_key', 'api-key')
FILTERED = "***FILTERED***"

CONSOLE_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"
PLAIN_FILE_FORMAT = "%(asctime)s | %(levelname)s | %(name)s:%(funcName)s:%(lineno)d | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

LOG_FILE_MAX_BYTES = 10 * 1024 * 1024
LOG_FILE_BACKUPS = 5

# Client libraries that log every request at INFO
_QUIET_LOGGERS = ("httpx", "httpcore", "openai", "multipart", "python_multipart", "uvicorn.access")


def redact_data_uris(text: str) -> str:
    """Replace base64 data URIs with a ``<data:mime redacted>`` placeholder."""
    return _DATA_URI_RE.sub(lambda m: f"<data:{m.group(1)} redacted>", text)


def filter_sensitive_data(data: Any, sensitive_keys: Optional[Iterable[str]] = None) -> Any:
    """
    Mask credentials and inline media in a payload before it is logged.

    Args:
        data: dict, list or primitive, walked recursively
        sensitive_keys: Key fragments to mask (default: ``SENSITIVE_KEYS``)

    Returns:
        A copy where values of sensitive keys are ``***FILTERED***`` and
        strings have their data URIs redacted
    """
    keys = tuple(sensitive_keys) if sensitive_keys is not None else SENSITIVE_KEYS

    if isinstance(data, dict):
        return {
            key: FILTERED if any(k in str(key).lower() for k in keys)
            else filter_sensitive_data(value, keys)
            for key, value in data.items()
        }
    if isinstance(data, (list, tuple)):
        return [filter_sensitive_data(item, keys) for item in data]
    if isinstance(data, str):
        return redact_data_uris(data)
    return data


def truncate_large_data(data: str, max_length: int = 5000) -> str:
    """Cut ``data`` to ``max_length`` characters, noting the original length."""
    if len(data) <= max_length:
        return data
    return data[:max_length] + f"... (truncated, total length: {len(data)})"


class MediaRedactionFilter(logging.Filter):
    """Redacts data URIs from the rendered message and from ``extra_fields``."""

    def filter(self, record: logging.LogRecord) -> bool:
        message = record.getMessage()
        if "base64," in message:
            record.msg = redact_data_uris(message)
            record.args = None
        extra_fields = getattr(record, "extra_fields", None)
        if isinstance(extra_fields, dict):
            record.extra_fields = filter_sensitive_data(extra_fields)
        return True


class ColoredFormatter(logging.Formatter):
    """Console formatter with the level name colored by severity."""

    COLORS = {
        'DEBUG': '\033[36m',
        'INFO': '\033[32m',
        'WARNING': '\033[33m',
        'ERROR': '\033[31m',
        'CRITICAL': '\033[35m',
    }
    RESET = '\033[0m'

    def format(self, record: logging.LogRecord) -> str:
        # Other handlers see the same record; color a copy
        colored = logging.makeLogRecord(record.__dict__)
        color = self.COLORS.get(record.levelname, self.RESET)
        colored.levelname = f"{color}{record.levelname:8s}{self.RESET}"
        return super().format(colored)


class JSONFormatter(logging.Formatter):
    """One JSON object per line; ``extra_fields`` are merged at the top level."""

    def format(self, record: logging.LogRecord) -> str:
        log_data: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "function": record.funcName,
            "line": record.lineno,
            "message": record.getMessage(),
        }

        extra_fields = getattr(record, "extra_fields", None)
        if isinstance(extra_fields, dict):
            log_data.update(extra_fields)

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_data, ensure_ascii=False, default=str)


def _console_handler() -> logging.Handler:
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(ColoredFormatter(CONSOLE_FORMAT, datefmt=DATE_FORMAT))
    return handler


def _file_handler(settings: Settings) -> logging.Handler:
    log_path = Path(settings.log_file_path)
    log_path.parent.mkdir(parents=True, exist_ok=True)

    handler = logging.handlers.RotatingFileHandler(
        filename=log_path,
        maxBytes=LOG_FILE_MAX_BYTES,
        backupCount=LOG_FILE_BACKUPS,
        encoding='utf-8',
    )
    if settings.log_json_format:
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(logging.Formatter(PLAIN_FILE_FORMAT, datefmt=DATE_FORMAT))
    return handler


def setup_logging(settings: Settings) -> None:
    """
    Replace the root logger's handlers with the ones enabled in ``settings``.

    Called once from the application lifespan.
    """
    level = getattr(logging, settings.log_level.upper(), logging.INFO)
    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.setLevel(level)

    handlers = []
    if settings.log_console_enabled:
        handlers.append(_console_handler())
    if settings.log_file_enabled:
        handlers.append(_file_handler(settings))

    redaction = MediaRedactionFilter()
    for handler in handlers:
        handler.setLevel(level)
        handler.addFilter(redaction)
        root_logger.addHandler(handler)

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    root_logger.info(
        f"Logging initialized: level={settings.log_level.upper()}, "
        f"console={settings.log_console_enabled}, file={settings.log_file_enabled}"
    )

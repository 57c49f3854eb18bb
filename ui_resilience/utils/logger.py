from __future__ import annotations

"""Logging
----------
Everything logs under the `ui_resilience` namespace. Console output goes
through rich on stderr; with LOG_TO_FILE, records are also written as JSON
lines to a rotating file. Bound context (`bind`, e.g. the session browser) and
scoped context (`log_with_context`, e.g. a locator chain) travel with each
record and show up as fields in the JSON output.
"""

import json
import logging
import threading
from datetime import datetime, timezone
from logging.handlers import RotatingFileHandler
from typing import Any, Dict, MutableMapping, Optional, Tuple

from rich.console import Console
from rich.logging import RichHandler

from ui_resilience.utils.config import LogLevel, Settings, get_settings

__all__ = [
    "ContextAdapter",
    "JsonFormatter",
    "get_logger",
    "set_log_level",
    "bind",
    "unbind",
    "log_with_context",
]

NAMESPACE = "ui_resilience"

_lock = threading.Lock()
_configured = False
_bound: Dict[str, Any] = {}


# ---------- Records ----------

class ContextAdapter(logging.LoggerAdapter):
    """Attaches bound fields plus this adapter's own fields as `record.context`."""

    def process(self, msg: Any, kwargs: MutableMapping[str, Any]) -> Tuple[Any, MutableMapping[str, Any]]:
        context = {**_bound, **(self.extra or {})}
        extra = dict(kwargs.get("extra") or {})
        extra["context"] = {k: v for k, v in context.items() if v is not None}
        kwargs["extra"] = extra
        return msg, kwargs


class JsonFormatter(logging.Formatter):
    """One JSON object per line: timestamp, level, logger, message, context fields."""

    def format(self, record: logging.LogRecord) -> str:
        payload: Dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(timespec="milliseconds"),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }
        payload.update(getattr(record, "context", None) or {})
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False, default=str)


# ---------- Handlers ----------

def _console_handler(settings: Settings) -> logging.Handler:
    handler = RichHandler(
        console=Console(stderr=True),
        show_path=False,
        rich_tracebacks=True,
        markup=settings.COLORIZED_OUTPUT,
        omit_repeated_times=False,
    )
    handler.setFormatter(logging.Formatter("%(message)s"))
    return handler


def _file_handler(settings: Settings) -> logging.Handler:
    settings.LOG_FILE.parent.mkdir(parents=True, exist_ok=True)
    handler = RotatingFileHandler(
        filename=str(settings.LOG_FILE),
        maxBytes=5 * 1024 * 1024,
        backupCount=3,
        encoding="utf-8",
        delay=True,
    )
    handler.setFormatter(JsonFormatter())
    return handler


def _ensure_configured() -> None:
    global _configured
    if _configured:
        return
    with _lock:
        if _configured:
            return
        settings = get_settings()
        level = _numeric(settings.LOG_LEVEL)

        package = logging.getLogger(NAMESPACE)
        for handler in list(package.handlers):
            package.removeHandler(handler)
        package.addHandler(_console_handler(settings))
        if settings.LOG_TO_FILE:
            package.addHandler(_file_handler(settings))
        _apply_level(level)

        # Playwright logs its wire protocol at DEBUG
        for name in ("asyncio", "playwright"):
            logging.getLogger(name).setLevel(max(level, logging.WARNING))
        _configured = True


def _numeric(level: LogLevel | str) -> int:
    name = level.value if isinstance(level, LogLevel) else level.upper()
    return logging.getLevelName(LogLevel(name).value)


def _apply_level(level: int) -> None:
    package = logging.getLogger(NAMESPACE)
    package.setLevel(level)
    for handler in package.handlers:
        handler.setLevel(level)


# ---------- Public API ----------

def get_logger(name: Optional[str] = None) -> ContextAdapter:
    _ensure_configured()
    return ContextAdapter(logging.getLogger(name or NAMESPACE), {})


def set_log_level(level: LogLevel | str) -> None:
    """Change the package log level at runtime (e.g. from `--log-level`)."""
    _ensure_configured()
    _apply_level(_numeric(level))


def bind(**fields: Any) -> None:
    """Attach fields to every later record, e.g. bind(browser="firefox")."""
    _bound.update(fields)


def unbind(*keys: str) -> None:
    for key in keys:
        _bound.pop(key, None)


def log_with_context(logger: logging.LoggerAdapter, **fields: Any) -> ContextAdapter:
    """Adapter over the same logger whose records also carry `fields`."""
    return ContextAdapter(logger.logger, {**(logger.extra or {}), **fields})

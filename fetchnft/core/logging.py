"""Loguru setup: console, rotating file and optional Slack alerts.

Provider API keys are masked in every record before it reaches a sink, since
request errors from httpx quote the failing URL and headers may end up in
exception messages.
"""

import logging
import sys
from pathlib import Path
from typing import Any, Dict, List

import httpx
from loguru import logger

from fetchnft.core.config import settings

LOG_DIR = Path("logs")
LOG_FORMAT = "{time:YYYY-MM-DD HH:mm:ss.SSS} | {level: <8} | {extra[name]}:{function}:{line} | {message}"
LOG_LEVELS = {"TRACE", "DEBUG", "INFO", "SUCCESS", "WARNING", "ERROR", "CRITICAL"}
LEVEL_ALIASES = {"WARN": "WARNING", "FATAL": "CRITICAL"}

# One HEAD request per probed URL; keep their per-request INFO lines out.
QUIET_LIBRARIES = ("httpx", "httpcore")

_configured = False


class InterceptHandler(logging.Handler):
    """Forward stdlib records (uvicorn, httpx) to Loguru."""

    def emit(self, record: logging.LogRecord) -> None:
        try:
            level: Any = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        frame, depth = logging.currentframe(), 2
        while frame and frame.f_code.co_name == "emit":
            frame = frame.f_back
            depth += 1

        logger.opt(depth=depth, exception=record.exc_info).log(level, record.getMessage())


def _secrets() -> List[str]:
    return [key for key in (settings.OPENSEA_API_KEY, settings.NFTPORT_API_KEY) if key]


def _redact_secrets(record: Dict[str, Any]) -> None:
    for secret in _secrets():
        if secret in record["message"]:
            record["message"] = record["message"].replace(secret, "***")


def _slack_sink(message: Any) -> None:
    record = message.record
    text = (
        f"[fetchnft {settings.ENV}] {record['level'].name} "
        f"{record['extra'].get('name', 'fetchnft')}:{record['function']}:{record['line']}\n"
        f"{record['message']}"
    )
    try:
        httpx.post(settings.SLACK_WEBHOOK_URL, json={"text": text}, timeout=5.0)
    except httpx.HTTPError:
        # logging here would loop back into this sink
        pass


def _resolve_level() -> str:
    level = (settings.effective_log_level or "INFO").strip().upper()
    level = LEVEL_ALIASES.get(level, level)
    return level if level in LOG_LEVELS else "INFO"


def _handlers(level: str) -> List[Dict[str, Any]]:
    LOG_DIR.mkdir(exist_ok=True)
    handlers: List[Dict[str, Any]] = [
        {"sink": sys.stdout, "level": level, "format": LOG_FORMAT, "backtrace": False, "diagnose": False},
        {
            "sink": LOG_DIR / "fetchnft.log",
            "level": level,
            "format": LOG_FORMAT,
            "rotation": "10 MB",
            "retention": "14 days",
            "enqueue": True,
            "backtrace": False,
            "diagnose": False,
        },
    ]
    if settings.SLACK_WEBHOOK_URL:
        handlers.append({"sink": _slack_sink, "level": "ERROR", "enqueue": True})
    return handlers


def configure_logging(force: bool = False) -> None:
    """Install the sinks once per process (again with ``force=True``)."""
    global _configured

    if _configured and not force:
        return
    _configured = True

    level = _resolve_level()
    logger.configure(
        handlers=_handlers(level),
        extra={"name": "fetchnft"},
        patcher=_redact_secrets,
    )

    logging.basicConfig(handlers=[InterceptHandler()], level=0, force=True)
    for name in ("uvicorn", "uvicorn.error", "uvicorn.access"):
        logging.getLogger(name).handlers = [InterceptHandler()]
        logging.getLogger(name).propagate = False
    for name in QUIET_LIBRARIES:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str) -> logger.__class__:
    return logger.bind(name=name)


configure_logging()

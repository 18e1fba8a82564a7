# microdrama/core/logger.py
from __future__ import annotations

"""
MicroDrama · Logging
====================

Every log line goes out through Loguru. Importing this module calls
`configure_logging()` once from the environment (a `.env` file is honoured);
scripts may call it again with explicit arguments.

    LOG_LEVEL     INFO | DEBUG | WARNING | ERROR (default INFO)
    LOG_JSON      1 for one JSON object per line
    LOG_TO_FILE   1 to also write $LOG_DIR/$LOG_FILE, rotated at $LOG_ROTATION
    APP_DEBUG     1 for Loguru backtraces and variable dumps on the console

Service modules log through `logging.getLogger(__name__)`. Those loggers, and
the framework ones, are re-routed into Loguru so the `request_id` bound by
`RequestIDMiddleware` appears on their lines too.
"""

import json
import logging
import os
import sys
from pathlib import Path
from typing import Any, Dict, Optional

from dotenv import load_dotenv
from loguru import logger

INTERCEPTED_LOGGERS = ("microdrama", "auth", "uvicorn", "uvicorn.error", "fastapi", "starlette")
_TRUTHY = {"1", "true", "yes", "on"}


def _flag(name: str) -> bool:
    return os.getenv(name, "0").strip().lower() in _TRUTHY


# ─────────────────────────────────────────────────────────────
# 🧾 Line formats
# ─────────────────────────────────────────────────────────────
def _console_line(record) -> str:
    record["extra"].setdefault("request_id", "-")
    return (
        "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> "
        "<level>{level: <8}</level> "
        "[{extra[request_id]}] "
        "<cyan>{name}:{line}</cyan> {message}\n{exception}"
    )


def _json_line(record) -> str:
    extra = dict(record["extra"])
    doc: Dict[str, Any] = {
        "time": record["time"].isoformat(),
        "level": record["level"].name,
        "logger": record["name"],
        "line": record["line"],
        "message": record["message"],
        "request_id": extra.pop("request_id", None),
    }
    if record["exception"] is not None:
        doc["error"] = repr(record["exception"].value)
    for key, value in extra.items():
        doc.setdefault(key, value)
    # The returned string is used as a template by Loguru.
    return json.dumps(doc, ensure_ascii=False, default=str).replace("{", "{{").replace("}", "}}") + "\n"


# ─────────────────────────────────────────────────────────────
# 🔁 stdlib → Loguru
# ─────────────────────────────────────────────────────────────
class InterceptHandler(logging.Handler):
    def emit(self, record: logging.LogRecord) -> None:
        try:
            level = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        # Attribute the line to the caller, not to the logging module.
        frame, depth = logging.currentframe(), 2
        while frame is not None and frame.f_code.co_filename == logging.__file__:
            frame = frame.f_back
            depth += 1
        logger.opt(depth=depth, exception=record.exc_info).log(level, record.getMessage())


def configure_logging(
    *,
    level: Optional[str] = None,
    json_logs: Optional[bool] = None,
    to_file: Optional[bool] = None,
) -> None:
    """(Re)install the Loguru sinks and the stdlib intercept. Arguments override the environment."""
    level = (level or os.getenv("LOG_LEVEL", "INFO")).upper()
    json_logs = _flag("LOG_JSON") if json_logs is None else json_logs
    to_file = _flag("LOG_TO_FILE") if to_file is None else to_file
    debug = _flag("APP_DEBUG")
    line = _json_line if json_logs else _console_line

    logger.remove()
    logger.add(sys.stdout, level=level, format=line, enqueue=True, backtrace=debug, diagnose=debug)
    if to_file:
        log_dir = Path(os.getenv("LOG_DIR", "logs"))
        log_dir.mkdir(parents=True, exist_ok=True)
        logger.add(
            str(log_dir / os.getenv("LOG_FILE", "app.log")),
            rotation=os.getenv("LOG_ROTATION", "10 MB"),
            level=level,
            format=line,
            enqueue=True,
        )

    handler = InterceptHandler()
    for name in INTERCEPTED_LOGGERS:
        std = logging.getLogger(name)
        std.handlers = [handler]
        std.setLevel(level)
        std.propagate = False


load_dotenv()
configure_logging()

__all__ = ["INTERCEPTED_LOGGERS", "InterceptHandler", "configure_logging"]

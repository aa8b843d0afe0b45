# memberhub/core/logger.py
from __future__ import annotations

"""
MemberHub • Logging
===================

Application modules log through `logging.getLogger(__name__)`; those records
(and uvicorn's) are forwarded into a single loguru pipeline configured from
settings:

- `LOG_LEVEL`   minimum level for every sink
- `LOG_JSON`    one JSON object per line instead of the colored console line
- `LOG_FILE`    also write to this file, rotated at `LOG_ROTATION`

Every line carries the `request_id` bound by `RequestIDMiddleware` ("-" when
logged outside a request).
"""

import json
import logging
import sys
from pathlib import Path
from typing import Any, Dict, Optional, TextIO

from loguru import logger

from memberhub.core.config import settings

FORWARDED_LOGGERS = ("memberhub", "uvicorn", "uvicorn.error", "uvicorn.access", "fastapi")
NO_REQUEST = "-"


def _console_line(record) -> str:
    where = f"{record['name']}:{record['line']}".replace("<", "[").replace(">", "]")
    return (
        "<green>{time:HH:mm:ss.SSS}</green> <level>{level: <7}</level> "
        f"<cyan>{where}</cyan> [{{extra[request_id]}}] <level>{{message}}</level>\n{{exception}}"
    )


def _json_line(record) -> str:
    doc: Dict[str, Any] = {
        "time": record["time"].isoformat(),
        "level": record["level"].name,
        "logger": record["name"],
        "message": record["message"],
    }
    doc.update({k: v for k, v in record["extra"].items() if not k.startswith("_")})
    if record["exception"] is not None:
        doc["exception"] = repr(record["exception"].value)
    record["extra"]["_doc"] = json.dumps(doc, default=str)
    return "{extra[_doc]}\n"


class _ForwardToLoguru(logging.Handler):
    def emit(self, record: logging.LogRecord) -> None:
        try:
            level = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno
        logger.opt(depth=6, exception=record.exc_info).log(level, record.getMessage())


def configure_logging(
    *,
    level: Optional[str] = None,
    json_logs: Optional[bool] = None,
    log_file: Optional[str] = None,
    sink: TextIO = sys.stdout,
    enqueue: bool = True,
) -> None:
    """(Re)build the loguru sinks; arguments override the matching settings."""
    level = (level or settings.LOG_LEVEL).upper()
    json_logs = settings.LOG_JSON if json_logs is None else json_logs
    log_file = log_file or settings.LOG_FILE
    fmt = _json_line if json_logs else _console_line

    logger.remove()
    logger.configure(extra={"request_id": NO_REQUEST})
    logger.add(sink, level=level, format=fmt, enqueue=enqueue, colorize=None if sink is sys.stdout and not json_logs else False)
    if log_file:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        logger.add(log_file, level=level, format=fmt, rotation=settings.LOG_ROTATION, enqueue=enqueue)

    handler = _ForwardToLoguru()
    for name in FORWARDED_LOGGERS:
        std = logging.getLogger(name)
        std.handlers = [handler]
        std.setLevel(level)
        std.propagate = False


__all__ = ["configure_logging", "NO_REQUEST"]

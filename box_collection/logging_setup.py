"""
JSONL logging bootstrap.
Installs a single JSONL file sink on the root logger.
"""

import json
import logging
import os
from datetime import UTC
from datetime import datetime
from pathlib import Path

DEFAULT_PATH = os.environ.get("BOX_COLLECTION_LOG_PATH", "./box-collection.log.jsonl")
DEFAULT_LEVEL = os.environ.get("BOX_COLLECTION_LOG_LEVEL", "INFO").upper()

# Standard LogRecord attributes; anything else on a record is an extra field
_RESERVED_ATTRS = frozenset(
    {
        "msg",
        "args",
        "levelname",
        "levelno",
        "pathname",
        "filename",
        "module",
        "exc_info",
        "exc_text",
        "stack_info",
        "lineno",
        "funcName",
        "created",
        "msecs",
        "relativeCreated",
        "thread",
        "threadName",
        "processName",
        "process",
        "taskName",
        "name",
    }
)


class JsonlHandler(logging.Handler):
    def __init__(self, path: str):
        super().__init__()
        self.path = Path(path)
        self.path.parent.mkdir(parents=True, exist_ok=True)

    def format_record(self, record: logging.LogRecord) -> dict:
        base = {
            "ts": datetime.now(UTC).isoformat(timespec="milliseconds"),
            "lvl": record.levelname,
            "schema": {"name": "box-collection.log", "ver": "1.0.0"},
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info:
            base["exc"] = logging.Formatter().formatException(record.exc_info)
        for k, v in record.__dict__.items():
            if k in _RESERVED_ATTRS:
                continue
            base.setdefault(k, v)
        return base

    def emit(self, record: logging.LogRecord) -> None:
        try:
            line = json.dumps(self.format_record(record), ensure_ascii=False, default=str)
            with self.path.open("a", encoding="utf-8") as f:
                f.write(line + "\n")
        except Exception:
            self.handleError(record)


def init_json_logging(path: str | None = None, level: str | None = None) -> JsonlHandler:
    path = path or DEFAULT_PATH
    level = (level or DEFAULT_LEVEL).upper()
    root = logging.getLogger()
    root.setLevel(getattr(logging, level, logging.INFO))
    # Replace any previous JSONL sink to avoid duplicate lines
    for h in list(root.handlers):
        if isinstance(h, JsonlHandler):
            root.removeHandler(h)
    handler = JsonlHandler(path)
    root.addHandler(handler)
    return handler

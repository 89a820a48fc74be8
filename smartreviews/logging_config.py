"""
Smart Reviews Structured Logging Configuration
==============================================

Text output for development, JSON lines for production. Synthesis log
records carry `external_id`, `artifact`, `review_count` and `cost_usd`
extras, which the JSON formatter lifts to top-level keys.

Usage:
    from smartreviews.logging_config import setup_logging

    setup_logging(level="DEBUG", json_output=True, log_file="logs/api.log")
"""

import json
import logging
import logging.handlers
import os
import sys
from datetime import datetime, timezone
from typing import List, Optional

# Record attributes copied into JSON output when set
EXTRA_FIELDS = ("external_id", "artifact", "review_count", "duration", "cost_usd")

TEXT_FORMAT = "%(asctime)s %(levelname)-7s %(name)s: %(message)s"

# SDK / transport loggers that are chatty at INFO
NOISY_LOGGERS = ("httpx", "httpcore", "anthropic", "openai", "uvicorn.access")


class JSONFormatter(logging.Formatter):
    """
    One JSON object per record.

        {"ts": "...", "level": "INFO", "logger": "smartreviews.reviews.synthesis",
         "msg": "Summary created for sku-1 ...", "external_id": "sku-1", "artifact": "summary"}
    """

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "ts": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }
        entry.update({
            key: getattr(record, key)
            for key in EXTRA_FIELDS
            if getattr(record, key, None) is not None
        })
        if record.exc_info and record.exc_info[0] is not None:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)


def _handlers(log_file: Optional[str], max_bytes: int, backup_count: int) -> List[logging.Handler]:
    handlers: List[logging.Handler] = [logging.StreamHandler(sys.stdout)]
    if log_file:
        directory = os.path.dirname(log_file)
        if directory:
            os.makedirs(directory, exist_ok=True)
        handlers.append(logging.handlers.RotatingFileHandler(
            log_file, maxBytes=max_bytes, backupCount=backup_count,
        ))
    return handlers


def setup_logging(
    level: str = "INFO",
    json_output: bool = False,
    log_file: Optional[str] = None,
    max_bytes: int = 5 * 1024 * 1024,
    backup_count: int = 3,
):
    """
    Replace the root handlers with stdout (and optionally a rotating file).

    Args:
        level: Root log level name; unknown names fall back to INFO
        json_output: Emit JSON lines instead of text
        log_file: Also write to this file, rotated at max_bytes
    """
    formatter = JSONFormatter() if json_output else logging.Formatter(TEXT_FORMAT)

    root = logging.getLogger()
    root.setLevel(getattr(logging, level.upper(), logging.INFO))
    for handler in list(root.handlers):
        root.removeHandler(handler)
    for handler in _handlers(log_file, max_bytes, backup_count):
        handler.setFormatter(formatter)
        root.addHandler(handler)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    logging.getLogger(__name__).debug(
        "Logging ready (level=%s, json=%s, file=%s)", level, json_output, log_file or "-",
    )

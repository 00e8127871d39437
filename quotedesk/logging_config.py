"""
Logging setup for QuoteDesk.
Call setup_logging() once at process start; modules log through
logging.getLogger("quotedesk.<area>").
"""
import json
import logging
import os
from datetime import datetime, timezone

_CONFIGURED = False

# Extra attributes copied into JSON lines when a call site passes them.
EXTRA_FIELDS = ("quote_id", "status", "client", "scope", "kind", "path")


class JSONFormatter(logging.Formatter):
    """One JSON object per line."""

    def format(self, record):
        entry = {
            "ts": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }
        if record.exc_info and record.exc_info[0]:
            entry["exception"] = self.formatException(record.exc_info)
        for key in EXTRA_FIELDS:
            if hasattr(record, key):
                entry[key] = getattr(record, key)
        return json.dumps(entry, default=str)


HUMAN_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def setup_logging(level=None, json_logs=None) -> None:
    """
    Configure the root logger.

    Args:
        level: log level name; defaults to LOG_LEVEL env or INFO
        json_logs: force JSON lines; defaults to LOG_JSON env
    """
    global _CONFIGURED
    if _CONFIGURED:
        return

    if level is None:
        level = os.getenv("LOG_LEVEL", "INFO").upper()
    if json_logs is None:
        json_logs = os.getenv("LOG_JSON", "").lower() == "true"

    handler = logging.StreamHandler()
    if json_logs:
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(logging.Formatter(HUMAN_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(getattr(logging, str(level).upper(), logging.INFO))

    # uvicorn access lines are noisy next to our own request logs
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    _CONFIGURED = True

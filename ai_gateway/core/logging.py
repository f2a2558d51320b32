"""Logging setup for the gateway and its host process.

Plain-text lines by default; one JSON object per line with ``LOG_JSON=true``.
Gateway log calls attach request_id/provider/latency_ms/outcome/attempt via
``extra=``, and the JSON formatter lifts them into top-level keys.
"""

import json
import logging
import sys
from datetime import datetime, timezone

from ai_gateway.core.config import settings

TEXT_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
TEXT_DATEFMT = "%Y-%m-%d %H:%M:%S"

# Attributes the gateway attaches via ``extra=`` on its log calls
_STRUCTURED_FIELDS = ("request_id", "provider", "latency_ms", "outcome", "attempt")

# HTTP client internals log every request at INFO
_QUIET_LOGGERS = ("httpx", "httpcore")


class JSONFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        entry.update({key: getattr(record, key) for key in _STRUCTURED_FIELDS if hasattr(record, key)})
        if record.exc_info and record.exc_info[1]:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, ensure_ascii=False, default=str)


def _build_formatter(json_output: bool) -> logging.Formatter:
    if json_output:
        return JSONFormatter()
    return logging.Formatter(TEXT_FORMAT, datefmt=TEXT_DATEFMT)


def setup_logging(level_name: str | None = None, json_output: bool | None = None) -> None:
    """Install a single stdout handler on the root logger.

    Arguments left as None fall back to LOG_LEVEL / LOG_JSON from settings.
    Any handlers already on the root logger are replaced.
    """
    level = logging.getLevelName((level_name or settings.log_level).upper())
    if not isinstance(level, int):
        level = logging.INFO
    if json_output is None:
        json_output = settings.log_json

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(_build_formatter(json_output))
    root = logging.getLogger()
    root.handlers[:] = [handler]
    root.setLevel(level)

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

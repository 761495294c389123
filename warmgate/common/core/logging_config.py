"""
Logging Configuration
Custom JSON Logger implementation for Lambda log streams.

Provides:
- CustomJsonFormatter: one JSON object per line, correlation aware
- setup_logging: YAML dictConfig with environment substitution
"""

import json
import logging
import logging.config
import os
import string
import sys
from datetime import datetime, timezone

import yaml


class CustomJsonFormatter(logging.Formatter):
    """
    JSON Formatter for CloudWatch Logs Insights.

    Fields:
      - _time: ISO8601 timestamp (millisecond precision)
      - level: Log level
      - logger: Logger name (e.g. warmgate.dispatcher)
      - message: Log message
      - correlation_id: Correlation id of the current invocation
    """

    standard_attrs = {
        "args",
        "asctime",
        "created",
        "exc_info",
        "exc_text",
        "filename",
        "funcName",
        "levelname",
        "levelno",
        "lineno",
        "module",
        "msecs",
        "message",
        "msg",
        "name",
        "pathname",
        "process",
        "processName",
        "relativeCreated",
        "stack_info",
        "taskName",
        "thread",
        "threadName",
    }

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "_time": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(
                timespec="milliseconds"
            ),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        # Include extra fields (correlation_id is set by CorrelationIdFilter).
        for key, value in record.__dict__.items():
            if key in self.standard_attrs or key.startswith("_"):
                continue
            if value is None:
                continue
            log_data[key] = value

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_data, ensure_ascii=False, default=str)


def setup_logging(config_path: str = "logging.yml", level: str = None):
    """
    Load the YAML config, substitute environment variables, and initialize logging.

    Falls back to a JSON stdout handler on the root logger when the file is missing.
    """
    level = level or os.getenv("LOG_LEVEL", "INFO")

    if not os.path.exists(config_path):
        root = logging.getLogger()
        if not root.handlers:
            handler = logging.StreamHandler(sys.stdout)
            root.addHandler(handler)
        for handler in root.handlers:
            handler.setFormatter(CustomJsonFormatter())
        root.setLevel(level)
        return

    with open(config_path, "r", encoding="utf-8") as f:
        # Substitute environment variables using string.Template.
        # Supports ${LOG_LEVEL} format.
        template = string.Template(f.read())

        mapping = os.environ.copy()
        mapping.setdefault("LOG_LEVEL", level)

        content = template.safe_substitute(mapping)
        config = yaml.safe_load(content)
        logging.config.dictConfig(config)

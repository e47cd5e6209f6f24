import json
import logging
import os
import sys
import time
from typing import Any, Dict

# Machine-readable logs for unattended runs (cron, containers, CloudWatch agents).
# Everything is WARNING by default, except logging.getLogger("sqstransfer") (and sub loggers)
# which is INFO. boto3/botocore/urllib3 are very chatty at INFO and get their own level.

_RESERVED = (
    "args", "msg", "levelname", "name", "pathname", "filename",
    "module", "exc_info", "exc_text", "stack_info", "lineno",
    "funcName", "created", "msecs", "relativeCreated", "thread",
    "threadName", "processName", "process", "levelno", "taskName",
)

class JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        payload: Dict[str, Any] = {
            "ts": time.time(),
            "level": record.levelname,
            "logger": record.name,
            "thread": record.threadName,
            "msg": record.getMessage(),
        }

        for k, v in record.__dict__.items():
            if k in _RESERVED:
                continue
            if k.startswith("_"):
                continue
            payload.setdefault(k, v)

        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)

        return json.dumps(payload, ensure_ascii=False, default=str)

def setup_logging(verbose: bool = False) -> None:
    """
    Setup logging with one JSON object per line on stdout.

    Args:
        verbose: If True, sets sqstransfer logger to DEBUG and root logger to INFO.
                 If False, uses environment variables or defaults (WARNING for root, INFO for sqstransfer).
    """
    if verbose:
        root_level = "INFO"
        app_level = "DEBUG"
    else:
        root_level = os.environ.get("SQSTRANSFER_ROOT_LOG_LEVEL", "WARNING").upper()
        app_level = os.environ.get("SQSTRANSFER_APP_LOG_LEVEL", "INFO").upper()

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(JsonFormatter())
    # Handler should not filter - let loggers control what gets through
    handler.setLevel(logging.DEBUG)

    root = logging.getLogger()
    root.handlers.clear()
    root.setLevel(root_level)
    root.addHandler(handler)

    app_logger = logging.getLogger("sqstransfer")
    app_logger.setLevel(app_level)
    app_logger.propagate = True  # still go to root handler

    # AWS SDK loggers stay quiet even in verbose mode unless asked for explicitly
    boto_level = os.environ.get("SQSTRANSFER_BOTO_LOG_LEVEL", "WARNING").upper()
    for name in ("boto3", "botocore", "urllib3"):
        logging.getLogger(name).setLevel(boto_level)

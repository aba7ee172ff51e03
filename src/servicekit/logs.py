"""
Logging setup driven by LoggingConfig.

Everything in the package logs through the standard logging module with
module-level loggers (logging.getLogger(__name__)). This module only
decides where those records go and how they look.
"""

import json
import logging
import sys
import time
from typing import Optional

from .config import LoggingConfig
from .errors import IoError


TRACE = 5
logging.addLevelName(TRACE, "TRACE")

LEVELS = {
    "trace": TRACE,
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warn": logging.WARNING,
    "error": logging.ERROR,
}

PRETTY_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
COMPACT_FORMAT = "%(levelname)s %(name)s: %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Marks handlers installed here so a second call replaces them
# instead of stacking duplicates.
_HANDLER_FLAG = "_servicekit_handler"


class JsonFormatter(logging.Formatter):
    """
    One JSON object per log record.

    Output:
        {"timestamp": "2026-01-01T12:00:00Z", "level": "INFO",
         "logger": "servicekit.server", "message": "..."}
    """

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": time.strftime("%Y-%m-%dT%H:%M:%SZ", time.gmtime(record.created)),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, ensure_ascii=False)


def level_from_name(name: str) -> int:
    """Map a configured level name to a logging level (INFO if unknown)."""
    return LEVELS.get(name.lower(), logging.INFO)


def build_formatter(config: LoggingConfig) -> logging.Formatter:
    if config.structured or config.format == "json":
        return JsonFormatter()
    if config.format == "compact":
        return logging.Formatter(COMPACT_FORMAT)
    return logging.Formatter(PRETTY_FORMAT, datefmt=DATE_FORMAT)


def configure_logging(
    config: Optional[LoggingConfig] = None,
    level_override: Optional[str] = None,
) -> logging.Logger:
    """
    Configure the root logger from a LoggingConfig.

    Args:
        config: Logging settings. Defaults to LoggingConfig().
        level_override: Level name that wins over config.level
                        (the CLI --log-level flag).

    Returns:
        The root logger.

    Raises:
        IoError: If file_path cannot be opened for writing.
    """
    config = config or LoggingConfig()
    level = level_from_name(level_override or config.level)
    formatter = build_formatter(config)

    handlers = []
    if config.console_enabled:
        handlers.append(logging.StreamHandler(sys.stderr))
    if config.file_path:
        try:
            handlers.append(logging.FileHandler(config.file_path, encoding="utf-8"))
        except OSError as e:
            raise IoError.wrap(e)

    # Previous handlers stay in place if the log file cannot be opened
    root = logging.getLogger()
    for handler in list(root.handlers):
        if getattr(handler, _HANDLER_FLAG, False):
            root.removeHandler(handler)
            handler.close()

    for handler in handlers:
        handler.setFormatter(formatter)
        setattr(handler, _HANDLER_FLAG, True)
        root.addHandler(handler)

    root.setLevel(level)
    logging.getLogger("servicekit").setLevel(level)
    return root

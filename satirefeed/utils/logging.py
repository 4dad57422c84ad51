"""
SatireFeed Logging
==================

Console and rotating-file logging for CLI runs. Every component logs through
a ``ComponentLogger`` that stamps records with the component name and, where
known, the AI provider and article being processed.
"""

import json
import logging
import logging.handlers
import sys
import time
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, MutableMapping, Optional, Tuple

ROOT_LOGGER_NAME = "satirefeed"

# Context keys promoted to top-level fields in structured output
CONTEXT_FIELDS = ("component", "ai_provider", "article_id")

# Attributes every LogRecord carries; anything else came in through ``extra``
_RECORD_ATTRIBUTES = set(vars(logging.LogRecord("", 0, "", 0, "", None, None))) | {"message", "asctime"}

# Libraries that log every request at INFO
NOISY_LOGGERS = ("aiohttp", "httpx", "httpcore", "groq", "urllib3", "google")


class StructuredFormatter(logging.Formatter):
    """One JSON object per line, used for log files."""

    def format(self, record: logging.LogRecord) -> str:
        entry: Dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }

        extra = {}
        for key, value in record.__dict__.items():
            if key in _RECORD_ATTRIBUTES or key.startswith("_"):
                continue
            if key in CONTEXT_FIELDS:
                entry[key] = value
            else:
                extra[key] = value
        if extra:
            entry["extra"] = extra

        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(entry, ensure_ascii=False, default=str)


class ColoredConsoleFormatter(logging.Formatter):
    """Short human-readable lines; level colored when writing to a terminal."""

    LEVEL_COLORS = {
        "DEBUG": "\033[36m",
        "INFO": "\033[32m",
        "WARNING": "\033[33m",
        "ERROR": "\033[31m",
        "CRITICAL": "\033[1;31m",
    }
    RESET = "\033[0m"

    def __init__(self, use_color: bool = True):
        super().__init__()
        self.use_color = use_color

    def format(self, record: logging.LogRecord) -> str:
        level = f"{record.levelname:<7}"
        if self.use_color and record.levelname in self.LEVEL_COLORS:
            level = f"{self.LEVEL_COLORS[record.levelname]}{level}{self.RESET}"

        source = getattr(record, "component", record.name)
        provider = getattr(record, "ai_provider", None)
        if provider:
            source = f"{source}[{provider}]"

        line = f"{time.strftime('%H:%M:%S', time.localtime(record.created))} {level} {source}: {record.getMessage()}"
        if record.exc_info:
            line += "\n" + self.formatException(record.exc_info)
        return line


class ComponentLogger(logging.LoggerAdapter):
    """Adapter that merges bound context into each record's ``extra``."""

    def process(self, msg: Any, kwargs: MutableMapping[str, Any]) -> Tuple[Any, MutableMapping[str, Any]]:
        kwargs["extra"] = {**self.extra, **kwargs.get("extra", {})}
        return msg, kwargs

    def bind(self, **context: Any) -> "ComponentLogger":
        """Return a logger carrying additional context."""
        return ComponentLogger(self.logger, {**self.extra, **context})


def get_logger_for_component(
    component_name: str,
    article_id: Optional[str] = None,
    provider: Optional[str] = None,
) -> ComponentLogger:
    """Get a logger for a SatireFeed component.

    Args:
        component_name: Component name, e.g. 'pipeline' or 'groq_provider'
        article_id: Article being processed (optional)
        provider: AI provider name (optional)

    Returns:
        Logger adapter under the ``satirefeed`` hierarchy
    """
    context: Dict[str, Any] = {"component": component_name}
    if article_id:
        context["article_id"] = article_id
    if provider:
        context["ai_provider"] = provider

    return ComponentLogger(logging.getLogger(f"{ROOT_LOGGER_NAME}.{component_name}"), context)


def configure_application_logging(
    log_level: str = "INFO",
    log_file: Optional[str] = "logs/satirefeed.log",
    enable_console: bool = True,
    structured_logging: bool = False,
    max_file_size_mb: int = 10,
    backup_count: int = 5,
) -> logging.Logger:
    """Install handlers on the ``satirefeed`` logger.

    Console output goes to stderr so it never mixes with generated posts on
    stdout. The file, when configured, is always JSON lines.

    Args:
        log_level: Level name for SatireFeed loggers
        log_file: Rotating log file path (None or empty disables it)
        enable_console: Log to stderr
        structured_logging: Use JSON on the console too
        max_file_size_mb: Rotate the file at this size
        backup_count: Rotated files to keep

    Returns:
        The configured root SatireFeed logger
    """
    logger = logging.getLogger(ROOT_LOGGER_NAME)
    logger.setLevel(getattr(logging, str(log_level).upper(), logging.INFO))
    logger.propagate = False

    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    if enable_console:
        console = logging.StreamHandler(sys.stderr)
        if structured_logging:
            console.setFormatter(StructuredFormatter())
        else:
            console.setFormatter(ColoredConsoleFormatter(use_color=sys.stderr.isatty()))
        logger.addHandler(console)

    if log_file:
        path = Path(log_file)
        path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.handlers.RotatingFileHandler(
            path,
            maxBytes=max_file_size_mb * 1024 * 1024,
            backupCount=backup_count,
            encoding="utf-8",
        )
        file_handler.setFormatter(StructuredFormatter())
        logger.addHandler(file_handler)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    return logger


class PerformanceLogger:
    """Times a block and logs its outcome.

    Success is logged at INFO, failure at WARNING; the failure itself is left
    for the caller to report.
    """

    def __init__(self, logger: logging.LoggerAdapter, operation: str, **context: Any):
        self.logger = logger
        self.operation = operation
        self.context = context
        self.duration: Optional[float] = None
        self._start: Optional[float] = None

    def __enter__(self) -> "PerformanceLogger":
        self._start = time.perf_counter()
        self.logger.debug(f"Starting {self.operation}", extra=self.context)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.duration = time.perf_counter() - self._start
        extra = {**self.context, "duration_seconds": round(self.duration, 3), "success": exc_type is None}

        if exc_type is None:
            self.logger.info(f"Completed {self.operation} in {self.duration:.2f}s", extra=extra)
        else:
            self.logger.warning(
                f"{self.operation} failed after {self.duration:.2f}s ({exc_type.__name__})", extra=extra
            )

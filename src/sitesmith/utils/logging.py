"""Structured logging setup for Sitesmith."""

import structlog
from pathlib import Path
from typing import Any
import os


LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")


def log_path() -> Path:
    """Log file location: $SITESMITH_LOG_FILE or ~/.cache/sitesmith/logs/sitesmith.log."""
    override = os.environ.get("SITESMITH_LOG_FILE")
    if override:
        return Path(override).expanduser()
    return Path.home() / ".cache" / "sitesmith" / "logs" / "sitesmith.log"


def configure_logging() -> Path:
    """
    Send structlog events as JSON lines to the log file.

    The level comes from SITESMITH_LOG_LEVEL (default INFO; unknown values
    fall back to INFO):
    - DEBUG: Catalog rebuilds, unresolved elements, sandbox renders
    - INFO: User actions, applied edits, save results, LLM request summary
    - WARNING: Recovery snapshot failures, ambiguous edit targets
    - ERROR: Save failures, generation failures, config errors

    Events logged while a page is bound (see `bind_page`) carry its handle.

    Returns:
        Path of the log file

    Example:
        SITESMITH_LOG_LEVEL=DEBUG sitesmith edit gen_comp/bakery/index.html
        tail -f ~/.cache/sitesmith/logs/sitesmith.log | jq .
    """
    log_file = log_path()
    log_file.parent.mkdir(parents=True, exist_ok=True)

    level = os.environ.get("SITESMITH_LOG_LEVEL", "INFO").upper()
    if level not in LEVELS:
        level = "INFO"

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.WriteLoggerFactory(file=open(log_file, "a")),
        cache_logger_on_first_use=True,
    )
    return log_file


def bind_page(file_path: str) -> None:
    """Attach a page handle to every event logged from now on."""
    structlog.contextvars.bind_contextvars(page=file_path)


def unbind_page() -> None:
    structlog.contextvars.unbind_contextvars("page")


def get_logger(name: str) -> Any:
    """
    Get a structured logger instance.

    Example:
        >>> logger = get_logger(__name__)
        >>> logger.info("edit_applied", element_id="text-3f2a9c1b04de")
    """
    return structlog.get_logger(name)

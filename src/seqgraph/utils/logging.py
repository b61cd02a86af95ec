"""Logging setup for the seqgraph command line.

Library modules only call ``structlog.get_logger()``; the log destination and
level are decided once, by the entry point, through ``configure_logging``.
Events are written as JSON lines so they can be filtered with ``jq``:

    tail -f ~/.cache/seqgraph/logs/seqgraph.log | jq 'select(.event == "graph_loaded")'
"""

import os
from pathlib import Path
from typing import Any, Optional

import structlog

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")


def configure_logging(log_dir: Optional[Path] = None, level: Optional[str] = None) -> Path:
    """
    Send structlog events of ``level`` and above to ``<log_dir>/seqgraph.log``.

    The level is taken from ``level``, then SEQGRAPH_LOG_LEVEL, then INFO.
    Unknown level names fall back to INFO. At DEBUG the index reports every
    indexed document and every per-block reference change; INFO carries one
    summary event per graph load or edit.

    Args:
        log_dir: Directory for the log file (default: ~/.cache/seqgraph/logs)
        level: Level name overriding SEQGRAPH_LOG_LEVEL

    Returns:
        Path of the log file
    """
    if log_dir is None:
        log_dir = Path.home() / ".cache" / "seqgraph" / "logs"
    log_dir.mkdir(parents=True, exist_ok=True)
    log_file = log_dir / "seqgraph.log"

    log_level = (level or os.environ.get("SEQGRAPH_LOG_LEVEL", "INFO")).upper()
    if log_level not in LOG_LEVELS:
        log_level = "INFO"

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        context_class=dict,
        logger_factory=structlog.WriteLoggerFactory(file=open(log_file, "a")),
        cache_logger_on_first_use=True,
    )

    return log_file


def get_logger(name: str) -> Any:
    """Logger for a module, e.g. ``get_logger(__name__)``."""
    return structlog.get_logger(name)

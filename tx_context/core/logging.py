# Logging setup for a tx_context node, plus the helpers shared by the web layer.
#
# Several nodes usually log the same transaction, so every record carries the
# name of the node that emitted it.

import logging
import os
import sys
from datetime import UTC, datetime
from typing import Any, Dict, Optional
from urllib.parse import urlparse

from tx_context.settings import Settings

LOG_FORMAT = "%(asctime)s - [%(node)s] %(name)s - %(levelname)s - %(message)s"

DEFAULT_LOG_LEVEL = "INFO"

VALID_LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]

# HTTP client libraries log every transport round-trip at INFO
NOISY_LIBRARIES = ["httpx", "httpcore"]

TRANSACTION_LOGGER_NAME = "tx_context.transaction"


class NodeNameFilter(logging.Filter):
    """Stamps each record with the node name used by LOG_FORMAT."""

    def __init__(self, node_name: str):
        super().__init__()
        self.node_name = node_name

    def filter(self, record: logging.LogRecord) -> bool:
        if not hasattr(record, "node"):
            record.node = self.node_name
        return True


def _resolve_log_level(settings: Settings) -> str:
    level_name = settings.get_log_level(default=DEFAULT_LOG_LEVEL)
    if level_name in VALID_LOG_LEVELS:
        return level_name
    # Logging is not configured yet, so this cannot go through a logger.
    print(
        f"WARNING: Invalid LOG_LEVEL '{level_name}', using {DEFAULT_LOG_LEVEL}. "
        f"Expected one of: {', '.join(VALID_LOG_LEVELS)}",
        file=sys.stderr,
    )
    return DEFAULT_LOG_LEVEL


def _get_loki_handler(loki_url: str, node_name: str = "tx_context") -> Optional[logging.Handler]:
    """
    Builds a handler shipping records to Loki, labelled with the node name.

    Returns:
        The handler, or None when the URL is invalid or python-logging-loki is unusable.
    """
    log = logging.getLogger(__name__)
    parsed = urlparse(loki_url)
    if not parsed.scheme or not parsed.netloc:
        log.warning(f"Ignoring invalid LOKI_URL: {loki_url!r}")
        return None
    try:
        from logging_loki import LokiHandler

        handler = LokiHandler(
            url=f"{loki_url.rstrip('/')}/loki/api/v1/push",
            tags={
                "application": "tx_context",
                "node": node_name,
                "environment": os.getenv("ENVIRONMENT", "development"),
            },
            version="1",
        )
    except ImportError:
        log.debug("python-logging-loki is not installed; not shipping logs to Loki")
        return None
    except Exception as e:
        log.warning(f"Could not create Loki handler for {loki_url}: {e}")
        return None
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    return handler


def setup_logging() -> None:
    """
    Configures the root logger of a node.

    The level comes from LOG_LEVEL (INFO when unset or invalid). Records go to
    stderr and, when LOKI_URL is set, to Loki. Every record is stamped with
    the node name (TX_CONTEXT_NODE_NAME). HTTP client libraries are limited to
    WARNING.
    """
    settings = Settings()
    level_name = _resolve_log_level(settings)
    node_name = settings.get_node_name()
    node_filter = NodeNameFilter(node_name)

    handlers = [logging.StreamHandler(sys.stderr)]
    handlers[0].setFormatter(logging.Formatter(LOG_FORMAT))

    loki_url = os.getenv("LOKI_URL")
    loki_handler = _get_loki_handler(loki_url, node_name=node_name) if loki_url else None
    if loki_handler is not None:
        handlers.append(loki_handler)

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.setLevel(logging.getLevelName(level_name))
    for handler in handlers:
        handler.addFilter(node_filter)
        root_logger.addHandler(handler)

    for lib_name in NOISY_LIBRARIES:
        logging.getLogger(lib_name).setLevel(logging.WARNING)

    logger = logging.getLogger(__name__)
    if loki_handler is not None:
        logger.info(f"Shipping logs to Loki at {loki_url}")
    logger.info(f"Logging configured for node '{node_name}' at level {level_name}.")


def log_transaction_state(transaction_id: str, stage: str, details: Dict[str, Any]) -> None:
    """Debug-logs where a transaction is, with `details` as record attributes."""
    logging.getLogger(TRANSACTION_LOGGER_NAME).debug(
        f"[{transaction_id}] Transaction state at {stage}",
        extra={"stage": stage, "timestamp": datetime.now(UTC).isoformat(), **details},
    )


def create_error_content(
    error_type: str,
    detail: str,
    transaction_id: Optional[str],
    details: Optional[Dict[str, Any]] = None,
    include_debug_info: bool = False,
) -> Dict[str, Any]:
    """Builds the `{"error": {...}}` body returned by the web entry point and the action endpoint.

    `details` are only included, under "debug", when `include_debug_info` is set.
    """
    error: Dict[str, Any] = {
        "type": error_type,
        "detail": detail,
        "transaction_id": transaction_id,
    }
    if include_debug_info and details:
        error["debug"] = str({"timestamp": datetime.now(UTC).isoformat(), **details})
    return {"error": error}

"""Observability module for structured logging."""

from .logging import (
    LOG_TAGS,
    get_logger,
    log_delivery_failure,
    log_delivery_success,
    serialize_record,
    setup_logging,
)

__all__ = [
    # Setup
    "setup_logging",
    "get_logger",
    # Logging helpers
    "LOG_TAGS",
    "log_delivery_failure",
    "log_delivery_success",
    "serialize_record",
]

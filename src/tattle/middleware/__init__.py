"""Middleware for reporting completed requests."""

from .reporter import TransactionReporterMiddleware, install_reporter

__all__ = [
    "TransactionReporterMiddleware",
    "install_reporter",
]

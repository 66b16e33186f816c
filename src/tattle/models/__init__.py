"""Data models for transaction records."""

from .record import (
    RequestFacts,
    TransactionRecord,
    build_payload,
    build_record,
    credentials_from_request,
    normalize_credentials,
    resolve_status_code,
)

__all__ = [
    "RequestFacts",
    "TransactionRecord",
    "build_payload",
    "build_record",
    "credentials_from_request",
    "normalize_credentials",
    "resolve_status_code",
]

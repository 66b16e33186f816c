"""Delivery transports for transaction records.

Provides the ``ReportTransport`` protocol and its implementations:
- ``HttpTransport`` POSTs records to a collector URL
- ``FunctionTransport`` hands records to a caller-supplied function
"""

from .base import ReportTransport
from .function import FunctionTransport
from .http import HttpTransport

__all__ = [
    "FunctionTransport",
    "HttpTransport",
    "ReportTransport",
]

"""tattle: report completed HTTP requests to a collector.

Attach the reporter to a Starlette/FastAPI app::

    from fastapi import FastAPI
    from tattle import install_reporter

    app = FastAPI()
    reporter = install_reporter(app, {"url": "https://collector.example.com/transactions"})

Each request then produces one record, POSTed in the background::

    {"transaction": {"path": "/test", "statusCode": 200, "method": "GET"}}

Call ``await reporter.aclose()`` on shutdown to wait for pending reports.
"""

from .config import LogFormat, LogLevel, ReporterSettings, get_settings
from .config.options import (
    BasicAuth,
    FunctionDelivery,
    ReporterConfig,
    UrlDelivery,
    validate_options,
)
from .delivery import FunctionTransport, HttpTransport, ReportTransport
from .exceptions import BuildError, ConfigurationError, DeliveryError, TattleError
from .middleware import TransactionReporterMiddleware, install_reporter
from .models import RequestFacts, TransactionRecord, build_payload, build_record
from .observability import get_logger, setup_logging
from .services import BackgroundWorkTracker, CompletionTracker, TransactionReporter, WorkToken

__version__ = "0.1.0"

__all__ = [
    "BackgroundWorkTracker",
    "BasicAuth",
    "BuildError",
    "CompletionTracker",
    "ConfigurationError",
    "DeliveryError",
    "FunctionDelivery",
    "FunctionTransport",
    "HttpTransport",
    "LogFormat",
    "LogLevel",
    "ReportTransport",
    "ReporterConfig",
    "ReporterSettings",
    "RequestFacts",
    "TattleError",
    "TransactionRecord",
    "TransactionReporter",
    "TransactionReporterMiddleware",
    "UrlDelivery",
    "WorkToken",
    "build_payload",
    "build_record",
    "get_logger",
    "get_settings",
    "install_reporter",
    "setup_logging",
    "validate_options",
]

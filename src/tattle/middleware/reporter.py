"""Transaction reporting middleware.

Sees every response after the routed app has produced it and before its
body is sent, and hands it to the TransactionReporter. The response itself
is returned untouched.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

import httpx
from starlette.applications import Starlette
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response
from starlette.types import ASGIApp

from tattle.config import ReporterSettings, get_settings
from tattle.config.options import ReporterConfig, validate_options
from tattle.models.record import DEFAULT_ERROR_STATUS
from tattle.observability import get_logger
from tattle.services import BackgroundWorkTracker, CompletionTracker, TransactionReporter

logger = get_logger(__name__)


class TransactionReporterMiddleware(BaseHTTPMiddleware):
    """Report each completed request through a TransactionReporter."""

    def __init__(self, app: ASGIApp, reporter: TransactionReporter):
        super().__init__(app)
        self.reporter = reporter

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        """Report the response, then return it unchanged."""
        try:
            response = await call_next(request)
        except Exception as e:
            # Unhandled errors still get reported; the host's error handling runs as usual
            self.reporter.observe(request, DEFAULT_ERROR_STATUS, error=e)
            raise

        self.reporter.observe(request, response.status_code)
        return response


def install_reporter(
    app: Starlette,
    options: Mapping[str, Any] | ReporterConfig | None = None,
    *,
    settings: ReporterSettings | None = None,
    tracker: CompletionTracker | None = None,
    http_client: httpx.AsyncClient | None = None,
) -> TransactionReporter:
    """Validate options and attach the reporter to an app.

    Must be called before the app starts serving. Options given in code
    override options read from ``settings``; with neither, the cached
    environment settings are used.

    Raises:
        ConfigurationError: if the options are invalid; the app is left untouched.
    """
    if isinstance(options, ReporterConfig):
        config = options
    else:
        raw: dict[str, Any] = {}
        if settings is not None or options is None:
            raw.update((settings or get_settings()).to_options())
        if options is not None:
            raw.update(options)
        config = validate_options(raw)

    if tracker is None:
        tracker = getattr(app.state, "background_work", None) or BackgroundWorkTracker()
    app.state.background_work = tracker

    reporter = TransactionReporter(config, tracker=tracker, http_client=http_client)
    app.state.tattle_reporter = reporter
    app.add_middleware(TransactionReporterMiddleware, reporter=reporter)

    logger.info(
        "Transaction reporter installed",
        transport=reporter.transport.name,
        object_name=config.wrapper_key,
    )
    return reporter

"""Transaction reporter.

Decides per request whether a record is sent, shapes it, and dispatches it
on a background task. Nothing that happens after the filter can change the
response: failures are logged and swallowed.
"""

from __future__ import annotations

import asyncio
import time
from typing import TYPE_CHECKING, Any

import httpx
import structlog

from tattle.config.options import ReporterConfig
from tattle.exceptions import DeliveryError
from tattle.models import RequestFacts, build_payload
from tattle.observability import (
    LOG_TAGS,
    get_logger,
    log_delivery_failure,
    log_delivery_success,
)

from .tracker import BackgroundWorkTracker, CompletionTracker, release_when_done

if TYPE_CHECKING:
    from starlette.requests import Request

logger = get_logger(__name__)

REPORT_LABEL = "report transaction"


class TransactionReporter:
    """Builds and dispatches one transaction record per filtered-in request."""

    def __init__(
        self,
        config: ReporterConfig,
        tracker: CompletionTracker | None = None,
        http_client: httpx.AsyncClient | None = None,
    ):
        """Initialize the reporter.

        Args:
            config: Validated reporter configuration
            tracker: Host tracker told about pending reports
            http_client: Client for the url transport (created lazily if None)
        """
        self.config = config
        self.tracker = tracker if tracker is not None else BackgroundWorkTracker()
        self.transport = config.delivery.create_transport(client=http_client)
        self._tasks: set[asyncio.Task[None]] = set()
        self._closed = False

    @property
    def in_flight(self) -> int:
        """Number of reports dispatched but not yet settled."""
        return len(self._tasks)

    def should_report(self, request: Request) -> bool:
        """Run the filter; a filter that raises counts as 'do not report'."""
        try:
            return bool(self.config.filter_func(request))
        except Exception as e:
            logger.error(
                "Transaction filter failed, skipping report",
                tags=LOG_TAGS,
                error_kind="filter",
                error=f"{type(e).__name__}: {e}",
                http_method=request.method,
                http_path=request.url.path,
            )
            return False

    def observe(
        self,
        request: Request,
        status_code: int,
        error: BaseException | None = None,
    ) -> asyncio.Task[None] | None:
        """Report a finished request without waiting for delivery.

        Returns:
            The delivery task, or None when nothing was dispatched.
        """
        if self._closed:
            logger.debug("Reporter closed, dropping record", http_path=request.url.path)
            return None

        if not self.should_report(request):
            return None

        log = logger.bind(http_method=request.method, http_path=request.url.path)

        try:
            facts = RequestFacts.from_request(
                request,
                status_code,
                error=error,
                credentials=self.config.credentials_getter(request),
            )
            payload = build_payload(facts, self.config)
        except Exception as e:
            log_delivery_failure(
                log,
                "build",
                {"method": request.method, "path": request.url.path, "statusCode": status_code},
                f"{type(e).__name__}: {e}",
            )
            return None

        try:
            token = self.tracker.begin(REPORT_LABEL)
        except Exception as e:
            log_delivery_failure(log, "acquire", payload, f"{type(e).__name__}: {e}")
            return None

        coro = self._send(payload, log)
        try:
            task = asyncio.get_running_loop().create_task(coro, name="tattle-report")
        except RuntimeError as e:
            coro.close()
            self.tracker.end(token)
            log_delivery_failure(log, "dispatch", payload, f"{type(e).__name__}: {e}")
            return None

        release_when_done(self.tracker, token, task)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def _send(
        self,
        payload: dict[str, Any],
        log: structlog.stdlib.BoundLogger,
    ) -> None:
        started = time.perf_counter()
        try:
            await self.transport.deliver(payload)
        except DeliveryError as e:
            log_delivery_failure(log, e.kind, payload, e.detail)
        except Exception as e:  # noqa: BLE001
            log_delivery_failure(log, "unexpected", payload, f"{type(e).__name__}: {e}")
        else:
            log_delivery_success(
                log,
                self.transport.name,
                (time.perf_counter() - started) * 1000,
            )

    async def drain(self, timeout: float | None = None) -> bool:
        """Wait for every dispatched report to settle.

        Returns:
            True if all reports settled, False if the timeout expired first.
        """
        if not self._tasks:
            return True
        _, pending = await asyncio.wait(set(self._tasks), timeout=timeout)
        if pending:
            logger.warning("Transaction reports still pending", pending=len(pending))
            return False
        return True

    async def aclose(self, timeout: float | None = None) -> None:
        """Stop accepting reports, wait for pending ones, close the transport.

        Safe to call multiple times.
        """
        if self._closed:
            return
        self._closed = True
        await self.drain(timeout=timeout)
        await self.transport.aclose()
        logger.info("Transaction reporter closed")

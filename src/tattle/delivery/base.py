"""Transport protocol shared by every delivery mode."""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class ReportTransport(Protocol):
    """Sends one transaction record to its destination.

    ``deliver`` reports every failure by raising ``DeliveryError`` from the
    awaited coroutine; calling it never raises on its own.
    """

    name: str

    async def deliver(self, payload: dict[str, Any]) -> None:
        """Deliver a single record."""
        ...

    async def aclose(self) -> None:
        """Release resources held by this transport."""
        ...

"""Caller-supplied function transport."""

from __future__ import annotations

import inspect
from collections.abc import Callable
from typing import Any

from tattle.exceptions import DeliveryError


class FunctionTransport:
    """Deliver records by calling a handler.

    The handler may be a plain function or a coroutine function. Its return
    value is awaited when awaitable and otherwise ignored.
    """

    name = "function"

    def __init__(self, handler: Callable[[dict[str, Any]], Any]):
        self.handler = handler

    async def deliver(self, payload: dict[str, Any]) -> None:
        try:
            result = self.handler(payload)
            if inspect.isawaitable(result):
                await result
        except Exception as e:
            raise DeliveryError("handler", f"{type(e).__name__}: {e}") from e

    async def aclose(self) -> None:
        return None

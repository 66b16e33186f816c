"""Error hierarchy for tattle.

All tattle exceptions inherit from TattleError so callers can catch the
base class for broad error handling.
"""

from __future__ import annotations


class TattleError(Exception):
    """Base exception for all tattle errors."""


class ConfigurationError(TattleError):
    """Invalid or contradictory reporter options.

    Raised at activation; the reporter refuses to install.
    """


class DeliveryError(TattleError):
    """A transaction record could not be delivered.

    Non-fatal: the reporter logs it and never lets it reach the response.
    """

    def __init__(self, kind: str, detail: str):
        super().__init__(f"{kind}: {detail}")
        self.kind = kind
        self.detail = detail


class BuildError(TattleError):
    """Request facts could not be shaped into a record."""


__all__ = [
    "BuildError",
    "ConfigurationError",
    "DeliveryError",
    "TattleError",
]

"""Transaction record models.

A record describes one completed HTTP exchange. It is built fresh for every
request from the facts the middleware collected, then shaped into the
payload handed to the delivery transport.
"""

from __future__ import annotations

import dataclasses
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel, ConfigDict, Field

from tattle.exceptions import BuildError

if TYPE_CHECKING:
    from starlette.requests import Request

    from tattle.config.options import ReporterConfig

DEFAULT_ERROR_STATUS = 500


class RequestFacts(BaseModel):
    """What the reporter knows about a request once its response is final."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    method: str
    path: str
    status_code: int
    error: BaseException | None = None
    credentials: Any = None

    @classmethod
    def from_request(
        cls,
        request: Request,
        status_code: int,
        error: BaseException | None = None,
        credentials: Any = None,
    ) -> RequestFacts:
        """Collect facts from a Starlette request.

        ``request.url.path`` never includes the query string.
        """
        return cls(
            method=request.method,
            path=request.url.path,
            status_code=status_code,
            error=error,
            credentials=credentials,
        )


class TransactionRecord(BaseModel):
    """The base record, before enrichment and wrapping."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    path: str
    status_code: int = Field(alias="statusCode")
    method: str
    credentials: Any = None

    def to_wire(self) -> dict[str, Any]:
        """Return the JSON-ready record; ``credentials`` only when present."""
        data: dict[str, Any] = {
            "path": self.path,
            "statusCode": self.status_code,
            "method": self.method,
        }
        if self.credentials is not None:
            data["credentials"] = self.credentials
        return data


def resolve_status_code(facts: RequestFacts) -> int:
    """Status code to report for the request.

    An error that declares its own integer ``status_code`` (Starlette's and
    FastAPI's ``HTTPException`` included) is reported with that status, even
    when it escaped to ``ServerErrorMiddleware`` and the client got a 500.
    """
    declared = getattr(facts.error, "status_code", None)
    if isinstance(declared, int) and not isinstance(declared, bool):
        return declared
    return facts.status_code


def normalize_credentials(credentials: Any) -> Any:
    """Turn an identity object into plain data for the record."""
    if credentials is None:
        return None
    if isinstance(credentials, BaseModel):
        return credentials.model_dump(mode="json")
    if isinstance(credentials, Mapping):
        return dict(credentials)
    if dataclasses.is_dataclass(credentials) and not isinstance(credentials, type):
        return dataclasses.asdict(credentials)
    if hasattr(credentials, "__dict__"):
        return {k: v for k, v in vars(credentials).items() if not k.startswith("_")}
    return credentials


def credentials_from_request(request: Request) -> Any:
    """Identity resolved by the host's auth layer, if any.

    Looks at ``request.state.user`` first, then at an authenticated
    ``scope["user"]`` set by Starlette's AuthenticationMiddleware.
    """
    user = getattr(request.state, "user", None)
    if user is not None:
        return user
    scope_user = request.scope.get("user")
    if scope_user is not None and getattr(scope_user, "is_authenticated", False):
        return scope_user
    return None


def build_record(facts: RequestFacts) -> TransactionRecord:
    """Build the base record from request facts."""
    if not facts.path or not facts.method:
        raise BuildError(f"incomplete request facts: method={facts.method!r} path={facts.path!r}")
    return TransactionRecord(
        path=facts.path,
        status_code=resolve_status_code(facts),
        method=facts.method.upper(),
        credentials=normalize_credentials(facts.credentials),
    )


def build_payload(facts: RequestFacts, config: ReporterConfig) -> dict[str, Any]:
    """Build the payload handed to the transport.

    Enrichment from ``config.other_data`` never overrides record keys. The
    record is nested under ``config.wrapper_key`` when one is set.
    """
    record = build_record(facts).to_wire()
    for key, value in config.other_data.items():
        record.setdefault(key, value)

    if config.wrapper_key:
        return {config.wrapper_key: record}
    return record

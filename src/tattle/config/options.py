"""Reporter options validation.

Options are validated once when the reporter is installed and frozen
afterwards. The raw, flat shape (``url``/``auth``/``timeout`` or ``func``)
is folded into a tagged ``delivery`` value so the rest of the package never
has to look at which keys were present.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from typing import Annotated, Any, Literal

import httpx
from pydantic import (
    AfterValidator,
    BaseModel,
    ConfigDict,
    Field,
    HttpUrl,
    PositiveFloat,
    StringConstraints,
    TypeAdapter,
    ValidationError,
    model_validator,
)

from tattle.delivery import FunctionTransport, HttpTransport
from tattle.exceptions import ConfigurationError
from tattle.models.record import credentials_from_request

DEFAULT_OBJECT_NAME = "transaction"
DEFAULT_TIMEOUT_SECONDS = 10.0

ObjectName = Annotated[str, StringConstraints(min_length=1)]

_http_url = TypeAdapter(HttpUrl)


def check_endpoint(value: str) -> str:
    """Require an http(s) URL but keep the text as configured."""
    try:
        _http_url.validate_python(value)
    except ValidationError as e:
        raise ValueError(e.errors()[0]["msg"]) from e
    return value


Endpoint = Annotated[str, AfterValidator(check_endpoint)]


def accept_all(request: Any) -> bool:
    """Default filter: report every request."""
    return True


class BasicAuth(BaseModel):
    """Credentials sent to the collector with HTTP Basic auth."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    username: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)


class UrlDelivery(BaseModel):
    """POST each record as JSON to a collector endpoint."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    mode: Literal["url"] = "url"
    endpoint: Endpoint
    auth: BasicAuth | None = None
    timeout_seconds: PositiveFloat | None = DEFAULT_TIMEOUT_SECONDS

    def create_transport(self, client: httpx.AsyncClient | None = None) -> HttpTransport:
        auth = (self.auth.username, self.auth.password) if self.auth else None
        return HttpTransport(
            self.endpoint,
            auth=auth,
            timeout=self.timeout_seconds,
            client=client,
        )


class FunctionDelivery(BaseModel):
    """Hand each record to a caller-supplied function."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    mode: Literal["function"] = "function"
    handler: Callable[[dict[str, Any]], Any]

    def create_transport(self, client: httpx.AsyncClient | None = None) -> FunctionTransport:
        return FunctionTransport(self.handler)


DeliveryMode = Annotated[UrlDelivery | FunctionDelivery, Field(discriminator="mode")]


class ReporterConfig(BaseModel):
    """Validated, immutable reporter configuration."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    delivery: DeliveryMode
    filter_func: Callable[[Any], bool] = Field(default=accept_all)
    credentials_getter: Callable[[Any], Any] = Field(default=credentials_from_request)
    object_name: ObjectName | Literal[False] | None = DEFAULT_OBJECT_NAME
    other_data: dict[str, Any] = Field(default_factory=dict)

    @model_validator(mode="before")
    @classmethod
    def fold_delivery_options(cls, data: Any) -> Any:
        """Turn the flat ``url``/``func`` options into a ``delivery`` value."""
        if not isinstance(data, Mapping) or "delivery" in data:
            return data

        data = dict(data)
        url = data.pop("url", None)
        func = data.pop("func", None)
        auth = data.pop("auth", None)
        timeout = data.pop("timeout", DEFAULT_TIMEOUT_SECONDS)

        if url is None and func is None:
            raise ValueError("one of 'url' or 'func' is required")
        if url is not None and func is not None:
            raise ValueError("'url' and 'func' are mutually exclusive")

        if url is not None:
            data["delivery"] = {
                "mode": "url",
                "endpoint": url,
                "auth": auth,
                "timeout_seconds": timeout,
            }
        else:
            if auth is not None:
                raise ValueError("'auth' is only valid together with 'url'")
            data["delivery"] = {"mode": "function", "handler": func}
        return data

    @property
    def wrapper_key(self) -> str | None:
        """Key the record is nested under, or None for a flat payload."""
        return self.object_name or None


def validate_options(options: Mapping[str, Any] | ReporterConfig) -> ReporterConfig:
    """Validate raw reporter options.

    Raises:
        ConfigurationError: if the options are invalid or contradictory.
    """
    if isinstance(options, ReporterConfig):
        return options
    if not isinstance(options, Mapping):
        raise ConfigurationError(
            f"tattle options must be a mapping, got {type(options).__name__}"
        )
    try:
        return ReporterConfig.model_validate(dict(options))
    except ValidationError as e:
        raise ConfigurationError(f"Invalid tattle options: {e}") from e

"""Request-scoped context.

Provides:
- ``RequestContext``: the ordered value bag and ``Lifetime`` carried by
  every ``Request``. The status hint and content-type override live here.
- ``request_var``: the current ``Request`` for this task, set by the
  ASGI responder and reset after each request.

Accessing ``request_var`` outside a request raises ``LookupError``.
"""

from __future__ import annotations

from collections.abc import Iterator
from contextvars import ContextVar
from typing import TYPE_CHECKING, Any

from parley.lifetime import Lifetime

if TYPE_CHECKING:
    from parley.http.request import Request


class ContextKey:
    """An identity-compared key for ``RequestContext`` values."""

    __slots__ = ("name",)

    def __init__(self, name: str) -> None:
        self.name = name

    def __repr__(self) -> str:
        return f"<ContextKey {self.name}>"


STATUS_KEY = ContextKey("Status")
"""Holds the response status hint read by the encoder that writes the header."""

CONTENT_TYPE_KEY = ContextKey("ContentType")
"""Holds a forced content type that overrides ``Accept``/``Content-Type``."""


class RequestContext:
    """Ordered values plus the lifetime of one request.

    Values keep insertion order. The context is owned by a single
    request and never shared across requests.
    """

    __slots__ = ("_values", "lifetime")

    def __init__(
        self,
        values: dict[Any, Any] | None = None,
        lifetime: Lifetime | None = None,
    ) -> None:
        self._values: dict[Any, Any] = dict(values or {})
        self.lifetime = lifetime if lifetime is not None else Lifetime()

    def get(self, key: Any, default: Any = None) -> Any:
        return self._values.get(key, default)

    def set(self, key: Any, value: Any) -> None:
        self._values[key] = value

    def __contains__(self, key: object) -> bool:
        return key in self._values

    def __iter__(self) -> Iterator[Any]:
        return iter(self._values)

    def __repr__(self) -> str:
        return f"<RequestContext {self._values!r} {self.lifetime!r}>"


# -- Status hint --


def set_status(request: Request, status: int) -> None:
    """Record the status code the eventual response should use.

    May be called at any point before the response is written; the
    encoder that writes the header reads it once.
    """
    request.context.set(STATUS_KEY, status)


def status_hint(request: Request) -> int | None:
    """The recorded status hint, or None if unset."""
    status = request.context.get(STATUS_KEY)
    return status if isinstance(status, int) else None


# -- Current request --

request_var: ContextVar[Request] = ContextVar("parley_request")
"""The current request. Set by the ASGI responder before dispatch."""


def get_request() -> Request:
    """Return the current request.

    Raises ``LookupError`` if called outside a request context.
    """
    return request_var.get()

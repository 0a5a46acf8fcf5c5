"""Content-type middleware.

A middleware is any callable matching::

    async def my_mw(request: Request, next: Next) -> Any: ...

It returns whatever the handler returns (the value to negotiate), or
raises ``HTTPError`` to short-circuit with an error response.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from typing import Any, Protocol

from parley.content_type import NONE, ContentType, ContentTypeSet, request_content_type
from parley.context import CONTENT_TYPE_KEY
from parley.errors import NotAcceptable
from parley.http.request import Request

# The next handler in the middleware chain
type Next = Callable[[Request], Awaitable[Any]]


class Middleware(Protocol):
    """Protocol for parley middleware. Functions and callable objects both fit."""

    async def __call__(self, request: Request, next: Next) -> Any: ...


class SetContentType:
    """Force the content type used for both the response and the request body.

    The forced type replaces whatever ``Accept`` and ``Content-Type`` say::

        Responder(handler, middleware=[SetContentType("application/xml")])
    """

    __slots__ = ("content_type",)

    def __init__(self, content_type: str) -> None:
        self.content_type = ContentType(content_type)

    async def __call__(self, request: Request, next: Next) -> Any:
        request.context.set(CONTENT_TYPE_KEY, self.content_type)
        return await next(request)


class AllowedContentTypes:
    """Reject request bodies whose content type is not in the allowed set.

    Requests without a body (no ``Content-Type`` and no ``Content-Length``)
    pass through. Rejections raise ``NotAcceptable`` (406) naming the
    accepted types.
    """

    __slots__ = ("allowed",)

    def __init__(self, *content_types: str) -> None:
        self.allowed = ContentTypeSet.from_types(*content_types)

    async def __call__(self, request: Request, next: Next) -> Any:
        has_body = request.content_type is not None or request.headers.get("content-length") not in (
            None,
            "0",
        )
        if has_body:
            content_type = request_content_type(request, NONE)
            if not self.allowed.has(content_type):
                msg = f"invalid content type: accepted types are: {self.allowed}"
                raise NotAcceptable(msg)
        return await next(request)

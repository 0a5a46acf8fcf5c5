"""The request as seen by handlers, middleware and codecs.

Metadata is frozen when the request is built from the ASGI scope. The
body is pulled from ``receive`` on first use and kept. Each request owns
a ``RequestContext`` holding the status hint, the content-type override
and the ``Lifetime`` the stream adapter races against.
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from dataclasses import dataclass, field
from typing import Any

from parley._internal.asgi import Receive, Scope
from parley.context import RequestContext
from parley.errors import DecodeError
from parley.http.headers import Headers
from parley.lifetime import Lifetime


async def _no_body() -> dict[str, Any]:
    return {"type": "http.request", "body": b"", "more_body": False}


@dataclass(frozen=True, slots=True)
class Request:
    """An HTTP request with read-once, cached body access."""

    method: str
    path: str
    headers: Headers
    http_version: str = "1.1"
    query_string: bytes = b""
    context: RequestContext = field(default_factory=RequestContext)

    # ASGI receive; consumed by stream() and body()
    _receive: Receive = _no_body

    # Holds the joined body once read
    _body: list[bytes] = field(default_factory=list, repr=False, compare=False)

    @property
    def content_type(self) -> str | None:
        """The raw ``Content-Type`` header, parameters included."""
        return self.headers.get("content-type")

    @property
    def accept(self) -> str | None:
        """The raw ``Accept`` header."""
        return self.headers.get("accept")

    @property
    def lifetime(self) -> Lifetime:
        return self.context.lifetime

    @property
    def protocol_major(self) -> int:
        """1 for HTTP/1.0 and 1.1, 2 for HTTP/2, and so on."""
        major = self.http_version.split(".", 1)[0]
        return int(major) if major.isdigit() else 1

    @property
    def keep_alive_allowed(self) -> bool:
        """Whether a ``Connection`` header may be sent.

        HTTP/2 and later forbid connection-specific header fields (RFC 7540).
        """
        return self.protocol_major == 1

    async def body(self, *, max_size: int | None = None) -> bytes:
        """The complete body. Read from the transport once, then cached.

        With *max_size*, reading stops with ``DecodeError`` as soon as the
        body grows past that many bytes.
        """
        if not self._body:
            chunks: list[bytes] = []
            size = 0
            async for chunk in self.stream():
                size += len(chunk)
                if max_size is not None and size > max_size:
                    msg = f"Request body exceeds {max_size} bytes"
                    raise DecodeError(msg)
                chunks.append(chunk)
            self._body.append(b"".join(chunks))
        elif max_size is not None and len(self._body[0]) > max_size:
            msg = f"Request body exceeds {max_size} bytes"
            raise DecodeError(msg)
        return self._body[0]

    async def stream(self) -> AsyncIterator[bytes]:
        """Yield body chunks as they arrive.

        A disconnect ends the stream early and cancels the lifetime.
        """
        more = True
        while more:
            message = await self._receive()
            if message["type"] == "http.disconnect":
                self.lifetime.cancel("client disconnected")
                return
            if chunk := message.get("body", b""):
                yield chunk
            more = message.get("more_body", False)

    @classmethod
    def from_asgi(cls, scope: Scope, receive: Receive, *, lifetime: Lifetime | None = None) -> Request:
        """Build a request from an ASGI ``http`` scope."""
        return cls(
            method=scope["method"],
            path=scope["path"],
            headers=Headers(tuple(scope.get("headers", ()))),
            http_version=scope.get("http_version", "1.1"),
            query_string=scope.get("query_string", b""),
            context=RequestContext(lifetime=lifetime),
            _receive=receive,
        )

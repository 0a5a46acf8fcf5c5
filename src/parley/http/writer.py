"""Response sinks — where encoders write status, headers, and bytes.

``Sink`` is the capability every encoder needs. ``Flusher`` is the
optional capability the event-stream encoder uses to push each frame
out immediately. ``ResponseWriter`` implements both over ASGI ``send()``.
"""

import logging
from typing import Protocol, runtime_checkable

from parley._internal.asgi import Send
from parley.http.headers import MutableHeaders

logger = logging.getLogger("parley.server")


@runtime_checkable
class Sink(Protocol):
    """The response side of one request.

    ``write_status`` takes effect once; later calls are ignored.
    Headers set after the status is written are ignored.
    """

    @property
    def headers(self) -> MutableHeaders: ...

    def set_header(self, name: str, value: str) -> None: ...
    def write_status(self, status: int) -> None: ...
    async def write(self, data: bytes) -> None: ...


@runtime_checkable
class Flusher(Protocol):
    """A sink that can push buffered bytes to the client right away."""

    async def flush(self) -> None: ...


def _body_allowed(status: int) -> bool:
    """Whether an HTTP status code permits a response body."""
    # RFC: 1xx, 204, and 304 responses do not include a message body.
    return not (100 <= status < 200 or status in {204, 304})


class ResponseWriter:
    """A ``Sink`` + ``Flusher`` that translates writes into ASGI messages.

    Bytes are buffered until ``flush()`` or ``close()``. A response that
    is never flushed goes out as one body with a ``content-length``;
    a flushed response is sent in chunks.
    """

    __slots__ = ("_buffer", "_closed", "_headers", "_send", "_started", "status")

    def __init__(self, send: Send) -> None:
        self._send = send
        self._headers = MutableHeaders()
        self._buffer = bytearray()
        self._started = False
        self._closed = False
        self.status: int | None = None

    @property
    def headers(self) -> MutableHeaders:
        return self._headers

    @property
    def written(self) -> bool:
        """True once a status has been written."""
        return self.status is not None

    def set_header(self, name: str, value: str) -> None:
        if self.status is not None:
            logger.debug("Header %s set after status %d was written; ignored", name, self.status)
            return
        self._headers.set(name, value)

    def write_status(self, status: int) -> None:
        if self.status is not None:
            logger.debug("Superfluous write_status(%d); status %d already written", status, self.status)
            return
        self.status = status

    async def write(self, data: bytes) -> None:
        if self._closed:
            msg = "Response already closed"
            raise RuntimeError(msg)
        if self.status is None:
            self.write_status(200)
        self._buffer.extend(data)

    async def flush(self) -> None:
        if self._closed:
            return
        if self.status is None:
            self.write_status(200)
        await self._start(content_length=None)
        if self._buffer:
            body = bytes(self._buffer)
            self._buffer.clear()
            await self._send({"type": "http.response.body", "body": body, "more_body": True})

    async def close(self) -> None:
        """Finish the response. Idempotent."""
        if self._closed:
            return
        if self.status is None:
            self.write_status(200)
        assert self.status is not None
        body = bytes(self._buffer) if _body_allowed(self.status) else b""
        self._buffer.clear()
        await self._start(content_length=None if self._started else len(body))
        self._closed = True
        await self._send({"type": "http.response.body", "body": body, "more_body": False})

    async def _start(self, *, content_length: int | None) -> None:
        if self._started:
            return
        self._started = True
        raw_headers = self._headers.raw()
        if content_length is not None:
            raw_headers.append((b"content-length", str(content_length).encode("latin-1")))
        await self._send(
            {
                "type": "http.response.start",
                "status": self.status,
                "headers": raw_headers,
            }
        )

"""ASGI responder — runs a handler and negotiates its return value.

The only component that touches raw ASGI directly. Converts the scope to
a ``Request``, runs middleware and the handler, and writes the returned
value through the ``Negotiator`` onto a ``ResponseWriter``.

Usage::

    async def list_articles(request):
        return [{"id": 1, "title": "Hi"}]

    app = Responder(list_articles, config=RenderConfig(request_timeout=30.0))
"""

import logging
import traceback
from collections.abc import Callable, Sequence
from http import HTTPStatus
from typing import Any

import anyio

from parley._internal.asgi import Receive, Scope, Send
from parley._internal.invoke import invoke
from parley.codecs.encoders import no_content, write_error
from parley.config import RenderConfig
from parley.context import request_var
from parley.errors import HTTPError
from parley.http.request import Request
from parley.http.writer import ResponseWriter
from parley.lifetime import Lifetime
from parley.middleware import Next
from parley.negotiation import Negotiator
from parley.registry import Registry
from parley.render import is_stream

logger = logging.getLogger("parley.server")


class Responder:
    """An ASGI application wrapping one handler.

    The handler (sync or async) receives the ``Request`` and returns any
    value the negotiator can write. ``None`` becomes 204 No Content.
    ``HTTPError`` becomes a plain-text error response; any other
    exception becomes a 500 and is logged.
    """

    __slots__ = ("config", "handler", "middleware", "negotiator")

    def __init__(
        self,
        handler: Callable[..., Any],
        *,
        middleware: Sequence[Callable[..., Any]] = (),
        config: RenderConfig | None = None,
        registry: Registry | None = None,
    ) -> None:
        self.handler = handler
        self.middleware = tuple(middleware)
        self.config = config or RenderConfig()
        self.negotiator = Negotiator(registry, config)

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] == "lifespan":
            await self._lifespan(receive, send)
            return
        if scope["type"] != "http":
            return

        lifetime = Lifetime.with_timeout(self.config.request_timeout)
        request = Request.from_asgi(dict(scope), receive, lifetime=lifetime)
        writer = ResponseWriter(send)
        token = request_var.set(request)
        try:
            value = await self._dispatch(request)
            await self._respond(writer, request, value, receive)
        except HTTPError as exc:
            logger.debug("%d %s %s: %s", exc.status, request.method, request.path, exc.detail)
            if not writer.written:
                for name, header_value in exc.headers:
                    writer.set_header(name, header_value)
                await write_error(writer, exc.status, exc.detail or HTTPStatus(exc.status).phrase)
        except Exception:
            logger.exception("500 %s %s", request.method, request.path)
            if not writer.written:
                detail = traceback.format_exc() if self.config.debug else "Internal Server Error"
                await write_error(writer, 500, detail)
        finally:
            request_var.reset(token)
            await writer.close()

    async def _dispatch(self, request: Request) -> Any:
        async def handle(req: Request) -> Any:
            return await invoke(self.handler, req)

        chain: Next = handle
        for mw in reversed(self.middleware):
            chain = _link(mw, chain)
        return await chain(request)

    async def _respond(self, writer: ResponseWriter, request: Request, value: Any, receive: Receive) -> None:
        if value is None:
            await no_content(writer, request)
            return
        if not is_stream(value):
            await self.negotiator.respond(writer, request, value)
            return
        # Streams can run for a long time: end the lifetime if the client leaves.
        async with anyio.create_task_group() as tg:
            tg.start_soon(_watch_disconnect, receive, request.lifetime)
            await self.negotiator.respond(writer, request, value)
            tg.cancel_scope.cancel()

    async def _lifespan(self, receive: Receive, send: Send) -> None:
        while True:
            message = await receive()
            if message["type"] == "lifespan.startup":
                await send({"type": "lifespan.startup.complete"})
            elif message["type"] == "lifespan.shutdown":
                await send({"type": "lifespan.shutdown.complete"})
                return


def _link(mw: Callable[..., Any], nxt: Next) -> Next:
    async def call(request: Request) -> Any:
        return await mw(request, nxt)

    return call


async def _watch_disconnect(receive: Receive, lifetime: Lifetime) -> None:
    while not lifetime.cancelled:
        message = await receive()
        if message.get("type") == "http.disconnect":
            lifetime.cancel("client disconnected")
            return

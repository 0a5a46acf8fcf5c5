"""Content negotiation — writes a value in the client's preferred format.

The Negotiator matches the request's accepted content types against the
codec registry, in the client's preference order, and writes the value
with the first encoder that takes it. Fully predictable:

1. A live stream, when the client accepts ``text/event-stream``, goes
   straight to the event-stream encoder.
2. A live stream the client won't take as events is drained into a list.
3. A self-rendering value renders itself (and nested renderers).
4. Accepted types are tried in order. ``Declined`` moves to the next
   type; ``Failed`` ends the response with a 500.
5. If nothing matched, the default encoder (JSON) is used.

Exactly one response is written per call. The outcome is also returned
so wrapping middleware can log it.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from parley import content_type as ct
from parley.codecs.encoders import write_error
from parley.codecs.result import OK, Declined, EncodeResult, Failed, Ok
from parley.config import RenderConfig
from parley.content_type import accepted_content_types, request_content_type
from parley.errors import UnsupportedContentType
from parley.registry import Registry, default_registry
from parley.render import ValueKind, classify, render_value
from parley.streaming import buffer_stream

if TYPE_CHECKING:
    from parley.http.request import Request
    from parley.http.writer import Sink

logger = logging.getLogger("parley.server")


class Negotiator:
    """Negotiates responses and decodes requests against one registry.

    Usage::

        negotiator = Negotiator(Registry.with_defaults())
        result = await negotiator.respond(writer, request, {"ok": True})
        item = await negotiator.decode(request, into=Item)
    """

    __slots__ = ("config", "registry")

    def __init__(
        self,
        registry: Registry | None = None,
        config: RenderConfig | None = None,
    ) -> None:
        self.config = config or RenderConfig()
        if registry is None:
            registry = default_registry() if config is None else Registry.with_defaults(config)
        self.registry = registry

    # -- Responses --

    async def respond(self, writer: Sink, request: Request, value: Any) -> EncodeResult:
        """Write *value* to *writer* in the negotiated format.

        Returns ``Ok`` or ``Failed``; a failure has already been written
        to the client as an error response.
        """
        accepted = accepted_content_types(request)
        classified = classify(value)

        match classified.kind:
            case ValueKind.STREAM:
                if accepted.has(ct.EVENT_STREAM):
                    encoder = self.registry.encoder_for(ct.EVENT_STREAM)
                    if encoder is not None:
                        # Errors were already reported inline as event frames.
                        return await encoder(writer, request, value)
                try:
                    buffered = await buffer_stream(writer, request, value)
                except Exception as exc:
                    return await self._finish(writer, Failed(f"stream producer: {exc}", exc))
                if buffered is None:
                    return Failed(f"stream buffering: {request.lifetime.reason or 'cancelled'}")
                value = buffered
            case ValueKind.SELF_RENDERING:
                try:
                    await render_value(writer, request, value)
                except Exception as exc:
                    logger.exception("Render failed for %s", type(value).__name__)
                    return await self._finish(writer, Failed(f"render: {exc}", exc))
            case ValueKind.SCALAR:
                pass

        while accepted.next():
            content_type = accepted.current()
            if content_type == ct.EVENT_STREAM:
                continue
            encoder = self.registry.encoder_for(content_type)
            if encoder is None:
                continue
            result = await encoder(writer, request, value)
            if isinstance(result, Declined):
                logger.debug("Encoder for %s declined: %s", content_type, result.reason)
                continue
            return await self._finish(writer, result)

        return await self._respond_default(writer, request, value)

    async def _respond_default(self, writer: Sink, request: Request, value: Any) -> EncodeResult:
        default_type = self.config.default_content_type
        encoder = self.registry.encoder_for(default_type)
        if encoder is None:
            result: EncodeResult = Failed(f"no encoder registered for default type {default_type!r}")
        else:
            result = await encoder(writer, request, value)
            if isinstance(result, Declined):
                result = Failed(f"default encoder declined {type(value).__name__}")
        return await self._finish(writer, result)

    async def _finish(self, writer: Sink, result: EncodeResult) -> EncodeResult:
        match result:
            case Ok():
                return result
            case Failed(detail=detail, error=error):
                if error is not None:
                    logger.error("Encode failed: %s", detail, exc_info=error)
                else:
                    logger.error("Encode failed: %s", detail)
                await write_error(writer, 500, detail)
                return result
        return OK

    # -- Requests --

    async def decode(self, request: Request, into: type | None = None) -> Any:
        """Read the request body and decode it by its content type.

        Raises:
            UnsupportedContentType: If no decoder is registered for the
                request content type.
            DecodeError: If the body is malformed for that content type or
                longer than ``max_content_length``.
        """
        content_type = request_content_type(request, ct.NONE)
        decoder = self.registry.decoder_for(content_type) if content_type else None
        if decoder is None:
            raise UnsupportedContentType(content_type)
        body = await request.body(max_size=self.config.max_content_length)
        return decoder(body, request, into)


# -- Module-level convenience on the default registry --


async def respond(writer: Sink, request: Request, value: Any) -> EncodeResult:
    """Negotiate *value* onto *writer* with the process-wide registry."""
    return await Negotiator(default_registry()).respond(writer, request, value)


async def decode(request: Request, into: type | None = None) -> Any:
    """Decode the request body with the process-wide registry."""
    return await Negotiator(default_registry()).decode(request, into)

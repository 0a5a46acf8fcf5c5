"""Stream adapter — live producers to buffered lists or event streams.

A producer is any async iterator (an async generator, an anyio memory
object receive stream...). It is consumed once, in order, by one task.
Every wait races "next item produced" against "request lifetime ended"
with ``asyncio.wait(..., return_when=FIRST_COMPLETED)``; whichever wins
decides the step. Once the lifetime ends the producer is abandoned, not
drained.

Two modes:

- **Buffering** (``buffer_stream``): collect every item into a list for a
  non-streaming encoder. On cancellation write a 504 and give up.
- **Streaming** (``stream_events``): write ``text/event-stream`` headers,
  then one ``event: data`` frame per item, flushed immediately. Ends with
  ``event: EOF`` when the producer closes, or a timeout ``event: error``
  frame when the lifetime ends.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from collections.abc import AsyncIterator
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

import anyio
from anyio.streams.memory import MemoryObjectReceiveStream, MemoryObjectSendStream

from parley.codecs.encoders import marshal_json, write_error
from parley.codecs.result import OK, EncodeResult, Failed
from parley.errors import GatewayTimeout
from parley.http.writer import Flusher
from parley.lifetime import Lifetime
from parley.render import is_renderer, is_stream, render_value
from parley.sse import EOF_EVENT, SSEEvent, data_event, error_event

if TYPE_CHECKING:
    from parley.http.request import Request
    from parley.http.writer import Sink

logger = logging.getLogger("parley.streaming")

TIMEOUT_MESSAGE = "Server Timeout"


# -- Multiplexed wait --


@dataclass(frozen=True, slots=True)
class Item[T]:
    """The producer yielded a value."""

    value: T


@dataclass(frozen=True, slots=True)
class Closed:
    """The producer is exhausted."""


@dataclass(frozen=True, slots=True)
class Cancelled:
    """The lifetime ended first."""

    reason: str | None = None


async def next_or_cancel[T](
    iterator: AsyncIterator[T],
    lifetime: Lifetime,
) -> Item[T] | Closed | Cancelled:
    """Wait for the next item or the end of *lifetime*, whichever comes first.

    If both are ready at once either outcome may be returned. Once the
    lifetime has ended no further item is requested from the producer.
    Exceptions raised by the producer propagate.
    """
    if lifetime.cancelled:
        return Cancelled(lifetime.reason)

    async def _next() -> T:
        return await iterator.__anext__()

    next_task: asyncio.Task[T] = asyncio.create_task(_next())
    done_task: asyncio.Task[None] = asyncio.create_task(lifetime.wait())
    try:
        done, _ = await asyncio.wait({next_task, done_task}, return_when=asyncio.FIRST_COMPLETED)
    except BaseException:
        # Caller cancelled while waiting: tear both down.
        for task in (next_task, done_task):
            task.cancel()
        raise

    if next_task in done:
        done_task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await done_task
        try:
            return Item(next_task.result())
        except StopAsyncIteration:
            return Closed()

    next_task.cancel()
    with contextlib.suppress(asyncio.CancelledError, StopAsyncIteration):
        await next_task
    return Cancelled(lifetime.reason)


async def _rendered(writer: Sink, request: Request, value: Any) -> Any:
    """Run a self-rendering item; its error (if any) replaces it."""
    if not is_renderer(value):
        return value
    try:
        await render_value(writer, request, value)
    except Exception as exc:
        logger.debug("Stream item %r failed to render: %s", value, exc)
        return exc
    return value


async def _flush(writer: Sink) -> None:
    if isinstance(writer, Flusher):
        await writer.flush()


# -- Buffering mode --


async def buffer_stream(writer: Sink, request: Request, stream: AsyncIterator[Any]) -> list[Any] | None:
    """Drain *stream* into a list, in order.

    Returns None after writing a 504 "Server Timeout" response if the
    request lifetime ends first.
    """
    items: list[Any] = []
    while True:
        match await next_or_cancel(stream, request.lifetime):
            case Cancelled(reason=reason):
                logger.debug("Buffering cancelled after %d items (%s)", len(items), reason)
                timeout = GatewayTimeout(TIMEOUT_MESSAGE)
                await write_error(writer, timeout.status, timeout.detail)
                return None
            case Closed():
                return items
            case Item(value=value):
                items.append(await _rendered(writer, request, value))


# -- Streaming mode --


def _error_payload(message: str) -> str:
    return marshal_json({"error": message})


async def stream_events(writer: Sink, request: Request, stream: AsyncIterator[Any]) -> EncodeResult:
    """Write *stream* as Server-Sent Events, one flushed frame per item."""
    writer.set_header("Content-Type", "text/event-stream; charset=utf-8")
    writer.set_header("Cache-Control", "no-cache")
    if request.keep_alive_allowed:
        # Connection-specific headers are forbidden on HTTP/2+ (RFC 7540).
        writer.set_header("Connection", "keep-alive")
    writer.write_status(200)
    await _flush(writer)

    async def send(event: SSEEvent) -> None:
        await writer.write(event.encode_bytes())
        await _flush(writer)

    count = 0
    while True:
        try:
            outcome = await next_or_cancel(stream, request.lifetime)
        except Exception as exc:
            logger.exception("Event stream producer failed after %d items", count)
            await send(error_event(_error_payload(str(exc))))
            return Failed(f"event stream producer: {exc}", exc)

        match outcome:
            case Cancelled(reason=reason):
                logger.debug("Event stream cancelled after %d items (%s)", count, reason)
                await send(error_event(_error_payload(TIMEOUT_MESSAGE)))
                return OK
            case Closed():
                await send(EOF_EVENT)
                return OK
            case Item(value=value):
                count += 1
                value = await _rendered(writer, request, value)
                try:
                    payload = marshal_json(value)
                except (TypeError, ValueError) as exc:
                    # Per-item failure: report inline, keep the stream alive.
                    await send(error_event(_error_payload(str(exc))))
                    continue
                await send(data_event(payload))


async def encode_event_stream(writer: Sink, request: Request, value: Any) -> EncodeResult:
    """Event-stream encoder entry point for the codec registry."""
    if not is_stream(value):
        return Failed(f"event stream expects a stream, not {type(value).__name__}")
    return await stream_events(writer, request, value)


# -- Producers --


def channel(
    max_buffer_size: float = 0,
) -> tuple[MemoryObjectSendStream[Any], MemoryObjectReceiveStream[Any]]:
    """Create a producer pair: send items on the first, respond with the second.

    Closing the send side ends the stream::

        send, receive = channel()

        async def produce():
            async with send:
                for n in range(3):
                    await send.send(n)

        tg.start_soon(produce)
        await respond(writer, request, receive)
    """
    return anyio.create_memory_object_stream(max_buffer_size)

"""Built-in response encoders.

An encoder has the signature::

    async def encode(writer: Sink, request: Request, value: Any) -> EncodeResult

and writes nothing unless it returns ``Ok``. Each encoder sets
``X-Content-Type-Options: nosniff`` and its ``Content-Type``, then writes
the request's status hint (if any) before the body.

Encoders that are only meaningful for some values (plain text, HTML,
binary data) return ``Declined`` for the rest, which lets the negotiator
move on to the client's next accepted type.
"""

from __future__ import annotations

import dataclasses
import json as json_module
from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING, Any

from parley.codecs import xml as xml_codec
from parley.codecs.result import OK, Declined, EncodeResult, Failed
from parley.context import status_hint

if TYPE_CHECKING:
    from parley.http.request import Request
    from parley.http.writer import Sink

type Encoder = Callable[[Sink, Request, Any], Awaitable[EncodeResult]]

# Characters that must not appear raw in JSON embedded in HTML.
_HTML_ESCAPES = (
    ("<", "\\u003c"),
    (">", "\\u003e"),
    ("&", "\\u0026"),
    ("\u2028", "\\u2028"),
    ("\u2029", "\\u2029"),
)


def _write_head(writer: Sink, request: Request, content_type: str) -> None:
    writer.set_header("X-Content-Type-Options", "nosniff")
    writer.set_header("Content-Type", content_type)
    status = status_hint(request)
    if status is not None:
        writer.write_status(status)


async def write_error(writer: Sink, status: int, message: str) -> None:
    """Write a plain-text error response (``message`` plus newline)."""
    writer.set_header("Content-Type", "text/plain; charset=utf-8")
    writer.set_header("X-Content-Type-Options", "nosniff")
    writer.write_status(status)
    await writer.write(message.encode("utf-8") + b"\n")


async def no_content(writer: Sink, request: Request) -> None:  # noqa: ARG001
    """Write a 204 No Content response."""
    writer.write_status(204)


# -- JSON --


def _json_default(value: Any) -> Any:
    custom = getattr(value, "__json__", None)
    if callable(custom):
        return custom()
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return dataclasses.asdict(value)
    if isinstance(value, BaseException):
        return {"error": str(value)}
    if isinstance(value, (set, frozenset)):
        return sorted(value, key=repr)
    msg = f"Object of type {type(value).__name__} is not JSON serializable"
    raise TypeError(msg)


def marshal_json(value: Any, *, escape_html: bool = True) -> str:
    """Serialize *value* to compact JSON.

    Non-finite floats are rejected. Non-integer floats keep Python's
    shortest round-trip repr; no extra precision handling is applied.

    Raises:
        TypeError: For values with no JSON representation.
        ValueError: For NaN/Infinity or circular references.
    """
    text = json_module.dumps(
        value,
        default=_json_default,
        ensure_ascii=False,
        allow_nan=False,
        separators=(",", ":"),
    )
    if escape_html:
        for raw, escaped in _HTML_ESCAPES:
            text = text.replace(raw, escaped)
    return text


def json_encoder(*, escape_html: bool = True) -> Encoder:
    """Build a JSON encoder.

    The body is followed by a newline, like a streaming JSON encoder.
    """

    async def encode_json(writer: Sink, request: Request, value: Any) -> EncodeResult:
        try:
            body = marshal_json(value, escape_html=escape_html) + "\n"
        except Exception as exc:
            return Failed(f"JSON encode: {exc}", exc)
        _write_head(writer, request, "application/json; charset=utf-8")
        await writer.write(body.encode("utf-8"))
        return OK

    return encode_json


encode_json = json_encoder()


# -- XML --


def xml_encoder(*, header_search_limit: int = 100) -> Encoder:
    """Build an XML encoder.

    A generic ``<?xml ...?>`` declaration is written first unless one is
    found in the first *header_search_limit* bytes of the marshaled body.
    """

    async def encode_xml(writer: Sink, request: Request, value: Any) -> EncodeResult:
        try:
            body = xml_codec.marshal(value)
        except Exception as exc:
            return Failed(f"XML marshal: {exc}", exc)
        _write_head(writer, request, "application/xml; charset=utf-8")
        if not xml_codec.has_declaration(body, header_search_limit):
            await writer.write(xml_codec.XML_HEADER)
        await writer.write(body)
        return OK

    return encode_xml


encode_xml = xml_encoder()


# -- Text --


def _as_text(value: Any) -> str | None:
    """Text for str values, text-marshalers, and objects with a custom __str__."""
    custom = getattr(value, "__text__", None)
    if callable(custom):
        text = custom()
        return text.decode("utf-8") if isinstance(text, bytes) else str(text)
    if isinstance(value, str):
        return value
    if type(value).__str__ is not object.__str__ and not isinstance(
        value, (int, float, bool, bytes, list, tuple, dict, set, BaseException)
    ):
        return str(value)
    return None


def _text_encoder(content_type: str) -> Encoder:
    async def encode_text(writer: Sink, request: Request, value: Any) -> EncodeResult:
        try:
            text = _as_text(value)
        except Exception as exc:
            return Failed(f"text marshal: {exc}", exc)
        if text is None:
            return Declined(f"{type(value).__name__} is not text")
        _write_head(writer, request, content_type)
        await writer.write(text.encode("utf-8"))
        return OK

    return encode_text


encode_plain_text = _text_encoder("text/plain; charset=utf-8")
encode_html = _text_encoder("text/html; charset=utf-8")


# -- Binary --


async def encode_data(writer: Sink, request: Request, value: Any) -> EncodeResult:
    """Write raw bytes as ``application/octet-stream``."""
    try:
        if isinstance(value, (bytes, bytearray, memoryview)):
            body = bytes(value)
        elif hasattr(type(value), "__bytes__"):
            body = bytes(value)
        else:
            text = _as_text(value)
            if text is None:
                return Declined(f"{type(value).__name__} has no binary form")
            body = text.encode("utf-8")
    except Exception as exc:
        return Failed(f"binary marshal: {exc}", exc)
    _write_head(writer, request, "application/octet-stream")
    await writer.write(body)
    return OK

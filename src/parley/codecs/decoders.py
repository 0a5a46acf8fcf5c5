"""Built-in request decoders.

A decoder has the signature::

    def decode(body: bytes, request: Request, into: type | None) -> Any

With ``into=None`` the decoded structure is returned as-is (dict, list,
``FormData``...). With a dataclass type the payload is bound into an
instance. Any other type is an ``isinstance`` check on the result.

Decoders raise ``DecodeError`` on malformed input.
"""

from __future__ import annotations

import json as json_module
import xml.etree.ElementTree as ET
from collections.abc import Callable
from typing import TYPE_CHECKING, Any

from parley.codecs import xml as xml_codec
from parley.codecs.binding import bind, is_dataclass_type
from parley.codecs.forms import FormData, parse_multipart, parse_urlencoded
from parley.errors import DecodeError

if TYPE_CHECKING:
    from parley.http.request import Request

type Decoder = Callable[[bytes, Request, type | None], Any]


def _into(value: Any, into: type | None, *, strict: bool = False, coerce: bool = False) -> Any:
    if into is None:
        return value
    if is_dataclass_type(into):
        return bind(into, value, strict=strict, coerce=coerce)
    if not isinstance(value, into):
        msg = f"Decoded {type(value).__name__}, expected {into.__name__}"
        raise DecodeError(msg)
    return value


def json_decoder(*, strict: bool = False) -> Decoder:
    """Build a JSON decoder.

    With *strict*, keys that match no dataclass field are rejected.
    """

    def decode_json(body: bytes, request: Request, into: type | None = None) -> Any:  # noqa: ARG001
        try:
            value = json_module.loads(body)
        except (ValueError, UnicodeDecodeError) as exc:
            msg = f"JSON decode: {exc}"
            raise DecodeError(msg) from exc
        return _into(value, into, strict=strict)

    return decode_json


decode_json = json_decoder()


def decode_xml(body: bytes, request: Request, into: type | None = None) -> Any:  # noqa: ARG001
    """Decode an XML body (root element unwrapped, leaf values as text)."""
    try:
        value = xml_codec.unmarshal(body)
    except ET.ParseError as exc:
        msg = f"XML decode: {exc}"
        raise DecodeError(msg) from exc
    return _into(value, into, coerce=True)


def _form_into(form: FormData, into: type | None) -> Any:
    if into is None or into is FormData:
        return form
    if is_dataclass_type(into):
        return bind(into, form, coerce=True)
    return _into(dict(form), into)


def decode_form(body: bytes, request: Request, into: type | None = None) -> Any:  # noqa: ARG001
    """Decode an ``application/x-www-form-urlencoded`` body."""
    return _form_into(parse_urlencoded(body), into)


def decode_multipart(body: bytes, request: Request, into: type | None = None) -> Any:
    """Decode a ``multipart/form-data`` body (boundary from Content-Type)."""
    form = parse_multipart(body, request.content_type or "")
    return _form_into(form, into)

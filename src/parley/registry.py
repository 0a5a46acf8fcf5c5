"""Codec registry — encoders and decoders keyed by content type.

The registry is read on every negotiation and written rarely (usually
at startup). Reads share a reader/writer lock; registrations take it
exclusively.

Free-threading safety:
    - All access to the two tables goes through ``RWLock``
    - Lookups return the function itself, never a view of the table
    - ``supported_*_types()`` return snapshots

Usage::

    registry = Registry.with_defaults()
    registry.register_encoder("text/csv", encode_csv)
    registry.register_encoder("application/xml", None)  # unregister
"""

from __future__ import annotations

import logging
import threading
from typing import TYPE_CHECKING

from parley import content_type as ct
from parley._internal.rwlock import RWLock
from parley.codecs.decoders import Decoder, decode_form, decode_multipart, decode_xml, json_decoder
from parley.codecs.encoders import (
    Encoder,
    encode_data,
    encode_html,
    encode_plain_text,
    json_encoder,
    xml_encoder,
)
from parley.content_type import ContentType, ContentTypeSet

if TYPE_CHECKING:
    from parley.config import RenderConfig

logger = logging.getLogger("parley.registry")


class Registry:
    """Content type -> encoder and content type -> decoder tables.

    At most one encoder and one decoder per content type. Registering
    again replaces the previous entry; registering ``None`` removes it.
    """

    __slots__ = ("_decoders", "_encoders", "_lock")

    def __init__(self) -> None:
        self._encoders: dict[ContentType, Encoder] = {}
        self._decoders: dict[ContentType, Decoder] = {}
        self._lock = RWLock()

    @classmethod
    def with_defaults(cls, config: RenderConfig | None = None) -> Registry:
        """A registry holding the built-in codecs, tuned by *config*."""
        from parley.streaming import encode_event_stream

        registry = cls()
        escape_html = config.json_escape_html if config is not None else True
        strict = config.json_strict if config is not None else False
        limit = config.xml_header_search_limit if config is not None else 100

        encode_json = json_encoder(escape_html=escape_html)
        encode_xml = xml_encoder(header_search_limit=limit)
        registry.register_encoder(ct.JSON, encode_json)
        registry.register_encoder(ct.XML, encode_xml)
        registry.register_encoder(ct.TEXT_XML, encode_xml)
        registry.register_encoder(ct.PLAIN_TEXT, encode_plain_text)
        registry.register_encoder(ct.HTML, encode_html)
        registry.register_encoder(ct.DATA, encode_data)
        registry.register_encoder(ct.EVENT_STREAM, encode_event_stream)

        registry.register_decoder(ct.JSON, json_decoder(strict=strict))
        registry.register_decoder(ct.XML, decode_xml)
        registry.register_decoder(ct.TEXT_XML, decode_xml)
        registry.register_decoder(ct.FORM, decode_form)
        registry.register_decoder(ct.MULTIPART_FORM, decode_multipart)
        return registry

    # -- Registration --

    def register_encoder(self, content_type: str, encoder: Encoder | None) -> None:
        """Set (or with ``None`` remove) the encoder for *content_type*."""
        key = ContentType(content_type)
        with self._lock.write():
            if encoder is None:
                self._encoders.pop(key, None)
            else:
                self._encoders[key] = encoder
        logger.debug("Encoder for %r %s", str(key), "removed" if encoder is None else "registered")

    def register_decoder(self, content_type: str, decoder: Decoder | None) -> None:
        """Set (or with ``None`` remove) the decoder for *content_type*."""
        key = ContentType(content_type)
        with self._lock.write():
            if decoder is None:
                self._decoders.pop(key, None)
            else:
                self._decoders[key] = decoder
        logger.debug("Decoder for %r %s", str(key), "removed" if decoder is None else "registered")

    # -- Lookup --

    def encoder_for(self, content_type: str) -> Encoder | None:
        with self._lock.read():
            return self._encoders.get(ContentType(content_type))

    def decoder_for(self, content_type: str) -> Decoder | None:
        with self._lock.read():
            return self._decoders.get(ContentType(content_type))

    def supported_encode_types(self) -> ContentTypeSet:
        """Registered encoder types, sorted (for diagnostics, not preference)."""
        with self._lock.read():
            keys = sorted(self._encoders)
        return ContentTypeSet.from_types(*keys)

    def supported_decode_types(self) -> ContentTypeSet:
        """Registered decoder types, sorted (for diagnostics, not preference)."""
        with self._lock.read():
            keys = sorted(self._decoders)
        return ContentTypeSet.from_types(*keys)

    def copy(self) -> Registry:
        """An independent registry with the same entries."""
        other = Registry()
        with self._lock.read():
            other._encoders = dict(self._encoders)
            other._decoders = dict(self._decoders)
        return other

    def __repr__(self) -> str:
        return (
            f"<Registry encoders={self.supported_encode_types()} "
            f"decoders={self.supported_decode_types()}>"
        )


# -- Process-wide default --

_default: Registry | None = None
_default_lock = threading.Lock()


def default_registry() -> Registry:
    """The process-wide registry, created with the built-ins on first use."""
    global _default
    if _default is None:
        with _default_lock:
            if _default is None:
                _default = Registry.with_defaults()
    return _default


def register_encoder(content_type: str, encoder: Encoder | None) -> None:
    """Register an encoder on the process-wide registry."""
    default_registry().register_encoder(content_type, encoder)


def register_decoder(content_type: str, decoder: Decoder | None) -> None:
    """Register a decoder on the process-wide registry."""
    default_registry().register_decoder(content_type, decoder)

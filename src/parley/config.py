"""Negotiation configuration.

RenderConfig tunes the built-in codecs (JSON escaping and strictness, the
XML declaration search window) and the responder (request timeout, body
size limit, debug tracebacks). Pass it to ``Negotiator`` or ``Responder``;
the process-wide default registry always uses the defaults.
"""

from dataclasses import dataclass

from parley.content_type import DEFAULT, ContentType


@dataclass(frozen=True, slots=True)
class RenderConfig:
    """Negotiation and responder configuration. Immutable after creation.

    All fields have sensible defaults. Override what you need::

        config = RenderConfig(json_strict=True, request_timeout=30.0)
    """

    # Negotiation
    default_content_type: ContentType = DEFAULT

    # JSON
    json_escape_html: bool = True
    json_strict: bool = False  # Reject unknown fields when binding into a dataclass

    # XML
    xml_header_search_limit: int = 100

    # Requests
    request_timeout: float | None = None  # Seconds; None = lifetime never expires on its own
    max_content_length: int = 16 * 1024 * 1024  # 16 MB

    debug: bool = False

"""Parley — content negotiation and streaming responses for ASGI.

Writes a value in the format the client asked for: JSON, XML, plain
text, HTML, binary, or a Server-Sent Event stream. Reads request bodies
(JSON, XML, forms) by their content type.

Basic usage::

    from parley import Negotiator, Responder

    async def handler(request):
        return {"hello": "world"}

    app = Responder(handler)

Streaming::

    from parley import channel

    async def events(request):
        send, receive = channel()
        ...
        return receive  # text/event-stream if accepted, else a JSON list
"""

__version__ = "0.1.0"
__all__ = [
    "AllowedContentTypes",
    "ConfigurationError",
    "ContentType",
    "ContentTypeSet",
    "DecodeError",
    "Declined",
    "Failed",
    "HTTPError",
    "Negotiator",
    "Ok",
    "ParleyError",
    "Registry",
    "RenderConfig",
    "Renderer",
    "Request",
    "Responder",
    "SetContentType",
    "UnsupportedContentType",
    "channel",
    "decode",
    "default_registry",
    "get_request",
    "respond",
    "set_status",
]


def __getattr__(name: str) -> object:
    """Lazy imports for public API.

    Keeps ``import parley`` fast while providing a clean top-level API.
    """
    if name == "Responder":
        from parley.app import Responder

        return Responder

    if name == "RenderConfig":
        from parley.config import RenderConfig

        return RenderConfig

    if name == "Request":
        from parley.http.request import Request

        return Request

    if name in ("ContentType", "ContentTypeSet"):
        from parley import content_type as _ct

        return getattr(_ct, name)

    if name in ("Negotiator", "respond", "decode"):
        from parley import negotiation as _neg

        return getattr(_neg, name)

    if name in ("Registry", "default_registry"):
        from parley import registry as _reg

        return getattr(_reg, name)

    if name in ("Ok", "Declined", "Failed"):
        from parley.codecs import result as _result

        return getattr(_result, name)

    if name == "Renderer":
        from parley.render import Renderer

        return Renderer

    if name == "channel":
        from parley.streaming import channel

        return channel

    if name in ("AllowedContentTypes", "SetContentType"):
        from parley import middleware as _mw

        return getattr(_mw, name)

    if name in ("get_request", "set_status"):
        from parley import context as _ctx

        return getattr(_ctx, name)

    if name in ("ParleyError", "ConfigurationError", "DecodeError", "HTTPError", "UnsupportedContentType"):
        from parley import errors as _errors

        return getattr(_errors, name)

    msg = f"module {__name__!r} has no attribute {name!r}"
    raise AttributeError(msg)

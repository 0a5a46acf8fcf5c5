"""Parley exception hierarchy.

Shared across the negotiator, codecs, middleware, and the ASGI
responder so every module raises and catches the same types.
"""

from dataclasses import dataclass


class ParleyError(Exception):
    """Base for all parley-specific errors."""


class ConfigurationError(ParleyError):
    """Raised when the registry or responder is set up incorrectly.

    Also raised when an optional dependency (``python-multipart``) is
    needed but missing.
    """


class DecodeError(ParleyError):
    """A request body could not be decoded with the selected decoder."""


@dataclass(frozen=True, slots=True)
class HTTPError(ParleyError):
    """An error that maps directly to an HTTP status code.

    Raised by middleware and handlers. The responder catches these and
    writes a ``text/plain`` error response with ``detail`` as the body.
    """

    status: int
    detail: str = ""
    headers: tuple[tuple[str, str], ...] = ()

    def __str__(self) -> str:
        if self.detail:
            return f"{self.status}: {self.detail}"
        return str(self.status)


class NotAcceptable(HTTPError):  # noqa: N818
    """406 — the request content type is not one the endpoint accepts."""

    def __init__(self, detail: str = "Not Acceptable") -> None:
        super().__init__(status=406, detail=detail)


class GatewayTimeout(HTTPError):  # noqa: N818
    """504 — the request lifetime ended before the response was ready."""

    def __init__(self, detail: str = "Server Timeout") -> None:
        super().__init__(status=504, detail=detail)


class UnsupportedContentType(HTTPError):  # noqa: N818
    """415 — no decoder is registered for the request content type."""

    def __init__(self, content_type: str = "") -> None:
        detail = "unable to automatically decode the request content type"
        if content_type:
            detail = f"{detail}: {content_type!r}"
        super().__init__(status=415, detail=detail)

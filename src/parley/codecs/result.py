"""Encoder outcomes.

Every encoder returns exactly one of these, so the negotiator can tell
"try the next content type" apart from "this response failed"::

    match await encoder(writer, request, value):
        case Ok():
            ...
        case Declined():
            ...  # next accepted type
        case Failed(detail=detail):
            ...  # terminal: 500 with detail as body
"""

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class Ok:
    """The value was written to the sink."""


@dataclass(frozen=True, slots=True)
class Declined:
    """This encoder cannot represent the value; nothing was written."""

    reason: str = ""


@dataclass(frozen=True, slots=True)
class Failed:
    """Encoding failed. Terminal for the current response."""

    detail: str
    error: BaseException | None = None

    def __str__(self) -> str:
        return self.detail


OK = Ok()

type EncodeResult = Ok | Declined | Failed

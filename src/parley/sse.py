"""Server-Sent Event frames.

The stream adapter writes three kinds of frame: ``event: data`` carries
one JSON-encoded item, ``event: error`` reports a per-item encode failure
or the terminal timeout, and ``event: EOF`` (no data field) marks the
producer closing.
"""

from collections.abc import Iterator
from dataclasses import dataclass

EVENT_DATA = "data"
EVENT_ERROR = "error"
EVENT_EOF = "EOF"


@dataclass(frozen=True, slots=True)
class SSEEvent:
    """One event-stream frame. Fields left as None are omitted."""

    data: str | None = None
    event: str | None = None
    id: str | None = None
    retry: int | None = None

    def _lines(self) -> Iterator[str]:
        if self.event:
            yield f"event: {self.event}"
        if self.id:
            yield f"id: {self.id}"
        if self.retry is not None:
            yield f"retry: {self.retry}"
        if self.data is not None:
            # A newline inside the payload would end the field early.
            for part in self.data.split("\n"):
                yield f"data: {part}"

    def encode(self) -> str:
        """The frame in wire format, terminated by a blank line."""
        return "".join(f"{line}\n" for line in self._lines()) + "\n"

    def encode_bytes(self) -> bytes:
        return self.encode().encode("utf-8")


def data_event(payload: str) -> SSEEvent:
    return SSEEvent(data=payload, event=EVENT_DATA)


def error_event(payload: str) -> SSEEvent:
    return SSEEvent(data=payload, event=EVENT_ERROR)


EOF_EVENT = SSEEvent(event=EVENT_EOF)

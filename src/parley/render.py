"""Self-rendering values and value classification.

A ``Renderer`` is any value with a ``render(writer, request)`` method
(sync or async). It runs before the value is encoded, so it can prepare
itself, set headers, or write directly to the sink. Raising signals
failure.

``classify()`` inspects a value once, at the negotiator boundary, and
tags it as a plain scalar, a self-rendering scalar, or a live stream.
Everything downstream switches on that tag.
"""

from __future__ import annotations

import dataclasses
import enum
from collections.abc import AsyncIterator, Mapping
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

from parley._internal.invoke import invoke

if TYPE_CHECKING:
    from parley.http.request import Request
    from parley.http.writer import Sink


@runtime_checkable
class Renderer(Protocol):
    """A value that renders itself before encoding.

    Usage::

        @dataclass
        class Article:
            id: int
            elapsed: float = 0.0

            def render(self, writer, request):
                self.elapsed = 10.0

    Nested renderers (dataclass fields, list items, mapping values) are
    rendered after their parent.
    """

    def render(self, writer: Sink, request: Request) -> Any: ...


class ValueKind(enum.Enum):
    SCALAR = "scalar"
    SELF_RENDERING = "self_rendering"
    STREAM = "stream"


@dataclass(frozen=True, slots=True)
class Classified:
    """A response value tagged with its kind."""

    kind: ValueKind
    value: Any


def is_stream(value: Any) -> bool:
    """True for live producers: async iterators, e.g. anyio receive streams."""
    return isinstance(value, AsyncIterator)


def is_renderer(value: Any) -> bool:
    """True for instances whose ``render`` attribute can actually be called."""
    return (
        isinstance(value, Renderer)
        and not isinstance(value, type)
        and callable(getattr(value, "render", None))
    )


def classify(value: Any) -> Classified:
    """Tag *value* as ``STREAM``, ``SELF_RENDERING`` or ``SCALAR``."""
    if is_stream(value):
        return Classified(ValueKind.STREAM, value)
    if is_renderer(value):
        return Classified(ValueKind.SELF_RENDERING, value)
    return Classified(ValueKind.SCALAR, value)


async def render_value(writer: Sink, request: Request, value: Renderer) -> None:
    """Render *value* top-down, then every nested renderer it holds.

    Exceptions from any ``render()`` call propagate unchanged.
    """
    await invoke(value.render, writer, request)
    for child in _children(value):
        if is_renderer(child):
            await render_value(writer, request, child)
        elif isinstance(child, (list, tuple)):
            for item in child:
                if is_renderer(item):
                    await render_value(writer, request, item)
        elif isinstance(child, Mapping):
            for item in child.values():
                if is_renderer(item):
                    await render_value(writer, request, item)


def _children(value: Any) -> list[Any]:
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return [getattr(value, f.name) for f in dataclasses.fields(value)]
    if isinstance(value, (list, tuple)):
        return list(value)
    if isinstance(value, Mapping):
        return list(value.values())
    return []

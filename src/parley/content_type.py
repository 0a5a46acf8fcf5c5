"""Content types and the ordered ContentTypeSet used for negotiation.

A ``ContentType`` is a canonical MIME base type: trimmed, lower-cased,
parameters stripped. Two content types are equal iff their canonical
strings are equal, so comparison is plain ``str`` equality.

A ``ContentTypeSet`` keeps the caller's preference order (the order the
types appeared in an ``Accept`` header or an explicit list) and carries a
single forward-only cursor::

    accepted = ContentTypeSet.from_accept_header("text/plain, application/json")
    while accepted.next():
        encoder = registry.encoder_for(accepted.current())
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Iterator
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from parley.http.request import Request

# RFC 7230 token characters
_TOKEN = r"[!#$%&'*+\-.^_`|~0-9A-Za-z]+"
_MEDIA_TYPE_RE = re.compile(rf"^({_TOKEN})/({_TOKEN})$")
_PARAM_RE = re.compile(rf'^\s*{_TOKEN}\s*=\s*(?:{_TOKEN}|"(?:[^"\\]|\\.)*")\s*$')


class ContentType(str):
    """A canonical MIME base type such as ``application/json``.

    Canonicalized at construction (trimmed, lower-cased), never at
    comparison time. Use ``parse_media_type`` to also strip and validate
    parameters.
    """

    __slots__ = ()

    def __new__(cls, value: str = "") -> ContentType:
        return super().__new__(cls, value.strip().lower())

    def __repr__(self) -> str:
        return f"ContentType({str(self)!r})"


NONE = ContentType("")
JSON = ContentType("application/json")
XML = ContentType("application/xml")
TEXT_XML = ContentType("text/xml")
PLAIN_TEXT = ContentType("text/plain")
HTML = ContentType("text/html")
DATA = ContentType("application/octet-stream")
FORM = ContentType("application/x-www-form-urlencoded")
MULTIPART_FORM = ContentType("multipart/form-data")
EVENT_STREAM = ContentType("text/event-stream")

DEFAULT = JSON


def parse_media_type(value: str) -> ContentType:
    """Parse a media type string into its canonical base type.

    Parameters (``charset``, ``q``, ``boundary``...) are validated and
    discarded.

    Raises:
        ValueError: If the base type or any parameter is malformed.
    """
    base, _, params = value.partition(";")
    base = base.strip()
    if not _MEDIA_TYPE_RE.match(base):
        msg = f"Invalid media type: {value!r}"
        raise ValueError(msg)
    for param in params.split(";"):
        if not param.strip():
            continue
        if not _PARAM_RE.match(param):
            msg = f"Invalid media type parameter in {value!r}: {param.strip()!r}"
            raise ValueError(msg)
    return ContentType(base)


class ContentTypeSet:
    """An ordered, duplicate-free set of content types with a cursor.

    The cursor starts before the first element. ``next()`` advances it,
    ``current()`` reads it (clamped to the first/last element), and
    ``reset()`` rewinds it. ``has()`` ignores the cursor.

    An empty set is valid: ``next()`` is always False and ``current()``
    returns the empty content type.
    """

    __slots__ = ("_pos", "_types")

    def __init__(self, types: Iterable[ContentType] = ()) -> None:
        self._types: list[ContentType] = []
        self._pos = -1
        for content_type in types:
            if content_type not in self._types:
                self._types.append(content_type)

    # -- Constructors --

    @classmethod
    def from_accept_header(cls, header: str | None) -> ContentTypeSet:
        """Build a set from an ``Accept`` (or similar) header value.

        Fields that fail to parse are dropped. Quality values are
        ignored: order of appearance is the preference order.
        """
        parsed: list[ContentType] = []
        for field in (header or "").split(","):
            try:
                parsed.append(parse_media_type(field))
            except ValueError:
                continue
        return cls(parsed)

    @classmethod
    def from_types(cls, *types: str) -> ContentTypeSet:
        """Build a set from already-canonical type strings, skipping empties."""
        return cls(ContentType(t) for t in types if t and t.strip())

    # -- Membership --

    def has(self, content_type: str) -> bool:
        """True if *content_type* is in the set, regardless of cursor."""
        return ContentType(content_type) in self._types

    def __contains__(self, content_type: object) -> bool:
        return isinstance(content_type, str) and self.has(content_type)

    def types(self) -> list[ContentType]:
        """A copy of the content types in preference order."""
        return list(self._types)

    def __iter__(self) -> Iterator[ContentType]:
        return iter(list(self._types))

    def __len__(self) -> int:
        return len(self._types)

    def __bool__(self) -> bool:
        return bool(self._types)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ContentTypeSet):
            return NotImplemented
        return self._types == other._types

    __hash__ = None  # type: ignore[assignment]

    def __str__(self) -> str:
        return ",".join(self._types)

    def __repr__(self) -> str:
        return f"ContentTypeSet({self._types!r})"

    # -- Cursor --

    def next(self) -> bool:
        """Advance the cursor; True if it now points at an element."""
        if self._pos < len(self._types):
            self._pos += 1
        return self._pos < len(self._types)

    def current(self) -> ContentType:
        """The content type at the cursor, clamped into range."""
        if not self._types:
            return NONE
        pos = min(max(self._pos, 0), len(self._types) - 1)
        return self._types[pos]

    def reset(self) -> None:
        """Rewind the cursor to before the first element."""
        self._pos = -1


# -- Request helpers --


def request_content_type(request: Request, default: ContentType = NONE) -> ContentType:
    """The content type of the request body.

    An override placed in the request context (see
    ``parley.middleware.SetContentType``) wins over the ``Content-Type``
    header. Returns *default* if the header is missing or malformed.
    """
    from parley.context import CONTENT_TYPE_KEY

    override = request.context.get(CONTENT_TYPE_KEY)
    if override is not None:
        return ContentType(override)
    try:
        return parse_media_type(request.headers.get("content-type") or "")
    except ValueError:
        return default


def accepted_content_types(request: Request) -> ContentTypeSet:
    """The content types the client accepts, in preference order.

    An override in the request context yields a single-element set.
    Otherwise the ``Accept`` header is parsed; the result may be empty.
    """
    from parley.context import CONTENT_TYPE_KEY

    override = request.context.get(CONTENT_TYPE_KEY)
    if override is not None:
        return ContentTypeSet.from_types(override)
    return ContentTypeSet.from_accept_header(request.headers.get("accept"))

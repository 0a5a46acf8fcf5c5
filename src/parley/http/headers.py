"""Case-insensitive HTTP header maps.

``Headers`` is the request side: built once from the ASGI scope's raw
byte pairs, read-only afterwards. ``MutableHeaders`` is the response
side: encoders fill it until the status line goes out.
"""

from collections.abc import Iterable, Iterator, Mapping


def _decode_pairs(raw: Iterable[tuple[bytes, bytes]]) -> dict[str, list[str]]:
    index: dict[str, list[str]] = {}
    for name, value in raw:
        index.setdefault(name.decode("latin-1").lower(), []).append(value.decode("latin-1"))
    return index


class Headers(Mapping[str, str]):
    """Read-only request headers. Lookups ignore case.

    A repeated header maps to its first value; ``get_list`` returns all
    of them. ``raw`` keeps the original ASGI pairs.
    """

    __slots__ = ("_index", "_raw")

    def __init__(self, raw: tuple[tuple[bytes, bytes], ...] = ()) -> None:
        self._raw = tuple(raw)
        self._index = _decode_pairs(self._raw)

    @classmethod
    def from_dict(cls, headers: Mapping[str, str]) -> "Headers":
        """Build from ``{name: value}`` (names are lower-cased)."""
        return cls(tuple((k.lower().encode("latin-1"), v.encode("latin-1")) for k, v in headers.items()))

    @property
    def raw(self) -> tuple[tuple[bytes, bytes], ...]:
        return self._raw

    def __getitem__(self, name: str) -> str:
        values = self._index.get(name.lower())
        if not values:
            raise KeyError(name)
        return values[0]

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and name.lower() in self._index

    def __iter__(self) -> Iterator[str]:
        return iter(self._index)

    def __len__(self) -> int:
        return len(self._index)

    def get_list(self, name: str) -> list[str]:
        """Every value sent for *name*, in order."""
        return list(self._index.get(name.lower(), ()))

    def __repr__(self) -> str:
        return f"Headers({self._index!r})"


class MutableHeaders:
    """Response header map. Names are stored lower-cased.

    ``set`` replaces every value for a name, ``add`` appends another one.
    """

    __slots__ = ("_items",)

    def __init__(self) -> None:
        self._items: list[tuple[str, str]] = []

    def set(self, name: str, value: str) -> None:
        self.remove(name)
        self._items.append((name.lower(), value))

    def add(self, name: str, value: str) -> None:
        self._items.append((name.lower(), value))

    def get(self, name: str, default: str | None = None) -> str | None:
        key = name.lower()
        return next((v for k, v in self._items if k == key), default)

    def remove(self, name: str) -> None:
        key = name.lower()
        self._items = [(k, v) for k, v in self._items if k != key]

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and self.get(name) is not None

    def items(self) -> list[tuple[str, str]]:
        return list(self._items)

    def raw(self) -> list[tuple[bytes, bytes]]:
        """Header pairs encoded for an ASGI ``http.response.start`` message."""
        return [(k.encode("latin-1"), v.encode("latin-1")) for k, v in self._items]

    def __repr__(self) -> str:
        return f"MutableHeaders({self._items!r})"

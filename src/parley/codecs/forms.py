"""Form payloads: URL-encoded and multipart.

URL-encoded bodies go through ``urllib.parse``. Multipart bodies are fed
to ``python-multipart``'s push parser; its import is deferred until the
first multipart body so the dependency only matters when one arrives.
"""

from collections.abc import Iterator, Mapping, Sequence
from dataclasses import dataclass
from urllib.parse import parse_qsl

from parley.errors import ConfigurationError, DecodeError


@dataclass(frozen=True, slots=True)
class UploadFile:
    """A file part of a multipart body, held in memory."""

    filename: str
    content_type: str
    size: int
    content: bytes

    def __repr__(self) -> str:
        return f"<UploadFile {self.filename!r} {self.content_type} ({self.size} bytes)>"


class FormData(Mapping[str, str]):
    """Decoded form fields, in submission order.

    Indexing gives the first value submitted under a name; repeated
    fields (checkboxes, multi-selects) are available via ``get_list``.
    File parts live separately in ``files``.
    """

    __slots__ = ("_fields", "_files")

    def __init__(
        self,
        fields: Sequence[tuple[str, str]] = (),
        files: Mapping[str, UploadFile] | None = None,
    ) -> None:
        grouped: dict[str, list[str]] = {}
        for name, value in fields:
            grouped.setdefault(name, []).append(value)
        self._fields = grouped
        self._files = dict(files or {})

    @property
    def files(self) -> Mapping[str, UploadFile]:
        return self._files

    def __getitem__(self, name: str) -> str:
        return self._fields[name][0]

    def __iter__(self) -> Iterator[str]:
        return iter(self._fields)

    def __len__(self) -> int:
        return len(self._fields)

    def get_list(self, name: str) -> list[str]:
        """Every value submitted under *name* (empty if none)."""
        return list(self._fields.get(name, ()))

    def __repr__(self) -> str:
        return f"FormData({self._fields!r}, files={sorted(self._files)!r})"


def parse_urlencoded(body: bytes) -> FormData:
    """Decode an ``application/x-www-form-urlencoded`` body.

    Blank values are kept (``name=`` gives ``""``).
    """
    try:
        text = body.decode("utf-8")
    except UnicodeDecodeError as exc:
        msg = f"Form body is not valid UTF-8: {exc}"
        raise DecodeError(msg) from exc
    return FormData(parse_qsl(text, keep_blank_values=True))


class _PartCollector:
    """python-multipart callbacks that assemble parts into a ``FormData``."""

    def __init__(self) -> None:
        self.fields: list[tuple[str, str]] = []
        self.files: dict[str, UploadFile] = {}
        self._header_name = ""
        self._headers: dict[str, bytes] = {}
        self._data = bytearray()

    def callbacks(self) -> dict[str, object]:
        return {
            "on_part_begin": self.begin,
            "on_header_field": self.header_name,
            "on_header_value": self.header_value,
            "on_part_data": self.data,
            "on_part_end": self.end,
        }

    def begin(self) -> None:
        self._headers = {}
        self._data = bytearray()

    def header_name(self, buf: bytes, start: int, end: int) -> None:
        self._header_name = buf[start:end].decode("latin-1").lower()

    def header_value(self, buf: bytes, start: int, end: int) -> None:
        self._headers[self._header_name] = self._headers.get(self._header_name, b"") + buf[start:end]

    def data(self, buf: bytes, start: int, end: int) -> None:
        self._data += buf[start:end]

    def end(self) -> None:
        from python_multipart.multipart import parse_options_header

        _, params = parse_options_header(self._headers.get("content-disposition", b""))
        name = params.get(b"name")
        if name is None:
            return
        field_name = name.decode("utf-8")
        filename = params.get(b"filename")
        if filename is None:
            self.fields.append((field_name, self._data.decode("utf-8", errors="replace")))
            return
        content = bytes(self._data)
        part_type = self._headers.get("content-type", b"application/octet-stream").decode("latin-1")
        self.files[field_name] = UploadFile(
            filename=filename.decode("utf-8"),
            content_type=part_type,
            size=len(content),
            content=content,
        )


def parse_multipart(body: bytes, content_type: str) -> FormData:
    """Decode a ``multipart/form-data`` body.

    Args:
        body: The complete request body.
        content_type: The full ``Content-Type`` header, boundary included.

    Raises:
        ConfigurationError: If ``python-multipart`` is not installed.
        DecodeError: If the boundary parameter is missing or the body
            does not parse as multipart.
    """
    try:
        from python_multipart.exceptions import MultipartParseError
        from python_multipart.multipart import MultipartParser, parse_options_header
    except ImportError:
        msg = (
            "Decoding multipart/form-data requires the 'python-multipart' package. "
            "Install it with: pip install python-multipart"
        )
        raise ConfigurationError(msg) from None

    _, options = parse_options_header(content_type.encode("latin-1"))
    boundary = options.get(b"boundary")
    if not boundary:
        msg = "multipart/form-data body has no boundary parameter"
        raise DecodeError(msg)

    collector = _PartCollector()
    parser = MultipartParser(boundary, collector.callbacks())
    try:
        parser.write(body)
        parser.finalize()
    except MultipartParseError as exc:
        msg = f"Malformed multipart body: {exc}"
        raise DecodeError(msg) from exc
    return FormData(collector.fields, collector.files)

"""Tests for parley.codecs.encoders — the built-in response encoders."""

import json
import math
from dataclasses import dataclass

import pytest

from parley.codecs.encoders import (
    encode_data,
    encode_html,
    encode_json,
    encode_plain_text,
    encode_xml,
    json_encoder,
    marshal_json,
    no_content,
    write_error,
    xml_encoder,
)
from parley.codecs.result import OK, Declined, Failed
from parley.context import set_status
from parley.testing import ResponseRecorder, make_request

XML_DECL = '<?xml version="1.0" encoding="UTF-8"?>\n'


@dataclass
class Article:
    id: int
    title: str
    tags: list[str]


@dataclass
class Point:
    x: int
    y: int


class Banner:
    def __str__(self) -> str:
        return "*** hello ***"


class Plain:
    pass


class ExplodingJson:
    def __json__(self) -> object:
        raise RuntimeError("marshal exploded")


class UnclosedXml:
    def __xml__(self) -> str:
        return "<unclosed>"


class TestMarshalJson:
    def test_compact(self) -> None:
        assert marshal_json({"a": 1, "b": [1, 2]}) == '{"a":1,"b":[1,2]}'

    def test_escapes_html(self) -> None:
        assert marshal_json("<b>&</b>") == '"\\u003cb\\u003e\\u0026\\u003c/b\\u003e"'

    def test_escapes_line_separators(self) -> None:
        out = marshal_json("a" + chr(0x2028) + "b" + chr(0x2029))
        assert out == '"a\\u2028b\\u2029"'
        assert json.loads(out) == "a" + chr(0x2028) + "b" + chr(0x2029)

    def test_escape_can_be_disabled(self) -> None:
        assert marshal_json("<b>", escape_html=False) == '"<b>"'

    def test_dataclass(self) -> None:
        assert marshal_json(Article(1, "Hi", ["x"])) == '{"id":1,"title":"Hi","tags":["x"]}'

    def test_custom_json_hook(self) -> None:
        class Money:
            def __json__(self) -> str:
                return "1.00 EUR"

        assert marshal_json({"price": Money()}) == '{"price":"1.00 EUR"}'

    def test_exception_becomes_error_object(self) -> None:
        assert marshal_json(ValueError("boom")) == '{"error":"boom"}'

    def test_unicode_kept(self) -> None:
        assert marshal_json("héllo") == '"héllo"'

    def test_nan_rejected(self) -> None:
        with pytest.raises(ValueError):
            marshal_json(math.nan)

    def test_unknown_type_rejected(self) -> None:
        with pytest.raises(TypeError, match="not JSON serializable"):
            marshal_json(object())


class TestEncodeJson:
    @pytest.mark.anyio
    async def test_writes_body_and_headers(self) -> None:
        recorder = ResponseRecorder()
        result = await encode_json(recorder, make_request(), {"id": 123, "title": "Hi"})
        assert result == OK
        assert recorder.text == '{"id":123,"title":"Hi"}\n'
        assert recorder.header("content-type") == "application/json; charset=utf-8"
        assert recorder.header("x-content-type-options") == "nosniff"
        assert recorder.code == 200

    @pytest.mark.anyio
    async def test_status_hint(self) -> None:
        request = make_request()
        set_status(request, 201)
        recorder = ResponseRecorder()
        await encode_json(recorder, request, {"created": True})
        assert recorder.status == 201

    @pytest.mark.anyio
    async def test_failure_writes_nothing(self) -> None:
        recorder = ResponseRecorder()
        result = await encode_json(recorder, make_request(), object())
        assert isinstance(result, Failed)
        assert result.detail.startswith("JSON encode:")
        assert isinstance(result.error, TypeError)
        assert recorder.status is None
        assert recorder.body == b""
        assert recorder.header("content-type") is None

    @pytest.mark.anyio
    async def test_non_finite_float_fails(self) -> None:
        result = await encode_json(ResponseRecorder(), make_request(), {"x": math.inf})
        assert isinstance(result, Failed)

    @pytest.mark.anyio
    async def test_raising_json_hook_fails(self) -> None:
        recorder = ResponseRecorder()
        result = await encode_json(recorder, make_request(), {"v": ExplodingJson()})
        assert isinstance(result, Failed)
        assert isinstance(result.error, RuntimeError)
        assert "marshal exploded" in result.detail
        assert recorder.status is None

    @pytest.mark.anyio
    async def test_unescaped_variant(self) -> None:
        recorder = ResponseRecorder()
        await json_encoder(escape_html=False)(recorder, make_request(), "<p>")
        assert recorder.text == '"<p>"\n'


class TestEncodeXml:
    @pytest.mark.anyio
    async def test_dataclass(self) -> None:
        recorder = ResponseRecorder()
        result = await encode_xml(recorder, make_request(), Point(1, 2))
        assert result == OK
        assert recorder.text == XML_DECL + "<Point><x>1</x><y>2</y></Point>"
        assert recorder.header("content-type") == "application/xml; charset=utf-8"
        assert recorder.header("x-content-type-options") == "nosniff"

    @pytest.mark.anyio
    async def test_mapping_and_list(self) -> None:
        recorder = ResponseRecorder()
        await encode_xml(recorder, make_request(), {"tags": ["a", "b"], "ok": True})
        assert recorder.text == (
            XML_DECL + "<response><tags><item>a</item><item>b</item></tags><ok>true</ok></response>"
        )

    @pytest.mark.anyio
    async def test_declaration_not_duplicated(self) -> None:
        class Feed:
            def __xml__(self) -> str:
                return '<?xml version="1.0" encoding="UTF-8"?>\n<feed/>'

        recorder = ResponseRecorder()
        await encode_xml(recorder, make_request(), Feed())
        assert recorder.text.count("<?xml") == 1
        assert recorder.text.endswith("<feed/>")

    @pytest.mark.anyio
    async def test_declaration_after_leading_comment(self) -> None:
        class Feed:
            def __xml__(self) -> bytes:
                return b'<!-- generated -->\n<?xml version="1.0"?><feed/>'

        recorder = ResponseRecorder()
        await encode_xml(recorder, make_request(), Feed())
        assert recorder.text.startswith("<!-- generated -->")
        assert recorder.text.count("<?xml") == 1

    @pytest.mark.anyio
    async def test_declaration_beyond_search_limit_is_added(self) -> None:
        class Feed:
            def __xml__(self) -> str:
                return "<!--" + "x" * 20 + '--><?xml version="1.0"?><feed/>'

        recorder = ResponseRecorder()
        await xml_encoder(header_search_limit=10)(recorder, make_request(), Feed())
        assert recorder.text.startswith(XML_DECL)

    @pytest.mark.anyio
    async def test_unmarshalable_fails(self) -> None:
        recorder = ResponseRecorder()
        result = await encode_xml(recorder, make_request(), {"x": object()})
        assert isinstance(result, Failed)
        assert recorder.body == b""

    @pytest.mark.anyio
    async def test_invalid_element_name_fails(self) -> None:
        result = await encode_xml(ResponseRecorder(), make_request(), {"bad key": 1})
        assert isinstance(result, Failed)

    @pytest.mark.anyio
    async def test_malformed_child_markup_fails(self) -> None:
        recorder = ResponseRecorder()
        result = await encode_xml(recorder, make_request(), {"v": UnclosedXml()})
        assert isinstance(result, Failed)
        assert result.detail.startswith("XML marshal:")
        assert recorder.body == b""


class TestEncodeText:
    @pytest.mark.anyio
    async def test_string(self) -> None:
        recorder = ResponseRecorder()
        result = await encode_plain_text(recorder, make_request(), "hello")
        assert result == OK
        assert recorder.text == "hello"
        assert recorder.header("content-type") == "text/plain; charset=utf-8"

    @pytest.mark.anyio
    async def test_custom_str(self) -> None:
        recorder = ResponseRecorder()
        await encode_plain_text(recorder, make_request(), Banner())
        assert recorder.text == "*** hello ***"

    @pytest.mark.anyio
    async def test_text_hook(self) -> None:
        class Report:
            def __text__(self) -> bytes:
                return b"report"

        recorder = ResponseRecorder()
        await encode_plain_text(recorder, make_request(), Report())
        assert recorder.text == "report"

    @pytest.mark.anyio
    @pytest.mark.parametrize("value", [{"a": 1}, [1, 2], 42, Plain(), None])
    async def test_declines_non_text(self, value: object) -> None:
        recorder = ResponseRecorder()
        result = await encode_plain_text(recorder, make_request(), value)
        assert isinstance(result, Declined)
        assert recorder.status is None
        assert recorder.body == b""

    @pytest.mark.anyio
    async def test_html(self) -> None:
        recorder = ResponseRecorder()
        await encode_html(recorder, make_request(), "<h1>Hi</h1>")
        assert recorder.text == "<h1>Hi</h1>"
        assert recorder.header("content-type") == "text/html; charset=utf-8"


class TestEncodeData:
    @pytest.mark.anyio
    async def test_bytes(self) -> None:
        recorder = ResponseRecorder()
        result = await encode_data(recorder, make_request(), b"\x00\x01")
        assert result == OK
        assert bytes(recorder.body) == b"\x00\x01"
        assert recorder.header("content-type") == "application/octet-stream"

    @pytest.mark.anyio
    async def test_bytes_hook(self) -> None:
        class Blob:
            def __bytes__(self) -> bytes:
                return b"blob"

        recorder = ResponseRecorder()
        await encode_data(recorder, make_request(), Blob())
        assert bytes(recorder.body) == b"blob"

    @pytest.mark.anyio
    async def test_declines_structures(self) -> None:
        recorder = ResponseRecorder()
        result = await encode_data(recorder, make_request(), {"a": 1})
        assert isinstance(result, Declined)
        assert recorder.body == b""


class TestHelpers:
    @pytest.mark.anyio
    async def test_write_error(self) -> None:
        recorder = ResponseRecorder()
        await write_error(recorder, 504, "Server Timeout")
        assert recorder.status == 504
        assert recorder.text == "Server Timeout\n"
        assert recorder.header("content-type") == "text/plain; charset=utf-8"

    @pytest.mark.anyio
    async def test_no_content(self) -> None:
        recorder = ResponseRecorder()
        await no_content(recorder, make_request())
        assert recorder.status == 204
        assert recorder.body == b""

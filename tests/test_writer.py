"""Tests for parley.http.writer — ASGI response writer."""

from typing import Any

import pytest

from parley.http.writer import Flusher, ResponseWriter, Sink


class Transport:
    def __init__(self) -> None:
        self.messages: list[dict[str, Any]] = []

    async def __call__(self, message: dict[str, Any]) -> None:
        self.messages.append(message)

    @property
    def start(self) -> dict[str, Any]:
        return self.messages[0]

    @property
    def headers(self) -> dict[bytes, bytes]:
        return dict(self.start["headers"])


class TestProtocols:
    def test_response_writer_is_sink_and_flusher(self) -> None:
        writer = ResponseWriter(Transport())
        assert isinstance(writer, Sink)
        assert isinstance(writer, Flusher)


class TestUnflushed:
    @pytest.mark.anyio
    async def test_single_body_with_content_length(self) -> None:
        transport = Transport()
        writer = ResponseWriter(transport)
        writer.set_header("Content-Type", "text/plain")
        await writer.write(b"hello ")
        await writer.write(b"world")
        await writer.close()
        assert transport.messages == [
            {
                "type": "http.response.start",
                "status": 200,
                "headers": [(b"content-type", b"text/plain"), (b"content-length", b"11")],
            },
            {"type": "http.response.body", "body": b"hello world", "more_body": False},
        ]

    @pytest.mark.anyio
    async def test_close_without_writes(self) -> None:
        transport = Transport()
        writer = ResponseWriter(transport)
        await writer.close()
        assert transport.start["status"] == 200
        assert transport.headers[b"content-length"] == b"0"

    @pytest.mark.anyio
    async def test_close_is_idempotent(self) -> None:
        transport = Transport()
        writer = ResponseWriter(transport)
        await writer.close()
        await writer.close()
        assert len(transport.messages) == 2

    @pytest.mark.anyio
    async def test_write_after_close(self) -> None:
        writer = ResponseWriter(Transport())
        await writer.close()
        with pytest.raises(RuntimeError):
            await writer.write(b"late")


class TestStatus:
    @pytest.mark.anyio
    async def test_first_status_wins(self) -> None:
        transport = Transport()
        writer = ResponseWriter(transport)
        writer.write_status(201)
        writer.write_status(500)
        await writer.close()
        assert transport.start["status"] == 201

    @pytest.mark.anyio
    async def test_headers_after_status_ignored(self) -> None:
        transport = Transport()
        writer = ResponseWriter(transport)
        writer.set_header("X-Before", "1")
        writer.write_status(200)
        writer.set_header("X-After", "1")
        await writer.close()
        assert b"x-before" in transport.headers
        assert b"x-after" not in transport.headers

    @pytest.mark.anyio
    @pytest.mark.parametrize("status", [204, 304])
    async def test_bodyless_status_drops_body(self, status: int) -> None:
        transport = Transport()
        writer = ResponseWriter(transport)
        writer.write_status(status)
        await writer.write(b"ignored")
        await writer.close()
        assert transport.messages[-1]["body"] == b""
        assert transport.headers[b"content-length"] == b"0"


class TestFlush:
    @pytest.mark.anyio
    async def test_chunks_without_content_length(self) -> None:
        transport = Transport()
        writer = ResponseWriter(transport)
        writer.set_header("Content-Type", "text/event-stream")
        await writer.flush()
        await writer.write(b"one")
        await writer.flush()
        await writer.write(b"two")
        await writer.close()
        assert transport.start["status"] == 200
        assert b"content-length" not in transport.headers
        bodies = [(m["body"], m["more_body"]) for m in transport.messages[1:]]
        assert bodies == [(b"one", True), (b"two", False)]

    @pytest.mark.anyio
    async def test_flush_after_close_is_noop(self) -> None:
        transport = Transport()
        writer = ResponseWriter(transport)
        await writer.close()
        await writer.flush()
        assert len(transport.messages) == 2

"""Test utilities for parley.

Provides recorders (in-memory sinks), a request factory, an ASGI test
client, and SSE frame parsing::

    from parley.testing import ResponseRecorder, make_request
"""

from parley.testing.client import TestClient, TestResponse
from parley.testing.recorder import ResponseRecorder, SinkRecorder, make_request
from parley.testing.sse import parse_sse_frames

__all__ = [
    "ResponseRecorder",
    "SinkRecorder",
    "TestClient",
    "TestResponse",
    "make_request",
    "parse_sse_frames",
]

"""Tests for parley.context — request-scoped values and the current request."""

import pytest

from parley.context import (
    CONTENT_TYPE_KEY,
    STATUS_KEY,
    RequestContext,
    get_request,
    request_var,
    set_status,
    status_hint,
)
from parley.lifetime import Lifetime
from parley.testing import make_request


class TestRequestContext:
    def test_keeps_insertion_order(self) -> None:
        ctx = RequestContext()
        ctx.set(CONTENT_TYPE_KEY, "application/xml")
        ctx.set(STATUS_KEY, 201)
        ctx.set("custom", 1)
        assert list(ctx) == [CONTENT_TYPE_KEY, STATUS_KEY, "custom"]
        assert "custom" in ctx

    def test_default_lifetime(self) -> None:
        assert isinstance(RequestContext().lifetime, Lifetime)

    def test_given_lifetime(self) -> None:
        lifetime = Lifetime()
        assert RequestContext(lifetime=lifetime).lifetime is lifetime

    def test_separate_per_request(self) -> None:
        first, second = make_request(), make_request()
        set_status(first, 202)
        assert status_hint(first) == 202
        assert status_hint(second) is None


class TestStatusHint:
    def test_unset(self) -> None:
        assert status_hint(make_request()) is None

    def test_last_set_wins(self) -> None:
        request = make_request()
        set_status(request, 201)
        set_status(request, 202)
        assert status_hint(request) == 202

    def test_non_int_ignored(self) -> None:
        request = make_request()
        request.context.set(STATUS_KEY, "201")
        assert status_hint(request) is None


class TestCurrentRequest:
    def test_outside_request(self) -> None:
        with pytest.raises(LookupError):
            get_request()

    def test_inside_request(self) -> None:
        request = make_request()
        token = request_var.set(request)
        try:
            assert get_request() is request
        finally:
            request_var.reset(token)

from __future__ import annotations

from structlog.contextvars import bind_contextvars, get_contextvars

from hospital_gateway.logging_utils import bind_request_context


def test_bind_request_context_replaces_previous_request():
    bind_contextvars(request_id="stale", user_id="someone")

    bind_request_context("req-42", "GET", "/api/doctors")

    assert get_contextvars() == {
        "request_id": "req-42",
        "method": "GET",
        "path": "/api/doctors",
    }

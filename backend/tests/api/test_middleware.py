"""HTTP Middleware — security headers, body parsing, and access log through the App.

Tests cover:
    - Security headers on success and error responses
    - Malformed JSON, malformed form, oversized body
    - Access log line format "METHOD URL STATUS"
"""

import logging

import pytest

from userhub.api.middleware import SECURITY_HEADERS

from tests.fakes import TEST_MAX_BODY_BYTES


@pytest.mark.asyncio
async def test_security_headers_on_success(client):
    res = await client.get("/users")
    assert res.status_code == 200
    for name, value in SECURITY_HEADERS.items():
        assert res.headers[name] == value


@pytest.mark.asyncio
async def test_security_headers_on_error_responses(client):
    res = await client.get("/nowhere")
    assert res.status_code == 404
    assert res.headers["X-Frame-Options"] == "SAMEORIGIN"
    assert res.headers["X-Content-Type-Options"] == "nosniff"


@pytest.mark.asyncio
async def test_unknown_route_uses_error_envelope(client):
    res = await client.get("/nowhere")
    assert res.json()["error"]["code"] == "HTTP_404"


@pytest.mark.asyncio
async def test_malformed_json_returns_400(client):
    res = await client.post(
        "/users", content=b'{"name": ', headers={"content-type": "application/json"},
    )
    assert res.status_code == 400
    assert res.json()["error"]["code"] == "MALFORMED_PAYLOAD"


@pytest.mark.asyncio
async def test_malformed_form_returns_400(client):
    res = await client.post(
        "/users", content=b"name",
        headers={"content-type": "application/x-www-form-urlencoded"},
    )
    assert res.status_code == 400
    assert res.json()["error"]["code"] == "MALFORMED_PAYLOAD"


@pytest.mark.asyncio
async def test_oversized_body_returns_413(client):
    res = await client.post(
        "/users",
        json={"name": "x" * TEST_MAX_BODY_BYTES, "email": "big@example.com"},
    )
    assert res.status_code == 413
    assert res.json()["error"]["code"] == "PAYLOAD_TOO_LARGE"


@pytest.mark.asyncio
async def test_json_content_type_with_charset_is_parsed(client):
    res = await client.post(
        "/users",
        content=b'{"name": "Ada", "email": "ada@example.com"}',
        headers={"content-type": "application/json; charset=utf-8"},
    )
    assert res.status_code == 201


@pytest.mark.asyncio
async def test_access_log_line_per_request(client, caplog):
    caplog.set_level(logging.INFO, logger="userhub.http")

    await client.get("/users?limit=5")
    await client.post("/users", json={"name": "Ada", "email": "ada@example.com"})
    await client.get("/nowhere")

    lines = [r.getMessage() for r in caplog.records if r.name == "userhub.http"]
    assert lines == [
        "GET /users?limit=5 200",
        "POST /users 201",
        "GET /nowhere 404",
    ]
    assert all(r.category == "http" for r in caplog.records if r.name == "userhub.http")


@pytest.mark.asyncio
async def test_access_log_includes_parse_failures(client, caplog):
    caplog.set_level(logging.INFO, logger="userhub.http")

    await client.post(
        "/users", content=b"{", headers={"content-type": "application/json"},
    )

    lines = [r.getMessage() for r in caplog.records if r.name == "userhub.http"]
    assert lines == ["POST /users 400"]

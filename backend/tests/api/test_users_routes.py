"""Users Routes — CRUD through the full middleware chain.

Tests cover:
    - JSON and URL-encoded creation
    - Validation, duplicate email, not-found and malformed-id responses
    - Pagination envelope
    - Partial update and delete
"""

from uuid import uuid4

import pytest


async def create_user(client, name="Ada Lovelace", email="ada@example.com"):
    res = await client.post("/users", json={"name": name, "email": email})
    assert res.status_code == 201
    return res.json()


@pytest.mark.asyncio
async def test_create_user_from_json(client):
    res = await client.post(
        "/users", json={"name": "  Ada Lovelace ", "email": "Ada@Example.com"},
    )
    assert res.status_code == 201
    body = res.json()
    assert body["name"] == "Ada Lovelace"
    assert body["email"] == "ada@example.com"
    assert set(body) == {"id", "name", "email", "created_at", "updated_at"}


@pytest.mark.asyncio
async def test_create_user_from_urlencoded_form(client):
    res = await client.post(
        "/users", data={"name": "Grace Hopper", "email": "grace@example.com"},
    )
    assert res.status_code == 201
    assert res.json()["name"] == "Grace Hopper"


@pytest.mark.asyncio
async def test_create_user_missing_email_returns_400(client):
    res = await client.post("/users", json={"name": "No Email"})
    assert res.status_code == 400
    error = res.json()["error"]
    assert error["code"] == "VALIDATION_ERROR"
    assert "body.email" in [d["field"] for d in error["details"]]


@pytest.mark.asyncio
async def test_create_user_without_body_returns_400(client):
    res = await client.post("/users")
    assert res.status_code == 400
    assert res.json()["error"]["code"] == "VALIDATION_ERROR"


@pytest.mark.asyncio
async def test_create_user_blank_name_returns_400(client):
    res = await client.post("/users", json={"name": "   ", "email": "x@example.com"})
    assert res.status_code == 400


@pytest.mark.asyncio
async def test_create_user_duplicate_email_returns_409(client):
    await create_user(client, email="dup@example.com")
    res = await client.post("/users", json={"name": "Other", "email": "DUP@example.com"})
    assert res.status_code == 409
    assert res.json()["error"]["code"] == "EMAIL_ALREADY_EXISTS"


@pytest.mark.asyncio
async def test_get_user(client):
    created = await create_user(client)
    res = await client.get(f"/users/{created['id']}")
    assert res.status_code == 200
    assert res.json() == created


@pytest.mark.asyncio
async def test_get_unknown_user_returns_404(client):
    res = await client.get(f"/users/{uuid4()}")
    assert res.status_code == 404
    error = res.json()["error"]
    assert error["code"] == "RESOURCE_NOT_FOUND"
    assert error["category"] == "resource_not_found"


@pytest.mark.asyncio
async def test_get_user_with_malformed_id_returns_400(client):
    res = await client.get("/users/not-a-uuid")
    assert res.status_code == 400
    assert res.json()["error"]["code"] == "VALIDATION_ERROR"


@pytest.mark.asyncio
async def test_list_users_paginates(client):
    for i in range(3):
        await create_user(client, name=f"User {i}", email=f"user{i}@example.com")

    res = await client.get("/users", params={"limit": 2, "offset": 1})
    assert res.status_code == 200
    body = res.json()
    assert [u["name"] for u in body["users"]] == ["User 1", "User 2"]
    assert body["pagination"] == {"limit": 2, "offset": 1, "total": 3}


@pytest.mark.asyncio
async def test_list_users_rejects_limit_over_100(client):
    res = await client.get("/users", params={"limit": 101})
    assert res.status_code == 400


@pytest.mark.asyncio
async def test_update_user_changes_only_given_fields(client):
    created = await create_user(client)
    res = await client.patch(f"/users/{created['id']}", json={"name": "Countess"})
    assert res.status_code == 200
    body = res.json()
    assert body["name"] == "Countess"
    assert body["email"] == created["email"]


@pytest.mark.asyncio
async def test_update_user_requires_a_field(client):
    created = await create_user(client)
    res = await client.patch(f"/users/{created['id']}", json={})
    assert res.status_code == 400


@pytest.mark.asyncio
async def test_delete_user(client):
    created = await create_user(client)
    res = await client.delete(f"/users/{created['id']}")
    assert res.status_code == 204
    assert res.content == b""

    res = await client.get(f"/users/{created['id']}")
    assert res.status_code == 404


@pytest.mark.asyncio
async def test_delete_unknown_user_returns_404(client):
    res = await client.delete(f"/users/{uuid4()}")
    assert res.status_code == 404


@pytest.mark.asyncio
async def test_unexpected_storage_failure_returns_opaque_500(
    client, userhub_app, monkeypatch,
):
    async def broken_list(**kwargs):
        raise RuntimeError("index corrupted")

    monkeypatch.setattr(userhub_app.storage, "list_users", broken_list)

    res = await client.get("/users")

    assert res.status_code == 500
    assert res.json()["error"]["code"] == "INTERNAL_ERROR"
    assert "index corrupted" not in res.text
    assert res.headers["X-Frame-Options"] == "SAMEORIGIN"

"""
Hoot API Backend: HTTP API Tests
=================================

What:  End-to-end tests through the FastAPI app (ASGI, no network).
How:   `api_client` routes the session dependency to an in-memory SQLite
       database; tokens are minted with the test secret.

What we test:
    ✅ Status codes for every route (201/200/400/401/403/404/500)
    ✅ Author is always the caller; body `author` is ignored
    ✅ Comment acknowledgements are {"message": "Ok"}
    ✅ Full two-user walkthrough (create, comment, forbidden edit, delete)
"""

import pytest
from unittest.mock import AsyncMock
from uuid import uuid4

from hoot_api.exceptions import DatabaseError
from hoot_api.services.hoot_service import get_hoot_service

NEW_HOOT = {"title": "A", "text": "B", "category": "News"}


async def _create(client, headers, body=None):
    response = await client.post("/hoots", json=body or NEW_HOOT, headers=headers)
    assert response.status_code == 201
    return response.json()


class TestAuthentication:

    @pytest.mark.asyncio
    async def test_missing_token_is_401(self, api_client):
        response = await api_client.get("/hoots")

        assert response.status_code == 401
        assert response.json()["error"] == "unauthenticated"
        assert response.headers["www-authenticate"] == "Bearer"

    @pytest.mark.asyncio
    async def test_token_with_wrong_secret_is_401(self, api_client, make_token):
        token = make_token("u1", secret="some-other-secret")

        response = await api_client.get("/hoots", headers={"Authorization": f"Bearer {token}"})

        assert response.status_code == 401
        assert response.json()["message"] == "Invalid authorization token"

    @pytest.mark.asyncio
    async def test_non_bearer_scheme_is_401(self, api_client):
        response = await api_client.get("/hoots", headers={"Authorization": "Basic dXNlcjpwYXNz"})
        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_unauthenticated_create_writes_nothing(self, api_client, auth_headers):
        response = await api_client.post("/hoots", json=NEW_HOOT)
        assert response.status_code == 401

        listed = await api_client.get("/hoots", headers=auth_headers("u1"))
        assert listed.json() == []


class TestHoots:

    @pytest.mark.asyncio
    async def test_create_returns_201_with_caller_as_author(self, api_client, auth_headers):
        body = await _create(api_client, auth_headers("u1", "alice"))

        assert body["title"] == "A"
        assert body["text"] == "B"
        assert body["category"] == "News"
        assert body["author"] == {"id": "u1", "username": "alice"}
        assert body["comments"] == []
        assert "id" in body
        assert "created_at" in body

    @pytest.mark.asyncio
    async def test_create_ignores_author_in_body(self, api_client, auth_headers):
        body = await _create(
            api_client, auth_headers("u1"), {**NEW_HOOT, "author": "u2"}
        )
        assert body["author"]["id"] == "u1"

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "body",
        [
            {"title": "A", "text": "B", "category": "Cooking"},
            {"title": "A", "text": "B"},
            {"title": "   ", "text": "B", "category": "News"},
            {"title": "A", "text": "B", "category": "news"},
        ],
    )
    async def test_invalid_create_body_is_400(self, api_client, auth_headers, body):
        response = await api_client.post("/hoots", json=body, headers=auth_headers("u1"))

        assert response.status_code == 400
        assert response.json()["error"] == "validation_error"
        assert response.json()["details"]["errors"]

    @pytest.mark.asyncio
    async def test_surrounding_whitespace_is_kept(self, api_client, auth_headers):
        created = await _create(
            api_client, auth_headers("u1"), {"title": "  A  ", "text": " B\n", "category": "News"}
        )
        assert created["title"] == "  A  "
        assert created["text"] == " B\n"

        fetched = await api_client.get(f"/hoots/{created['id']}", headers=auth_headers("u1"))
        assert fetched.json()["title"] == "  A  "
        assert fetched.json()["text"] == " B\n"

        updated = await api_client.put(
            f"/hoots/{created['id']}", json={"text": "\tedited "}, headers=auth_headers("u1")
        )
        assert updated.json()["text"] == "\tedited "

    @pytest.mark.asyncio
    async def test_long_title_is_accepted(self, api_client, auth_headers):
        title = "t" * 300

        created = await _create(api_client, auth_headers("u1"), {**NEW_HOOT, "title": title})

        fetched = await api_client.get(f"/hoots/{created['id']}", headers=auth_headers("u1"))
        assert fetched.json()["title"] == title

    @pytest.mark.asyncio
    async def test_list_newest_first(self, api_client, auth_headers):
        first = await _create(api_client, auth_headers("u1"), {**NEW_HOOT, "title": "first"})
        second = await _create(api_client, auth_headers("u2"), {**NEW_HOOT, "title": "second"})

        response = await api_client.get("/hoots", headers=auth_headers("u3"))

        assert response.status_code == 200
        assert [h["id"] for h in response.json()] == [second["id"], first["id"]]

    @pytest.mark.asyncio
    async def test_get_unknown_hoot_is_404(self, api_client, auth_headers):
        response = await api_client.get(f"/hoots/{uuid4()}", headers=auth_headers("u1"))

        assert response.status_code == 404
        assert response.json()["error"] == "not_found"

    @pytest.mark.asyncio
    async def test_malformed_hoot_id_is_400(self, api_client, auth_headers):
        response = await api_client.get("/hoots/not-a-uuid", headers=auth_headers("u1"))
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_update_by_author_changes_only_given_fields(self, api_client, auth_headers):
        created = await _create(api_client, auth_headers("u1"))

        response = await api_client.put(
            f"/hoots/{created['id']}",
            json={"title": "Edited", "author": "u2"},
            headers=auth_headers("u1"),
        )

        assert response.status_code == 200
        body = response.json()
        assert body["title"] == "Edited"
        assert body["text"] == "B"
        assert body["category"] == "News"
        assert body["author"]["id"] == "u1"

    @pytest.mark.asyncio
    async def test_update_with_null_field_is_400(self, api_client, auth_headers):
        created = await _create(api_client, auth_headers("u1"))

        response = await api_client.put(
            f"/hoots/{created['id']}", json={"title": None}, headers=auth_headers("u1")
        )
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_update_by_non_author_is_403_and_unchanged(self, api_client, auth_headers):
        created = await _create(api_client, auth_headers("u1"))

        response = await api_client.put(
            f"/hoots/{created['id']}", json={"title": "Hijacked"}, headers=auth_headers("u2")
        )
        assert response.status_code == 403
        assert response.json()["message"] == "You're not allowed to do that!"

        fetched = await api_client.get(f"/hoots/{created['id']}", headers=auth_headers("u2"))
        assert fetched.json()["title"] == "A"

    @pytest.mark.asyncio
    async def test_update_unknown_hoot_is_404(self, api_client, auth_headers):
        response = await api_client.put(
            f"/hoots/{uuid4()}", json={"title": "x"}, headers=auth_headers("u1")
        )
        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_delete_by_non_author_is_403(self, api_client, auth_headers):
        created = await _create(api_client, auth_headers("u1"))

        response = await api_client.delete(f"/hoots/{created['id']}", headers=auth_headers("u2"))

        assert response.status_code == 403
        still_there = await api_client.get(f"/hoots/{created['id']}", headers=auth_headers("u1"))
        assert still_there.status_code == 200

    @pytest.mark.asyncio
    async def test_delete_by_author_returns_deleted_hoot(self, api_client, auth_headers):
        created = await _create(api_client, auth_headers("u1"))

        response = await api_client.delete(f"/hoots/{created['id']}", headers=auth_headers("u1"))

        assert response.status_code == 200
        assert response.json()["id"] == created["id"]
        gone = await api_client.get(f"/hoots/{created['id']}", headers=auth_headers("u1"))
        assert gone.status_code == 404


class TestComments:

    @pytest.mark.asyncio
    async def test_add_comment_returns_201_with_caller_as_author(self, api_client, auth_headers):
        hoot = await _create(api_client, auth_headers("u1"))

        response = await api_client.post(
            f"/hoots/{hoot['id']}/comments",
            json={"text": "hi", "author": "u1"},
            headers=auth_headers("u2", "bob"),
        )

        assert response.status_code == 201
        assert response.json()["text"] == "hi"
        assert response.json()["author"] == {"id": "u2", "username": "bob"}

    @pytest.mark.asyncio
    async def test_comment_on_unknown_hoot_is_404(self, api_client, auth_headers):
        response = await api_client.post(
            f"/hoots/{uuid4()}/comments", json={"text": "hi"}, headers=auth_headers("u2")
        )
        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_blank_comment_is_400(self, api_client, auth_headers):
        hoot = await _create(api_client, auth_headers("u1"))

        response = await api_client.post(
            f"/hoots/{hoot['id']}/comments", json={"text": "  "}, headers=auth_headers("u2")
        )
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_update_and_delete_comment_acknowledge_ok(self, api_client, auth_headers):
        hoot = await _create(api_client, auth_headers("u1"))
        comment = (
            await api_client.post(
                f"/hoots/{hoot['id']}/comments", json={"text": "hi"}, headers=auth_headers("u2")
            )
        ).json()
        url = f"/hoots/{hoot['id']}/comments/{comment['id']}"

        updated = await api_client.put(url, json={"text": "hello"}, headers=auth_headers("u2"))
        assert updated.status_code == 200
        assert updated.json() == {"message": "Ok"}

        fetched = await api_client.get(f"/hoots/{hoot['id']}", headers=auth_headers("u1"))
        assert fetched.json()["comments"][0]["text"] == "hello"

        deleted = await api_client.delete(url, headers=auth_headers("u2"))
        assert deleted.status_code == 200
        assert deleted.json() == {"message": "Ok"}

        fetched = await api_client.get(f"/hoots/{hoot['id']}", headers=auth_headers("u1"))
        assert fetched.json()["comments"] == []

    @pytest.mark.asyncio
    async def test_unknown_comment_is_404(self, api_client, auth_headers):
        hoot = await _create(api_client, auth_headers("u1"))
        url = f"/hoots/{hoot['id']}/comments/{uuid4()}"

        assert (await api_client.put(url, json={"text": "x"}, headers=auth_headers("u1"))).status_code == 404
        assert (await api_client.delete(url, headers=auth_headers("u1"))).status_code == 404

    @pytest.mark.asyncio
    async def test_comment_on_unknown_hoot_edit_and_delete_are_404(self, api_client, auth_headers):
        url = f"/hoots/{uuid4()}/comments/{uuid4()}"

        edited = await api_client.put(url, json={"text": "x"}, headers=auth_headers("u1"))
        removed = await api_client.delete(url, headers=auth_headers("u1"))

        assert edited.status_code == 404
        assert removed.status_code == 404
        assert edited.json()["error"] == "not_found"

    @pytest.mark.asyncio
    async def test_comment_whitespace_is_kept(self, api_client, auth_headers):
        hoot = await _create(api_client, auth_headers("u1"))

        response = await api_client.post(
            f"/hoots/{hoot['id']}/comments", json={"text": "  hi  "}, headers=auth_headers("u2")
        )

        assert response.json()["text"] == "  hi  "
        fetched = await api_client.get(f"/hoots/{hoot['id']}", headers=auth_headers("u1"))
        assert fetched.json()["comments"][0]["text"] == "  hi  "


class TestTwoUserWalkthrough:
    """U1 posts, U2 reads and comments, U2 cannot edit, U1 edits and deletes."""

    @pytest.mark.asyncio
    async def test_walkthrough(self, api_client, auth_headers):
        u1 = auth_headers("u1", "owl")
        u2 = auth_headers("u2", "finch")

        hoot = await _create(api_client, u1)
        hoot_url = f"/hoots/{hoot['id']}"

        read = await api_client.get(hoot_url, headers=u2)
        assert read.status_code == 200
        assert read.json()["author"] == {"id": "u1", "username": "owl"}

        commented = await api_client.post(f"{hoot_url}/comments", json={"text": "hi"}, headers=u2)
        assert commented.status_code == 201

        forbidden = await api_client.put(hoot_url, json={"title": "X"}, headers=u2)
        assert forbidden.status_code == 403

        edited = await api_client.put(hoot_url, json={"title": "X"}, headers=u1)
        assert edited.status_code == 200
        assert edited.json()["title"] == "X"
        assert [c["text"] for c in edited.json()["comments"]] == ["hi"]
        assert edited.json()["comments"][0]["author"] == {"id": "u2", "username": "finch"}

        removed = await api_client.delete(hoot_url, headers=u1)
        assert removed.status_code == 200

        gone = await api_client.get(hoot_url, headers=u2)
        assert gone.status_code == 404


class TestServerErrors:

    @pytest.mark.asyncio
    async def test_database_error_is_generic_500(self, api_client, auth_headers):
        from hoot_api.main import app

        failing = AsyncMock()
        failing.list_hoots = AsyncMock(
            side_effect=DatabaseError(
                message="Could not retrieve hoots.", context={"error_type": "OperationalError"}
            )
        )
        app.dependency_overrides[get_hoot_service] = lambda: failing

        response = await api_client.get("/hoots", headers=auth_headers("u1"))

        assert response.status_code == 500
        body = response.json()
        assert body["error"] == "server_error"
        assert "OperationalError" not in response.text
        assert body["request_id"]


class TestHealth:

    @pytest.mark.asyncio
    async def test_health_needs_no_token(self, api_client):
        response = await api_client.get("/health")

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "healthy"
        assert body["database"] == "connected"
        assert "version" in body

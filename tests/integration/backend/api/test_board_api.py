"""
Integration Tests for the Board API endpoints.

Every request goes through the full stack: routing, auth and nonce
dependencies, the board service and the exception handlers.
"""

import pytest

from modules.backend.core.security import create_nonce

BOARD = "/api/v1/board"


@pytest.fixture
def author_headers(auth_headers):
    return auth_headers("3", "author")


async def _add_note(client, headers) -> dict:
    response = await client.post(f"{BOARD}/notes", headers=headers)
    assert response.status_code == 201, response.text
    return response.json()["data"]


class TestAuthentication:
    """Tests for token and nonce enforcement."""

    async def test_missing_token_is_401(self, client, api):
        response = await client.get(BOARD)

        api.assert_error(response, 401, "AUTH_UNAUTHORIZED")
        assert response.headers["WWW-Authenticate"] == "Bearer"

    async def test_garbage_token_is_401(self, client, api):
        response = await client.get(BOARD, headers={"Authorization": "Bearer not-a-jwt"})
        api.assert_error(response, 401, "AUTH_UNAUTHORIZED")

    async def test_mutation_without_nonce_is_403(self, client, api, auth_headers):
        response = await client.post(f"{BOARD}/notes", headers=auth_headers("3", "author", nonce=False))
        api.assert_error(response, 403, "AUTHZ_INVALID_NONCE")

    async def test_nonce_of_another_actor_is_rejected(self, client, api, auth_headers):
        headers = auth_headers("3", "author", nonce=False)
        headers["X-Board-Nonce"] = create_nonce("4")

        response = await client.post(f"{BOARD}/notes", headers=headers)

        api.assert_error(response, 403, "AUTHZ_INVALID_NONCE")

    async def test_subscriber_has_no_board(self, client, api, auth_headers):
        response = await client.get(BOARD, headers=auth_headers("5", "subscriber"))
        api.assert_error(response, 403, "AUTHZ_FORBIDDEN")


class TestNonceEndpoint:
    """Tests for GET /board/nonce."""

    async def test_issued_nonce_unlocks_mutations(self, client, api, auth_headers):
        headers = auth_headers("3", "author", nonce=False)

        data = api.assert_success(await client.get(f"{BOARD}/nonce", headers=headers))["data"]
        assert data["action"] == "board_notes"
        assert data["expires_in"] == 86400

        headers["X-Board-Nonce"] = data["nonce"]
        api.assert_success(await client.post(f"{BOARD}/notes", headers=headers), 201)


class TestReadBoard:
    """Tests for GET /board and GET /board/notes/{id}."""

    async def test_empty_board(self, client, api, author_headers):
        data = api.assert_success(await client.get(BOARD, headers=author_headers))["data"]

        assert data["notes"] == []
        assert data["default_color"] == "#fff9c4"
        assert "#bae6fd" in data["color_presets"]

    async def test_envelope_carries_request_id(self, client, api, author_headers):
        headers = {**author_headers, "X-Request-ID": "req-123"}

        response = await client.get(BOARD, headers=headers)

        assert api.assert_success(response)["metadata"]["request_id"] == "req-123"
        assert response.headers["X-Request-ID"] == "req-123"

    async def test_private_note_hidden_from_admin_until_shared(self, client, api, auth_headers, author_headers):
        note = await _add_note(client, author_headers)
        admin_headers = auth_headers("1", "administrator")

        board = api.assert_success(await client.get(BOARD, headers=admin_headers))["data"]
        assert board["notes"] == []
        api.assert_error(
            await client.get(f"{BOARD}/notes/{note['id']}", headers=admin_headers), 403
        )

        await client.patch(
            f"{BOARD}/notes/{note['id']}/visibility",
            json={"visibility": "all_admins"},
            headers=author_headers,
        )

        board = api.assert_success(await client.get(BOARD, headers=admin_headers))["data"]
        assert [n["id"] for n in board["notes"]] == [note["id"]]

    async def test_missing_note_is_404(self, client, api, author_headers):
        response = await client.get(f"{BOARD}/notes/missing", headers=author_headers)
        api.assert_error(response, 404, "RES_NOT_FOUND")


class TestNoteMutations:
    """Tests for the per-operation mutation endpoints."""

    async def test_add_note_defaults(self, client, author_headers):
        note = await _add_note(client, author_headers)

        assert note["owner_id"] == "3"
        assert note["title"] == "Untitled Note"
        assert note["visibility"] == "only_me"
        assert note["order_position"] == 1
        assert note["checklist"] == []
        assert note["collapsed"] is False

    async def test_rename(self, client, api, author_headers):
        note = await _add_note(client, author_headers)

        response = await client.patch(
            f"{BOARD}/notes/{note['id']}/title",
            json={"title": "Launch"},
            headers=author_headers,
        )

        assert api.assert_success(response)["data"]["title"] == "Launch"

    async def test_rename_too_long_is_400(self, client, api, author_headers):
        note = await _add_note(client, author_headers)

        response = await client.patch(
            f"{BOARD}/notes/{note['id']}/title",
            json={"title": "x" * 300},
            headers=author_headers,
        )

        data = api.assert_error(response, 400, "VAL_INVALID_INPUT")
        assert "title" in data["error"]["details"]

    async def test_rename_length_counts_stripped_title(self, client, api, author_headers):
        note = await _add_note(client, author_headers)

        response = await client.patch(
            f"{BOARD}/notes/{note['id']}/title",
            json={"title": "  " + "x" * 255 + "  "},
            headers=author_headers,
        )

        assert api.assert_success(response)["data"]["title"] == "x" * 255

    async def test_editor_rename_of_hidden_note_returns_id_only(self, client, api, auth_headers):
        admin_headers = auth_headers("1", "administrator")
        note = await _add_note(client, admin_headers)
        api.assert_success(
            await client.put(
                f"{BOARD}/notes/{note['id']}/checklist",
                json={"checklist": [{"id": "s", "text": "root password hunter2"}]},
                headers=admin_headers,
            )
        )

        response = await client.patch(
            f"{BOARD}/notes/{note['id']}/title",
            json={"title": "x"},
            headers=auth_headers("2", "editor"),
        )

        assert api.assert_success(response)["data"] == {"id": note["id"], "updated": True}
        assert "hunter2" not in response.text
        current = api.assert_success(await client.get(f"{BOARD}/notes/{note['id']}", headers=admin_headers))["data"]
        assert current["title"] == "x"

    async def test_editor_cannot_move_task_out_of_hidden_note(self, client, api, auth_headers):
        admin_headers = auth_headers("1", "administrator")
        editor_headers = auth_headers("2", "editor")
        hidden = await _add_note(client, admin_headers)
        own = await _add_note(client, editor_headers)
        await client.put(
            f"{BOARD}/notes/{hidden['id']}/checklist",
            json={"checklist": [{"id": "s", "text": "secret"}]},
            headers=admin_headers,
        )

        response = await client.post(
            f"{BOARD}/notes/{hidden['id']}/checklist/move",
            json={"target_note_id": own["id"], "item_id": "s"},
            headers=editor_headers,
        )

        api.assert_error(response, 403, "AUTHZ_FORBIDDEN")
        assert "secret" not in response.text
        current = api.assert_success(await client.get(f"{BOARD}/notes/{hidden['id']}", headers=admin_headers))["data"]
        assert [i["id"] for i in current["checklist"]] == ["s"]

    async def test_recolor_invalid_keeps_color(self, client, api, author_headers):
        note = await _add_note(client, author_headers)
        url = f"{BOARD}/notes/{note['id']}"

        api.assert_success(await client.patch(f"{url}/color", json={"color": "#BBF7D0"}, headers=author_headers))
        response = await client.patch(f"{url}/color", json={"color": "green"}, headers=author_headers)

        data = api.assert_error(response, 400, "VAL_INVALID_INPUT")
        assert "color" in data["error"]["details"]
        current = api.assert_success(await client.get(url, headers=author_headers))["data"]
        assert current["color"] == "#bbf7d0"

    async def test_visibility_unknown_value_is_400(self, client, api, author_headers):
        note = await _add_note(client, author_headers)

        response = await client.patch(
            f"{BOARD}/notes/{note['id']}/visibility",
            json={"visibility": "public"},
            headers=author_headers,
        )

        api.assert_error(response, 400, "VAL_INVALID_INPUT")

    async def test_other_author_cannot_rename(self, client, api, auth_headers, author_headers):
        note = await _add_note(client, author_headers)

        response = await client.patch(
            f"{BOARD}/notes/{note['id']}/title",
            json={"title": "hijacked"},
            headers=auth_headers("4", "author"),
        )

        api.assert_error(response, 403, "AUTHZ_FORBIDDEN")

    async def test_checklist_and_move(self, client, api, author_headers):
        source = await _add_note(client, author_headers)
        target = await _add_note(client, author_headers)

        saved = api.assert_success(
            await client.put(
                f"{BOARD}/notes/{source['id']}/checklist",
                json={"checklist": [{"id": "a", "text": "draft", "completed": True}, {"id": "b", "text": "review"}]},
                headers=author_headers,
            )
        )["data"]
        assert saved["task_count"] == 2
        assert saved["completed_count"] == 1

        moved = api.assert_success(
            await client.post(
                f"{BOARD}/notes/{source['id']}/checklist/move",
                json={"target_note_id": target["id"], "item_id": "a"},
                headers=author_headers,
            )
        )["data"]

        assert moved["item"] == {"id": "a", "text": "draft", "completed": True}
        assert [i["id"] for i in moved["source"]["checklist"]] == ["b"]
        assert [i["id"] for i in moved["target"]["checklist"]] == ["a"]

    async def test_malformed_checklist_is_400(self, client, api, author_headers):
        note = await _add_note(client, author_headers)

        response = await client.put(
            f"{BOARD}/notes/{note['id']}/checklist",
            json={"checklist": "{broken"},
            headers=author_headers,
        )

        api.assert_error(response, 400, "VAL_INVALID_INPUT")

    async def test_collapse_is_per_actor(self, client, api, auth_headers, author_headers):
        note = await _add_note(client, author_headers)

        data = api.assert_success(
            await client.put(
                f"{BOARD}/notes/{note['id']}/collapsed",
                json={"collapsed": True},
                headers=author_headers,
            )
        )["data"]
        assert data == {"note_id": note["id"], "collapsed": True, "collapsed_ids": [note["id"]]}

        board = api.assert_success(await client.get(BOARD, headers=author_headers))["data"]
        assert board["notes"][0]["collapsed"] is True

        await client.patch(
            f"{BOARD}/notes/{note['id']}/visibility",
            json={"visibility": "all_admins"},
            headers=author_headers,
        )
        admin_board = api.assert_success(await client.get(BOARD, headers=auth_headers("1", "administrator")))["data"]
        assert admin_board["notes"][0]["collapsed"] is False

    async def test_reorder(self, client, api, author_headers):
        a = await _add_note(client, author_headers)
        b = await _add_note(client, author_headers)

        data = api.assert_success(
            await client.put(f"{BOARD}/order", json={"order": [b["id"], "ghost", a["id"]]}, headers=author_headers)
        )["data"]
        assert data["order"] == [b["id"], a["id"]]

        board = api.assert_success(await client.get(BOARD, headers=author_headers))["data"]
        assert [(n["id"], n["order_position"]) for n in board["notes"]] == [(b["id"], 1), (a["id"], 2)]

    async def test_reorder_empty_is_400(self, client, api, author_headers):
        response = await client.put(f"{BOARD}/order", json={"order": ""}, headers=author_headers)
        api.assert_error(response, 400, "VAL_INVALID_INPUT")

    async def test_delete(self, client, api, author_headers):
        note = await _add_note(client, author_headers)

        data = api.assert_success(await client.delete(f"{BOARD}/notes/{note['id']}", headers=author_headers))["data"]

        assert data == {"id": note["id"], "deleted": True}
        api.assert_error(await client.get(f"{BOARD}/notes/{note['id']}", headers=author_headers), 404)

    async def test_missing_body_field_is_422(self, client, api, author_headers):
        note = await _add_note(client, author_headers)

        response = await client.patch(f"{BOARD}/notes/{note['id']}/color", json={}, headers=author_headers)

        api.assert_validation_error(response, "color")

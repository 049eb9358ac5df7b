"""
Integration Tests for the board action endpoint.

POST /board/actions carries ``{action, note_id, payload, nonce}`` and
dispatches to the matching board operation.
"""

import pytest

from modules.backend.api.v1.endpoints.actions import ACTION_HANDLERS
from modules.backend.core.security import create_nonce

ACTIONS = "/api/v1/board/actions"


@pytest.fixture
def headers(auth_headers):
    return auth_headers("3", "author", nonce=False)


@pytest.fixture
def act(client, headers):
    """Post one action with a valid body nonce for actor 3."""

    async def _act(action, note_id=None, payload=None, **extra):
        body = {"action": action, "note_id": note_id, "payload": payload, "nonce": create_nonce("3")}
        body.update(extra)
        return await client.post(ACTIONS, json=body, headers=headers)

    return _act


async def _new_note_id(act, api) -> str:
    return api.assert_success(await act("add"))["data"]["id"]


class TestNonce:
    """Tests for nonce handling on the action endpoint."""

    async def test_body_nonce_accepted(self, act, api):
        api.assert_success(await act("add"))

    async def test_header_nonce_accepted(self, client, api, auth_headers):
        response = await client.post(ACTIONS, json={"action": "add"}, headers=auth_headers("3", "author"))
        api.assert_success(response)

    async def test_missing_nonce_rejected(self, client, api, headers):
        response = await client.post(ACTIONS, json={"action": "add"}, headers=headers)
        api.assert_error(response, 403, "AUTHZ_INVALID_NONCE")

    async def test_wrong_nonce_rejected(self, act, api):
        api.assert_error(await act("add", nonce="deadbeef"), 403, "AUTHZ_INVALID_NONCE")


class TestDispatch:
    """Tests for each action."""

    def test_every_action_is_registered(self):
        assert set(ACTION_HANDLERS) == {
            "add",
            "delete",
            "save_title",
            "save_color",
            "save_visibility",
            "save_checklist",
            "toggle_minimize",
            "save_order",
            "move_task",
        }

    async def test_unknown_action(self, act, api):
        data = api.assert_error(await act("explode"), 400, "VAL_INVALID_INPUT")
        assert "action" in data["error"]["details"]

    async def test_missing_note_id(self, act, api):
        data = api.assert_error(await act("save_title", payload="x"), 400, "VAL_INVALID_INPUT")
        assert "note_id" in data["error"]["details"]

    async def test_save_title_plain_and_object_payload(self, act, api):
        note_id = await _new_note_id(act, api)

        assert api.assert_success(await act("save_title", note_id, "Plan"))["data"]["title"] == "Plan"
        assert api.assert_success(await act("save_title", note_id, {"title": "Ship"}))["data"]["title"] == "Ship"

    async def test_save_color(self, act, api):
        note_id = await _new_note_id(act, api)

        assert api.assert_success(await act("save_color", note_id, "#FBCFE8"))["data"]["color"] == "#fbcfe8"
        api.assert_error(await act("save_color", note_id, "pink"), 400, "VAL_INVALID_INPUT")

    async def test_save_visibility(self, act, api):
        note_id = await _new_note_id(act, api)

        data = api.assert_success(await act("save_visibility", note_id, "editors_and_above"))["data"]

        assert data["visibility"] == "editors_and_above"

    async def test_save_checklist_json_string(self, act, api):
        note_id = await _new_note_id(act, api)

        data = api.assert_success(
            await act("save_checklist", note_id, '[{"id": "t1", "text": "write", "completed": "false"}]')
        )["data"]

        assert data["checklist"] == [{"id": "t1", "text": "write", "completed": False}]

    async def test_toggle_minimize(self, act, api):
        note_id = await _new_note_id(act, api)

        collapsed = api.assert_success(await act("toggle_minimize", note_id, {"collapsed": "1"}))["data"]
        expanded = api.assert_success(await act("toggle_minimize", note_id, "0"))["data"]

        assert collapsed["collapsed_ids"] == [note_id]
        assert expanded == {"note_id": note_id, "collapsed": False, "collapsed_ids": []}

    async def test_save_order_comma_string(self, act, api):
        a = await _new_note_id(act, api)
        b = await _new_note_id(act, api)

        data = api.assert_success(await act("save_order", payload=f"{b},{a}"))["data"]

        assert data["order"] == [b, a]

    async def test_move_task(self, act, api):
        source = await _new_note_id(act, api)
        target = await _new_note_id(act, api)
        await act("save_checklist", source, [{"id": "m", "text": "move me"}])

        data = api.assert_success(
            await act("move_task", source, {"target_note_id": target, "item_id": "m", "position": "0"})
        )["data"]

        assert data["source"]["checklist"] == []
        assert [i["id"] for i in data["target"]["checklist"]] == ["m"]

    async def test_move_task_requires_target_and_item(self, act, api):
        source = await _new_note_id(act, api)
        api.assert_error(await act("move_task", source, {"item_id": "m"}), 400, "VAL_INVALID_INPUT")

    async def test_delete(self, act, api):
        note_id = await _new_note_id(act, api)

        data = api.assert_success(await act("delete", note_id))["data"]

        assert data == {"id": note_id, "deleted": True}
        api.assert_error(await act("delete", note_id), 404, "RES_NOT_FOUND")

    async def test_empty_action_name_is_422(self, act, api):
        api.assert_validation_error(await act(""), "action")


class TestHiddenNotes:
    """Actions by an editor on another user's private note."""

    async def test_editor_change_returns_id_only(self, client, api, auth_headers):
        admin_headers = auth_headers("1", "administrator")
        editor_headers = auth_headers("2", "editor")
        note_id = api.assert_success(await client.post(ACTIONS, json={"action": "add"}, headers=admin_headers))[
            "data"
        ]["id"]
        await client.post(
            ACTIONS,
            json={"action": "save_checklist", "note_id": note_id, "payload": [{"id": "s", "text": "secret"}]},
            headers=admin_headers,
        )

        for action, payload in (
            ("save_title", "x"),
            ("save_color", "#d9f99d"),
            ("save_visibility", "only_me"),
            ("save_checklist", [{"id": "s", "text": "secret"}]),
        ):
            response = await client.post(
                ACTIONS,
                json={"action": action, "note_id": note_id, "payload": payload},
                headers=editor_headers,
            )
            assert api.assert_success(response)["data"] == {"id": note_id, "updated": True}
            assert "secret" not in response.text

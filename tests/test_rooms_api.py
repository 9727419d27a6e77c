"""
tests.test_rooms_api
~~~~~~~~~~~~~~~~~~~~

HTTP 接口集成测试 —— 用内存后端替代 MongoDB（不进入 lifespan，不连接数据库）。
"""
from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from conftest import FakeRoomBackend
from confroom.db.room_repository import RoomBackendError
from confroom.main import app

ALICE = {"X-User-Name": "alice"}
ADMIN = {"X-User-Name": "root", "X-User-Roles": "admin"}
EDITOR = {"X-User-Name": "ed", "X-User-Roles": "editor"}


@pytest.fixture()
def client(backend: FakeRoomBackend):
    app.state.room_repository = backend
    yield TestClient(app)
    del app.state.room_repository


def _rows(response) -> list[dict]:
    return response.json()["data"]["rows"]


class TestListRooms:
    """测试房间表格接口。"""

    def test_requires_identity(self, client) -> None:
        assert client.get("/api/rooms").status_code == 401

    def test_regular_user_sees_own_rooms(self, client) -> None:
        response = client.get("/api/rooms", headers=ALICE)
        body = response.json()

        assert response.status_code == 200
        assert body["code"] == 200
        assert body["data"]["loading"] is False
        assert body["data"]["canAdd"] is True
        assert {row["cells"]["name"]["href"] for row in _rows(response)} == {
            "/rooms/alice/room_0", "/rooms/alice/room_1",
        }
        assert all(row["cells"]["conference"]["href"] is None for row in _rows(response))

    def test_privileged_users_see_all_owners(self, client) -> None:
        for headers in (ADMIN, EDITOR):
            rows = _rows(client.get("/api/rooms", headers=headers))

            assert len(rows) == 4
            assert rows[0]["cells"]["conference"]["href"] == "/conferences/conf_a"

    def test_sort_by_meeting_number_descending(self, client) -> None:
        response = client.get(
            "/api/rooms", params={"sort": "meetingNumber", "order": "descend"}, headers=ADMIN,
        )

        assert [row["cells"]["meetingNumber"]["text"] for row in _rows(response)] == ["9", "2", "100", "10"]
        assert response.json()["data"]["sort"] == {"column": "meetingNumber", "order": "descend"}

    def test_sort_by_unsortable_column(self, client) -> None:
        response = client.get("/api/rooms", params={"sort": "action"}, headers=ALICE)

        assert response.status_code == 422

    def test_status_labels_localized(self, client) -> None:
        response = client.get("/api/rooms", headers={**ALICE, "Accept-Language": "zh-CN,zh;q=0.9"})
        data = response.json()["data"]

        assert data["title"] == "房间"
        labels = {row["key"]: row["cells"]["status"]["text"] for row in data["rows"]}
        assert labels == {"room_0": "已结束", "room_1": "进行中"}

    def test_list_failure_reports_loading(self, client, backend) -> None:
        backend.fail_list = RoomBackendError("db down")

        body = client.get("/api/rooms", headers=ALICE).json()

        assert body["code"] == 503
        assert body["data"]["loading"] is True
        assert body["data"]["rows"] == []
        assert "db down" in body["msg"]


class TestCreateRoom:
    """测试新建接口。"""

    def test_create_prepends(self, client, backend) -> None:
        response = client.post("/api/rooms", headers=ALICE)
        body = response.json()

        assert body["code"] == 200
        assert body["msg"] == "Room added successfully"
        assert [row["key"] for row in body["data"]["rows"]][0] == "room_2"
        assert backend.created[0].display_name == "New Room - 2"
        assert backend.created[0].owner == "alice"

    def test_create_failure(self, client, backend) -> None:
        backend.fail_create = RoomBackendError("quota exceeded")

        body = client.post("/api/rooms", headers=ALICE).json()

        assert body["code"] == 400
        assert body["msg"] == "Room failed to add: quota exceeded"
        assert len(body["data"]["rows"]) == 2


class TestSingleRoom:
    """测试单个房间的查看 / 修改 / 删除。"""

    def test_get_room(self, client) -> None:
        body = client.get("/api/rooms/alice/room_1", headers=ALICE).json()

        assert body["data"]["name"] == "room_1"
        assert body["data"]["status"] == "Started"

    def test_get_foreign_room_forbidden(self, client) -> None:
        assert client.get("/api/rooms/bob/room_0", headers=ALICE).status_code == 403

    def test_get_missing_room(self, client) -> None:
        assert client.get("/api/rooms/alice/nope", headers=ALICE).status_code == 404

    def test_update_room(self, client, backend) -> None:
        response = client.put(
            "/api/rooms/alice/room_0",
            json={"displayName": "Weekly sync", "passcode": "000000"},
            headers=ALICE,
        )
        data = response.json()["data"]

        assert data["displayName"] == "Weekly sync"
        assert data["passcode"] == "000000"
        assert data["name"] == "room_0"
        assert data["createdTime"] == "2022-03-01T10:00:00+08:00"

    def test_update_missing_room(self, client) -> None:
        response = client.put("/api/rooms/alice/nope", json={"passcode": "1"}, headers=ALICE)

        assert response.status_code == 404

    def test_delete_requires_confirmation(self, client, backend) -> None:
        body = client.delete("/api/rooms/alice/room_0", headers=ALICE).json()

        assert body["code"] == 428
        assert body["msg"] == "Sure to delete room: room_0 ?"
        assert backend.deleted == []
        assert len(body["data"]["rows"]) == 2

    def test_delete_confirmed(self, client, backend) -> None:
        body = client.delete(
            "/api/rooms/alice/room_0", params={"confirm": "true"}, headers=ALICE,
        ).json()

        assert body["code"] == 200
        assert body["msg"] == "Room deleted successfully"
        assert [row["key"] for row in body["data"]["rows"]] == ["room_1"]
        assert [r.id for r in backend.deleted] == ["alice/room_0"]

    def test_delete_failure(self, client, backend) -> None:
        backend.fail_delete = RoomBackendError("locked")

        body = client.delete(
            "/api/rooms/alice/room_0", params={"confirm": "true"}, headers=ALICE,
        ).json()

        assert body["code"] == 400
        assert body["msg"] == "Room failed to delete: locked"
        assert len(body["data"]["rows"]) == 2

    def test_delete_foreign_room_forbidden(self, client) -> None:
        response = client.delete("/api/rooms/bob/room_0", params={"confirm": "true"}, headers=ALICE)

        assert response.status_code == 403

    def test_admin_deletes_any_room(self, client, backend) -> None:
        body = client.delete(
            "/api/rooms/bob/room_0", params={"confirm": "true"}, headers=ADMIN,
        ).json()

        assert body["code"] == 200
        assert [r.id for r in backend.deleted] == ["bob/room_0"]

    def test_delete_missing_room(self, client) -> None:
        response = client.delete("/api/rooms/alice/nope", params={"confirm": "true"}, headers=ALICE)

        assert response.status_code == 404


class TestPlayer:
    """测试播放器接口。"""

    def test_player_config_desktop(self, client) -> None:
        data = client.get("/api/rooms/alice/room_0/player", headers=ALICE).json()["data"]

        assert data["source"] == "https://live.example.com/live/alice_room_0.flv"
        assert data["width"] == "640px"
        assert data["height"] == "360px"
        assert data["isLive"] is True
        assert data["rePlay"] is False

    def test_player_config_mobile_agent(self, client) -> None:
        headers = {**ALICE, "User-Agent": "Mozilla/5.0 (iPhone; CPU iPhone OS 16_0 like Mac OS X)"}

        data = client.get("/api/rooms/alice/room_0/player", headers=headers).json()["data"]

        assert data["width"] == "100%"

    def test_player_config_explicit_mobile_flag(self, client) -> None:
        data = client.get(
            "/api/rooms/alice/room_0/player", params={"mobile": "true"}, headers=ALICE,
        ).json()["data"]

        assert data["width"] == "100%"

    def test_ready_keeps_aspect_ratio(self, client) -> None:
        response = client.post(
            "/api/rooms/alice/room_0/player/ready",
            json={"nativeWidth": 1920, "nativeHeight": 1080, "renderedWidth": 640},
            headers=ALICE,
        )
        data = response.json()["data"]

        assert data == {"resized": True, "width": 640, "height": 360}

    def test_ready_without_metadata(self, client) -> None:
        data = client.post(
            "/api/rooms/alice/room_0/player/ready",
            json={"nativeWidth": 0, "nativeHeight": 1080, "renderedWidth": 640},
            headers=ALICE,
        ).json()["data"]

        assert data == {"resized": False, "width": None, "height": None}

    def test_player_for_foreign_room_forbidden(self, client) -> None:
        assert client.get("/api/rooms/bob/room_0/player", headers=ALICE).status_code == 403


def test_health(client) -> None:
    body = client.get("/health").json()

    assert body["status"] == "ok"
    assert body["environment"] == "test"

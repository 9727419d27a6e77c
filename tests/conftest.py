"""
tests.conftest
~~~~~~~~~~~~~~

共享 pytest fixtures —— 用内存版房间后端替代 MongoDB，
使单元测试可在无数据库环境下快速运行。
"""
from __future__ import annotations

import os

import pytest

# ── 在所有测试导入前设置环境变量 ─────────────────────────────────────
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("RATE_LIMIT_ENABLED", "false")

from confroom.db.room_repository import (  # noqa: E402
    RoomAlreadyExistsError,
    RoomNotFoundError,
)
from confroom.schemas.room import Room, RoomUpdate  # noqa: E402
from confroom.services.notifier import CollectingNotifier  # noqa: E402
from confroom.services.room_directory import CurrentUser, RoomDefaults  # noqa: E402


def make_room(owner: str, name: str, **overrides) -> Room:
    """构造一个测试用房间，未指定的字段使用可辨认的默认值。"""
    fields = {
        "owner": owner,
        "name": name,
        "created_time": "2022-03-01T10:00:00+08:00",
        "display_name": f"Display {name}",
        "conference": "conf_a",
        "meeting_number": "123456789",
        "passcode": "123456",
        "invite_link": f"https://zoom.us/j/{name}",
        "status": "Ended",
        "video_width": 640,
        "video_height": 360,
    }
    fields.update(overrides)
    return Room(**fields)


class FakeRoomBackend:
    """内存版房间后端，行为与 ``RoomRepository`` 保持一致。

    把 ``fail_list`` / ``fail_create`` / ``fail_delete`` 设为异常实例即可模拟失败。
    """

    def __init__(self, rooms: list[Room] | None = None) -> None:
        self.rooms: list[Room] = list(rooms or [])
        self.fail_list: Exception | None = None
        self.fail_create: Exception | None = None
        self.fail_delete: Exception | None = None
        self.created: list[Room] = []
        self.deleted: list[Room] = []

    async def list_all_rooms(self) -> list[Room]:
        if self.fail_list is not None:
            raise self.fail_list
        return sorted(self.rooms, key=lambda r: r.owner)

    async def list_rooms_for_owner(self, owner: str) -> list[Room]:
        if self.fail_list is not None:
            raise self.fail_list
        return [r for r in self.rooms if r.owner == owner]

    async def get_room(self, owner: str, name: str) -> Room | None:
        for room in self.rooms:
            if room.owner == owner and room.name == name:
                return room
        return None

    async def create_room(self, room: Room) -> Room:
        if self.fail_create is not None:
            raise self.fail_create
        if await self.get_room(room.owner, room.name) is not None:
            raise RoomAlreadyExistsError(room.owner, room.name)
        self.rooms.insert(0, room)
        self.created.append(room)
        return room

    async def update_room(self, owner: str, name: str, update: RoomUpdate) -> Room:
        room = await self.get_room(owner, name)
        if room is None:
            raise RoomNotFoundError(owner, name)
        updated = room.model_copy(update=update.model_dump(exclude_none=True))
        self.rooms[self.rooms.index(room)] = updated
        return updated

    async def delete_room(self, room: Room) -> None:
        if self.fail_delete is not None:
            raise self.fail_delete
        existing = await self.get_room(room.owner, room.name)
        if existing is None:
            raise RoomNotFoundError(room.owner, room.name)
        self.rooms.remove(existing)
        self.deleted.append(room)


class StaticConfirmer:
    """固定答复的删除确认，并记录收到的提示语。"""

    def __init__(self, answer: bool = True) -> None:
        self.answer = answer
        self.prompts: list[str] = []

    async def confirm(self, message: str) -> bool:
        self.prompts.append(message)
        return self.answer


@pytest.fixture()
def rooms() -> list[Room]:
    return [
        make_room("alice", "room_0", meeting_number="9"),
        make_room("bob", "room_0", meeting_number="10"),
        make_room("alice", "room_1", meeting_number="100", status="Started"),
        make_room("carol", "standup", meeting_number="2"),
    ]


@pytest.fixture()
def backend(rooms: list[Room]) -> FakeRoomBackend:
    return FakeRoomBackend(rooms)


@pytest.fixture()
def notifier() -> CollectingNotifier:
    return CollectingNotifier()


@pytest.fixture()
def confirmer() -> StaticConfirmer:
    return StaticConfirmer(True)


@pytest.fixture()
def defaults() -> RoomDefaults:
    return RoomDefaults(
        conference_name="conf_default",
        meeting_number="123456789",
        passcode="123456",
        invite_link="https://zoom.us/j/123456789?pwd=123456",
        video_width=1280,
        video_height=720,
    )


@pytest.fixture()
def alice() -> CurrentUser:
    return CurrentUser(name="alice")


@pytest.fixture()
def admin() -> CurrentUser:
    return CurrentUser(name="root", is_admin=True)


@pytest.fixture()
def editor() -> CurrentUser:
    return CurrentUser(name="ed", is_editor=True)

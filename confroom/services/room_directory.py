"""
confroom.services.room_directory
~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~

房间目录 —— 按用户权限加载房间列表，并代理新建 / 删除操作。

加载前先把用户权限解析为一个范围（``ScopeGlobal`` 或 ``ScopeOwner``），
之后的拉取只依赖这个范围参数。后端调用失败一律在调用处转成提示消息，
不会向外抛出；也不会自动重试。

状态机: ``UNLOADED → LOADING → LOADED``。拉取失败时停留在 ``LOADING``。
"""
from __future__ import annotations

import enum
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from datetime import datetime
from typing import Protocol

from confroom.core.config import Settings
from confroom.core.logging import get_logger
from confroom.schemas.room import Room, RoomStatus, RoomTableData
from confroom.services.notifier import Notifier
from confroom.services.room_table import (
    SortState,
    Translate,
    conference_path,
    delete_prompt,
    render_table,
    room_path,
)

logger = get_logger(__name__)


# ── 外部能力 ──────────────────────────────────────────────────────────

@dataclass(frozen=True)
class CurrentUser:
    """当前登录用户（来自会话层）。"""

    name: str
    is_admin: bool = False
    is_editor: bool = False

    @property
    def is_privileged(self) -> bool:
        return self.is_admin or self.is_editor


class RoomBackend(Protocol):
    async def list_rooms_for_owner(self, owner: str) -> Sequence[Room]: ...

    async def list_all_rooms(self) -> Sequence[Room]: ...

    async def create_room(self, room: Room) -> Room: ...

    async def delete_room(self, room: Room) -> None: ...


class Confirmer(Protocol):
    async def confirm(self, message: str) -> bool: ...


class Navigator(Protocol):
    def go_to(self, path: str) -> None: ...


# ── 可见范围 ──────────────────────────────────────────────────────────

@dataclass(frozen=True)
class ScopeGlobal:
    """所有 owner 的房间。"""


@dataclass(frozen=True)
class ScopeOwner:
    """仅某个 owner 的房间。"""

    owner: str


RoomScope = ScopeGlobal | ScopeOwner


def resolve_scope(user: CurrentUser) -> RoomScope:
    """管理员 / 编辑看全局，其他用户只看自己的房间。"""
    if user.is_privileged:
        return ScopeGlobal()
    return ScopeOwner(user.name)


# ── 新建房间的默认值 ──────────────────────────────────────────────────

@dataclass(frozen=True)
class RoomDefaults:
    conference_name: str
    meeting_number: str
    passcode: str
    invite_link: str
    video_width: int
    video_height: int

    @classmethod
    def from_settings(cls, s: Settings) -> RoomDefaults:
        return cls(
            conference_name=s.DEFAULT_CONFERENCE_NAME,
            meeting_number=s.DEFAULT_MEETING_NUMBER,
            passcode=s.DEFAULT_PASSCODE,
            invite_link=s.DEFAULT_INVITE_LINK,
            video_width=s.DEFAULT_VIDEO_WIDTH,
            video_height=s.DEFAULT_VIDEO_HEIGHT,
        )


def _local_now() -> datetime:
    return datetime.now().astimezone()


class LoadState(str, enum.Enum):
    unloaded = "unloaded"
    loading = "loading"
    loaded = "loaded"


class RoomDirectory:
    """房间目录（每个页面 / 请求一个实例）。

    房间列表 ``rooms`` 只由本对象修改：新建成功插到最前，删除成功移除对应项，
    失败时列表保持原样。

    Attributes:
        rooms: 已加载的房间列表；加载完成前为 None。
        state: 列表加载状态。
        scope: 由用户权限解析出的可见范围。
        sort: 表格排序状态。
    """

    def __init__(
        self,
        backend: RoomBackend,
        user: CurrentUser,
        notifier: Notifier,
        confirmer: Confirmer,
        defaults: RoomDefaults,
        navigator: Navigator | None = None,
        clock: Callable[[], datetime] = _local_now,
    ) -> None:
        self.backend = backend
        self.user = user
        self.notifier = notifier
        self.confirmer = confirmer
        self.navigator = navigator
        self.defaults = defaults
        self._clock = clock

        self.rooms: list[Room] | None = None
        self.state: LoadState = LoadState.unloaded
        self.scope: RoomScope = resolve_scope(user)
        self.sort: SortState = SortState()
        self._creating: bool = False

    # ── 加载 ──────────────────────────────────────────────────────────

    async def list_rooms(self, scope: RoomScope) -> list[Room]:
        """按范围从后端拉取房间。"""
        if isinstance(scope, ScopeGlobal):
            return list(await self.backend.list_all_rooms())
        rooms = await self.backend.list_rooms_for_owner(scope.owner)
        return [room for room in rooms if room.owner == scope.owner]

    async def load(self) -> None:
        """拉取当前范围的房间列表。失败时停留在 LOADING，不重试。"""
        self.state = LoadState.loading
        try:
            rooms = await self.list_rooms(self.scope)
        except Exception as e:
            logger.error("房间列表加载失败 | user=%s | scope=%s | %s", self.user.name, self.scope, e)
            self.notifier.show_message("error", f"Rooms failed to load: {e}")
            return
        self.rooms = rooms
        self.state = LoadState.loaded
        logger.debug("房间列表已加载 | user=%s | count=%d", self.user.name, len(rooms))

    @property
    def can_add(self) -> bool:
        """列表已加载且没有进行中的新建请求时才允许新增。"""
        return self.state is LoadState.loaded and not self._creating

    # ── 新建 ──────────────────────────────────────────────────────────

    def new_room(self) -> Room:
        """按当前列表长度生成默认房间。"""
        count = len(self.rooms or [])
        return Room(
            owner=self.user.name,
            name=f"room_{count}",
            created_time=self._clock().isoformat(timespec="seconds"),
            display_name=f"New Room - {count}",
            conference=self.defaults.conference_name,
            meeting_number=self.defaults.meeting_number,
            passcode=self.defaults.passcode,
            invite_link=self.defaults.invite_link,
            participants=[],
            status=RoomStatus.ended.value,
            video_width=self.defaults.video_width,
            video_height=self.defaults.video_height,
        )

    async def create_room(self) -> Room | None:
        """新建一个默认房间，成功后插入列表最前。

        Returns:
            新建的房间；被拒绝或失败时返回 None。
        """
        if not self.can_add:
            logger.warning(
                "忽略新建请求 | user=%s | state=%s | creating=%s",
                self.user.name, self.state.value, self._creating,
            )
            return None

        room = self.new_room()
        self._creating = True
        try:
            await self.backend.create_room(room)
        except Exception as e:
            self.notifier.show_message("error", f"Room failed to add: {e}")
            return None
        finally:
            self._creating = False

        self.rooms = [room, *(self.rooms or [])]
        self.notifier.show_message("success", "Room added successfully")
        return room

    # ── 删除 ──────────────────────────────────────────────────────────

    async def delete_room(self, index: int) -> bool:
        """确认后删除列表中第 ``index`` 个房间。

        Returns:
            是否删除成功；用户取消或后端失败均返回 False。

        Raises:
            IndexError: 下标越界，或列表尚未加载。
        """
        room = self._room_at(index)
        if not await self.confirmer.confirm(delete_prompt(room)):
            logger.debug("用户取消删除 | id=%s", room.id)
            return False

        try:
            await self.backend.delete_room(room)
        except Exception as e:
            self.notifier.show_message("error", f"Room failed to delete: {e}")
            return False

        # 等待期间列表可能已变化（如新建插到了最前），按对象重新定位
        self.rooms = [r for r in self.rooms or [] if r is not room]
        self.notifier.show_message("success", "Room deleted successfully")
        return True

    # ── 导航 ──────────────────────────────────────────────────────────

    def edit_room(self, index: int) -> str:
        """跳转到房间编辑页，返回目标路径。"""
        room = self._room_at(index)
        path = room_path(room.owner, room.name)
        if self.navigator is not None:
            self.navigator.go_to(path)
        return path

    def open_conference(self, index: int) -> str | None:
        """跳转到房间关联的会议页；只有管理员 / 编辑可以跳转。"""
        if not self.user.is_privileged:
            return None
        path = conference_path(self._room_at(index).conference)
        if self.navigator is not None:
            self.navigator.go_to(path)
        return path

    # ── 表格 ──────────────────────────────────────────────────────────

    def sort_by(self, column: str) -> None:
        self.sort.toggle(column)

    def table(self, t: Translate, page_size: int = 100) -> RoomTableData:
        return render_table(
            self.rooms,
            t=t,
            privileged=self.user.is_privileged,
            sort=self.sort,
            can_add=self.can_add,
            page_size=page_size,
        )

    def index_of(self, owner: str, name: str) -> int | None:
        for i, room in enumerate(self.rooms or []):
            if room.owner == owner and room.name == name:
                return i
        return None

    def _room_at(self, index: int) -> Room:
        if self.rooms is None:
            raise IndexError("room list is not loaded")
        if index < 0:
            raise IndexError(index)
        return self.rooms[index]

"""
confroom.services.room_table
~~~~~~~~~~~~~~~~~~~~~~~~~~~~

房间列表的表格模型 —— 列定义、客户端排序、行渲染和页面路由。

排序只对展示顺序生效：每一行都保留它在房间列表中的原始下标，
编辑 / 删除按该下标定位，与当前排序无关。
"""
from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import dataclass

from confroom.schemas.room import (
    Room,
    RoomRow,
    RoomStatus,
    RoomTableData,
    SortInfo,
    TableCell,
    TableColumn,
)

Translate = Callable[[str], str]


@dataclass(frozen=True)
class ColumnSpec:
    key: str
    title_key: str
    field: str | None
    sortable: bool = True


ROOM_COLUMNS: tuple[ColumnSpec, ...] = (
    ColumnSpec("name", "general:Name", "name"),
    ColumnSpec("displayName", "general:Display name", "display_name"),
    ColumnSpec("conference", "submission:Conference", "conference"),
    ColumnSpec("meetingNumber", "room:Meeting number", "meeting_number"),
    ColumnSpec("passcode", "room:Passcode", "passcode"),
    ColumnSpec("inviteLink", "room:Invite link", "invite_link"),
    ColumnSpec("status", "general:Status", "status"),
    ColumnSpec("action", "general:Action", None, sortable=False),
)

_COLUMNS_BY_KEY: dict[str, ColumnSpec] = {c.key: c for c in ROOM_COLUMNS}


def get_column(key: str) -> ColumnSpec:
    """按列 key 取列定义。

    Raises:
        KeyError: 未知列。
    """
    return _COLUMNS_BY_KEY[key]


# ── 路由 ──────────────────────────────────────────────────────────────

def room_path(owner: str, name: str) -> str:
    return f"/rooms/{owner}/{name}"


def conference_path(name: str) -> str:
    return f"/conferences/{name}"


def delete_prompt(room: Room) -> str:
    return f"Sure to delete room: {room.name} ?"


# ── 排序 ──────────────────────────────────────────────────────────────

@dataclass
class SortState:
    """单列排序状态：对同一列再次排序时在升序 / 降序之间切换。"""

    column: str | None = None
    descending: bool = False

    def toggle(self, column: str) -> None:
        if not get_column(column).sortable:
            raise ValueError(f"column {column!r} is not sortable")
        if column == self.column:
            self.descending = not self.descending
        else:
            self.column = column
            self.descending = False

    def apply(self, column: str, descending: bool = False) -> None:
        """直接指定排序列和方向（HTTP 查询参数使用）。"""
        if not get_column(column).sortable:
            raise ValueError(f"column {column!r} is not sortable")
        self.column = column
        self.descending = descending

    def info(self) -> SortInfo | None:
        if self.column is None:
            return None
        return SortInfo(column=self.column, order="descend" if self.descending else "ascend")


def _sort_value(room: Room, field: str) -> str:
    # 一律按字符串比较，会议号这类"数字"也不做数值排序
    value = getattr(room, field)
    return "" if value is None else str(value)


def sort_rooms(
    rooms: Sequence[Room],
    column: str | None,
    descending: bool = False,
) -> list[tuple[int, Room]]:
    """返回 ``(原始下标, 房间)`` 列表，按指定列稳定排序。

    ``column`` 为 None 时保持原顺序。
    """
    indexed = list(enumerate(rooms))
    if column is None:
        return indexed
    spec = get_column(column)
    if not spec.sortable or spec.field is None:
        raise ValueError(f"column {column!r} is not sortable")
    # sorted(reverse=True) 对相等元素仍保持原相对顺序
    return sorted(indexed, key=lambda item: _sort_value(item[1], spec.field), reverse=descending)


# ── 渲染 ──────────────────────────────────────────────────────────────

def status_label(status: str | None, t: Translate) -> str:
    """只有 ``Started`` 显示为进行中，其余（含未设置）一律显示为已结束。"""
    if status == RoomStatus.started.value:
        return t("room:Started")
    return t("room:Ended")


def render_row(index: int, room: Room, t: Translate, privileged: bool) -> RoomRow:
    edit_href = room_path(room.owner, room.name)
    cells = {
        "name": TableCell(text=room.name, href=edit_href),
        "displayName": TableCell(text=room.display_name),
        "conference": TableCell(
            text=room.conference,
            href=conference_path(room.conference) if privileged else None,
        ),
        "meetingNumber": TableCell(text=room.meeting_number),
        "passcode": TableCell(text=room.passcode),
        "inviteLink": TableCell(text=room.invite_link, href=room.invite_link, external=True),
        "status": TableCell(text=status_label(room.status, t)),
    }
    actions = [
        TableCell(text=t("general:Edit"), href=edit_href),
        TableCell(text=t("general:Delete"), confirm=delete_prompt(room)),
    ]
    return RoomRow(index=index, key=room.name, cells=cells, actions=actions)


def render_table(
    rooms: Sequence[Room] | None,
    *,
    t: Translate,
    privileged: bool,
    sort: SortState,
    can_add: bool,
    page_size: int,
) -> RoomTableData:
    """把房间列表渲染为表格模型。``rooms`` 为 None 表示仍在加载。"""
    columns = [
        TableColumn(key=c.key, title=t(c.title_key), sortable=c.sortable)
        for c in ROOM_COLUMNS
    ]
    rows: list[RoomRow] = []
    if rooms is not None:
        rows = [
            render_row(index, room, t, privileged)
            for index, room in sort_rooms(rooms, sort.column, sort.descending)
        ]
    return RoomTableData(
        title=t("general:Rooms"),
        add_label=t("general:Add"),
        can_add=can_add,
        loading=rooms is None,
        page_size=page_size,
        sort=sort.info(),
        columns=columns,
        rows=rows,
    )

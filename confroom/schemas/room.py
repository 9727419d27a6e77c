"""
confroom.schemas.room
~~~~~~~~~~~~~~~~~~~~~

房间相关的 Pydantic 模型 —— 房间实体、表格视图模型、播放器配置。

对外（HTTP / MongoDB）统一使用 camelCase 字段名，Python 侧使用 snake_case。
"""
from __future__ import annotations

import enum
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class RoomStatus(str, enum.Enum):
    started = "Started"
    ended = "Ended"


class Room(_CamelModel):
    """视频会议房间实体。

    ``status`` 由外部通话会话子系统维护，本服务只读；
    ``participants`` 同理，仅在通话过程中被会话层修改。
    """

    owner: str = Field(..., description="创建者 / 命名空间")
    name: str = Field(..., min_length=1, description="owner 内唯一的房间标识，创建后不可变")
    created_time: str = Field(default="", description="创建时间（ISO 格式，带时区偏移）")
    display_name: str = Field(default="", description="显示名称")
    conference: str = Field(default="", description="关联的会议名称")
    meeting_number: str = Field(default="", description="会议号")
    passcode: str = Field(default="", description="会议密码")
    invite_link: str = Field(default="", description="邀请链接")
    participants: list[str] = Field(default_factory=list, description="参会者列表")
    status: str | None = Field(default=RoomStatus.ended.value, description="Started / Ended")
    video_width: int = Field(default=0, ge=0, description="视频画面声明宽度")
    video_height: int = Field(default=0, ge=0, description="视频画面声明高度")

    @property
    def id(self) -> str:
        return f"{self.owner}/{self.name}"


class RoomUpdate(_CamelModel):
    """编辑房间请求体，仅包含可变字段（None 表示不修改）。"""

    display_name: str | None = None
    conference: str | None = None
    meeting_number: str | None = None
    passcode: str | None = None
    invite_link: str | None = None
    video_width: int | None = Field(default=None, ge=0)
    video_height: int | None = Field(default=None, ge=0)


# ── 表格视图模型 ──────────────────────────────────────────────────────

SortOrder = Literal["ascend", "descend"]


class TableColumn(_CamelModel):
    key: str
    title: str
    sortable: bool = True


class TableCell(_CamelModel):
    """单元格：纯文本，或带链接 / 确认提示的可交互元素。"""

    text: str
    href: str | None = None
    external: bool = False
    confirm: str | None = None


class RoomRow(_CamelModel):
    index: int = Field(..., description="该行在房间列表中的下标，操作按此下标定位")
    key: str
    cells: dict[str, TableCell]
    actions: list[TableCell] = Field(default_factory=list)


class SortInfo(_CamelModel):
    column: str
    order: SortOrder


class RoomTableData(_CamelModel):
    """房间列表页的完整表格模型。"""

    title: str
    add_label: str
    can_add: bool
    loading: bool
    page_size: int
    sort: SortInfo | None = None
    columns: list[TableColumn]
    rows: list[RoomRow]


# ── 播放器 ────────────────────────────────────────────────────────────

class PlayerConfig(_CamelModel):
    """交给外部播放器的配置对象。"""

    source: str
    width: str
    height: str
    autoplay: bool = True
    is_live: bool = True
    re_play: bool = False
    playsinline: bool = True
    preload: bool = True
    enable_stash_buffer_for_flv: bool = True
    stash_initial_size_for_flv: int = 32
    control_bar_visibility: str = "hover"
    use_h5_prism: bool = True


class PlayerReadyRequest(_CamelModel):
    """客户端播放器 ready 后上报的尺寸信息。"""

    native_width: int = Field(..., ge=0, description="媒体元素原始宽度")
    native_height: int = Field(..., ge=0, description="媒体元素原始高度")
    rendered_width: float = Field(..., ge=0, description="播放器当前渲染宽度")


class VideoSizeData(_CamelModel):
    resized: bool = Field(..., description="是否发出了调整尺寸指令")
    width: float | None = None
    height: float | None = None

"""
confroom.services.stream_view
~~~~~~~~~~~~~~~~~~~~~~~~~~~~~

直播画面视图 —— 为外部播放器生成配置，并在播放器 ready 后按原始画面比例调整尺寸。

尺寸规则：保持当前渲染宽度不变，高度按 ``原始高 * 渲染宽 / 原始宽`` 计算。
原始宽或高为 0 表示媒体元数据尚未就绪，此时不做任何处理，等待下一次 ready。
"""
from __future__ import annotations

from collections.abc import Callable
from typing import Protocol

from confroom.core.logging import get_logger
from confroom.schemas.room import PlayerConfig, Room

logger = get_logger(__name__)

ReadyCallback = Callable[[int, int], None]
SizeCallback = Callable[[int, int], None]


class Subscription:
    """可取消的事件订阅凭证，视图销毁时释放，避免回调落到已销毁的视图上。"""

    def __init__(self, unsubscribe: Callable[[], None]) -> None:
        self._unsubscribe = unsubscribe
        self._active = True

    @property
    def active(self) -> bool:
        return self._active

    def cancel(self) -> None:
        if self._active:
            self._active = False
            self._unsubscribe()


class Player(Protocol):
    """外部播放器能力。

    ``on("ready", cb)`` 在媒体原始尺寸可知时回调 ``cb(native_width, native_height)``。
    """

    @property
    def rendered_width(self) -> float: ...

    def on(self, event: str, callback: ReadyCallback) -> Subscription: ...

    def set_player_size(self, width: float, height: float) -> None: ...


# ── 配置 ──────────────────────────────────────────────────────────────

def streaming_url(room: Room, template: str) -> str:
    return template.format(owner=room.owner, name=room.name)


def container_width(room: Room, is_mobile: bool) -> str:
    """移动端占满容器，其他设备使用房间声明的像素宽度。"""
    return "100%" if is_mobile else f"{room.video_width}px"


def build_player_config(room: Room, *, streaming_url_template: str, is_mobile: bool = False) -> PlayerConfig:
    return PlayerConfig(
        source=streaming_url(room, streaming_url_template),
        width=container_width(room, is_mobile),
        height=f"{room.video_height}px",
        autoplay=True,
        is_live=True,
        re_play=False,
        playsinline=True,
        preload=True,
        enable_stash_buffer_for_flv=True,
        stash_initial_size_for_flv=32,
        control_bar_visibility="hover",
        use_h5_prism=True,
    )


def fit_to_width(native_width: int, native_height: int, width: float) -> float | None:
    """固定宽度按原始比例计算高度；原始尺寸无效时返回 None。"""
    if native_width == 0 or native_height == 0:
        return None
    return native_height * width / native_width


# ── 视图 ──────────────────────────────────────────────────────────────

class StreamView:
    """单个房间的直播画面。

    配置了 ``on_update_video_size`` 时只把原始尺寸交给上层布局决定，
    自身不计算尺寸；否则按当前渲染宽度等比缩放并指示播放器调整。

    Attributes:
        room: 对应的房间。
        config: 交给播放器的初始配置。
        width: 最近一次计算出的显示宽度（尚未计算时为 None）。
        height: 最近一次计算出的显示高度。
    """

    def __init__(
        self,
        room: Room,
        *,
        streaming_url_template: str,
        is_mobile: bool = False,
        on_update_video_size: SizeCallback | None = None,
    ) -> None:
        self.room = room
        self.config: PlayerConfig = build_player_config(
            room, streaming_url_template=streaming_url_template, is_mobile=is_mobile,
        )
        self.on_update_video_size = on_update_video_size
        self.width: float | None = None
        self.height: float | None = None
        self._player: Player | None = None
        self._subscription: Subscription | None = None

    @property
    def mounted(self) -> bool:
        return self._player is not None

    def mount(self, player: Player) -> None:
        """绑定播放器并订阅一次性的 ready 事件。"""
        if self._player is not None:
            raise RuntimeError(f"stream view for {self.room.id} is already mounted")
        self._player = player
        self._subscription = player.on("ready", self.handle_ready)

    def unmount(self) -> None:
        """释放 ready 订阅并解绑播放器。"""
        if self._subscription is not None:
            self._subscription.cancel()
            self._subscription = None
        self._player = None

    def handle_ready(self, native_width: int, native_height: int) -> bool:
        """处理播放器 ready 事件。

        Returns:
            本次 ready 是否被处理（尺寸无效或视图已卸载时返回 False）。
        """
        player = self._player
        if player is None:
            logger.debug("视图已卸载，忽略 ready | room=%s", self.room.id)
            return False
        if native_width == 0 or native_height == 0:
            logger.debug("媒体尺寸尚未就绪 | room=%s | %dx%d", self.room.id, native_width, native_height)
            return False

        # 已拿到有效尺寸，一次性订阅到此为止
        if self._subscription is not None:
            self._subscription.cancel()
            self._subscription = None

        if self.on_update_video_size is not None:
            self.on_update_video_size(native_width, native_height)
            return True

        width = player.rendered_width
        height = fit_to_width(native_width, native_height, width)
        player.set_player_size(width, height)
        self.width, self.height = width, height
        logger.debug(
            "播放器尺寸已调整 | room=%s | native=%dx%d | size=%sx%s",
            self.room.id, native_width, native_height, width, height,
        )
        return True


class ReportedPlayer:
    """服务端的播放器替身：以客户端上报的渲染宽度工作，并记录最后一次尺寸指令。"""

    def __init__(self, rendered_width: float) -> None:
        self.rendered_width = rendered_width
        self.size: tuple[float, float] | None = None
        self._callbacks: dict[int, ReadyCallback] = {}
        self._next_id = 0

    def on(self, event: str, callback: ReadyCallback) -> Subscription:
        if event != "ready":
            raise ValueError(f"unsupported player event: {event}")
        key = self._next_id
        self._next_id += 1
        self._callbacks[key] = callback
        return Subscription(lambda: self._callbacks.pop(key, None))

    @property
    def listener_count(self) -> int:
        return len(self._callbacks)

    def emit_ready(self, native_width: int, native_height: int) -> None:
        for callback in list(self._callbacks.values()):
            callback(native_width, native_height)

    def set_player_size(self, width: float, height: float) -> None:
        self.size = (width, height)

"""
confroom.api.player
~~~~~~~~~~~~~~~~~~~

直播画面接口 —— 播放器配置 + ready 后的等比尺寸计算。

端点:
  - ``GET  /rooms/{owner}/{name}/player``        → 播放器配置
  - ``POST /rooms/{owner}/{name}/player/ready``  → 上报原始尺寸，返回调整后的尺寸
"""

import re

from fastapi import APIRouter, Depends, Header, Query, Request

from confroom.api.deps import get_current_user, get_room_repository, get_visible_room
from confroom.core.config import settings
from confroom.core.rate_limit import limiter
from confroom.db.room_repository import RoomRepository
from confroom.schemas.api_response import ApiResponse
from confroom.schemas.room import PlayerConfig, PlayerReadyRequest, VideoSizeData
from confroom.services.room_directory import CurrentUser
from confroom.services.stream_view import ReportedPlayer, StreamView

router: APIRouter = APIRouter()

_MOBILE_UA = re.compile(r"Mobi|Android|iPhone|iPad|iPod", re.IGNORECASE)


def is_mobile_agent(user_agent: str | None) -> bool:
    return bool(user_agent and _MOBILE_UA.search(user_agent))


@router.get(
    "/rooms/{owner}/{name}/player",
    summary="获取播放器配置",
    response_model=ApiResponse[PlayerConfig],
)
@limiter.limit(settings.ROOMS_READ_RATE_LIMIT)
async def player_config(
    request: Request,
    owner: str,
    name: str,
    mobile: bool | None = Query(None, description="是否移动端；缺省时按 User-Agent 判断"),
    user_agent: str | None = Header(default=None),
    user: CurrentUser = Depends(get_current_user),
    repo: RoomRepository = Depends(get_room_repository),
):
    room = await get_visible_room(repo, user, owner, name)
    if mobile is None:
        mobile = is_mobile_agent(user_agent)
    view = StreamView(room, streaming_url_template=settings.STREAMING_URL_TEMPLATE, is_mobile=mobile)
    return ApiResponse.ok(data=view.config)


@router.post(
    "/rooms/{owner}/{name}/player/ready",
    summary="播放器就绪，计算等比尺寸",
    response_model=ApiResponse[VideoSizeData],
)
@limiter.limit(settings.ROOMS_READ_RATE_LIMIT)
async def player_ready(
    request: Request,
    owner: str,
    name: str,
    payload: PlayerReadyRequest,
    user: CurrentUser = Depends(get_current_user),
    repo: RoomRepository = Depends(get_room_repository),
):
    """保持渲染宽度不变按原始比例算高度；原始尺寸为 0 时不调整。"""
    room = await get_visible_room(repo, user, owner, name)
    view = StreamView(room, streaming_url_template=settings.STREAMING_URL_TEMPLATE)
    player = ReportedPlayer(payload.rendered_width)
    view.mount(player)
    try:
        player.emit_ready(payload.native_width, payload.native_height)
    finally:
        view.unmount()
    return ApiResponse.ok(
        data=VideoSizeData(resized=player.size is not None, width=view.width, height=view.height),
    )

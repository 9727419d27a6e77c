"""
confroom.api.rooms
~~~~~~~~~~~~~~~~~~

房间列表 REST 接口 —— 按权限列出、新建、编辑、删除房间。

路由前缀 ``/api``。

端点:
  - ``GET    /rooms``                  → 房间表格（``sort`` / ``order`` 控制排序）
  - ``POST   /rooms``                  → 新建默认房间
  - ``GET    /rooms/{owner}/{name}``   → 房间详情
  - ``PUT    /rooms/{owner}/{name}``   → 修改房间可变字段
  - ``DELETE /rooms/{owner}/{name}``   → 删除房间（需 ``confirm=true``）

新建 / 删除的结果提示放在 ``msg`` 中，失败时 ``code`` 非 200，``data`` 为操作后的表格。
"""

from fastapi import APIRouter, Depends, HTTPException, Query, Request

from confroom.api.deps import (
    check_room_access,
    get_current_user,
    get_room_repository,
    get_translator,
    get_visible_room,
)
from confroom.core.config import settings
from confroom.core.i18n import Translator
from confroom.core.rate_limit import limiter
from confroom.db.room_repository import RoomNotFoundError, RoomRepository
from confroom.schemas.api_response import ApiResponse
from confroom.schemas.room import Room, RoomTableData, RoomUpdate, SortOrder
from confroom.services.notifier import CollectingNotifier
from confroom.services.room_directory import CurrentUser, RoomDefaults, RoomDirectory
from confroom.services.room_table import delete_prompt


router: APIRouter = APIRouter()


class QueryConfirmer:
    """删除确认：由请求参数 ``confirm`` 事先给出答复。"""

    def __init__(self, confirmed: bool) -> None:
        self.confirmed = confirmed

    async def confirm(self, message: str) -> bool:
        return self.confirmed


async def _open_directory(
    repo: RoomRepository,
    user: CurrentUser,
    notifier: CollectingNotifier,
    confirmed: bool = False,
) -> RoomDirectory:
    directory = RoomDirectory(
        repo,
        user,
        notifier,
        QueryConfirmer(confirmed),
        RoomDefaults.from_settings(settings),
    )
    await directory.load()
    return directory


def _table_response(
    directory: RoomDirectory,
    notifier: CollectingNotifier,
    t: Translator,
    error_code: int,
) -> ApiResponse[RoomTableData]:
    table = directory.table(t, page_size=settings.ROOM_TABLE_PAGE_SIZE)
    last = notifier.last
    if last is not None and last.severity == "error":
        return ApiResponse.fail(msg=last.text, code=error_code, data=table)
    return ApiResponse.ok(data=table, msg=last.text if last else "success")


# ── 房间列表 ──────────────────────────────────────────────────────────

@router.get("/rooms", summary="获取房间表格", response_model=ApiResponse[RoomTableData])
@limiter.limit(settings.ROOMS_READ_RATE_LIMIT)
async def list_rooms(
    request: Request,
    sort: str | None = Query(None, description="排序列 key"),
    order: SortOrder = Query("ascend", description="ascend / descend"),
    user: CurrentUser = Depends(get_current_user),
    repo: RoomRepository = Depends(get_room_repository),
    t: Translator = Depends(get_translator),
):
    """管理员 / 编辑看到全部房间，其他用户只看到自己的房间。"""
    notifier = CollectingNotifier()
    directory = await _open_directory(repo, user, notifier)
    if sort is not None:
        try:
            directory.sort.apply(sort, descending=order == "descend")
        except (KeyError, ValueError):
            raise HTTPException(status_code=422, detail=f"Cannot sort by column: {sort}")
    return _table_response(directory, notifier, t, error_code=503)


@router.post("/rooms", summary="新建房间", response_model=ApiResponse[RoomTableData])
@limiter.limit(settings.ROOMS_WRITE_RATE_LIMIT)
async def create_room(
    request: Request,
    user: CurrentUser = Depends(get_current_user),
    repo: RoomRepository = Depends(get_room_repository),
    t: Translator = Depends(get_translator),
):
    """以默认值新建房间，成功后该房间位于列表第一行。"""
    notifier = CollectingNotifier()
    directory = await _open_directory(repo, user, notifier)
    if directory.rooms is None:
        return _table_response(directory, notifier, t, error_code=503)
    await directory.create_room()
    return _table_response(directory, notifier, t, error_code=400)


# ── 单个房间 ──────────────────────────────────────────────────────────

@router.get("/rooms/{owner}/{name}", summary="获取房间详情", response_model=ApiResponse[Room])
@limiter.limit(settings.ROOMS_READ_RATE_LIMIT)
async def get_room(
    request: Request,
    owner: str,
    name: str,
    user: CurrentUser = Depends(get_current_user),
    repo: RoomRepository = Depends(get_room_repository),
):
    room = await get_visible_room(repo, user, owner, name)
    return ApiResponse.ok(data=room)


@router.put("/rooms/{owner}/{name}", summary="修改房间", response_model=ApiResponse[Room])
@limiter.limit(settings.ROOMS_WRITE_RATE_LIMIT)
async def update_room(
    request: Request,
    owner: str,
    name: str,
    payload: RoomUpdate,
    user: CurrentUser = Depends(get_current_user),
    repo: RoomRepository = Depends(get_room_repository),
):
    """只修改可变字段；``name`` / ``createdTime`` / ``status`` / ``participants`` 不可经此修改。"""
    check_room_access(user, owner)
    try:
        room = await repo.update_room(owner, name, payload)
    except RoomNotFoundError:
        raise HTTPException(status_code=404, detail="Room not found")
    return ApiResponse.ok(data=room, msg="Room updated successfully")


@router.delete("/rooms/{owner}/{name}", summary="删除房间", response_model=ApiResponse[RoomTableData])
@limiter.limit(settings.ROOMS_WRITE_RATE_LIMIT)
async def delete_room(
    request: Request,
    owner: str,
    name: str,
    confirm: bool = Query(False, description="确认删除"),
    user: CurrentUser = Depends(get_current_user),
    repo: RoomRepository = Depends(get_room_repository),
    t: Translator = Depends(get_translator),
):
    """删除需要确认：未带 ``confirm=true`` 时返回确认提示，不发出删除。"""
    check_room_access(user, owner)
    notifier = CollectingNotifier()
    directory = await _open_directory(repo, user, notifier, confirmed=confirm)
    if directory.rooms is None:
        return _table_response(directory, notifier, t, error_code=503)

    index = directory.index_of(owner, name)
    if index is None:
        raise HTTPException(status_code=404, detail="Room not found")

    room = directory.rooms[index]
    deleted = await directory.delete_room(index)
    if not deleted and not notifier.has_error:
        table = directory.table(t, page_size=settings.ROOM_TABLE_PAGE_SIZE)
        return ApiResponse.fail(msg=delete_prompt(room), code=428, data=table)
    return _table_response(directory, notifier, t, error_code=400)

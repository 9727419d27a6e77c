from fastapi import Header, HTTPException, Request

from confroom.core.i18n import Translator, pick_language
from confroom.db.room_repository import RoomRepository
from confroom.schemas.room import Room
from confroom.services.room_directory import CurrentUser


def get_current_user(
    x_user_name: str | None = Header(default=None),
    x_user_roles: str | None = Header(default=None),
) -> CurrentUser:
    """从网关注入的请求头中读取当前用户（认证由网关负责）。"""
    if not x_user_name:
        raise HTTPException(status_code=401, detail="Missing X-User-Name header")
    roles = {r.strip().lower() for r in (x_user_roles or "").split(",") if r.strip()}
    return CurrentUser(name=x_user_name, is_admin="admin" in roles, is_editor="editor" in roles)


def get_room_repository(request: Request) -> RoomRepository:
    return request.app.state.room_repository


def get_translator(accept_language: str | None = Header(default=None)) -> Translator:
    return Translator(pick_language(accept_language))


def check_room_access(user: CurrentUser, owner: str) -> None:
    if not user.is_privileged and owner != user.name:
        raise HTTPException(status_code=403, detail="Only the owner can access this room")


async def get_visible_room(repo: RoomRepository, user: CurrentUser, owner: str, name: str) -> Room:
    check_room_access(user, owner)
    room = await repo.get_room(owner, name)
    if room is None:
        raise HTTPException(status_code=404, detail="Room not found")
    return room

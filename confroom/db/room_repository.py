"""
confroom.db.room_repository
~~~~~~~~~~~~~~~~~~~~~~~~~~~

房间持久化仓库 —— 封装 MongoDB ``rooms`` 集合的增删改查。

每个房间一个文档，字段名与前端 JSON 一致（camelCase）。
``(owner, name)`` 复合唯一索引在首次操作时惰性创建。
"""
from __future__ import annotations

from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo.errors import DuplicateKeyError, PyMongoError

from confroom.core.logging import get_logger
from confroom.schemas.room import Room, RoomUpdate

logger = get_logger(__name__)

_COLLECTION_NAME = "rooms"

# 查询投影：去掉 Mongo 内部的 _id
_PROJECTION = {"_id": 0}


class RoomBackendError(Exception):
    """房间后端操作失败。"""


class RoomAlreadyExistsError(RoomBackendError):
    def __init__(self, owner: str, name: str) -> None:
        super().__init__(f"room {owner}/{name} already exists")
        self.owner = owner
        self.name = name


class RoomNotFoundError(RoomBackendError):
    def __init__(self, owner: str, name: str) -> None:
        super().__init__(f"room {owner}/{name} not found")
        self.owner = owner
        self.name = name


class RoomRepository:
    """房间持久化仓库，实现 ``RoomBackend`` 协议。

    排序规则:
      - 全局列表：``owner`` 升序，同一 owner 内 ``createdTime`` 倒序
      - 个人列表：``createdTime`` 倒序

    Attributes:
        db: MongoDB 数据库实例。
    """

    def __init__(self, db: AsyncIOMotorDatabase) -> None:
        self.db = db
        self._collection = db[_COLLECTION_NAME]
        self._indexes_created = False

    async def _ensure_indexes(self) -> None:
        """确保索引已创建（惰性，首次操作时执行一次）。"""
        if self._indexes_created:
            return
        await self._collection.create_index(
            [("owner", 1), ("name", 1)],
            name="uq_owner_name",
            unique=True,
        )
        self._indexes_created = True
        logger.debug("rooms 索引已就绪")

    async def list_all_rooms(self) -> list[Room]:
        """获取所有 owner 的房间。"""
        try:
            await self._ensure_indexes()
            cursor = (
                self._collection
                .find({}, _PROJECTION)
                .sort([("owner", 1), ("createdTime", -1)])
            )
            docs = await cursor.to_list(length=None)
        except PyMongoError as e:
            raise RoomBackendError(str(e)) from e
        return [Room.model_validate(doc) for doc in docs]

    async def list_rooms_for_owner(self, owner: str) -> list[Room]:
        """获取指定 owner 的房间。"""
        try:
            await self._ensure_indexes()
            cursor = (
                self._collection
                .find({"owner": owner}, _PROJECTION)
                .sort("createdTime", -1)
            )
            docs = await cursor.to_list(length=None)
        except PyMongoError as e:
            raise RoomBackendError(str(e)) from e
        return [Room.model_validate(doc) for doc in docs]

    async def get_room(self, owner: str, name: str) -> Room | None:
        try:
            await self._ensure_indexes()
            doc = await self._collection.find_one({"owner": owner, "name": name}, _PROJECTION)
        except PyMongoError as e:
            raise RoomBackendError(str(e)) from e
        return Room.model_validate(doc) if doc else None

    async def create_room(self, room: Room) -> Room:
        """插入新房间。

        Raises:
            RoomAlreadyExistsError: ``(owner, name)`` 已被占用。
            RoomBackendError: 其他数据库错误。
        """
        try:
            await self._ensure_indexes()
            await self._collection.insert_one(room.model_dump(by_alias=True))
        except DuplicateKeyError as e:
            raise RoomAlreadyExistsError(room.owner, room.name) from e
        except PyMongoError as e:
            raise RoomBackendError(str(e)) from e
        logger.info("房间已创建 | id=%s", room.id)
        return room

    async def update_room(self, owner: str, name: str, update: RoomUpdate) -> Room:
        """修改房间的可变字段，``name`` / ``createdTime`` 等不受影响。

        Raises:
            RoomNotFoundError: 房间不存在。
        """
        changes = update.model_dump(by_alias=True, exclude_none=True)
        try:
            await self._ensure_indexes()
            if changes:
                result = await self._collection.update_one(
                    {"owner": owner, "name": name}, {"$set": changes},
                )
                matched = result.matched_count
            else:
                matched = await self._collection.count_documents({"owner": owner, "name": name})
            doc = await self._collection.find_one({"owner": owner, "name": name}, _PROJECTION)
        except PyMongoError as e:
            raise RoomBackendError(str(e)) from e
        if not matched or doc is None:
            raise RoomNotFoundError(owner, name)
        logger.info("房间已更新 | id=%s/%s | fields=%s", owner, name, sorted(changes))
        return Room.model_validate(doc)

    async def delete_room(self, room: Room) -> None:
        """删除房间。

        Raises:
            RoomNotFoundError: 房间不存在（已被删除）。
        """
        try:
            result = await self._collection.delete_one({"owner": room.owner, "name": room.name})
        except PyMongoError as e:
            raise RoomBackendError(str(e)) from e
        if result.deleted_count == 0:
            raise RoomNotFoundError(room.owner, room.name)
        logger.info("房间已删除 | id=%s", room.id)

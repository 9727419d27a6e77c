"""
confroom.schemas
~~~~~~~~~~~~~~~~
Pydantic schemas and models for the API.
"""
from confroom.schemas.api_response import ApiResponse
from confroom.schemas.room import (
    PlayerConfig,
    PlayerReadyRequest,
    Room,
    RoomRow,
    RoomStatus,
    RoomTableData,
    RoomUpdate,
    SortInfo,
    TableCell,
    TableColumn,
    VideoSizeData,
)

# Call model_rebuild to resolve forward references in generic Pydantic models.
ApiResponse.model_rebuild()

"""Area model as served by the area backend."""

from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field


class AreaStatus(str, Enum):
    """Lifecycle status of an area."""

    DRAFT = "draft"
    ACTIVE = "active"
    INACTIVE = "inactive"


class AreaTimestamp(BaseModel):
    """Server-assigned timestamp record."""

    date: Optional[str] = None
    datetime: Optional[str] = None
    datetimezone: Optional[str] = None
    time: Optional[str] = None
    utc: Optional[str] = None
    zone: Optional[str] = None


class Area(BaseModel):
    """Model for an area record.

    ``base64pk`` is the opaque key used for routing edit and delete calls;
    ``area_id`` is the user-assigned identifier and is never used for routing.
    """

    base64pk: str
    area_id: str
    area_name: str
    status: str
    enable: bool = True
    is_removed: bool = False
    description: Optional[str] = ""
    properties: Dict[str, Any] = Field(default_factory=dict)
    created: Optional[AreaTimestamp] = None
    modified: Optional[AreaTimestamp] = None

    model_config = ConfigDict(extra="allow", from_attributes=True)

"""Shared fixtures for the area admin tests."""

from typing import Any, Dict, List
from unittest.mock import AsyncMock, MagicMock

import pytest

from area_admin.core.config import Settings
from area_admin.core.navigation import Navigator
from area_admin.core.notifications import Notifier
from area_admin.models.area import Area
from area_admin.schemas.area_api import AreaListResponse
from area_admin.services.query_client import QueryClient


def make_area_dict(**overrides: Any) -> Dict[str, Any]:
    """Build an area as the backend serializes it."""
    timestamp = {
        "date": "2024-01-15",
        "datetime": "2024-01-15 10:30:00",
        "datetimezone": "2024-01-15 10:30:00+07:00",
        "time": "10:30:00",
        "utc": "2024-01-15T03:30:00Z",
        "zone": "Asia/Jakarta",
    }
    area = {
        "base64pk": "QTE=",
        "area_id": "A1",
        "area_name": "North Zone",
        "status": "active",
        "enable": True,
        "is_removed": False,
        "description": "desc",
        "properties": {},
        "created": dict(timestamp),
        "modified": dict(timestamp),
    }
    area.update(overrides)
    return area


def make_area(**overrides: Any) -> Area:
    return Area.model_validate(make_area_dict(**overrides))


def make_page(areas: List[Area], total: int = None) -> AreaListResponse:
    return AreaListResponse(totalCount=len(areas) if total is None else total, data=areas)


@pytest.fixture
def settings():
    """Settings pointing at a fake backend."""
    return Settings(area_api_base_url="http://backend.test")


@pytest.fixture
def query_client():
    return QueryClient(stale_time=30.0, retry=1)


@pytest.fixture
def notifier():
    return Notifier()


@pytest.fixture
def navigator():
    return Navigator()


@pytest.fixture
def area_client():
    """Area client with every backend call mocked."""
    client = MagicMock()
    client.list_areas = AsyncMock(return_value=make_page([]))
    client.get_area = AsyncMock(return_value=make_area())
    client.create_area = AsyncMock(return_value=make_area())
    client.update_area = AsyncMock(return_value=make_area())
    client.delete_area = AsyncMock(return_value=None)
    return client

"""Dependencies for the application using FastAPI app state for singletons."""

import logging

from fastapi import Depends, Request

from area_admin.core.config import Settings, get_settings
from area_admin.core.navigation import Navigator
from area_admin.core.notifications import Notifier
from area_admin.models.table_state import SortOrder, TableState
from area_admin.services.area_client import AreaApiClient, session_scope
from area_admin.services.query_client import QueryClient

logger = logging.getLogger(__name__)


def get_query_client(request: Request) -> QueryClient:
    """Get the shared query cache, scoped to the session of the current request."""
    if not hasattr(request.app.state, "query_client"):
        raise ValueError("Query client not initialized in application state")

    return request.app.state.query_client.scoped(session_scope(request.cookies))


def get_area_client(
    request: Request,
    settings: Settings = Depends(get_settings),
) -> AreaApiClient:
    """Get an area client bound to the cookies of the current request."""
    if not hasattr(request.app.state, "http_client"):
        raise ValueError("HTTP client not initialized in application state")

    return AreaApiClient(request.app.state.http_client, settings, cookies=request.cookies)


def get_notifier() -> Notifier:
    return Notifier()


def get_navigator() -> Navigator:
    return Navigator()


def get_default_table_state(settings: Settings = Depends(get_settings)) -> TableState:
    """Table state the list view starts from and resets to."""
    return TableState(
        page_size=settings.default_page_size,
        sort_field=settings.default_sort_field,
        sort_order=SortOrder(settings.default_sort_order),
    )

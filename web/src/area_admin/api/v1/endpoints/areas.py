"""API endpoints backing the area list and area form screens."""

import logging
from typing import Dict, List, Optional

from fastapi import APIRouter, Depends, Path, Query, Request, Response, status

from area_admin.core.config import Settings, get_settings
from area_admin.core.dependencies import (
    get_area_client,
    get_default_table_state,
    get_navigator,
    get_notifier,
    get_query_client,
)
from area_admin.core.errors import ErrorKind
from area_admin.core.navigation import Navigator
from area_admin.core.notifications import Notifier
from area_admin.models.table_state import SortOrder, TableState
from area_admin.schemas.area_api import (
    AreaFormRequest,
    AreaFormViewResponse,
    AreaListViewResponse,
    NotificationSchema,
    SearchRequest,
    TableChangeRequest,
    TableStateRequest,
)
from area_admin.services.area_client import AreaApiClient
from area_admin.services.area_form_service import AreaFormView
from area_admin.services.area_list_service import AreaListView
from area_admin.services.query_client import QueryClient

logger = logging.getLogger(__name__)

router = APIRouter()

# Query parameters that describe the table rather than a column filter.
TABLE_PARAMS = {"page", "pageSize", "sortField", "sortOrder", "search", "confirm"}


def _table_state(request: TableStateRequest) -> TableState:
    return TableState(
        current=request.current,
        page_size=request.pageSize,
        sort_field=request.sortField,
        sort_order=SortOrder.parse(request.sortOrder),
        search=request.search,
        filters=request.filters,
    )


def _column_filters(request: Request) -> Dict[str, List[str]]:
    return {
        name: request.query_params.getlist(name)
        for name in request.query_params.keys()
        if name not in TABLE_PARAMS
    }


def _failure_status(error: Optional[Exception]) -> int:
    """HTTP status of a form submission that did not go through."""
    kind = getattr(error, "kind", None)
    if kind is ErrorKind.VALIDATION:
        return status.HTTP_422_UNPROCESSABLE_ENTITY
    if kind is ErrorKind.HTTP and error.is_client_error:
        return error.status
    if kind is ErrorKind.UNEXPECTED:
        return status.HTTP_500_INTERNAL_SERVER_ERROR
    # No usable answer from the area backend.
    return status.HTTP_502_BAD_GATEWAY


def _notifications(notifier: Notifier) -> List[NotificationSchema]:
    return [
        NotificationSchema(level=notification.level.value, content=notification.content)
        for notification in notifier.drain()
    ]


class ListViewContext:
    """Builds an ``AreaListView`` for the current request."""

    def __init__(
        self,
        client: AreaApiClient = Depends(get_area_client),
        query_client: QueryClient = Depends(get_query_client),
        notifier: Notifier = Depends(get_notifier),
        navigator: Navigator = Depends(get_navigator),
        default_state: TableState = Depends(get_default_table_state),
        settings: Settings = Depends(get_settings),
    ) -> None:
        self.client = client
        self.query_client = query_client
        self.notifier = notifier
        self.navigator = navigator
        self.default_state = default_state
        self.settings = settings

    def view(self, state: Optional[TableState] = None) -> AreaListView:
        return AreaListView(
            self.client,
            self.query_client,
            self.notifier,
            self.navigator,
            state=state,
            default_state=self.default_state,
            page_size_options=self.settings.page_size_options,
        )

    def respond(self, view: AreaListView) -> AreaListViewResponse:
        return AreaListViewResponse(
            **view.render(),
            notifications=_notifications(self.notifier),
            redirect=self.navigator.location,
        )


class FormViewContext:
    """Builds an ``AreaFormView`` for the current request."""

    def __init__(
        self,
        client: AreaApiClient = Depends(get_area_client),
        query_client: QueryClient = Depends(get_query_client),
        notifier: Notifier = Depends(get_notifier),
        navigator: Navigator = Depends(get_navigator),
    ) -> None:
        self.client = client
        self.query_client = query_client
        self.notifier = notifier
        self.navigator = navigator

    def view(self, base64pk: Optional[str] = None) -> AreaFormView:
        return AreaFormView(
            self.client,
            self.query_client,
            self.notifier,
            self.navigator,
            base64pk=base64pk,
        )

    def respond(self, view: AreaFormView) -> AreaFormViewResponse:
        return AreaFormViewResponse(
            **view.render(),
            notifications=_notifications(self.notifier),
            redirect=self.navigator.location,
        )


async def _list_state(
    request: Request,
    page: Optional[int] = Query(None, ge=1),
    pageSize: Optional[int] = Query(None, ge=1),
    sortField: Optional[str] = Query(None),
    sortOrder: Optional[str] = Query(None, pattern="^(ascend|descend|asc|desc)$"),
    search: str = Query(""),
    default_state: TableState = Depends(get_default_table_state),
) -> TableState:
    """Table state carried in the query string of a list request."""
    return TableState(
        current=page or 1,
        page_size=pageSize or default_state.page_size,
        sort_field=sortField or default_state.sort_field,
        sort_order=SortOrder.parse(sortOrder or default_state.sort_order),
        search=search,
        filters=_column_filters(request),
    )


@router.get(
    "",
    response_model=AreaListViewResponse,
    status_code=status.HTTP_200_OK,
    summary="Render the area list",
)
async def list_areas(
    state: TableState = Depends(_list_state),
    context: ListViewContext = Depends(),
) -> AreaListViewResponse:
    """Render one page of the area table."""
    view = context.view(state)
    await view.refresh()
    return context.respond(view)


@router.post(
    "/table-change",
    response_model=AreaListViewResponse,
    summary="Apply a page, sort or filter change",
)
async def change_table(
    change: TableChangeRequest,
    context: ListViewContext = Depends(),
) -> AreaListViewResponse:
    """Apply a table interaction and render the resulting page."""
    view = context.view(_table_state(change.state))
    if isinstance(change.sorter, list):
        sorter = [s.model_dump() for s in change.sorter]
    elif change.sorter is not None:
        sorter = change.sorter.model_dump()
    else:
        sorter = None

    await view.handle_table_change(
        pagination=change.pagination.model_dump(),
        filters=change.filters,
        sorter=sorter,
    )
    return context.respond(view)


@router.post(
    "/search",
    response_model=AreaListViewResponse,
    summary="Search areas",
)
async def search_areas(
    search: SearchRequest,
    context: ListViewContext = Depends(),
) -> AreaListViewResponse:
    """Commit the search box and render the first page of matches."""
    view = context.view(_table_state(search.state))
    await view.submit_search(search.text)
    return context.respond(view)


@router.post(
    "/reset",
    response_model=AreaListViewResponse,
    summary="Reset the area list",
)
async def reset_areas(context: ListViewContext = Depends()) -> AreaListViewResponse:
    """Render the list with the default table state."""
    view = context.view()
    await view.reset()
    return context.respond(view)


@router.get(
    "/new",
    response_model=AreaFormViewResponse,
    summary="Render an empty area form",
)
async def new_area_form(context: FormViewContext = Depends()) -> AreaFormViewResponse:
    """Render the create form with its defaults."""
    view = context.view()
    await view.load()
    return context.respond(view)


@router.post(
    "",
    response_model=AreaFormViewResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create an area",
)
async def create_area(
    form: AreaFormRequest,
    response: Response,
    context: FormViewContext = Depends(),
) -> AreaFormViewResponse:
    """Validate and submit the create form."""
    view = context.view()
    await view.load()
    view.set_values(form.model_dump(exclude_unset=True))

    area = await view.submit()
    if area is None:
        response.status_code = _failure_status(view.error)
    return context.respond(view)


@router.delete(
    "/{base64pk}",
    response_model=AreaListViewResponse,
    summary="Delete an area",
)
async def delete_area(
    base64pk: str = Path(..., description="The base64pk of the area to delete"),
    confirm: bool = Query(False, description="Set once the user confirmed the deletion"),
    state: TableState = Depends(_list_state),
    context: ListViewContext = Depends(),
) -> AreaListViewResponse:
    """Delete an area once confirmed; otherwise return the confirmation prompt."""
    view = context.view(state)
    await view.refresh()
    view.request_delete(base64pk)
    if confirm:
        await view.confirm_delete()
    return context.respond(view)


@router.get(
    "/edit/{base64pk}",
    response_model=AreaFormViewResponse,
    summary="Render the edit form of an area",
)
async def edit_area_form(
    base64pk: str = Path(..., description="The base64pk of the area to edit"),
    context: FormViewContext = Depends(),
) -> AreaFormViewResponse:
    """Render the edit form, or redirect to the list if the area cannot be loaded."""
    view = context.view(base64pk)
    await view.load()
    return context.respond(view)


@router.put(
    "/{base64pk}",
    response_model=AreaFormViewResponse,
    summary="Update an area",
)
async def update_area(
    form: AreaFormRequest,
    response: Response,
    base64pk: str = Path(..., description="The base64pk of the area to update"),
    context: FormViewContext = Depends(),
) -> AreaFormViewResponse:
    """Validate and submit the edit form."""
    view = context.view(base64pk)
    if not await view.load():
        response.status_code = _failure_status(view.error)
        return context.respond(view)

    view.set_values(form.model_dump(exclude_unset=True))
    area = await view.submit()
    if area is None:
        response.status_code = _failure_status(view.error)
    return context.respond(view)

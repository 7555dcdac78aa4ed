"""Area list view: table state, fetching, rendering and row actions."""

import logging
from typing import Any, Dict, List, Mapping, Optional, Sequence, Union

from area_admin.core.errors import AreaAdminError, describe_error
from area_admin.core.navigation import ADD_ROUTE, Navigator, edit_route
from area_admin.core.notifications import Notifier
from area_admin.models.area import Area, AreaStatus
from area_admin.models.table_state import (
    AREAS_QUERY_PREFIX,
    DEFAULT_SORT_FIELD,
    PAGE_SIZE_OPTIONS,
    QueryKey,
    SortOrder,
    TableState,
    area_query_key,
    areas_query_key,
)
from area_admin.services.area_client import AreaApiClient
from area_admin.services.query_client import QueryClient

logger = logging.getLogger(__name__)

DELETE_CONFIRMATION = "Are you sure to delete this area?"

STATUS_COLORS = {
    AreaStatus.DRAFT.value: "blue",
    AreaStatus.ACTIVE.value: "green",
}

# Columns offered by the table, in display order.
COLUMNS = [
    {"title": "ID", "key": "area_id", "sortable": True},
    {"title": "Name", "key": "area_name", "sortable": True},
    {"title": "Status", "key": "status", "sortable": True},
    {"title": "Active", "key": "enable", "sortable": True},
    {"title": "Created Date", "key": "created_date", "sortable": True},
    {"title": "Modified Date", "key": "modified_date", "sortable": True},
    {"title": "Actions", "key": "actions", "sortable": False},
]

Sorter = Union[Mapping[str, Any], Sequence[Mapping[str, Any]], None]


def _sort_field(sorter: Mapping[str, Any]) -> str:
    field = sorter.get("field")
    if isinstance(field, (list, tuple)):
        field = "_".join(str(part) for part in field)
    return field or sorter.get("columnKey") or DEFAULT_SORT_FIELD


class AreaListView:
    """State machine behind the area table.

    The view owns only the ``TableState``; fetch status lives in the
    ``QueryClient`` under the key derived from that state. Every transition
    computes the new key and fetches when it differs from the last one issued.
    """

    def __init__(
        self,
        client: AreaApiClient,
        query_client: QueryClient,
        notifier: Notifier,
        navigator: Navigator,
        state: Optional[TableState] = None,
        default_state: Optional[TableState] = None,
        page_size_options: Sequence[int] = PAGE_SIZE_OPTIONS,
    ) -> None:
        self.client = client
        self.query_client = query_client
        self.notifier = notifier
        self.navigator = navigator
        self.default_state = default_state or TableState()
        self.state = state or self.default_state
        self.page_size_options = list(page_size_options)

        self.search_text = self.state.search
        self.total = 0
        self.rows: List[Area] = []
        self.loading = False
        self.pending_delete: Optional[str] = None
        self._last_issued_key: Optional[QueryKey] = None

    @property
    def query_key(self) -> QueryKey:
        return areas_query_key(self.state)

    def _transition(self, **changes: Any) -> TableState:
        data = self.state.model_dump()
        data.update(changes)
        self.state = TableState.model_validate(data)
        return self.state

    async def _fetch(self, state: TableState) -> Any:
        return await self.client.list_areas(
            page=state.current,
            page_size=state.page_size,
            sort_field=state.sort_field,
            sort_order=state.sort_order.wire_value,
            filters=state.query_params(),
        )

    async def refresh(self, force: bool = False) -> bool:
        """Fetch the page described by the current state.

        Args:
            force: Fetch even if the key equals the last issued one.

        Returns:
            bool: True if a result was applied to the view.
        """
        key = self.query_key
        if not force and key == self._last_issued_key:
            return False

        self._last_issued_key = key
        state = self.state
        self.loading = True
        try:
            response = await self.query_client.fetch_query(
                key, lambda: self._fetch(state), force=force
            )
        except AreaAdminError as e:
            if key != self.query_key:
                return False
            self.loading = False
            self.notifier.error(describe_error(e, "Failed to load areas"))
            return False

        if key != self.query_key:
            logger.info(f"Discarding superseded area list result for {key}")
            return False

        self.loading = False
        self.total = response.total_count
        self.rows = list(response.data)
        return True

    async def handle_table_change(
        self,
        pagination: Optional[Mapping[str, Any]] = None,
        filters: Optional[Mapping[str, Any]] = None,
        sorter: Sorter = None,
    ) -> bool:
        """Apply a page, page size, sort or column filter change."""
        pagination = pagination or {}
        if isinstance(sorter, (list, tuple)):
            sorter = sorter[0] if sorter else None
        sorter = sorter or {}

        self._transition(
            current=pagination.get("current") or self.state.current,
            page_size=pagination.get("pageSize") or self.state.page_size,
            filters=dict(filters or {}),
            sort_field=_sort_field(sorter),
            sort_order=SortOrder.parse(sorter.get("order")),
        )
        return await self.refresh()

    def set_search_text(self, text: str) -> None:
        """Update the search box without searching."""
        self.search_text = text or ""

    async def submit_search(self, text: Optional[str] = None) -> bool:
        """Commit the search box and go back to the first page."""
        if text is not None:
            self.set_search_text(text)
        self._transition(search=self.search_text, current=1)
        return await self.refresh(force=True)

    async def reset(self) -> bool:
        """Restore the default table state and clear the search box."""
        self.search_text = ""
        self.state = self.default_state
        return await self.refresh(force=True)

    def add_area(self) -> None:
        self.navigator.navigate(ADD_ROUTE)

    def edit_area(self, base64pk: str) -> None:
        self.navigator.navigate(edit_route(base64pk))

    def request_delete(self, base64pk: str) -> str:
        """Ask for confirmation before deleting a row."""
        self.pending_delete = base64pk
        return DELETE_CONFIRMATION

    def cancel_delete(self) -> None:
        self.pending_delete = None

    async def confirm_delete(self) -> bool:
        """Delete the row awaiting confirmation.

        On success every cached list variant is invalidated and the current
        page is fetched again; on failure the rows are left untouched.
        """
        base64pk = self.pending_delete
        if base64pk is None:
            return False
        self.pending_delete = None

        try:
            await self.query_client.mutate(
                self.client.delete_area,
                base64pk,
                invalidate=[AREAS_QUERY_PREFIX, area_query_key(base64pk)],
            )
        except AreaAdminError as e:
            logger.error(f"Delete error for area {base64pk}: {e.message}")
            self.notifier.error("Failed to delete area")
            return False

        self.notifier.success("Area deleted successfully")
        await self.refresh(force=True)
        return True

    def _render_row(self, area: Area) -> Dict[str, Any]:
        return {
            "key": area.base64pk,
            "area_id": area.area_id,
            "area_name": area.area_name,
            "status": area.status,
            "status_label": (area.status or "").upper(),
            "status_color": STATUS_COLORS.get(area.status, "volcano"),
            "enable": area.enable,
            "created_date": area.created.date if area.created else None,
            "modified_date": area.modified.date if area.modified else None,
            "actions": {"edit": edit_route(area.base64pk), "delete": area.base64pk},
        }

    def render(self) -> Dict[str, Any]:
        """Everything the browser needs to draw the table."""
        return {
            "columns": COLUMNS,
            "rows": [self._render_row(area) for area in self.rows],
            "pagination": {
                "current": self.state.current,
                "pageSize": self.state.page_size,
                "total": self.total,
                "pageSizeOptions": [str(size) for size in self.page_size_options],
                "showSizeChanger": True,
                "showTotal": f"Total {self.total} items",
            },
            "sortField": self.state.sort_field,
            "sortOrder": self.state.sort_order.value,
            "filters": dict(self.state.filters),
            "searchText": self.search_text,
            "loading": self.loading,
            "pendingDelete": self.pending_delete,
            "confirm": DELETE_CONFIRMATION if self.pending_delete else None,
        }

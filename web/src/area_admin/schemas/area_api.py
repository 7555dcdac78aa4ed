"""API schemas for area requests and view responses."""

from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from area_admin.models.area import Area


class AreaListResponse(BaseModel):
    """Envelope returned by the backend list endpoint."""

    total_count: int = Field(alias="totalCount")
    data: List[Area] = Field(default_factory=list)

    model_config = ConfigDict(populate_by_name=True)


class AreaFormData(BaseModel):
    """Body of the create and update requests."""

    area_id: str
    area_name: str
    status: str
    enable: bool = True
    description: Union[str, Dict[str, Any], List[Any], None] = ""


class NotificationSchema(BaseModel):
    """A user-visible notification."""

    level: str
    content: str


class PaginationSchema(BaseModel):
    """Pagination control state."""

    current: int
    pageSize: int
    total: int
    pageSizeOptions: List[str]
    showSizeChanger: bool = True
    showTotal: str


class AreaRowActionsSchema(BaseModel):
    """Row actions, keyed by the record's base64pk."""

    edit: str
    delete: str


class AreaRowSchema(BaseModel):
    """One rendered table row."""

    key: str
    area_id: str
    area_name: str
    status: str
    status_label: str
    status_color: str
    enable: bool
    created_date: Optional[str] = None
    modified_date: Optional[str] = None
    actions: AreaRowActionsSchema


class AreaListViewResponse(BaseModel):
    """Rendered state of the area list view."""

    columns: List[Dict[str, Any]] = Field(default_factory=list)
    rows: List[AreaRowSchema]
    pagination: PaginationSchema
    sortField: str
    sortOrder: str
    filters: Dict[str, Optional[List[str]]]
    searchText: str
    loading: bool = False
    confirm: Optional[str] = None
    pendingDelete: Optional[str] = None
    notifications: List[NotificationSchema] = Field(default_factory=list)
    redirect: Optional[str] = None


class AreaFormViewResponse(BaseModel):
    """Rendered state of the area form view."""

    mode: str
    state: str
    title: str
    submitLabel: str
    base64pk: Optional[str] = None
    values: Dict[str, Any]
    readOnly: List[str]
    fieldErrors: Dict[str, List[str]] = Field(default_factory=dict)
    statusOptions: List[Dict[str, str]]
    error: Optional[Dict[str, Any]] = None
    notifications: List[NotificationSchema] = Field(default_factory=list)
    redirect: Optional[str] = None


class TablePaginationRequest(BaseModel):
    """Pagination part of a table change event."""

    current: Optional[int] = None
    pageSize: Optional[int] = None


class TableSorterRequest(BaseModel):
    """Sorter part of a table change event."""

    field: Optional[Union[str, List[str]]] = None
    columnKey: Optional[str] = None
    order: Optional[str] = None


class TableStateRequest(BaseModel):
    """Table state as held by the browser."""

    current: int = 1
    pageSize: int = 10
    sortField: str = "area_id"
    sortOrder: str = "ascend"
    search: str = ""
    filters: Dict[str, Optional[List[str]]] = Field(default_factory=dict)


class TableChangeRequest(BaseModel):
    """A table interaction: page, page size, sort or column filter change."""

    state: TableStateRequest = Field(default_factory=TableStateRequest)
    pagination: TablePaginationRequest = Field(default_factory=TablePaginationRequest)
    filters: Dict[str, Optional[List[str]]] = Field(default_factory=dict)
    sorter: Union[TableSorterRequest, List[TableSorterRequest], None] = None


class SearchRequest(BaseModel):
    """A confirmed search box submission."""

    state: TableStateRequest = Field(default_factory=TableStateRequest)
    text: str = ""


class AreaFormRequest(BaseModel):
    """Values submitted from the area form."""

    area_id: Optional[str] = None
    area_name: Optional[str] = None
    status: Optional[str] = None
    enable: Optional[bool] = None
    description: Union[str, Dict[str, Any], List[Any], None] = None

    model_config = ConfigDict(extra="ignore")

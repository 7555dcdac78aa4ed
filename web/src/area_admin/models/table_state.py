"""Table state model for the area list view."""

from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator

DEFAULT_PAGE_SIZE = 10
DEFAULT_SORT_FIELD = "area_id"
PAGE_SIZE_OPTIONS = (10, 20, 50, 100)

AREAS_QUERY_PREFIX: Tuple[str, ...] = ("areas",)
AREA_QUERY_PREFIX: Tuple[str, ...] = ("area",)

QueryKey = Tuple[Any, ...]


class SortOrder(str, Enum):
    """Sort direction as reported by the table widget."""

    ASCEND = "ascend"
    DESCEND = "descend"

    @classmethod
    def parse(cls, value: Any) -> "SortOrder":
        """Accept widget (ascend/descend) or wire (asc/desc) spellings."""
        if isinstance(value, SortOrder):
            return value
        if value in (cls.DESCEND.value, "desc"):
            return cls.DESCEND
        return cls.ASCEND

    @property
    def wire_value(self) -> str:
        """Direction as the backend expects it."""
        return "asc" if self is SortOrder.ASCEND else "desc"


class TableState(BaseModel):
    """Model for the pagination, sort and filter state of the area table.

    Instances are immutable; use ``model_copy(update=...)`` or the helpers on
    the list view to move to a new state.
    """

    current: int = Field(default=1, ge=1)
    page_size: int = Field(default=DEFAULT_PAGE_SIZE, ge=1)
    sort_field: str = DEFAULT_SORT_FIELD
    sort_order: SortOrder = SortOrder.ASCEND
    search: str = ""
    filters: Dict[str, Optional[List[str]]] = Field(default_factory=dict)

    model_config = ConfigDict(frozen=True)

    @field_validator("sort_order", mode="before")
    @classmethod
    def _parse_sort_order(cls, value: Any) -> SortOrder:
        return SortOrder.parse(value)

    @field_validator("filters", mode="before")
    @classmethod
    def _normalize_filters(cls, value: Any) -> Dict[str, Optional[List[str]]]:
        if not value:
            return {}
        normalized = {}
        for name, values in dict(value).items():
            if values is None:
                normalized[name] = None
            elif isinstance(values, (list, tuple, set)):
                normalized[name] = [str(v) for v in values]
            else:
                normalized[name] = [str(values)]
        return normalized

    def key(self) -> Tuple[Any, ...]:
        """Canonical, hashable form of every field."""
        filters = tuple(
            sorted(
                (name, tuple(values) if values is not None else None)
                for name, values in self.filters.items()
            )
        )
        return (
            self.current,
            self.page_size,
            self.sort_field,
            self.sort_order.value,
            self.search,
            filters,
        )

    def query_params(self) -> Dict[str, Any]:
        """Filters sent along with the paging arguments of a list request."""
        params: Dict[str, Any] = {"search": self.search}
        for name, values in self.filters.items():
            if values:
                params[name] = values
        return params


def areas_query_key(state: TableState) -> QueryKey:
    """Key identifying one page/sort/filter variant of the area list."""
    return AREAS_QUERY_PREFIX + (state.key(),)


def area_query_key(base64pk: str) -> QueryKey:
    """Key identifying a single area record."""
    return AREA_QUERY_PREFIX + (base64pk,)

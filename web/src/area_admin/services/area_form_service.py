"""Area form view: create and edit flows."""

import logging
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional

from area_admin.core.errors import AreaAdminError, FieldValidationError, describe_error
from area_admin.core.navigation import LIST_ROUTE, Navigator
from area_admin.core.notifications import Notifier
from area_admin.models.area import Area, AreaStatus
from area_admin.models.table_state import AREAS_QUERY_PREFIX, area_query_key
from area_admin.schemas.area_api import AreaFormData
from area_admin.services.area_client import AreaApiClient
from area_admin.services.query_client import QueryClient

logger = logging.getLogger(__name__)

AREA_ID_MAX_LENGTH = 20
AREA_NAME_MAX_LENGTH = 100

EDITABLE_FIELDS = ("area_id", "area_name", "status", "enable", "description")

DEFAULT_VALUES: Dict[str, Any] = {
    "area_id": "",
    "area_name": "",
    "status": AreaStatus.DRAFT.value,
    "enable": True,
    "description": "",
}

STATUS_OPTIONS = [
    {"value": AreaStatus.DRAFT.value, "label": "Draft"},
    {"value": AreaStatus.ACTIVE.value, "label": "Active"},
    {"value": AreaStatus.INACTIVE.value, "label": "Inactive"},
]

# field -> (max length, required message, too long message)
TEXT_RULES = {
    "area_id": (
        AREA_ID_MAX_LENGTH,
        "Please enter area ID",
        "Area ID cannot exceed 20 characters",
    ),
    "area_name": (
        AREA_NAME_MAX_LENGTH,
        "Please enter area name",
        "Area name cannot exceed 100 characters",
    ),
}


class FormMode(str, Enum):
    CREATE = "create"
    EDIT = "edit"


class FormState(str, Enum):
    NEW = "new"
    LOADING_EXISTING = "loadingExisting"
    READY = "ready"
    SUBMITTING = "submitting"
    SUCCESS = "success"
    ERROR = "error"


class AreaFormView:
    """Create or edit a single area.

    Without a ``base64pk`` the form creates a new area; with one it loads and
    replaces that record. ``area_id`` is read-only once the area exists.
    """

    def __init__(
        self,
        client: AreaApiClient,
        query_client: QueryClient,
        notifier: Notifier,
        navigator: Navigator,
        base64pk: Optional[str] = None,
    ) -> None:
        self.client = client
        self.query_client = query_client
        self.notifier = notifier
        self.navigator = navigator
        self.base64pk = base64pk

        self.state = FormState.NEW
        self.values: Dict[str, Any] = dict(DEFAULT_VALUES)
        self.field_errors: Dict[str, List[str]] = {}
        self.error: Optional[AreaAdminError] = None
        self.loaded: Optional[Area] = None

    @property
    def mode(self) -> FormMode:
        return FormMode.EDIT if self.base64pk else FormMode.CREATE

    @property
    def is_edit_mode(self) -> bool:
        return self.mode is FormMode.EDIT

    @property
    def read_only_fields(self) -> List[str]:
        return ["area_id"] if self.is_edit_mode else []

    @staticmethod
    def _values_from(area: Area) -> Dict[str, Any]:
        return {
            "area_id": area.area_id,
            "area_name": area.area_name,
            "status": area.status,
            "enable": area.enable,
            "description": area.description if area.description is not None else "",
        }

    async def load(self) -> bool:
        """Prepare the form.

        In edit mode the record is fetched first; if that fails the view is
        abandoned and the browser is sent back to the list.

        Returns:
            bool: True if the form is ready for input.
        """
        if not self.is_edit_mode:
            self.values = dict(DEFAULT_VALUES)
            self.state = FormState.READY
            return True

        self.state = FormState.LOADING_EXISTING
        try:
            area = await self.query_client.fetch_query(
                area_query_key(self.base64pk),
                lambda: self.client.get_area(self.base64pk),
            )
        except AreaAdminError as e:
            logger.error(f"Failed to load area {self.base64pk}: {e.to_dict()}")
            self.error = e
            self.state = FormState.ERROR
            self.notifier.error("Failed to load area data")
            self.navigator.navigate(LIST_ROUTE)
            return False

        self.loaded = area
        self.values = self._values_from(area)
        self.state = FormState.READY
        return True

    def set_field(self, name: str, value: Any) -> None:
        """Change one field.

        Raises:
            ValueError: If the field is unknown or read-only.
        """
        if name not in EDITABLE_FIELDS:
            raise ValueError(f"Unknown area field: {name}")
        if name in self.read_only_fields:
            raise ValueError(f"Field {name} cannot be changed")
        self.values[name] = value
        self.field_errors.pop(name, None)

    def set_values(self, values: Mapping[str, Any]) -> None:
        """Change several fields at once; read-only fields are left as loaded."""
        for name, value in values.items():
            if name in self.read_only_fields:
                logger.debug(f"Ignoring read-only field {name}")
                continue
            self.set_field(name, value)

    def validate(self) -> Dict[str, List[str]]:
        """Check the current values without contacting the backend.

        Returns:
            Dict[str, List[str]]: Messages per invalid field; empty if valid.
        """
        errors: Dict[str, List[str]] = {}

        for name, (max_length, required, too_long) in TEXT_RULES.items():
            if name in self.read_only_fields:
                continue
            value = self.values.get(name)
            if value is None or value == "":
                errors[name] = [required]
            elif len(str(value)) > max_length:
                errors[name] = [too_long]

        status = self.values.get("status")
        if not status:
            errors["status"] = ["Please select status"]
        elif status not in {option["value"] for option in STATUS_OPTIONS}:
            errors["status"] = ["Please select a valid status"]

        return errors

    def _form_data(self) -> AreaFormData:
        values = dict(self.values)
        if self.is_edit_mode:
            values["area_id"] = self.loaded.area_id
        if values.get("enable") is None:
            values["enable"] = False
        return AreaFormData(**values)

    async def submit(self) -> Optional[Area]:
        """Validate and send the form.

        Returns:
            Optional[Area]: The saved area, or None if validation or the
            request failed. Field values are kept on failure.
        """
        if self.is_edit_mode and self.loaded is None:
            raise RuntimeError("Cannot submit an edit form before the area is loaded")

        self.field_errors = self.validate()
        if self.field_errors:
            self.error = FieldValidationError(self.field_errors)
            logger.info(f"Area form blocked by validation: {self.field_errors}")
            return None

        self.error = None
        form_data = self._form_data()
        self.state = FormState.SUBMITTING
        try:
            if self.is_edit_mode:
                logger.info(f"Updating area with ID: {self.base64pk}")
                area = await self.query_client.mutate(
                    self.client.update_area,
                    self.base64pk,
                    form_data,
                    invalidate=[AREAS_QUERY_PREFIX, area_query_key(self.base64pk)],
                )
            else:
                logger.info("Creating new area")
                area = await self.query_client.mutate(
                    self.client.create_area,
                    form_data,
                    invalidate=[AREAS_QUERY_PREFIX],
                )
        except AreaAdminError as e:
            action = "Update" if self.is_edit_mode else "Create"
            logger.error(f"{action} error: {e.to_dict()}")
            self.error = e
            self.state = FormState.ERROR
            if self.is_edit_mode:
                message = describe_error(e, "Failed to update area", "Error updating area")
            else:
                message = describe_error(e, "Failed to create area", "Error creating area")
            self.notifier.error(message)
            return None

        self.state = FormState.SUCCESS
        if self.is_edit_mode:
            self.notifier.success("Area updated successfully")
        else:
            self.notifier.success("Area created successfully")
        self.navigator.navigate(LIST_ROUTE)
        return area

    def reset(self) -> None:
        """Edit mode: back to the loaded record. Create mode: back to defaults."""
        if self.is_edit_mode and self.loaded is not None:
            self.values = self._values_from(self.loaded)
        else:
            self.values = dict(DEFAULT_VALUES)
        self.field_errors = {}
        self.error = None

    def render(self) -> Dict[str, Any]:
        return {
            "mode": self.mode.value,
            "state": self.state.value,
            "title": "Edit Area" if self.is_edit_mode else "Add New Area",
            "submitLabel": "Update" if self.is_edit_mode else "Save",
            "base64pk": self.base64pk,
            "values": dict(self.values),
            "readOnly": self.read_only_fields,
            "fieldErrors": dict(self.field_errors),
            "statusOptions": STATUS_OPTIONS,
            "error": self.error.to_dict() if self.error else None,
        }

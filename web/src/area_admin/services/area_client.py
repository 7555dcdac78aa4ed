"""HTTP client for the area backend resource."""

import hashlib
import json
import logging
from typing import Any, Dict, Mapping, Optional
from urllib.parse import quote

import httpx
from pydantic import ValidationError

from area_admin.core.config import Settings
from area_admin.core.errors import HttpError, TransportError, UnexpectedError
from area_admin.models.area import Area
from area_admin.schemas.area_api import AreaFormData, AreaListResponse

logger = logging.getLogger(__name__)


def create_http_client(
    settings: Settings, transport: Optional[httpx.AsyncBaseTransport] = None
) -> httpx.AsyncClient:
    """Create the pooled HTTP client shared by every request."""
    return httpx.AsyncClient(
        transport=transport,
        base_url=settings.area_api_url,
        headers={"Content-Type": "application/json", "Accept": "application/json"},
        timeout=settings.request_timeout,
    )


def get_csrf_token(cookies: Mapping[str, str], cookie_name: str = "csrftoken") -> Optional[str]:
    """Return the anti-forgery token from the cookies, or None if absent."""
    token = cookies.get(cookie_name)
    if not token:
        return None
    return token.strip() or None


def session_scope(cookies: Mapping[str, str]) -> str:
    """Opaque identity of the browser session that sent these cookies.

    Requests with the same cookies reach the backend with the same
    credentials, so they may share cached responses.
    """
    raw = "; ".join(f"{name}={value}" for name, value in sorted(cookies.items()))
    return hashlib.sha256(raw.encode("utf-8")).hexdigest()


def normalize_description(description: Any) -> str:
    """Descriptions travel as strings; structured values are JSON-encoded."""
    if isinstance(description, str):
        return description
    if description is None:
        return ""
    return json.dumps(description)


def _decode_body(response: httpx.Response) -> Any:
    if not response.content:
        return None
    try:
        return response.json()
    except ValueError:
        return response.text


class AreaApiClient:
    """Client for the ``/master/api/area/`` resource.

    A client is bound to the cookies of one browser request: the CSRF token
    and the session cookies are forwarded on every call. The underlying
    ``httpx.AsyncClient`` is shared across clients.
    """

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        settings: Settings,
        cookies: Optional[Mapping[str, str]] = None,
    ) -> None:
        self.http_client = http_client
        self.settings = settings
        self.cookies = dict(cookies or {})

    def _headers(self) -> Dict[str, str]:
        headers: Dict[str, str] = {}
        token = get_csrf_token(self.cookies, self.settings.csrf_cookie_name)
        if token:
            headers[self.settings.csrf_header_name] = token
        if self.cookies:
            headers["Cookie"] = "; ".join(
                f"{name}={value}" for name, value in self.cookies.items()
            )
        return headers

    async def _request(
        self,
        method: str,
        path: str,
        params: Optional[Dict[str, Any]] = None,
        payload: Optional[Dict[str, Any]] = None,
    ) -> Any:
        """Send a request and return the decoded body of a 2xx response.

        Raises:
            TransportError: No response was received.
            HttpError: The backend answered with a non-2xx status.
            UnexpectedError: The request could not be built or sent.
        """
        try:
            response = await self.http_client.request(
                method,
                path,
                params=params,
                json=payload,
                headers=self._headers(),
            )
        except httpx.TransportError as e:
            logger.error(f"No response from area backend for {method} {path!r}: {e}")
            raise TransportError(str(e)) from e
        except Exception as e:
            logger.error(f"Error sending {method} {path!r} to area backend: {e}")
            raise UnexpectedError(str(e)) from e

        body = _decode_body(response)
        if not response.is_success:
            logger.warning(
                f"Area backend rejected {method} {path!r}: {response.status_code}"
            )
            raise HttpError(response.status_code, body, response.reason_phrase)

        logger.info(f"{method} {response.request.url} -> {response.status_code}")
        return body

    @staticmethod
    def _record_path(base64pk: str) -> str:
        return f"{quote(base64pk, safe='')}/"

    @staticmethod
    def _prepare_payload(form_data: AreaFormData) -> Dict[str, Any]:
        payload = form_data.model_dump()
        payload["description"] = normalize_description(form_data.description)
        return payload

    @staticmethod
    def _parse(model: Any, body: Any) -> Any:
        try:
            return model.model_validate(body)
        except ValidationError as e:
            raise UnexpectedError(f"Invalid response from area backend: {e}") from e

    async def list_areas(
        self,
        page: int = 1,
        page_size: int = 10,
        sort_field: str = "area_id",
        sort_order: str = "asc",
        filters: Optional[Dict[str, Any]] = None,
    ) -> AreaListResponse:
        """Retrieve one page of areas."""
        params: Dict[str, Any] = {
            "page": page,
            "pageSize": page_size,
            "sortField": sort_field,
            "sortOrder": sort_order,
        }
        for name, value in (filters or {}).items():
            if value is not None:
                params[name] = value

        body = await self._request("GET", "", params=params)
        return self._parse(AreaListResponse, body)

    async def get_area(self, base64pk: str) -> Area:
        """Retrieve a single area by its base64pk."""
        body = await self._request("GET", self._record_path(base64pk))
        return self._parse(Area, body)

    async def create_area(self, form_data: AreaFormData) -> Area:
        """Create an area."""
        body = await self._request("POST", "", payload=self._prepare_payload(form_data))
        return self._parse(Area, body)

    async def update_area(self, base64pk: str, form_data: AreaFormData) -> Area:
        """Replace every editable field of an area."""
        body = await self._request(
            "PUT", self._record_path(base64pk), payload=self._prepare_payload(form_data)
        )
        return self._parse(Area, body)

    async def delete_area(self, base64pk: str) -> None:
        """Delete an area."""
        await self._request("DELETE", self._record_path(base64pk))

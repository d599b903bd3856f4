"""httpx client for the shows REST backend.

Responses use the envelope ``{"code": int, "message": str, "data": ...}``;
``code == 0`` means success. Every failure is raised as ApiError.
"""

import logging
from collections.abc import Mapping
from typing import Any

import httpx
from pydantic import BaseModel, ValidationError

from showbridge.config.settings import Settings
from showbridge.core.pagination import PageParams, to_limit_offset

logger = logging.getLogger(__name__)


class ApiError(Exception):
    """Error raised for any failed backend request.

    Attributes:
        status: HTTP status, or 0 when no response was received
        code: Business code from the envelope, if any
        message: Human-readable message
        request_id: Value of the request id response header, if any
        payload: Decoded error body, if any
    """

    def __init__(
        self,
        status: int,
        message: str,
        code: int | None = None,
        request_id: str | None = None,
        payload: Any = None,
    ):
        super().__init__(message)
        self.status = status
        self.code = code
        self.message = message
        self.request_id = request_id
        self.payload = payload


class Pagination(BaseModel):
    """Pagination metadata from an ``{items, total, page, pageSize}`` response."""

    total: int | None = None
    page: int | None = None
    page_size: int | None = None


def extract_items(response: Any) -> tuple[list[Any], Pagination | None]:
    """Interpret a list response as items plus optional pagination.

    A bare list is the item list. An object with a list ``items`` carries
    pagination metadata; metadata that does not parse is dropped and the
    items are kept. Any other shape means no data, not an error.
    """
    if isinstance(response, list):
        return response, None
    if isinstance(response, Mapping) and isinstance(response.get("items"), list):
        try:
            pagination = Pagination(
                total=response.get("total"),
                page=response.get("page"),
                page_size=response.get("pageSize", response.get("page_size")),
            )
        except ValidationError as e:
            logger.debug("Ignoring unparseable pagination metadata: %s", e)
            pagination = None
        return list(response["items"]), pagination
    return [], None


def _json_or_none(response: httpx.Response) -> Any:
    if "application/json" not in response.headers.get("content-type", ""):
        return None
    try:
        return response.json()
    except ValueError:
        return None


class BackendClient:
    """Async client for the ``/show`` endpoints.

    Example:
        client = BackendClient(Settings(api_base_url="https://api.example.com"))
        shows = await client.fetch_shows(PageParams(page=2, page_size=20))
        show = await client.fetch_show("7")
        await client.aclose()
    """

    def __init__(
        self,
        settings: Settings | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        """Initialize BackendClient.

        Args:
            settings: API settings. If None, loads from environment.
            transport: Optional httpx transport (e.g. httpx.MockTransport in tests).
        """
        if settings is None:
            settings = Settings()

        self.base_url = (settings.api_base_url or "").rstrip("/")
        self.timeout_s = settings.request_timeout_s
        self.request_id_header = settings.request_id_header
        self._client = httpx.AsyncClient(
            timeout=self.timeout_s,
            transport=transport,
            headers={"Content-Type": "application/json"},
        )

    @property
    def enabled(self) -> bool:
        """Backend reads are disabled when no base URL is configured."""
        return bool(self.base_url)

    async def aclose(self) -> None:
        await self._client.aclose()

    async def get(self, path: str, query: Mapping[str, Any] | None = None) -> Any:
        """GET ``path`` and return the unwrapped envelope ``data``.

        Raises:
            ApiError: On missing base URL, timeout, network failure, non-2xx
                status, non-JSON body, malformed envelope or non-zero code.
        """
        if not self.base_url and not path.startswith("http"):
            raise ApiError(0, "API base URL not configured")

        url = path if path.startswith("http") else f"{self.base_url}/{path.lstrip('/')}"
        params = {k: str(v) for k, v in (query or {}).items() if v is not None}

        try:
            response = await self._client.get(url, params=params)
        except httpx.TimeoutException as e:
            raise ApiError(0, f"Request timeout after {self.timeout_s}s") from e
        except httpx.HTTPError as e:
            raise ApiError(0, str(e) or "Network error") from e

        request_id = response.headers.get(self.request_id_header)
        payload = _json_or_none(response)

        if not response.is_success:
            code = payload.get("code") if isinstance(payload, Mapping) else None
            message = (
                (payload.get("message") if isinstance(payload, Mapping) else None)
                or (response.text if payload is None else None)
                or f"HTTP {response.status_code}"
            )
            raise ApiError(response.status_code, message, code, request_id, payload)

        if payload is None:
            raise ApiError(response.status_code, "Invalid JSON response", None, request_id)
        if not isinstance(payload, Mapping) or not isinstance(payload.get("code"), int):
            raise ApiError(
                response.status_code, "Malformed envelope (missing code)", None, request_id, payload
            )
        if payload["code"] != 0:
            raise ApiError(
                response.status_code,
                payload.get("message") or "API error",
                payload["code"],
                request_id,
                payload,
            )

        logger.debug("GET %s -> %s (request id %s)", url, response.status_code, request_id)
        return payload.get("data")

    async def fetch_shows(self, params: PageParams | None = None) -> Any:
        """Fetch the show list; ``limit``/``offset`` are sent only when set."""
        limit, offset = to_limit_offset(params)
        return await self.get("/show", query={"limit": limit, "offset": offset})

    async def fetch_show(self, show_id: str) -> Any:
        return await self.get(f"/show/{show_id}")

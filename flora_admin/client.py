"""HTTP client for the Flora IM / WooCommerce / WordPress REST API."""

import random
import time
from typing import Any

import httpx
import structlog

from flora_admin.config import FloraSettings
from flora_admin.errors import ErrorKind, RemoteError, from_transport_error, normalize_error

logger = structlog.get_logger()

# Flora IM responses must never be served from a cache.
NO_STORE_HEADERS = {
    "Content-Type": "application/json",
    "Cache-Control": "no-cache, no-store, must-revalidate",
    "Pragma": "no-cache",
    "Expires": "0",
}


def normalize_api_base(api_base: str) -> str:
    """Return the REST root of a WordPress site, always ending in /wp-json."""
    base = api_base.strip().rstrip("/")
    if not base:
        raise ValueError("Flora API base URL required")
    if not base.endswith("/wp-json"):
        base = f"{base}/wp-json"
    return base


def expect_list(data: Any, path: str, envelope: str | None = None) -> list[dict[str, Any]]:
    """Return the records of a collection response.

    Args:
        data: Decoded response body
        path: Request path, used in the error message
        envelope: Key holding the records when the body is an object

    Raises:
        RemoteError: The body is not a list of objects
    """
    if envelope is not None and isinstance(data, dict) and envelope in data:
        data = data[envelope]
    if data is None:
        return []
    if not isinstance(data, list) or not all(isinstance(item, dict) for item in data):
        logger.warning("Unexpected response shape", path=path, type=type(data).__name__)
        raise RemoteError(f"Unexpected response from {path}", ErrorKind.SERVER)
    return data


class FloraClient:
    """Thin async wrapper around httpx that speaks the Flora IM conventions.

    Every request disables caching, carries cache-busting query parameters and
    the configured credentials. Error responses and transport failures are
    raised as RemoteError with one normalized shape.
    """

    def __init__(self, settings: FloraSettings, transport: httpx.AsyncBaseTransport | None = None) -> None:
        """Initialize the client.

        Args:
            settings: API base, credentials and timeout
            transport: Optional httpx transport, used by tests
        """
        self.settings = settings
        self.base_url = normalize_api_base(settings.api_base)

        auth = None
        if settings.username and settings.app_password:
            auth = httpx.BasicAuth(settings.username, settings.app_password)

        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            headers=NO_STORE_HEADERS,
            auth=auth,
            timeout=settings.timeout,
            transport=transport,
        )
        logger.debug("Flora client initialized", base_url=self.base_url, basic_auth=auth is not None)

    async def __aenter__(self) -> "FloraClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    def _params(self, params: dict[str, Any] | None) -> dict[str, Any]:
        merged: dict[str, Any] = dict(params or {})
        if self.settings.consumer_key and self.settings.consumer_secret:
            merged["consumer_key"] = self.settings.consumer_key
            merged["consumer_secret"] = self.settings.consumer_secret
        merged["_cachebust"] = str(int(time.time() * 1000))
        merged["_t"] = str(random.random())
        return merged

    async def request(
        self,
        method: str,
        path: str,
        params: dict[str, Any] | None = None,
        json_data: Any = None,
    ) -> Any:
        """Send one request and return the decoded body.

        Args:
            method: HTTP method
            path: Path below the /wp-json root, e.g. ``flora-im/v1/locations``
            params: Query parameters
            json_data: JSON body

        Returns:
            Decoded JSON, or None when the body is empty

        Raises:
            RemoteError: For any non-2xx response, a body that is not JSON or a
                transport failure
        """
        logger.debug("Sending request", method=method, path=path)
        try:
            response = await self._client.request(
                method,
                path.lstrip("/"),
                params=self._params(params),
                json=json_data,
            )
        except httpx.TransportError as e:
            logger.debug("Transport failure", method=method, path=path, error=str(e))
            raise from_transport_error(e) from e

        if not response.is_success:
            error = normalize_error(
                response.status_code,
                response.text,
                response.reason_phrase,
                location=response.headers.get("location"),
            )
            logger.debug(
                "Request failed",
                method=method,
                path=path,
                status_code=response.status_code,
                error=error.message,
            )
            raise error

        logger.debug("Request succeeded", method=method, path=path, status_code=response.status_code)
        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as e:
            logger.warning("Response is not JSON", method=method, path=path, status_code=response.status_code)
            raise RemoteError(
                f"Invalid JSON response from {path}",
                ErrorKind.SERVER,
                status_code=response.status_code,
            ) from e

    async def get(self, path: str, params: dict[str, Any] | None = None) -> Any:
        return await self.request("GET", path, params=params)

    async def post(self, path: str, json_data: Any = None, params: dict[str, Any] | None = None) -> Any:
        return await self.request("POST", path, params=params, json_data=json_data)

    async def put(self, path: str, json_data: Any = None, params: dict[str, Any] | None = None) -> Any:
        return await self.request("PUT", path, params=params, json_data=json_data)

    async def delete(self, path: str, params: dict[str, Any] | None = None) -> Any:
        return await self.request("DELETE", path, params=params)

"""
Content Management API client for DatoCMS, implementing SchemaClient.

The HTTP calls are made with requests and run in worker threads, so several
of them can be in flight while the importer awaits a group of operations.
"""

from __future__ import annotations

import asyncio
import logging
import threading
from typing import TYPE_CHECKING, Any, Final

import requests

from .exceptions import ApiError

if TYPE_CHECKING:
    from collections.abc import Callable, Mapping

# Module-wide logger
logger: logging.Logger = logging.getLogger(__name__)

DEFAULT_BASE_URL: Final[str] = "https://site-api.datocms.com"
_API_VERSION: Final[str] = "3"
_TIMEOUT_SECONDS: Final[float] = 60.0


class DatoCmaClient:
    """Minimal DatoCMS CMA client covering the calls a schema import needs.

    Requests run in worker threads and requests.Session is not guaranteed to
    be thread-safe, so each thread lazily gets its own session from
    session_factory.
    """

    def __init__(
        self,
        token: str | None,
        *,
        base_url: str = DEFAULT_BASE_URL,
        environment: str | None = None,
        session_factory: Callable[[], requests.Session] = requests.Session,
    ) -> None:
        self.base_url: str = base_url.rstrip("/")
        self.environment: str | None = environment
        self._session_factory: Callable[[], requests.Session] = session_factory
        self._local: threading.local = threading.local()

        self.headers: dict[str, str] = {
            "Accept": "application/json",
            "Content-Type": "application/vnd.api+json",
            "X-Api-Version": _API_VERSION,
        }
        if token:
            self.headers["Authorization"] = f"Bearer {token}"
        if environment:
            self.headers["X-Environment"] = environment

    @property
    def session(self) -> requests.Session:
        """Session owned by the calling thread."""
        session: requests.Session | None = getattr(self._local, "session", None)
        if session is None:
            session = self._session_factory()
            session.headers.update(self.headers)
            self._local.session = session
            logger.debug(f"Opened CMA session for thread {threading.get_ident()}")
        return session

    async def fetch_locales(self) -> list[str]:
        site = await self._request("GET", "/site")
        return list(site["attributes"]["locales"])

    async def create_plugin(self, data: Mapping[str, Any]) -> dict[str, Any]:
        return await self._request("POST", "/plugins", data)

    async def update_plugin(self, plugin_id: str, attributes: Mapping[str, Any]) -> dict[str, Any]:
        return await self._request("PUT", f"/plugins/{plugin_id}", _update_payload("plugin", plugin_id, attributes))

    async def create_item_type(self, data: Mapping[str, Any]) -> dict[str, Any]:
        return await self._request("POST", "/item-types", data)

    async def create_fieldset(self, item_type_id: str, data: Mapping[str, Any]) -> dict[str, Any]:
        return await self._request("POST", f"/item-types/{item_type_id}/fieldsets", _with_type("fieldset", data))

    async def create_field(self, item_type_id: str, data: Mapping[str, Any]) -> dict[str, Any]:
        return await self._request("POST", f"/item-types/{item_type_id}/fields", _with_type("field", data))

    async def update_fieldset(self, fieldset_id: str, attributes: Mapping[str, Any]) -> dict[str, Any]:
        return await self._request(
            "PUT", f"/fieldsets/{fieldset_id}", _update_payload("fieldset", fieldset_id, attributes)
        )

    async def update_field(self, field_id: str, attributes: Mapping[str, Any]) -> dict[str, Any]:
        return await self._request("PUT", f"/fields/{field_id}", _update_payload("field", field_id, attributes))

    async def _request(self, method: str, path: str, data: Mapping[str, Any] | None = None) -> dict[str, Any]:
        return await asyncio.to_thread(self._request_sync, method, path, data)

    def _request_sync(self, method: str, path: str, data: Mapping[str, Any] | None) -> dict[str, Any]:
        url = f"{self.base_url}{path}"
        logger.debug(f"{method} {url}")

        try:
            response = self.session.request(
                method,
                url,
                json={"data": data} if data is not None else None,
                timeout=_TIMEOUT_SECONDS,
            )
        except requests.RequestException as e:
            msg = f"{method} {path} failed: {e}"
            raise ApiError(msg) from e

        if not response.ok:
            try:
                body: object = response.json()
            except ValueError:
                body = response.text
            msg = f"{method} {path} failed with status {response.status_code}: {body}"
            raise ApiError(msg, status_code=response.status_code, body=body)

        return response.json()["data"]


def _with_type(entity_type: str, data: Mapping[str, Any]) -> dict[str, Any]:
    return {"type": entity_type, **data}


def _update_payload(entity_type: str, entity_id: str, attributes: Mapping[str, Any]) -> dict[str, Any]:
    return {"type": entity_type, "id": entity_id, "attributes": dict(attributes)}

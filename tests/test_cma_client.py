"""
Tests for the Content Management API client.
"""

import threading
from unittest.mock import Mock

import pytest
import requests

from dato_schema_importer import ApiError
from dato_schema_importer.cma_client import DatoCmaClient


def _response(status_code: int = 200, payload: object = None) -> Mock:
    response = Mock()
    response.status_code = status_code
    response.ok = 200 <= status_code < 300
    response.json.return_value = payload
    response.text = str(payload)
    return response


@pytest.mark.unit
class TestDatoCmaClient:
    def setup_method(self) -> None:
        self.session: Mock = Mock()
        self.session.headers = {}
        self.client: DatoCmaClient = DatoCmaClient(
            "secret", base_url="https://api.example.test/", environment="sandbox", session_factory=lambda: self.session
        )

    def test_headers(self) -> None:
        _ = self.client.session

        assert self.session.headers["Authorization"] == "Bearer secret"
        assert self.session.headers["X-Api-Version"] == "3"
        assert self.session.headers["X-Environment"] == "sandbox"
        assert self.session.headers["Content-Type"] == "application/vnd.api+json"

    def test_no_environment_header_for_primary(self) -> None:
        session = Mock()
        session.headers = {}

        _ = DatoCmaClient("secret", session_factory=lambda: session).session

        assert "X-Environment" not in session.headers

    @pytest.mark.asyncio
    async def test_fetch_locales(self) -> None:
        self.session.request.return_value = _response(
            payload={"data": {"id": "1", "type": "site", "attributes": {"locales": ["en", "it"]}}}
        )

        assert await self.client.fetch_locales() == ["en", "it"]
        self.session.request.assert_called_once_with(
            "GET", "https://api.example.test/site", json=None, timeout=60.0
        )

    @pytest.mark.asyncio
    async def test_create_field_posts_to_item_type(self) -> None:
        self.session.request.return_value = _response(payload={"data": {"id": "f-1", "type": "field"}})

        created = await self.client.create_field("it-1", {"id": "f-1", "attributes": {"label": "Title"}})

        assert created == {"id": "f-1", "type": "field"}
        self.session.request.assert_called_once_with(
            "POST",
            "https://api.example.test/item-types/it-1/fields",
            json={"data": {"type": "field", "id": "f-1", "attributes": {"label": "Title"}}},
            timeout=60.0,
        )

    @pytest.mark.asyncio
    async def test_update_field_sends_attributes(self) -> None:
        self.session.request.return_value = _response(payload={"data": {"id": "f-1"}})

        await self.client.update_field("f-1", {"position": 3})

        self.session.request.assert_called_once_with(
            "PUT",
            "https://api.example.test/fields/f-1",
            json={"data": {"type": "field", "id": "f-1", "attributes": {"position": 3}}},
            timeout=60.0,
        )

    @pytest.mark.asyncio
    async def test_error_response_raises_api_error(self) -> None:
        body = {"data": [{"type": "api_error", "attributes": {"code": "INVALID_FIELD"}}]}
        self.session.request.return_value = _response(422, body)

        with pytest.raises(ApiError, match="status 422") as exc_info:
            await self.client.create_item_type({"type": "item_type", "id": "it-1", "attributes": {}})

        assert exc_info.value.status_code == 422
        assert exc_info.value.body == body

    @pytest.mark.asyncio
    async def test_transport_error_raises_api_error(self) -> None:
        self.session.request.side_effect = requests.ConnectionError("connection reset")

        with pytest.raises(ApiError, match="connection reset") as exc_info:
            await self.client.update_plugin("p-1", {"parameters": {}})

        assert exc_info.value.status_code is None

    def test_each_thread_gets_its_own_session(self) -> None:
        created: list[Mock] = []

        def factory() -> Mock:
            session = Mock()
            session.headers = {}
            created.append(session)
            return session

        client = DatoCmaClient("secret", session_factory=factory)
        per_thread: dict[str, object] = {}

        def grab(name: str) -> None:
            per_thread[name] = client.session

        threads = [threading.Thread(target=grab, args=(name,)) for name in ("a", "b")]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert per_thread["a"] is not per_thread["b"]
        assert client.session is client.session
        assert len(created) == 3
        assert all(session.headers["Authorization"] == "Bearer secret" for session in created)

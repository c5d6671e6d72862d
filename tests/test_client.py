"""Tests for the Gemina HTTP client."""

from __future__ import annotations

import base64

import httpx
import pytest

from gemina_client.core.config import Settings
from gemina_client.core.exceptions import ConfigurationError, TransportError
from gemina_client.services.gemina_client import GeminaClient


class TestGeminaClient:
    @pytest.mark.asyncio
    async def test_upload_image_request(self, make_client, test_image_file):
        client, transport = make_client([(201, {"external_id": "ex_1"})])

        resp = await client.upload_image(test_image_file, "ex_1")

        assert resp.status_code == 201
        request = transport.requests[0]
        assert request.method == "POST"
        assert str(request.url) == "https://api.test/v1/uploads"
        assert request.headers["Authorization"] == "Basic test-api-key"
        assert request.headers["Content-Type"] == "application/json"
        assert request.headers["Accept"] == "application/json"

        body = transport.json_body(0)
        assert body["client_id"] == "test-client"
        assert body["external_id"] == "ex_1"
        assert body["use_llm"] is True
        assert base64.b64decode(body["file"]) == test_image_file.read_bytes()

    @pytest.mark.asyncio
    async def test_upload_by_url_request(self, make_client):
        client, transport = make_client([(202, {})])

        resp = await client.upload_by_url("https://example.com/invoice.png", "ex_2")

        assert resp.status_code == 202
        request = transport.requests[0]
        assert str(request.url) == "https://api.test/v1/uploads/web"
        body = transport.json_body(0)
        assert body["url"] == "https://example.com/invoice.png"
        assert "file" not in body
        assert body["use_llm"] is True

    @pytest.mark.asyncio
    async def test_fetch_prediction_request(self, make_client, prediction_payload):
        client, transport = make_client([(200, prediction_payload)])

        resp = await client.fetch_prediction("ex_id_123")

        request = transport.requests[0]
        assert request.method == "GET"
        assert str(request.url) == "https://api.test/v1/business_documents/ex_id_123"
        assert request.headers["Authorization"] == "Basic test-api-key"
        assert request.headers["Accept"] == "application/json"
        assert resp.prediction.supplier_name.value == "Acme Ltd."

    @pytest.mark.asyncio
    async def test_error_status_does_not_raise(self, make_client):
        client, _ = make_client([(500, {"detail": "internal error"})])

        resp = await client.fetch_prediction("ex_3")

        assert resp.status_code == 500
        assert resp.raw_data == {"detail": "internal error"}
        assert resp.prediction is None

    @pytest.mark.asyncio
    async def test_transport_error_propagates(self, settings):
        def _fail(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        http_client = httpx.AsyncClient(transport=httpx.MockTransport(_fail))
        client = GeminaClient(settings, http_client=http_client)

        with pytest.raises(TransportError):
            await client.fetch_prediction("ex_4")

    @pytest.mark.asyncio
    async def test_missing_file_raises(self, make_client, tmp_path):
        client, transport = make_client([])
        with pytest.raises(FileNotFoundError):
            await client.upload_image(tmp_path / "missing.png", "ex_5")
        assert transport.requests == []

    @pytest.mark.asyncio
    async def test_context_manager_keeps_injected_client_open(self, settings):
        http_client = httpx.AsyncClient(transport=httpx.MockTransport(lambda r: httpx.Response(202)))
        async with GeminaClient(settings, http_client=http_client) as client:
            await client.fetch_prediction("ex_6")
        assert not http_client.is_closed
        await http_client.aclose()

    def test_missing_credentials(self):
        with pytest.raises(ConfigurationError):
            GeminaClient(Settings(_env_file=None, api_key="", client_id=""))

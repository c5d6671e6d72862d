"""Shared pytest fixtures for the Gemina client test suite."""

from __future__ import annotations

import json
from io import BytesIO
from pathlib import Path
from typing import Any, Callable

import httpx
import pytest
from PIL import Image

from gemina_client.core.config import Settings
from gemina_client.services.gemina_client import GeminaClient


@pytest.fixture
def settings() -> Settings:
    return Settings(
        _env_file=None,
        api_key="test-api-key",
        client_id="test-client",
        api_base="https://api.test/v1",
        poll_interval=1.0,
        max_poll_attempts=None,
        poll_timeout=None,
    )


@pytest.fixture
def prediction_payload() -> dict[str, Any]:
    """A representative prediction body as returned by the API."""
    return {
        "external_id": "ex_id_123",
        "created": "2024-05-01T10:15:30+00:00",
        "timestamp": 1714558530.25,
        "total_amount": {
            "value": 117.0,
            "confidence": "high",
            "coordinates": {
                "original": [[10, 20], [110, 20], [110, 40], [10, 40]],
                "normalized": [[1, 2], [11, 2], [11, 4], [1, 4]],
                "relative": [[0.01, 0.02], [0.11, 0.02], [0.11, 0.04], [0.01, 0.04]],
            },
        },
        "vat_amount": {"value": 17.0, "confidence": "medium"},
        "net_amount": {"value": 100},
        "currency": {"value": "ILS", "confidence": "high"},
        "business_number": {"value": 514000000, "confidence": "high"},
        "document_number": {"value": 9007199254740993, "confidence": "low"},
        "issue_date": {"value": "2024-04-30"},
        "document_type": {"value": "invoice"},
        "primary_document_type": {"value": "tax_invoice"},
        "expense_type": {"value": "office"},
        "payment_method": {"value": "credit_card"},
        "supplier_name": {"value": "Acme Ltd.", "confidence": "high"},
    }


@pytest.fixture
def test_image_file(tmp_path: Path) -> Path:
    """Save a small PNG to disk."""
    img = Image.new("RGB", (200, 100), color="white")
    buf = BytesIO()
    img.save(buf, format="PNG")
    path = tmp_path / "invoice.png"
    path.write_bytes(buf.getvalue())
    return path


class ScriptedTransport:
    """Replays canned (status, body) pairs and records every request."""

    def __init__(self, responses: list[tuple[int, Any]]) -> None:
        self._responses = list(responses)
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        status, body = self._responses.pop(0)
        if body is None:
            return httpx.Response(status)
        if isinstance(body, str):
            return httpx.Response(status, text=body)
        return httpx.Response(status, json=body)

    def calls(self, method: str, path_suffix: str = "") -> list[httpx.Request]:
        return [
            r for r in self.requests
            if r.method == method and r.url.path.endswith(path_suffix)
        ]

    def json_body(self, index: int) -> dict[str, Any]:
        return json.loads(self.requests[index].content)


@pytest.fixture
def make_client(settings: Settings) -> Callable[[list[tuple[int, Any]]], tuple[GeminaClient, ScriptedTransport]]:
    """Build a GeminaClient backed by a scripted mock transport."""
    def _make(responses: list[tuple[int, Any]]) -> tuple[GeminaClient, ScriptedTransport]:
        transport = ScriptedTransport(responses)
        http_client = httpx.AsyncClient(transport=httpx.MockTransport(transport))
        return GeminaClient(settings, http_client=http_client), transport

    return _make

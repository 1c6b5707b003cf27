"""
Shared fixtures for the webhook tests.
"""
import io
import json
from pathlib import Path

import pytest

from vcswebhook.webhook.models import WebhookRequest
from vcswebhook.webhook.utils import calculate_payload_signature

FIXTURES_DIR = Path(__file__).parent / "fixtures"


@pytest.fixture
def load_payload():
    """Load a recorded provider payload as a dict."""
    def _load(provider: str, name: str) -> dict:
        return json.loads((FIXTURES_DIR / provider / f"{name}.json").read_text())
    return _load


@pytest.fixture
def encode():
    def _encode(payload: dict) -> bytes:
        return json.dumps(payload).encode()
    return _encode


@pytest.fixture
def sign():
    """Build a ``sha256=<hex>`` signature header value."""
    def _sign(body: bytes, secret: str) -> str:
        return "sha256=" + calculate_payload_signature(body, secret)
    return _sign


@pytest.fixture
def make_request():
    def _make(body: bytes, headers=None, query_params=None) -> WebhookRequest:
        return WebhookRequest(io.BytesIO(body), headers=headers, query_params=query_params)
    return _make

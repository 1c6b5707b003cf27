"""
Unit tests for the HTTP webhook handler.
"""
import pytest
from fastapi import FastAPI, Request
from fastapi.testclient import TestClient

from vcswebhook.webhook import VcsProvider, WebhookHandler, WebhookOrigin

TOKEN = "gitlab-hook-token"


@pytest.fixture
def handler():
    return WebhookHandler()


@pytest.fixture
def client(handler):
    app = FastAPI()

    @app.post("/gitlab")
    async def gitlab(request: Request):
        return await handler.handle_webhook(request, WebhookOrigin(provider=VcsProvider.GITLAB, secret=TOKEN))

    @app.post("/unknown")
    async def unknown(request: Request):
        origin = WebhookOrigin.model_construct(provider="gitea", origin_url="", secret="")
        return await handler.handle_webhook(request, origin)

    return TestClient(app)


@pytest.fixture
def push_body(load_payload, encode):
    return encode(load_payload("gitlab", "push"))


def test_success_invokes_callbacks(client, handler, push_body):
    received = []

    async def record(info):
        received.append(info)

    handler.on_webhook(record)
    response = client.post("/gitlab", content=push_body, headers={
        "X-Gitlab-Event": "Push Hook",
        "X-Gitlab-Token": TOKEN,
    })

    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "success"
    assert data["event"]["event"] == "Push"
    assert data["event"]["branch"] == "master"
    assert data["event"]["target_repository_details"] == {"name": "diaspora", "owner": "mike"}
    assert len(received) == 1
    assert received[0].commit.hash == "da1560886d4f094c3e6c9ef40349f7d38b5d27d7"


def test_failing_callback_does_not_fail_request(client, handler, push_body):
    calls = []

    async def broken(info):
        raise RuntimeError("downstream unavailable")

    async def record(info):
        calls.append(info)

    handler.on_webhook(broken)
    handler.on_webhook(record)
    response = client.post("/gitlab", content=push_body, headers={
        "X-Gitlab-Event": "Push Hook",
        "X-Gitlab-Token": TOKEN,
    })

    assert response.status_code == 200
    assert len(calls) == 1


def test_authentication_error_is_401(client, push_body):
    response = client.post("/gitlab", content=push_body, headers={
        "X-Gitlab-Event": "Push Hook",
        "X-Gitlab-Token": "guess",
    })

    assert response.status_code == 401
    assert response.json()["detail"] == "token mismatch"


def test_payload_error_is_400(client):
    response = client.post("/gitlab", content=b"not json", headers={
        "X-Gitlab-Event": "Push Hook",
        "X-Gitlab-Token": TOKEN,
    })

    assert response.status_code == 400


def test_missing_event_header_is_400(client, push_body):
    response = client.post("/gitlab", content=push_body, headers={"X-Gitlab-Token": TOKEN})

    assert response.status_code == 400
    assert response.json()["detail"] == "X-Gitlab-Event header is missing"


def test_unsupported_event_is_ignored(client, handler, push_body):
    received = []

    async def record(info):
        received.append(info)

    handler.on_webhook(record)
    response = client.post("/gitlab", content=push_body, headers={
        "X-Gitlab-Event": "Wiki Page Hook",
        "X-Gitlab-Token": TOKEN,
    })

    assert response.status_code == 200
    assert response.json() == {"status": "ignored", "reason": "unsupported event"}
    assert received == []


def test_unsupported_provider_is_404(client, push_body):
    response = client.post("/unknown", content=push_body)

    assert response.status_code == 404

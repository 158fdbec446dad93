import os

import pytest
from fastapi.testclient import TestClient

# Session cookies must be sent over plain http by the test client.
os.environ.setdefault("APP_ENV", "test")

from app.main import create_app


class DummySettings:
    """
    Plain stand-in for app Settings; tests override attributes as needed.
    """

    APP_NAME = "Meeting Intake Service"
    APP_ENV = "test"
    APP_VERSION = "1.0.0"
    ADMIN_USERNAME = "admin"
    ADMIN_PASSWORD = "s3cret"
    ADMIN_EMAIL = "admin@company.com"
    MEETINGS_SOURCE = "webhook"
    MEETING_REQUEST_WEBHOOK = "https://workflow.example.com/webhook/meeting-request"
    ADMIN_MEETINGS_WEBHOOK = "https://workflow.example.com/webhook/admin-meetings"
    ADMIN_MEETINGS_WEBHOOK_METHOD = "GET"
    ADMIN_ACTION_WEBHOOK = "https://workflow.example.com/webhook/admin-action"
    WEBHOOK_TIMEOUT_SECONDS = 10.0
    SYNC_TIMEOUT_SECONDS = 15.0
    GOOGLE_SHEETS_ID = None
    GOOGLE_API_KEY = None
    GOOGLE_SHEETS_RANGE = "Meeting_Requests!A:X"
    SAMPLE_DATA_FALLBACK = False

    def __init__(self, **overrides):
        for name, value in overrides.items():
            setattr(self, name, value)


class FakeWebhookClient:
    """
    Stand-in for WebhookClient used by gateway and API tests.

    `responses` is consumed in order; an exception instance is raised
    instead of returned.
    """

    def __init__(self, responses=None):
        self.responses = list(responses or [])
        self.calls = []

    async def send(self, method, url, *, params=None, json=None, timeout_seconds=None):
        self.calls.append(
            {
                "method": method,
                "url": url,
                "params": params,
                "json": json,
                "timeout_seconds": timeout_seconds,
            }
        )
        result = self.responses.pop(0) if self.responses else {}
        if isinstance(result, Exception):
            raise result
        return result

    async def get_json(self, url, *, params=None, timeout_seconds=None):
        return await self.send("GET", url, params=params, timeout_seconds=timeout_seconds)

    async def post_json(self, url, *, json=None, params=None, timeout_seconds=None):
        return await self.send(
            "POST", url, params=params, json=json, timeout_seconds=timeout_seconds
        )


@pytest.fixture
def app():
    """
    Fresh application per test so dependency overrides and cookies never leak.
    """
    application = create_app()
    yield application
    application.dependency_overrides.clear()


@pytest.fixture
def client(app) -> TestClient:
    with TestClient(app) as test_client:
        yield test_client

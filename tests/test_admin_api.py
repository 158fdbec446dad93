from http import HTTPStatus

import pytest

from app.api.routes import admin as admin_module
from app.services.meeting_gateway import MeetingLifecycleGateway, get_meeting_gateway
from app.services.webhook_client import WebhookClientError
from conftest import DummySettings, FakeWebhookClient


def _meeting(request_id: str, **overrides) -> dict:
    meeting = {
        "requestId": request_id,
        "timestamp": "2025-09-09T10:00:00Z",
        "userName": "Ann",
        "userEmail": "ann@example.com",
        "meetingPurpose": "Demo",
        "status": "pending",
        "urgency": "normal",
        "meetingType": "online",
    }
    meeting.update(overrides)
    return meeting


@pytest.fixture
def settings(monkeypatch):
    dummy = DummySettings()
    monkeypatch.setattr(admin_module, "get_settings", lambda: dummy)
    return dummy


def _use_gateway(app, settings, responses=None):
    fake = FakeWebhookClient(responses)
    gateway = MeetingLifecycleGateway(settings=settings, webhook_client=fake)
    app.dependency_overrides[get_meeting_gateway] = lambda: gateway
    return gateway, fake


def _login(client):
    resp = client.post("/api/admin/login", json={"username": "admin", "password": "s3cret"})
    assert resp.status_code == HTTPStatus.OK
    return resp


# ---------------------------------------------------------------------------
# Session
# ---------------------------------------------------------------------------
@pytest.mark.parametrize(
    "method, path",
    [
        ("get", "/api/admin/meetings"),
        ("get", "/api/admin/session"),
        ("post", "/api/admin/meeting/action"),
        ("post", "/api/admin/sync-n8n"),
    ],
)
def test_admin_endpoints_require_login(client, app, settings, method, path):
    """
    Every admin endpoint answers 401 until the session has been logged in.
    """
    _use_gateway(app, settings)

    resp = getattr(client, method)(path)

    assert resp.status_code == HTTPStatus.UNAUTHORIZED
    assert resp.json()["detail"] == "Unauthorized access"


def test_login_sets_session(client, settings):
    """
    A successful login marks the session, which /session then reports.
    """
    resp = _login(client)

    assert resp.json()["success"] is True
    assert resp.json()["redirectUrl"] == "/admin/dashboard"

    session = client.get("/api/admin/session")
    assert session.status_code == HTTPStatus.OK
    assert session.json()["admin"] == settings.ADMIN_EMAIL


def test_login_rejects_wrong_password(client, settings):
    """
    Wrong credentials give 401 and leave the session unauthenticated.
    """
    resp = client.post("/api/admin/login", json={"username": "admin", "password": "nope"})

    assert resp.status_code == HTTPStatus.UNAUTHORIZED
    assert client.get("/api/admin/session").status_code == HTTPStatus.UNAUTHORIZED


@pytest.mark.parametrize(
    "username, password",
    [("josé", "x"), ("admin", "pässwörd"), ("管理者", "秘密")],
)
def test_login_with_non_ascii_credentials_is_rejected_cleanly(client, settings, username, password):
    """
    Non-ASCII usernames or passwords are compared like any other value and
    produce a plain 401, not a server error.
    """
    resp = client.post("/api/admin/login", json={"username": username, "password": password})

    assert resp.status_code == HTTPStatus.UNAUTHORIZED
    assert resp.json()["detail"] == "Invalid credentials"


def test_login_accepts_non_ascii_configured_password(client, monkeypatch):
    """
    Configured credentials may themselves contain non-ASCII characters.
    """
    dummy = DummySettings(ADMIN_USERNAME="josé", ADMIN_PASSWORD="contraseña")
    monkeypatch.setattr(admin_module, "get_settings", lambda: dummy)

    resp = client.post("/api/admin/login", json={"username": "josé", "password": "contraseña"})

    assert resp.status_code == HTTPStatus.OK


def test_login_requires_both_fields(client, settings):
    """
    A missing password is a bad request, not an authentication failure.
    """
    resp = client.post("/api/admin/login", json={"username": "admin"})

    assert resp.status_code == HTTPStatus.BAD_REQUEST


def test_login_disabled_when_credentials_not_configured(client, monkeypatch):
    """
    Without ADMIN_USERNAME/ADMIN_PASSWORD nobody can log in.
    """
    dummy = DummySettings(ADMIN_USERNAME=None, ADMIN_PASSWORD=None)
    monkeypatch.setattr(admin_module, "get_settings", lambda: dummy)

    resp = client.post("/api/admin/login", json={"username": "admin", "password": "s3cret"})

    assert resp.status_code == HTTPStatus.UNAUTHORIZED


def test_logout_clears_session(client, settings):
    """
    After logout the session check fails again.
    """
    _login(client)

    resp = client.post("/api/admin/logout")

    assert resp.json()["success"] is True
    assert client.get("/api/admin/session").status_code == HTTPStatus.UNAUTHORIZED


# ---------------------------------------------------------------------------
# Listing
# ---------------------------------------------------------------------------
def test_list_meetings_returns_records_and_statistics(client, app, settings):
    """
    The admin list carries the normalized records in order, with statistics
    and the workflow's lastUpdated value.
    """
    _use_gateway(
        app,
        settings,
        [
            {
                "meetings": [
                    _meeting("R1"),
                    _meeting("R2", status="approved", urgency="high"),
                    _meeting("R3", status="Pending", meetingType="offline"),
                ],
                "lastUpdated": "2025-09-10T08:00:00Z",
            }
        ],
    )
    _login(client)

    resp = client.get("/api/admin/meetings")

    assert resp.status_code == HTTPStatus.OK
    body = resp.json()
    assert body["success"] is True
    assert body["count"] == 3
    assert [m["requestId"] for m in body["meetings"]] == ["R1", "R2", "R3"]
    assert body["statistics"]["total"] == 3
    assert body["statistics"]["pending"] == 2
    assert body["statistics"]["approved"] == 1
    assert body["statistics"]["byPriority"]["high"] == 1
    assert body["lastUpdated"] == "2025-09-10T08:00:00Z"
    assert body["source"] == "webhook"
    assert body["usedCachedData"] is False


def test_list_meetings_filters_but_keeps_full_statistics(client, app, settings):
    """
    Filters narrow `meetings` only; statistics still describe the full list.
    """
    _use_gateway(
        app,
        settings,
        [[_meeting("R1"), _meeting("R2", status="Approved"), _meeting("R3", meetingType="hybrid")]],
    )
    _login(client)

    resp = client.get("/api/admin/meetings", params={"status": "pending", "meetingType": "HYBRID"})

    body = resp.json()
    assert [m["requestId"] for m in body["meetings"]] == ["R3"]
    assert body["count"] == 1
    assert body["statistics"]["total"] == 3


def test_list_meetings_upstream_failure_is_soft(client, app, settings):
    """
    With nothing fetched yet, an upstream failure gives 200 with
    success=false and an empty list.
    """
    _use_gateway(app, settings, [WebhookClientError("Server error", status_code=500)])
    _login(client)

    resp = client.get("/api/admin/meetings")

    assert resp.status_code == HTTPStatus.OK
    body = resp.json()
    assert body["success"] is False
    assert body["meetings"] == []
    assert body["usedCachedData"] is False
    assert "Server error" in body["error"]


def test_list_meetings_serves_last_good_list_when_upstream_fails(client, app, settings):
    """
    After a successful fetch, a later upstream failure keeps success=false
    and the error, but shows the previously fetched meetings and statistics.
    """
    gateway, _ = _use_gateway(
        app,
        settings,
        [
            [_meeting("R1"), _meeting("R2", status="approved")],
            WebhookClientError("Server error", status_code=500),
        ],
    )
    _login(client)

    first = client.get("/api/admin/meetings").json()
    second = client.get("/api/admin/meetings")

    assert first["count"] == 2
    assert second.status_code == HTTPStatus.OK
    body = second.json()
    assert body["success"] is False
    assert "Server error" in body["error"]
    assert body["usedCachedData"] is True
    assert [m["requestId"] for m in body["meetings"]] == ["R1", "R2"]
    assert body["count"] == 2
    assert body["statistics"]["approved"] == 1
    assert gateway.current().meetings[0].request_id == "R1"


def test_list_meetings_keeps_unknown_fields(client, app, settings):
    """
    Fields with no canonical name are passed through under their normalized key.
    """
    _use_gateway(app, settings, [[_meeting("R1", roomNumber="4B")]])
    _login(client)

    body = client.get("/api/admin/meetings").json()

    assert body["meetings"][0]["roomnumber"] == "4B"


# ---------------------------------------------------------------------------
# Actions
# ---------------------------------------------------------------------------
def test_action_is_forwarded(client, app, settings):
    """
    A valid action is posted to the action webhook with the session admin.
    """
    _, fake = _use_gateway(app, settings, [{"ok": True}])
    _login(client)

    resp = client.post(
        "/api/admin/meeting/action",
        json={"requestId": "R1", "action": "approve", "adminNotes": "Confirmed"},
    )

    assert resp.status_code == HTTPStatus.OK
    assert resp.json() == {
        "success": True,
        "message": "Meeting approve successfully",
        "action": "approve",
        "requestId": "R1",
    }
    forwarded = fake.calls[0]["json"]
    assert forwarded["adminEmail"] == settings.ADMIN_EMAIL
    assert forwarded["adminNotes"] == "Confirmed"


@pytest.mark.parametrize(
    "body",
    [
        {"requestId": "R1", "action": "cancel"},
        {"requestId": "", "action": "approve"},
        {"requestId": "R1", "action": "reschedule", "newDate": "2000-01-01", "newTime": "09:00"},
        {"requestId": "R1", "action": "reschedule", "newDate": "2099-01-01"},
    ],
)
def test_invalid_action_is_400_and_not_forwarded(client, app, settings, body):
    """
    Rejected actions never reach the workflow.
    """
    _, fake = _use_gateway(app, settings)
    _login(client)

    resp = client.post("/api/admin/meeting/action", json=body)

    assert resp.status_code == HTTPStatus.BAD_REQUEST
    assert fake.calls == []


def test_action_upstream_failure_is_502(client, app, settings):
    """
    A workflow failure while forwarding an action surfaces as 502.
    """
    _use_gateway(app, settings, [WebhookClientError("down", status_code=500)])
    _login(client)

    resp = client.post("/api/admin/meeting/action", json={"requestId": "R1", "action": "reject"})

    assert resp.status_code == HTTPStatus.BAD_GATEWAY
    assert resp.json()["detail"] == "Failed to process admin action. Please try again."


# ---------------------------------------------------------------------------
# Sync
# ---------------------------------------------------------------------------
def test_sync_returns_fresh_list(client, app, settings):
    """
    Sync re-fetches with the sync marker and timeout and reports metadata.
    """
    _, fake = _use_gateway(app, settings, [{"data": [_meeting("R1"), _meeting("R2")]}])
    _login(client)

    resp = client.post("/api/admin/sync-n8n")

    assert resp.status_code == HTTPStatus.OK
    body = resp.json()
    assert body["success"] is True
    assert body["syncTriggered"] is True
    assert len(body["meetings"]) == 2
    assert body["metadata"] == {"triggeredBy": "admin", "responseType": "data", "source": "webhook"}
    assert fake.calls[0]["params"]["sync"] == "true"
    assert fake.calls[0]["timeout_seconds"] == settings.SYNC_TIMEOUT_SECONDS


def test_sync_without_webhook_is_400(client, app, settings):
    """
    Sync is refused when no meetings webhook is configured.
    """
    settings.ADMIN_MEETINGS_WEBHOOK = None
    _, fake = _use_gateway(app, settings)
    _login(client)

    resp = client.post("/api/admin/sync-n8n")

    assert resp.status_code == HTTPStatus.BAD_REQUEST
    assert fake.calls == []


def test_sync_failure_is_502(client, app, settings):
    """
    A failed sync is a hard error, unlike the list endpoint.
    """
    _use_gateway(app, settings, [WebhookClientError("timeout")])
    _login(client)

    resp = client.post("/api/admin/sync-n8n")

    assert resp.status_code == HTTPStatus.BAD_GATEWAY
    assert "timeout" in resp.json()["detail"]

from http import HTTPStatus


def test_health_check(client):
    """
    /api/health responds with 200 OK and the expected JSON shape.
    """
    resp = client.get("/api/health")

    assert resp.status_code == HTTPStatus.OK
    body = resp.json()
    assert body["status"] == "healthy"
    assert body["app_name"]
    assert body["meetings_source"] in ("webhook", "sheets")
    assert "timestamp_utc" in body


def test_openapi_is_served_under_api_prefix(client):
    """
    The OpenAPI document lives under the API prefix and lists the routes.
    """
    resp = client.get("/api/openapi.json")

    assert resp.status_code == HTTPStatus.OK
    paths = resp.json()["paths"]
    assert "/api/meeting/request" in paths
    assert "/api/admin/meetings" in paths

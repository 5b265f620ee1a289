from fastapi.testclient import TestClient


REQUIRED_ROUTES = {
    "/health",
    "/health/ready",
    "/auth/login",
    "/auth/logout",
    "/auth/refreshToken",
    "/auth/me",
    "/notes",
    "/notes/{note_id}",
    "/tenant/{slug}",
    "/tenant/{slug}/upgrade",
    "/tenant/{slug}/users",
    "/internal/metrics/tenants",
}


def test_api_startup_and_router_registration(monkeypatch):
    from notes_saas import main

    monkeypatch.setattr(main, "_startup_tasks", lambda: None)

    with TestClient(main.app) as client:
        response = client.get("/")
        health_response = client.get("/health")
        ready_response = client.get("/health/ready")
        docs_response = client.get("/docs")
        openapi_response = client.get("/openapi.json")

    assert response.status_code == 200
    assert response.json() == {"status": "ok"}
    assert health_response.json() == {"status": "healthy"}
    assert ready_response.status_code == 200
    assert ready_response.json()["data"]["status"] == "ready"
    assert docs_response.status_code == 200
    assert openapi_response.status_code == 200

    paths = {route.path for route in main.app.routes}
    assert REQUIRED_ROUTES.issubset(paths)


def test_unknown_route_uses_error_envelope(monkeypatch):
    from notes_saas import main

    monkeypatch.setattr(main, "_startup_tasks", lambda: None)

    with TestClient(main.app) as client:
        response = client.get("/does-not-exist")

    assert response.status_code == 404
    assert response.json() == {
        "success": False,
        "message": "Route /does-not-exist not found",
        "code": "ROUTE_NOT_FOUND",
    }
    assert response.headers["X-Content-Type-Options"] == "nosniff"
    assert "X-Request-ID" in response.headers


def test_readiness_reports_unavailable_database(monkeypatch):
    from notes_saas import main
    from notes_saas.routers import health

    monkeypatch.setattr(main, "_startup_tasks", lambda: None)
    monkeypatch.setattr(health, "check_database_ready", lambda engine: False)

    with TestClient(main.app) as client:
        response = client.get("/health/ready")

    assert response.status_code == 503
    assert response.json()["code"] == "NOT_READY"


def test_cors_preflight_only_allows_known_headers(monkeypatch):
    from notes_saas import main

    monkeypatch.setattr(main, "_startup_tasks", lambda: None)
    preflight = {
        "Origin": "http://localhost:3000",
        "Access-Control-Request-Method": "GET",
    }

    with TestClient(main.app) as client:
        allowed = client.options(
            "/notes",
            headers={**preflight, "Access-Control-Request-Headers": "authorization, x-request-id"},
        )
        tenant_header = client.options(
            "/notes",
            headers={**preflight, "Access-Control-Request-Headers": "x-tenant-slug"},
        )

    assert allowed.status_code == 200
    assert tenant_header.status_code == 400

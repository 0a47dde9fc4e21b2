import httpx
import pytest
from sqlalchemy.exc import OperationalError

from adminpanel.infrastructure.database import get_db
from adminpanel.interfaces.api.avatar import get_avatar_transport
from adminpanel.main import app


class BrokenSession:
    def execute(self, *args, **kwargs):
        raise OperationalError("SELECT 1", {}, Exception("connection refused"))


def test_root(client):
    body = client.get("/").json()
    assert body["status"] == "running"


def test_health(client):
    resp = client.get("/health")
    assert resp.status_code == 200
    assert resp.json() == {"status": "healthy", "database": "connected"}


def test_health_reports_database_outage(client):
    app.dependency_overrides[get_db] = lambda: BrokenSession()

    resp = client.get("/health")
    assert resp.status_code == 503
    assert resp.json()["status"] == "unhealthy"


def test_security_and_request_id_headers(client):
    resp = client.get("/", headers={"X-Request-ID": "0f8fad5b-d9cb-469f-a165-70867728950e"})

    assert resp.headers["x-frame-options"] == "DENY"
    assert resp.headers["x-content-type-options"] == "nosniff"
    assert resp.headers["referrer-policy"] == "strict-origin-when-cross-origin"
    assert resp.headers["x-request-id"] == "0f8fad5b-d9cb-469f-a165-70867728950e"


def test_request_id_generated_when_missing(client):
    assert client.get("/").headers["x-request-id"]


def test_error_body_shape(client):
    resp = client.get("/api/admin/users")
    assert resp.json() == {
        "error": {
            "code": "UnauthorizedException",
            "message": "Authentication required",
            "path": "/api/admin/users",
            "details": {},
        }
    }


def _avatar_upstream(request: httpx.Request) -> httpx.Response:
    if request.url.path == "/broken":
        return httpx.Response(404)
    if request.url.path == "/page":
        return httpx.Response(200, content=b"<html/>", headers={"content-type": "text/html"})
    return httpx.Response(200, content=b"\x89PNG", headers={"content-type": "image/png"})


@pytest.fixture
def avatar_upstream():
    app.dependency_overrides[get_avatar_transport] = lambda: httpx.MockTransport(_avatar_upstream)
    yield
    app.dependency_overrides.pop(get_avatar_transport, None)


def test_avatar_proxy_serves_allowed_hosts(client, avatar_upstream):
    resp = client.get("/api/avatar", params={"url": "https://avatars.githubusercontent.com/u/7"})

    assert resp.status_code == 200
    assert resp.content == b"\x89PNG"
    assert resp.headers["cache-control"] == "public, max-age=3600"


@pytest.mark.parametrize(
    "params, status",
    [
        ({}, 400),
        ({"url": "https://evil.example.com/a.png"}, 403),
        ({"url": "file:///etc/passwd"}, 403),
        ({"url": "https://avatars.githubusercontent.com/broken"}, 404),
        ({"url": "https://avatars.githubusercontent.com/page"}, 400),
    ],
)
def test_avatar_proxy_rejections(client, avatar_upstream, params, status):
    assert client.get("/api/avatar", params=params).status_code == status

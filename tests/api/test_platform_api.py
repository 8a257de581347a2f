"""
Tests for the cross-cutting pieces: notifications, security headers,
rate limiting and health checks.
"""

import pytest
from fastapi.testclient import TestClient

from src.api import dependencies
from src.main import create_app
from tests.api.helpers import signup, signup_and_login, upload


class TestNotifications:

    def test_upload_is_broadcast(self, client):
        """Connected clients should hear about new uploads."""
        signup_and_login(client, "juan")

        with client.websocket_connect("/ws/notifications") as ws:
            upload(client)
            message = ws.receive_json()

        assert message == {"type": "notification", "message": "New video uploaded!"}

    def test_like_names_member_video_and_owner(self, client):
        """Like notifications name who liked what, and whose video it was."""
        signup_and_login(client, "juan")
        video = upload(client, "Sunset")
        signup_and_login(client, "maria")

        with client.websocket_connect("/ws/notifications") as ws:
            client.post(f"/api/v1/videos/{video['id']}/like")
            message = ws.receive_json()

        assert message["message"] == 'maria liked "Sunset" by juan'

    def test_unlike_is_silent(self, client):
        """Removing a like should not broadcast anything."""
        signup_and_login(client, "juan")
        video = upload(client, "Sunset")
        client.post(f"/api/v1/videos/{video['id']}/like")

        with client.websocket_connect("/ws/notifications") as ws:
            client.post(f"/api/v1/videos/{video['id']}/like")
            client.post(f"/api/v1/videos/{video['id']}/comments", json={"comment": "hi"})
            message = ws.receive_json()

        assert message["message"] == "New comment added!"

    def test_subscription_message(self, client):
        """Subscribe and unsubscribe each broadcast their own message."""
        channel = signup_and_login(client, "juan")
        signup_and_login(client, "maria")

        with client.websocket_connect("/ws/notifications") as ws:
            client.post(f"/api/v1/users/{channel['id']}/subscribe")
            client.post(f"/api/v1/users/{channel['id']}/subscribe")
            first = ws.receive_json()
            second = ws.receive_json()

        assert first["message"] == "maria subscribed to juan"
        assert second["message"] == "maria unsubscribed from juan"

    def test_every_client_receives(self, client):
        """Broadcasts should reach every open connection."""
        signup_and_login(client, "juan")

        with client.websocket_connect("/ws/notifications") as first:
            with client.websocket_connect("/ws/notifications") as second:
                upload(client)
                assert first.receive_json()["message"] == "New video uploaded!"
                assert second.receive_json()["message"] == "New video uploaded!"


class TestSecurityHeaders:

    def test_headers_present(self, client):
        """Every response should carry the security headers."""
        response = client.get("/health")

        assert response.headers["x-content-type-options"] == "nosniff"
        assert response.headers["x-frame-options"] == "SAMEORIGIN"
        assert "default-src 'self'" in response.headers["content-security-policy"]

    def test_docs_skip_content_security_policy(self, client):
        """The docs page loads external scripts, so it has no CSP."""
        response = client.get("/docs")

        assert response.status_code == 200
        assert "content-security-policy" not in response.headers
        assert response.headers["x-content-type-options"] == "nosniff"


class TestRateLimit:

    @pytest.fixture
    def limited_client(self, settings):
        dependencies.reset_shared_clients()
        app = create_app(settings.model_copy(update={"rate_limit_max_requests": 3}))

        with TestClient(app) as test_client:
            yield test_client

        dependencies.reset_shared_clients()

    def test_blocks_after_limit(self, limited_client):
        """The request past the limit should get 429."""
        statuses = [limited_client.get("/api/v1/videos").status_code for _ in range(4)]

        assert statuses == [200, 200, 200, 429]

    def test_health_is_not_limited(self, limited_client):
        """Health checks sit outside the rate limit."""
        statuses = [limited_client.get("/health").status_code for _ in range(5)]

        assert statuses == [200] * 5

    def test_bypass_ips(self, settings):
        """Listed IPs should never be limited."""
        dependencies.reset_shared_clients()
        app = create_app(settings.model_copy(update={
            "rate_limit_max_requests": 1,
            "rate_limit_bypass_ips": "testclient",
        }))

        with TestClient(app) as test_client:
            statuses = [test_client.get("/api/v1/videos").status_code for _ in range(3)]

        dependencies.reset_shared_clients()
        assert statuses == [200, 200, 200]


class TestHealth:

    def test_liveness_reports_mock_modes(self, client):
        """Liveness should say which services are mocked."""
        body = client.get("/health").json()

        assert body["status"] == "ok"
        assert body["details"]["mock_mode"] == {
            "snowflake": True,
            "cloudinary": True,
            "video_processor": True,
        }

    def test_ready_in_mock_mode(self, client):
        """All mocks means ready."""
        response = client.get("/health/ready")

        assert response.status_code == 200
        assert response.json()["status"] == "ready"

    def test_not_ready_without_configuration(self, settings):
        """Missing settings and placeholder credentials should fail readiness."""
        app = create_app(settings.model_copy(update={
            "snowflake_mock_mode": False,
            "snowflake_account": "",
            "cloudinary_mock_mode": False,
        }))

        with TestClient(app) as test_client:
            response = test_client.get("/health/ready")

        checks = {c["name"]: c["status"] for c in response.json()["checks"]}
        assert response.status_code == 503
        assert checks["configuration"] == "error"
        assert checks["database"] == "error"
        assert checks["media"] == "error"

    def test_root(self, client):
        """The root should point clients at the notification socket."""
        assert client.get("/").json()["notifications"] == "/ws/notifications"


def test_signup_is_rate_limited_too(settings):
    """Auth endpoints share the API rate limit."""
    dependencies.reset_shared_clients()
    app = create_app(settings.model_copy(update={"rate_limit_max_requests": 1}))

    with TestClient(app) as test_client:
        signup(test_client, "juan")
        response = test_client.post(
            "/api/v1/auth/login",
            json={"username": "juan", "password": "x"},
        )

    dependencies.reset_shared_clients()
    assert response.status_code == 429

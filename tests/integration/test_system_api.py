"""
API tests for diagnostics, health checks, scheduled jobs and the root banner.
"""

from unittest.mock import AsyncMock

import pytest
from sqlalchemy.exc import OperationalError

from app.api.deps import get_twilio
from app.api.main import app
from app.api.routes import health as health_route
from app.api.routes import notifications as notifications_route
from app.api.routes import system as system_route


class TestSystem:
    """GET/POST /api/system."""

    def test_default_action_is_health(self, client):
        body = client.get("/api/system").json()

        assert body["system_action"] == "health"
        assert body["system_status"] == "operational"
        assert body["health_status"] == "EXCELLENT"
        assert body["bot_variant"] == "tti_bursaries"

    def test_env_check(self, client, monkeypatch):
        monkeypatch.setattr(system_route.settings, "resend_api_key", "")
        monkeypatch.setattr(system_route.settings, "whatsapp_webhook_verify_token", "")

        body = client.get("/api/system", params={"action": "env-check"}).json()

        assert body["variables_status"]["RESEND_API_KEY"]["status"] == "missing"
        assert body["variables_status"]["OPENAI_API_KEY"]["exists"] is True
        assert body["configuration_status"]["total_required"] == 5
        assert body["overall_status"] == "PARTIAL_CONFIGURATION"
        assert body["functionality_level"] == "LIMITED_MODE"

    def test_env_check_fully_configured(self, client, monkeypatch):
        monkeypatch.setattr(system_route.settings, "resend_api_key", "re_123")
        monkeypatch.setattr(system_route.settings, "whatsapp_webhook_verify_token", "token")

        body = client.get("/api/system", params={"action": "env-check"}).json()

        assert body["configuration_status"]["percentage_complete"] == 100
        assert body["overall_status"] == "FULLY_CONFIGURED"

    def test_connections(self, client):
        body = client.get("/api/system", params={"action": "test-connections"}).json()

        assert body["test_results"]["database"] == "CONNECTED"
        assert body["test_results"]["api_endpoints"] == "RESPONSIVE"

    def test_action_in_post_body(self, client):
        body = client.post("/api/system", json={"action": "env-check"}).json()
        assert body["environment_check"] == "completed"

    def test_unknown_action(self, client):
        body = client.get("/api/system", params={"action": "reboot"}).json()

        assert body["unknown_action"] == "reboot"
        assert body["available_actions"] == ["health", "env-check", "test-connections"]


class TestHealth:

    def test_health(self, client):
        body = client.get("/health").json()

        assert body["status"] == "healthy"
        assert body["version"] == "0.1.0"
        assert body["bot_variant"] == "tti_bursaries"

    def test_ready(self, client, monkeypatch):
        monkeypatch.setattr(health_route.settings, "resend_api_key", "")

        body = client.get("/api/v1/health/ready").json()

        assert body["ready"] is True
        assert body["checks"]["database"]["status"] == "ok"
        assert body["checks"]["database"]["latency_ms"] is not None
        assert body["checks"]["email"]["status"] == "not_configured"

    def test_not_ready_without_database(self, client, mocker):
        mocker.patch.object(
            health_route,
            "check_database",
            return_value=health_route.ComponentCheck(status="error", detail="down"),
        )

        body = client.get("/api/v1/health/ready").json()

        assert body["ready"] is False

    def test_live(self, client):
        client.post("/api/webhook", json={"subscriber_id": "27721234567", "text": "Hi"})

        body = client.get("/health/live").json()

        assert body["status"] == "alive"
        assert body["cached_sessions"] == 1


class TestProgressiveNotifications:
    """POST /api/notifications/progressive."""

    @pytest.fixture
    def twilio(self):
        mock = AsyncMock()
        mock.send_template_message.return_value = {"success": True, "sid": "SM1"}
        app.dependency_overrides[get_twilio] = lambda: mock
        return mock

    def test_job_runs(self, client, twilio, waitlisted_profile):
        response = client.post("/api/notifications/progressive")

        assert response.status_code == 200
        assert response.json() == {
            "success": True,
            "sent": 1,
            "failed": 0,
            "skipped": 0,
            "message": "Progressive job complete. Sent: 1, Failed: 0.",
        }
        twilio.send_template_message.assert_awaited_once()

    def test_db_error(self, client, twilio, mocker):
        mocker.patch.object(
            notifications_route,
            "run_progressive_notifications",
            new_callable=AsyncMock,
            side_effect=OperationalError("SELECT", {}, Exception("down")),
        )

        response = client.post("/api/notifications/progressive")

        assert response.status_code == 500
        assert response.json() == {"error": "DB error"}


def test_root_banner(client):
    response = client.get("/")

    assert response.status_code == 200
    assert "is running (tti_bursaries)" in response.text

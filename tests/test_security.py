"""Tests for security headers, JSON error rendering and /health."""

from unittest.mock import patch

from sqlalchemy.exc import OperationalError


class TestSecurityHeaders:
    """Verify security headers are present on responses."""

    def test_x_content_type_options(self, client):
        response = client.get("/health")
        assert response.headers.get("X-Content-Type-Options") == "nosniff"

    def test_x_frame_options(self, client):
        response = client.get("/health")
        assert response.headers.get("X-Frame-Options") == "DENY"

    def test_referrer_policy(self, client):
        response = client.get("/health")
        assert response.headers.get("Referrer-Policy") == "no-referrer"

    def test_csp_header(self, client):
        csp = client.get("/health").headers.get("Content-Security-Policy")
        assert "default-src 'none'" in csp
        assert "frame-ancestors 'none'" in csp

    def test_responses_not_cached(self, client):
        assert client.get("/health").headers.get("Cache-Control") == "no-store"

    def test_no_hsts_in_debug(self, client):
        """HSTS should NOT be set in debug/test mode."""
        response = client.get("/health")
        assert response.headers.get("Strict-Transport-Security") is None

    def test_headers_on_error_pages(self, client):
        """Security headers should be present even on 404 pages."""
        response = client.get("/nonexistent-page")
        assert response.headers.get("X-Content-Type-Options") == "nosniff"
        assert response.headers.get("X-Frame-Options") == "DENY"


class TestErrorRendering:

    def test_404_is_json(self, client):
        response = client.get("/nonexistent-page")
        assert response.status_code == 404
        assert response.get_json()["code"] == "NOT_FOUND"

    def test_405_is_json(self, client):
        response = client.get("/like")
        assert response.status_code == 405
        assert response.get_json()["code"] == "METHOD_NOT_ALLOWED"


class TestHealth:

    def test_healthy(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        data = response.get_json()
        assert data["status"] == "healthy"
        assert data["checks"] == {"database": "ok", "webhook_secret": "ok"}
        assert data["timestamp"]

    def test_degraded_without_webhook_secret(self, client, app, monkeypatch):
        monkeypatch.setitem(app.config, "STRIPE_WEBHOOK_SECRET", None)

        response = client.get("/health")
        assert response.status_code == 503
        data = response.get_json()
        assert data["status"] == "degraded"
        assert data["checks"]["webhook_secret"] == "missing"

    def test_degraded_when_database_down(self, client):
        with patch(
            "lovevibes.blueprints.health.db.session.execute",
            side_effect=OperationalError("SELECT 1", {}, Exception("connection refused")),
        ):
            response = client.get("/health")

        assert response.status_code == 503
        assert response.get_json()["checks"]["database"] == "error"

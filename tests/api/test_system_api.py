"""
API Integration Tests for System Router Endpoints
"""

import pytest


class TestSystemRouterAPI:
    """Integration tests for system router endpoints"""

    def test_health(self, client):
        """Test health endpoint"""
        response = client.get("/api/system/health")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["environment"] == "test"
        assert data["rate_limit_identities"] == 2
        assert data["uptime"] >= 0
        assert data["generation_enabled"] is False

    def test_rate_limits(self, client):
        """Test rate limit status lists both identities"""
        response = client.get("/api/system/rate-limits")

        assert response.status_code == 200
        statuses = {s["identity"]: s for s in response.json()}
        assert set(statuses) == {"image-generation", "dissection"}
        assert statuses["image-generation"]["capacity"] == 10
        assert statuses["dissection"]["capacity"] == 5
        assert statuses["dissection"]["remaining"] == 5

    def test_rate_limits_reflect_usage_and_reset(self, client):
        """Test recorded requests are reported and cleared by reset"""
        client.app.state.rate_limiters.get("dissection").acquire()

        statuses = {s["identity"]: s for s in client.get("/api/system/rate-limits").json()}
        assert statuses["dissection"]["used"] == 1

        response = client.post("/api/system/rate-limits/reset")

        assert response.status_code == 200
        statuses = {s["identity"]: s for s in response.json()}
        assert statuses["dissection"]["used"] == 0

    def test_usage(self, client):
        """Test usage statistics"""
        client.app.state.usage_tracker.track("dissect_selection", True)
        client.app.state.usage_tracker.track("generate_step_image", False)

        response = client.get("/api/system/usage")

        assert response.status_code == 200
        data = response.json()
        assert data["total"] == 2
        assert data["succeeded"] == 1
        assert data["success_rate"] == 50.0
        assert data["operations"]["generate_step_image"]["failure"] == 1

    def test_config(self, client):
        """Test configuration endpoint"""
        response = client.get("/api/system/config")

        assert response.status_code == 200
        data = response.json()
        assert data["selection"]["padding_percent"] == 20
        assert data["rate_limit"]["dissection_capacity"] == 5
        assert data["retry"]["max_retries"] == 3
        assert "config_file" not in data
        assert "api_key" not in data["generation"]
        assert data["generation"]["text_model"] == "gemini-2.5-flash"

    def test_root(self, client):
        """Test root endpoint"""
        response = client.get("/")

        assert response.status_code == 200
        assert response.json()["status"] == "running"


class TestRateLimitErrorResponse:
    """Tests for the rate limit error surface"""

    @pytest.mark.asyncio
    async def test_retry_after_header(self):
        """Test RateLimitExceeded responses carry Retry-After in seconds"""
        from api.exceptions import craftus_exception_handler
        from common.exceptions import RateLimitExceededError

        response = await craftus_exception_handler(None, RateLimitExceededError("dissection", 4_500))

        assert response.status_code == 429
        assert response.headers["Retry-After"] == "5"

"""
Tests for API error handling
"""

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from pydantic import BaseModel

from api.exceptions import register_exception_handlers, safe_endpoint


class Dimensions(BaseModel):
    width: int


@pytest.fixture
def error_client():
    """App whose endpoints raise builtin exceptions inside safe_endpoint"""
    app = FastAPI()
    app.state.debug = False
    register_exception_handlers(app)

    @app.get("/value-error")
    @safe_endpoint
    async def value_error():
        raise ValueError("bad")

    @app.get("/key-error")
    @safe_endpoint
    async def key_error():
        return {}["width"]

    @app.get("/validation-error")
    @safe_endpoint
    async def validation_error():
        return Dimensions.model_validate({"width": "wide"})

    @app.get("/timeout")
    @safe_endpoint
    async def timeout():
        raise TimeoutError("slow")

    @app.get("/unexpected")
    @safe_endpoint
    async def unexpected():
        raise RuntimeError("boom")

    return TestClient(app, raise_server_exceptions=False)


class TestSafeEndpoint:
    """Builtin exceptions keep the {kind, message, recoverable} error shape"""

    def test_value_error(self, error_client):
        """Test ValueError becomes InvalidParameter"""
        response = error_client.get("/value-error")

        assert response.status_code == 400
        data = response.json()
        assert data["kind"] == "InvalidParameter"
        assert data["recoverable"] is False
        assert "bad" in data["message"]
        assert "detail" not in data

    def test_key_error(self, error_client):
        """Test KeyError names the missing field"""
        response = error_client.get("/key-error")

        assert response.status_code == 400
        data = response.json()
        assert data["kind"] == "InvalidParameter"
        assert data["details"]["param"] == "width"

    def test_validation_error(self, error_client):
        """Test pydantic ValidationError becomes InvalidParameter"""
        response = error_client.get("/validation-error")

        assert response.status_code == 400
        data = response.json()
        assert data["kind"] == "InvalidParameter"
        assert "1 validation errors" in data["message"]

    def test_timeout(self, error_client):
        """Test TimeoutError becomes a recoverable TransientServiceError"""
        response = error_client.get("/timeout")

        assert response.status_code == 503
        data = response.json()
        assert data["kind"] == "TransientServiceError"
        assert data["recoverable"] is True

    def test_unexpected_error(self, error_client):
        """Test unmapped errors reach the generic handler"""
        response = error_client.get("/unexpected")

        assert response.status_code == 500
        data = response.json()
        assert data["kind"] == "InternalError"
        assert data["details"] == {}

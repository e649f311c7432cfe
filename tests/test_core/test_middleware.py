import pytest
import json
from unittest.mock import patch
from fastapi import FastAPI, Request
from fastapi.testclient import TestClient

from core.middleware import (
    CorrelationMiddleware,
    ErrorHandlingMiddleware,
    PerformanceMiddleware,
    create_error_response,
)
from core.exceptions import ChannelNotFoundError, InvalidArgumentError, UpstreamFailureError
from core.logging_config import get_correlation_id


class TestCorrelationMiddleware:
    """Test CorrelationMiddleware functionality."""

    @pytest.fixture
    def app_with_correlation_middleware(self):
        """Create a FastAPI app with CorrelationMiddleware for testing."""
        app = FastAPI()
        app.add_middleware(CorrelationMiddleware)

        @app.get("/test")
        async def test_endpoint(request: Request):
            return {
                "correlation_id": request.state.correlation_id,
                "context_id": get_correlation_id(),
            }

        return app

    def test_correlation_id_generation(self, app_with_correlation_middleware):
        """Test that correlation ID is generated for requests."""
        client = TestClient(app_with_correlation_middleware)
        response = client.get("/test")

        assert response.status_code == 200
        data = response.json()

        assert len(data["correlation_id"]) > 0
        assert data["context_id"] == data["correlation_id"]
        assert response.headers["X-Correlation-ID"] == data["correlation_id"]

    def test_existing_correlation_id_preserved(self, app_with_correlation_middleware):
        """Test that existing correlation ID is preserved."""
        client = TestClient(app_with_correlation_middleware)
        existing_id = "existing-correlation-id-123"

        response = client.get("/test", headers={"X-Correlation-ID": existing_id})

        assert response.json()["correlation_id"] == existing_id
        assert response.headers["X-Correlation-ID"] == existing_id

    def test_request_id_header_accepted(self, app_with_correlation_middleware):
        client = TestClient(app_with_correlation_middleware)

        response = client.get("/test", headers={"X-Request-ID": "req-42"})

        assert response.headers["X-Correlation-ID"] == "req-42"

    def test_multiple_requests_different_ids(self, app_with_correlation_middleware):
        """Test that different requests get different correlation IDs."""
        client = TestClient(app_with_correlation_middleware)

        data1 = client.get("/test").json()
        data2 = client.get("/test").json()

        assert data1["correlation_id"] != data2["correlation_id"]


class TestErrorHandlingMiddleware:
    """Test ErrorHandlingMiddleware functionality."""

    @pytest.fixture
    def app_with_error_middleware(self):
        """Create a FastAPI app with ErrorHandlingMiddleware for testing."""
        app = FastAPI()
        app.add_middleware(ErrorHandlingMiddleware)

        @app.get("/test/not-found")
        async def not_found_endpoint():
            raise ChannelNotFoundError("alice")

        @app.get("/test/invalid")
        async def invalid_endpoint():
            raise InvalidArgumentError("page", 0, "must be a positive integer")

        @app.get("/test/upstream")
        async def upstream_endpoint():
            raise UpstreamFailureError("list_videos", "connection refused")

        @app.get("/test/generic-error")
        async def generic_error_endpoint():
            raise RuntimeError("Something went wrong")

        @app.get("/test/success")
        async def success_endpoint():
            return {"message": "success"}

        return app

    def test_not_found_handling(self, app_with_error_middleware):
        """Test handling of ChannelNotFoundError."""
        client = TestClient(app_with_error_middleware)
        response = client.get("/test/not-found")

        assert response.status_code == 404
        error = response.json()["error"]
        assert error["type"] == "ChannelNotFoundError"
        assert error["code"] == "CHANNEL_NOT_FOUND"
        assert error["details"] == {"username": "alice"}

    def test_invalid_argument_handling(self, app_with_error_middleware):
        client = TestClient(app_with_error_middleware)
        response = client.get("/test/invalid")

        assert response.status_code == 400
        assert response.json()["error"]["details"]["field"] == "page"

    def test_upstream_failure_handling(self, app_with_error_middleware):
        client = TestClient(app_with_error_middleware)

        with patch("core.middleware.logger") as mock_logger:
            response = client.get("/test/upstream")

        assert response.status_code == 503
        assert response.json()["error"]["code"] == "UPSTREAM_FAILURE"
        mock_logger.error.assert_called_once()

    def test_client_errors_logged_as_warnings(self, app_with_error_middleware):
        client = TestClient(app_with_error_middleware)

        with patch("core.middleware.logger") as mock_logger:
            client.get("/test/not-found")

        mock_logger.warning.assert_called_once()
        mock_logger.error.assert_not_called()

    def test_generic_error_handling(self, app_with_error_middleware):
        """Test handling of unexpected exceptions."""
        client = TestClient(app_with_error_middleware)
        response = client.get("/test/generic-error")

        assert response.status_code == 500
        error = response.json()["error"]
        assert error["code"] == "INTERNAL_ERROR"
        assert error["message"] == "An unexpected error occurred"
        assert "Something went wrong" not in response.text

    def test_success_passthrough(self, app_with_error_middleware):
        client = TestClient(app_with_error_middleware)
        response = client.get("/test/success")

        assert response.status_code == 200
        assert response.json() == {"message": "success"}

    def test_correlation_id_in_error_body(self):
        app = FastAPI()
        app.add_middleware(ErrorHandlingMiddleware)
        app.add_middleware(CorrelationMiddleware)

        @app.get("/boom")
        async def boom():
            raise ChannelNotFoundError("alice")

        client = TestClient(app)
        response = client.get("/boom", headers={"X-Correlation-ID": "corr-1"})

        assert response.json()["error"]["correlation_id"] == "corr-1"
        assert response.headers["X-Correlation-ID"] == "corr-1"


class TestPerformanceMiddleware:
    """Test PerformanceMiddleware functionality."""

    @pytest.fixture
    def app_with_performance_middleware(self):
        app = FastAPI()
        app.add_middleware(PerformanceMiddleware)

        @app.get("/test")
        async def test_endpoint():
            return {"ok": True}

        return app

    def test_process_time_header(self, app_with_performance_middleware):
        client = TestClient(app_with_performance_middleware)
        response = client.get("/test")

        assert response.status_code == 200
        assert float(response.headers["X-Process-Time"]) >= 0

    def test_slow_request_warning(self, app_with_performance_middleware):
        client = TestClient(app_with_performance_middleware)

        with patch("core.middleware.SLOW_REQUEST_SECONDS", -1.0), patch(
            "core.middleware.logger"
        ) as mock_logger:
            client.get("/test")

        mock_logger.warning.assert_called_once()
        assert "Slow request" in mock_logger.warning.call_args[0][0]


class TestCreateErrorResponse:
    """Test create_error_response function."""

    def test_minimal_body(self):
        response = create_error_response(
            error_type="InvalidArgumentError",
            error_code="INVALID_ARGUMENT",
            message="Bad input",
        )

        assert response.status_code == 400
        assert json.loads(response.body) == {
            "error": {
                "type": "InvalidArgumentError",
                "code": "INVALID_ARGUMENT",
                "message": "Bad input",
            }
        }

    def test_full_body(self):
        response = create_error_response(
            error_type="ChannelNotFoundError",
            error_code="CHANNEL_NOT_FOUND",
            message="Channel does not exist: alice",
            status_code=404,
            correlation_id="corr-1",
            details={"username": "alice"},
        )

        body = json.loads(response.body)
        assert response.status_code == 404
        assert body["error"]["correlation_id"] == "corr-1"
        assert body["error"]["details"] == {"username": "alice"}

"""Tests for error handling"""
import json

import pytest
from unittest.mock import Mock, patch
from fastapi import HTTPException
from fastapi.responses import JSONResponse

from rating_service.core.errors import (
    ConflictError,
    ErrorResponse,
    InternalInconsistencyError,
    InvalidRatingError,
    RatingNotFoundError,
    StorageError,
    UnknownEntityError,
    error_response_handler,
    http_exception_handler,
)


def mock_request():
    request = Mock()
    request.url = "http://testserver/api/entities/d1/ratings"
    request.method = "POST"
    return request


class TestErrorResponse:
    """Test ErrorResponse exception class"""

    def test_error_response_creation(self):
        """Test creating an ErrorResponse"""
        error = ErrorResponse("Something went wrong", status_code=400)
        assert error.message == "Something went wrong"
        assert error.status_code == 400
        assert error.details == {}

    def test_error_response_default_status_code(self):
        """Test that ErrorResponse defaults to status code 400"""
        error = ErrorResponse("Bad request")
        assert error.status_code == 400

    def test_error_response_str(self):
        """Test string representation of ErrorResponse"""
        assert str(ErrorResponse("Test error")) == "Test error"


class TestRatingErrors:
    """Each error kind carries its HTTP status"""

    @pytest.mark.parametrize("error,status_code", [
        (InvalidRatingError(9, 1, 5), 422),
        (UnknownEntityError("d1"), 404),
        (RatingNotFoundError("d1", "r1"), 404),
        (ConflictError(), 503),
        (InternalInconsistencyError("count negative"), 500),
        (StorageError(), 503),
    ])
    def test_status_codes(self, error, status_code):
        assert isinstance(error, ErrorResponse)
        assert error.status_code == status_code

    def test_invalid_rating_details(self):
        error = InvalidRatingError(9, 1, 5)

        assert error.details == {"value": 9, "min": 1, "max": 5}
        assert "between 1 and 5" in error.message

    def test_not_found_details(self):
        error = RatingNotFoundError("d1", "r1")

        assert error.details == {"entity_id": "d1", "rater_id": "r1"}


class TestErrorHandlers:
    """Test error handler functions"""

    @pytest.mark.asyncio
    async def test_error_response_handler(self):
        """Client errors render as JSON and log a warning"""
        error = UnknownEntityError("d1")

        with patch('rating_service.core.errors.logger') as mock_logger:
            response = await error_response_handler(mock_request(), error)

        assert isinstance(response, JSONResponse)
        assert response.status_code == 404
        assert json.loads(response.body) == {"error": "Entity not found", "details": {"entity_id": "d1"}}
        mock_logger.warning.assert_called_once()
        mock_logger.error.assert_not_called()

    @pytest.mark.asyncio
    async def test_server_errors_logged_as_errors(self):
        error = InternalInconsistencyError("count negative", details={"entity_id": "d1"})

        with patch('rating_service.core.errors.logger') as mock_logger:
            response = await error_response_handler(mock_request(), error)

        assert response.status_code == 500
        mock_logger.error.assert_called_once()
        metadata = mock_logger.error.call_args.kwargs["metadata"]
        assert metadata["error_type"] == "InternalInconsistencyError"
        assert metadata["entity_id"] == "d1"

    @pytest.mark.asyncio
    async def test_http_exception_handler(self):
        """Test http_exception_handler function"""
        exc = HTTPException(status_code=405, detail="Method Not Allowed")

        with patch('rating_service.core.errors.logger'):
            response = await http_exception_handler(mock_request(), exc)

        assert response.status_code == 405
        assert json.loads(response.body) == {"error": "Method Not Allowed"}

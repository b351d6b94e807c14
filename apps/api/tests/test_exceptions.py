"""
Tests for the API error types and the backend failure mapping
"""

import pytest

from core.exceptions import (
    BackendRejectedError,
    BackendUnavailableError,
    NotFoundError,
    ValidationError,
    backend_failure,
)


class TestBackendFailure:
    @pytest.mark.parametrize("status_code", [400, 401, 404, 409])
    def test_client_errors_keep_their_status(self, status_code):
        error = backend_failure(status_code, "JWT expired")
        assert isinstance(error, BackendRejectedError)
        assert error.status_code == status_code
        assert error.detail == "JWT expired"
        assert error.error_code == "BACKEND_REJECTED"

    @pytest.mark.parametrize("status_code", [None, 500, 503])
    def test_everything_else_is_unavailable(self, status_code):
        error = backend_failure(status_code, "Backend unavailable: timeout")
        assert isinstance(error, BackendUnavailableError)
        assert error.status_code == 503
        assert error.detail == "Data service temporarily unavailable"


class TestErrorCodes:
    def test_validation_error_names_the_field(self):
        assert ValidationError("bad", field="check_in_date").error_code == "VALIDATION_ERROR_CHECK_IN_DATE"
        assert ValidationError("bad").error_code == "VALIDATION_ERROR"

    def test_not_found(self):
        error = NotFoundError("Supplement", "s1")
        assert error.status_code == 404
        assert "s1" in error.detail

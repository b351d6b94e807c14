"""
API errors.

Every error a route raises on purpose is an APIException, rendered by
main.py as {"detail", "error_code"}. Clients branch on error_code; detail is
for people.
"""
from fastapi import HTTPException, status
from typing import Optional, Dict, Any


class APIException(HTTPException):
    """HTTPException that also carries a stable error_code."""

    def __init__(
        self,
        status_code: int,
        detail: str,
        error_code: Optional[str] = None,
        headers: Optional[Dict[str, Any]] = None
    ):
        super().__init__(status_code=status_code, detail=detail, headers=headers)
        self.error_code = error_code


class NotFoundError(APIException):
    """No meal, supplement or other record with that id belongs to the caller."""

    def __init__(self, resource: str, identifier: str):
        super().__init__(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"{resource} {identifier} does not exist or is not yours",
            error_code="NOT_FOUND"
        )


class ValidationError(APIException):
    """
    A request that passed schema validation but makes no sense, e.g. a
    check-in dated in the future. error_code names the field when known.
    """

    def __init__(self, detail: str, field: Optional[str] = None):
        super().__init__(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=detail,
            error_code="VALIDATION_ERROR" + (f"_{field.upper()}" if field else "")
        )


class UnauthorizedError(APIException):
    """Missing, invalid or expired backend access token."""

    def __init__(self, detail: str = "Not authenticated"):
        super().__init__(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=detail,
            error_code="UNAUTHORIZED",
            headers={"WWW-Authenticate": "Bearer"}
        )


class BackendRejectedError(APIException):
    """The backend refused the call; its 4xx status is passed through."""

    def __init__(self, status_code: int, detail: str):
        super().__init__(status_code=status_code, detail=detail, error_code="BACKEND_REJECTED")


class BackendUnavailableError(APIException):
    """The hosted backend could not be reached or failed."""

    def __init__(self, detail: str = "Data service temporarily unavailable"):
        super().__init__(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=detail,
            error_code="BACKEND_UNAVAILABLE"
        )


def backend_failure(status_code: Optional[int], message: str) -> APIException:
    """Map a failed backend call: 4xx keeps its status, anything else is a 503."""
    if status_code is not None and 400 <= status_code < 500:
        return BackendRejectedError(status_code, message)
    return BackendUnavailableError()

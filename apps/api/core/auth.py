"""
Authentication dependencies.

Provides the FastAPI dependency that turns a bearer token into the
UserContext handed explicitly to every route and service. There is no
ambient session: each request carries its own caller.
"""
import logging
from typing import Optional

from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials

from core.backend import BackendClient, BackendError, get_backend
from core.config import settings
from core.exceptions import BackendUnavailableError, UnauthorizedError
from core.security import decode_access_token, user_context_from_claims
from schemas import UserContext

logger = logging.getLogger(__name__)

# Use auto_error=False to handle missing credentials manually and return 401 (not 403)
security = HTTPBearer(auto_error=False)


def get_user_context(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    backend: BackendClient = Depends(get_backend),
) -> UserContext:
    """
    Resolve the caller from the bearer token.

    With a JWT secret configured the token is verified locally; otherwise
    the backend's auth endpoint is asked who the token belongs to.
    """
    if not credentials:
        raise UnauthorizedError("Not authenticated")

    token = credentials.credentials

    if settings.SUPABASE_JWT_SECRET:
        claims = decode_access_token(token)
        if not claims:
            raise UnauthorizedError("Invalid authentication credentials")
    else:
        try:
            claims = backend.fetch_user(token)
        except BackendError as e:
            if e.status_code is not None and e.status_code < 500:
                raise UnauthorizedError("Invalid authentication credentials")
            logger.error(f"Auth lookup failed: {e}")
            raise BackendUnavailableError()

    user = user_context_from_claims(claims, token)
    if user is None:
        raise UnauthorizedError("Invalid token payload")
    return user

"""
Security utilities for authentication.

Access tokens are issued by the hosted backend's auth service (HS256 JWTs
signed with the project's JWT secret). This service never issues tokens; it
only verifies them and reads the caller's identity from the claims.

SECURITY REQUIREMENTS:
- SUPABASE_JWT_SECRET must be set via environment variable to verify locally
- SUPABASE_JWT_SECRET must NEVER be committed to source control
"""
from typing import Any, Dict, Optional
from jose import JWTError, jwt

from core.config import settings
from schemas import UserContext

ALGORITHM = "HS256"
AUDIENCE = "authenticated"


def decode_access_token(token: str, secret: Optional[str] = None) -> Optional[Dict]:
    """Decode and validate a backend JWT. None when invalid or expired."""
    key = secret or settings.SUPABASE_JWT_SECRET
    if not key or not token:
        return None
    try:
        payload = jwt.decode(token, key, algorithms=[ALGORITHM], audience=AUDIENCE)
        return payload
    except JWTError:
        return None


def user_context_from_claims(claims: Dict[str, Any], access_token: str) -> Optional[UserContext]:
    """
    Build the caller's UserContext from token claims or a backend user record.

    Both carry the user id ("sub" in claims, "id" in the user record), the
    email, and user_metadata with the optional display name and timezone.
    """
    user_id = claims.get("sub") or claims.get("id")
    if not user_id:
        return None
    metadata = claims.get("user_metadata") or {}
    return UserContext(
        user_id=str(user_id),
        email=claims.get("email"),
        display_name=metadata.get("name") or metadata.get("full_name"),
        timezone=metadata.get("timezone") or settings.DEFAULT_TIMEZONE,
        access_token=access_token,
    )

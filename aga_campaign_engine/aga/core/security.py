"""
Bearer token verification.
Tokens are issued by the external auth provider and signed with SECRET_KEY.
"""
from datetime import timedelta
from typing import Any, Dict, Optional

from jose import JWTError, jwt

from aga.core.config import settings
from aga.core.database import utcnow


def decode_token(token: str) -> Dict[str, Any]:
    """Return the verified claims of *token*. Raises ValueError when invalid or expired."""
    try:
        return jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    except JWTError as exc:
        raise ValueError(f"Invalid token: {exc}") from exc


def create_access_token(
    user_id: str,
    email: Optional[str] = None,
    expires_minutes: int = 60,
) -> str:
    """Mint a token with the same claims the auth provider issues (tooling and tests)."""
    claims = {
        "sub": user_id,
        "user_id": user_id,
        "email": email,
        "exp": utcnow() + timedelta(minutes=expires_minutes),
    }
    return jwt.encode(claims, settings.SECRET_KEY, algorithm=settings.ALGORITHM)

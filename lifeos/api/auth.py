"""
Authentication: bearer JWT validation and the current-user dependency.

Tokens are issued by Supabase; we only verify them. RS256/ES256 tokens are
checked against the project's JWKS, HS256 tokens against SUPABASE_JWT_SECRET.
The verified `sub` claim is mirrored into a local User on first sight.
"""

import logging
from typing import Annotated, Any

import jwt
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jwt import PyJWKClient

from lifeos.config import Settings, get_settings
from lifeos.models.user import User

logger = logging.getLogger(__name__)
security = HTTPBearer(auto_error=True)

ASYMMETRIC_ALGORITHMS = ("RS256", "ES256")


class AuthNotConfigured(Exception):
    """Raised when the server lacks what it needs to verify a token."""


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=detail)


def _jwks_url(settings: Settings) -> str:
    base = (settings.supabase_url or "").rstrip("/")
    if not base or "your-project" in base:
        raise AuthNotConfigured("Set SUPABASE_URL in .env to your project URL (e.g. https://xxx.supabase.co)")
    return f"{base}/auth/v1/.well-known/jwks.json"


def decode_token(token: str, settings: Settings) -> dict[str, Any]:
    """
    Verify a token and return its claims.
    Raises jwt.InvalidTokenError subclasses for bad tokens and
    AuthNotConfigured when the matching key material is missing.
    """
    alg = jwt.get_unverified_header(token).get("alg")
    if alg in ASYMMETRIC_ALGORITHMS:
        signing_key = PyJWKClient(_jwks_url(settings)).get_signing_key_from_jwt(token)
        return jwt.decode(token, signing_key.key, algorithms=list(ASYMMETRIC_ALGORITHMS), options={"verify_aud": False})
    if alg == "HS256":
        if not settings.supabase_jwt_secret:
            raise AuthNotConfigured("Authentication not configured (SUPABASE_JWT_SECRET required for HS256).")
        return jwt.decode(token, settings.supabase_jwt_secret, algorithms=["HS256"], options={"verify_aud": False})
    raise jwt.InvalidAlgorithmError(f"Unsupported token algorithm: {alg}")


async def get_current_user(
    credentials: Annotated[HTTPAuthorizationCredentials, Depends(security)],
) -> User:
    """Dependency: validate the bearer token and return the matching local User."""
    try:
        payload = decode_token(credentials.credentials, get_settings())
    except AuthNotConfigured as e:
        logger.warning("Token verification not configured: %s", e)
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(e))
    except jwt.ExpiredSignatureError:
        raise _unauthorized("Token has expired")
    except jwt.PyJWTError as e:
        logger.warning("JWT verification failed: %s", e)
        raise _unauthorized("Not authorized, token invalid")

    subject = payload.get("sub")
    if not subject:
        raise _unauthorized("Token missing subject")
    email = payload.get("email")

    user = await User.find_one(User.subject == subject)
    if not user:
        user = User(subject=subject, email=email)
        await user.insert()
        logger.info("Created new user for subject=%s", subject)
    elif email and user.email != email:
        user.email = email
        await user.save_changes()
        logger.info("Updated email for user %s", user.id)
    return user

"""Bearer token authentication for API routes.

This module provides a FastAPI dependency that gates routes on a signed JWT
carried in the ``Authorization: Bearer <token>`` header.

Security: every database-connection and audit route MUST depend on
``authenticate`` so no controller runs for an unauthenticated caller.
"""

from datetime import datetime, timedelta, timezone
from typing import Optional

from fastapi import Depends, HTTPException, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import ExpiredSignatureError, JWTError, jwt
from pydantic import BaseModel, ValidationError

from survey_data.config import get_settings
from survey_data.logging_config import get_logger

logger = get_logger(__name__)

_bearer_scheme = HTTPBearer(auto_error=False)


class AuthenticatedUser(BaseModel):
    """Identity extracted from a verified token."""
    id: int
    role: str = "user"
    email: Optional[str] = None

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"

    def may_access(self, owner_id: Optional[int]) -> bool:
        """Admins may access anything; other users only what they own."""
        return self.is_admin or (owner_id is not None and owner_id == self.id)


class TokenValidator:
    """Service for issuing and verifying signed access tokens.

    Security Notes:
        - NEVER log token values or the signing secret
        - Log rejected tokens with the client IP only
    """

    def __init__(self):
        """Initialize validator with signing settings."""
        settings = get_settings()
        self.secret_key = settings.jwt_secret_key
        self.algorithm = settings.jwt_algorithm
        self.expire_minutes = settings.access_token_expire_minutes

    def create_token(
        self,
        user_id: int,
        role: str = "user",
        email: Optional[str] = None,
        expires_delta: Optional[timedelta] = None,
    ) -> str:
        """Issue a signed access token for a user."""
        expire = datetime.now(timezone.utc) + (
            expires_delta or timedelta(minutes=self.expire_minutes)
        )
        claims = {"sub": str(user_id), "role": role, "exp": expire}
        if email:
            claims["email"] = email
        return jwt.encode(claims, self.secret_key, algorithm=self.algorithm)

    def verify_token(self, token: str) -> Optional[AuthenticatedUser]:
        """Verify a token's signature and expiry.

        Returns:
            The authenticated user, or None if the token is invalid or expired
        """
        try:
            claims = jwt.decode(token, self.secret_key, algorithms=[self.algorithm])
            return AuthenticatedUser(
                id=int(claims["sub"]),
                role=claims.get("role", "user"),
                email=claims.get("email"),
            )
        except ExpiredSignatureError:
            logger.info("Rejected expired access token")
            return None
        except (JWTError, KeyError, ValueError, ValidationError) as e:
            logger.warning(
                f"Rejected invalid access token: {type(e).__name__}",
                extra={"error_type": type(e).__name__},
            )
            return None


def create_access_token(
    user_id: int,
    role: str = "user",
    email: Optional[str] = None,
    expires_delta: Optional[timedelta] = None,
) -> str:
    """Issue a signed access token using the configured secret."""
    return TokenValidator().create_token(user_id, role, email, expires_delta)


async def authenticate(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(_bearer_scheme),
) -> AuthenticatedUser:
    """FastAPI dependency for bearer token authentication.

    Raises:
        HTTPException(401): If the Authorization header is missing
        HTTPException(403): If the token is invalid or expired

    Usage:
        router = APIRouter(dependencies=[Depends(authenticate)])
    """
    client_ip = request.client.host if request.client else "unknown"

    if credentials is None or not credentials.credentials:
        logger.warning(
            f"Missing bearer token from IP: {client_ip}",
            extra={"client_ip": client_ip},
        )
        raise HTTPException(status_code=401, detail="No token provided")

    user = TokenValidator().verify_token(credentials.credentials)
    if user is None:
        logger.warning(
            f"Invalid bearer token from IP: {client_ip}",
            extra={"client_ip": client_ip},
        )
        raise HTTPException(status_code=403, detail="Invalid token")

    request.state.user = user
    logger.debug(f"Authenticated user {user.id}", extra={"user_id": user.id})
    return user


async def require_admin(
    user: AuthenticatedUser = Depends(authenticate),
) -> AuthenticatedUser:
    """FastAPI dependency allowing only administrators through.

    Raises:
        HTTPException(403): If the authenticated user is not an admin
    """
    if not user.is_admin:
        logger.warning(
            f"User {user.id} denied admin route",
            extra={"user_id": user.id},
        )
        raise HTTPException(status_code=403, detail="Forbidden: insufficient role")
    return user

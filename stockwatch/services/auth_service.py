"""
Session token verification.

Sign-in and token issuance belong to the identity provider; this service
only verifies the bearer JWT the provider issued and extracts the user ID.
``create_access_token`` mints compatible tokens for tooling and tests.
"""

from datetime import timedelta

import structlog
from jose import JWTError, jwt

from ..core.utils.date_utils import utcnow

logger = structlog.get_logger()


class AuthService:
    """Service for JWT session verification."""

    ALGORITHM = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES = 60 * 24 * 7  # 7 days

    def __init__(self, secret_key: str):
        """
        Args:
            secret_key: Shared HMAC secret used by the identity provider
        """
        self.secret_key = secret_key

    def create_access_token(
        self, user_id: str, expires_delta: timedelta | None = None
    ) -> str:
        """
        Create JWT access token for user.

        Args:
            user_id: User identifier
            expires_delta: Lifetime override (defaults to 7 days)

        Returns:
            JWT token string
        """
        expire = utcnow() + (
            expires_delta or timedelta(minutes=self.ACCESS_TOKEN_EXPIRE_MINUTES)
        )

        payload = {
            "sub": user_id,
            "exp": expire,
            "iat": utcnow(),
        }

        token: str = jwt.encode(payload, self.secret_key, algorithm=self.ALGORITHM)
        return token

    def verify_token(self, token: str) -> str | None:
        """
        Verify JWT token and extract user ID.

        Expired, malformed and unsigned tokens are all treated the same way.

        Returns:
            User ID if valid, None otherwise
        """
        try:
            payload = jwt.decode(token, self.secret_key, algorithms=[self.ALGORITHM])

            user_id: str | None = payload.get("sub")

            if not user_id:
                logger.warning("Invalid token: missing user ID")
                return None

            return user_id

        except JWTError as e:
            logger.warning("Token verification failed", error=str(e))
            return None

"""
Core Authentication Primitives.

Token issuance and password hashing for the VidShare API. Account storage and
the login flow live in `services.user_service`; this module only knows how to
sign, verify and hash.

Key Components:
- `JWTManager`: creates and verifies access and refresh tokens (PyJWT, HS256).
  Each token carries a `type` claim so a refresh token cannot be used as an
  access token and vice versa, and a `jti` so rotated tokens always differ.
- `PasswordManager`: bcrypt hashing and verification with a length policy.
- `get_jwt_manager`: process-wide `JWTManager` used by the services and the
  authentication dependency.
"""

import os
import jwt
import secrets
from datetime import datetime, timedelta, timezone
from typing import Dict, Any, Optional
from enum import Enum
import bcrypt

from core.logging_config import get_logger
from core.exceptions import AuthenticationError, InvalidArgumentError
from core.models import User

logger = get_logger(__name__)


class TokenType(Enum):
    """Token types"""

    ACCESS = "access"
    REFRESH = "refresh"


class JWTManager:
    """JWT token management"""

    def __init__(
        self,
        secret_key: str = None,
        algorithm: str = "HS256",
        access_token_expire: Optional[timedelta] = None,
        refresh_token_expire: Optional[timedelta] = None,
    ):
        self.secret_key = secret_key or os.getenv("JWT_SECRET_KEY") or self._generate_secret_key()
        self.algorithm = algorithm
        self.access_token_expire = access_token_expire or timedelta(
            minutes=int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", "1440"))
        )
        self.refresh_token_expire = refresh_token_expire or timedelta(
            days=int(os.getenv("REFRESH_TOKEN_EXPIRE_DAYS", "10"))
        )

    def _generate_secret_key(self) -> str:
        """Generate a secure secret key"""
        key = secrets.token_urlsafe(32)
        logger.warning(
            "Generated new JWT secret key. This should be set via JWT_SECRET_KEY environment variable."
        )
        return key

    def _encode(self, claims: Dict[str, Any], token_type: TokenType, expires_delta: timedelta) -> str:
        now = datetime.now(timezone.utc)
        payload = {
            **claims,
            "type": token_type.value,
            "iat": now,
            "exp": now + expires_delta,
            "jti": secrets.token_urlsafe(16),
        }
        return jwt.encode(payload, self.secret_key, algorithm=self.algorithm)

    def create_access_token(self, user: User, expires_delta: timedelta = None) -> str:
        """Create JWT access token"""
        token = self._encode(
            {
                "sub": user.id,
                "username": user.username,
                "email": user.email,
                "fullname": user.fullname,
            },
            TokenType.ACCESS,
            expires_delta or self.access_token_expire,
        )
        logger.debug(f"Created access token for user {user.username}")
        return token

    def create_refresh_token(self, user: User, expires_delta: timedelta = None) -> str:
        """Create JWT refresh token"""
        token = self._encode(
            {"sub": user.id}, TokenType.REFRESH, expires_delta or self.refresh_token_expire
        )
        logger.debug(f"Created refresh token for user {user.username}")
        return token

    def verify_token(
        self, token: str, token_type: TokenType = TokenType.ACCESS
    ) -> Dict[str, Any]:
        """Verify and decode JWT token"""
        try:
            payload = jwt.decode(token, self.secret_key, algorithms=[self.algorithm])
        except jwt.ExpiredSignatureError:
            raise AuthenticationError("Token has expired")
        except jwt.InvalidTokenError as e:
            raise AuthenticationError(f"Invalid token: {str(e)}")

        if payload.get("type") != token_type.value:
            raise AuthenticationError(
                f"Invalid token type. Expected {token_type.value}"
            )
        if not payload.get("sub"):
            raise AuthenticationError("Token has no subject")

        return payload


class PasswordManager:
    """Password hashing and verification"""

    MIN_LENGTH = 8
    # bcrypt only looks at the first 72 bytes
    MAX_BYTES = 72

    @staticmethod
    def hash_password(password: str) -> str:
        """Hash password using bcrypt"""
        PasswordManager.validate_password_strength(password)

        salt = bcrypt.gensalt()
        hashed = bcrypt.hashpw(password.encode("utf-8"), salt)
        return hashed.decode("utf-8")

    @staticmethod
    def verify_password(password: str, hashed: str) -> bool:
        """Verify password against hash"""
        encoded = password.encode("utf-8")
        if len(encoded) > PasswordManager.MAX_BYTES:
            return False
        try:
            return bcrypt.checkpw(encoded, hashed.encode("utf-8"))
        except ValueError as e:
            logger.error(f"Password verification error: {e}")
            return False

    @staticmethod
    def validate_password_strength(password: str) -> bool:
        """Validate password meets length requirements"""
        if len(password) < PasswordManager.MIN_LENGTH:
            raise InvalidArgumentError(
                "password",
                "***",
                f"Password must be at least {PasswordManager.MIN_LENGTH} characters long",
            )

        if len(password.encode("utf-8")) > PasswordManager.MAX_BYTES:
            raise InvalidArgumentError(
                "password",
                "***",
                f"Password must be no more than {PasswordManager.MAX_BYTES} bytes long",
            )

        return True


# Global JWT manager
_jwt_manager: Optional[JWTManager] = None


def get_jwt_manager() -> JWTManager:
    """Get global JWT manager"""
    global _jwt_manager
    if _jwt_manager is None:
        _jwt_manager = JWTManager()
    return _jwt_manager


def init_jwt_manager(**kwargs) -> JWTManager:
    """Initialize global JWT manager"""
    global _jwt_manager
    _jwt_manager = JWTManager(**kwargs)
    logger.info("Initialized JWT manager")
    return _jwt_manager

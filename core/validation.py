"""
Input Validation Utilities.

Static validators used by the services before anything touches the database.
Every failure raises `InvalidArgumentError` so the HTTP layer answers 400.
"""

import re
from typing import Any, List, Optional
from urllib.parse import urlparse

from core.logging_config import get_logger
from core.exceptions import InvalidArgumentError
from core.models import is_valid_id

logger = get_logger(__name__)


class InputValidator:
    """Input validation and normalisation"""

    EMAIL_PATTERN = re.compile(r"^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$")
    USERNAME_PATTERN = re.compile(r"^[a-z0-9_.-]{3,30}$")

    @staticmethod
    def require_text(field: str, value: Any, max_length: int = 1000) -> str:
        """Return the stripped value, rejecting missing or blank strings"""
        if not isinstance(value, str) or not value.strip():
            raise InvalidArgumentError(field, value, f"{field} is required")

        value = value.strip()
        if len(value) > max_length:
            raise InvalidArgumentError(
                field, value[:50], f"Must be no more than {max_length} characters"
            )
        return value

    @staticmethod
    def optional_text(field: str, value: Optional[str], max_length: int = 1000) -> Optional[str]:
        """Like `require_text`, but blank or missing input gives None"""
        if value is None or (isinstance(value, str) and not value.strip()):
            return None
        return InputValidator.require_text(field, value, max_length)

    @staticmethod
    def validate_email(email: Any) -> str:
        """Validate email address"""
        email = InputValidator.require_text("email", email, max_length=254)

        if not InputValidator.EMAIL_PATTERN.match(email):
            raise InvalidArgumentError("email", email, "Invalid email format")

        return email.lower()

    @staticmethod
    def validate_username(username: Any) -> str:
        """Validate and lower-case a username"""
        username = InputValidator.require_text("username", username, max_length=30).lower()

        if not InputValidator.USERNAME_PATTERN.match(username):
            raise InvalidArgumentError(
                "username",
                username,
                "Username must be 3-30 characters and contain only letters, numbers, dots, hyphens, and underscores",
            )

        return username

    @staticmethod
    def validate_url(field: str, url: Any, allowed_schemes: List[str] = None) -> str:
        """Validate URL"""
        if allowed_schemes is None:
            allowed_schemes = ["http", "https"]

        url = InputValidator.require_text(field, url, max_length=1024)
        parsed = urlparse(url)

        if parsed.scheme not in allowed_schemes:
            raise InvalidArgumentError(
                field, url, f"URL scheme must be one of: {', '.join(allowed_schemes)}"
            )
        if not parsed.netloc:
            raise InvalidArgumentError(field, url, "URL must include a valid domain")

        return url

    @staticmethod
    def validate_id(field: str, value: Any) -> str:
        """Validate an identity reference"""
        if not is_valid_id(value):
            logger.debug(f"Rejected malformed {field}: {str(value)[:40]}")
            raise InvalidArgumentError(field, value, f"Invalid {field}")
        return value

    @staticmethod
    def validate_duration(duration: Any) -> float:
        if isinstance(duration, bool) or not isinstance(duration, (int, float)):
            raise InvalidArgumentError("duration", duration, "Must be a number")
        if duration < 0:
            raise InvalidArgumentError("duration", duration, "Must not be negative")
        return float(duration)

"""
User Account Service.

Registration, login, logout and refresh-token rotation. A user keeps exactly
one active refresh token; logging in or refreshing replaces it and logging out
clears it, so older refresh tokens stop working.
"""

import logging
from typing import Optional
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlmodel import col, or_, select
from sqlmodel.ext.asyncio.session import AsyncSession

from core.auth import JWTManager, PasswordManager, TokenType, get_jwt_manager
from core.exceptions import (
    AuthenticationError,
    ConflictError,
    InvalidArgumentError,
    UpstreamFailureError,
    UserNotFoundError,
)
from core.models import PublicUser, TokenPair, User, utcnow
from core.validation import InputValidator

logger = logging.getLogger(__name__)


class UserService:
    """Account lifecycle backed by the users table"""

    def __init__(self, session: AsyncSession, jwt_manager: Optional[JWTManager] = None):
        self.session = session
        self.jwt_manager = jwt_manager or get_jwt_manager()

    async def _first(self, statement, operation: str) -> Optional[User]:
        try:
            return (await self.session.exec(statement)).first()
        except SQLAlchemyError as e:
            raise UpstreamFailureError(operation, str(e)) from e

    async def _commit(self, operation: str, user: User):
        try:
            await self.session.commit()
            await self.session.refresh(user)
        except SQLAlchemyError as e:
            await self.session.rollback()
            raise UpstreamFailureError(operation, str(e)) from e

    async def get_user_by_id(self, user_id: str) -> User:
        InputValidator.validate_id("userId", user_id)
        try:
            user = await self.session.get(User, user_id)
        except SQLAlchemyError as e:
            raise UpstreamFailureError("get_user_by_id", str(e)) from e
        if user is None:
            raise UserNotFoundError(user_id)
        return user

    async def register_user(
        self,
        fullname: str,
        email: str,
        username: str,
        password: str,
        avatar: str,
        cover_image: Optional[str] = None,
    ) -> PublicUser:
        fullname = InputValidator.require_text("fullname", fullname, max_length=120)
        email = InputValidator.validate_email(email)
        username = InputValidator.validate_username(username)
        InputValidator.require_text("password", password, max_length=128)
        avatar = InputValidator.validate_url("avatar", avatar)
        cover_image = (
            InputValidator.validate_url("coverImage", cover_image)
            if cover_image and cover_image.strip()
            else ""
        )

        existing = await self._first(
            select(User).where(
                or_(col(User.email) == email, col(User.username) == username)
            ),
            "register_user",
        )
        if existing is not None:
            raise ConflictError(
                "User with this email or username already exists",
                {"email": email, "username": username},
            )

        user = User(
            fullname=fullname,
            email=email,
            username=username,
            password=PasswordManager.hash_password(password),
            avatar=avatar,
            cover_image=cover_image,
        )
        self.session.add(user)
        try:
            await self._commit("register_user", user)
        except UpstreamFailureError as e:
            # Lost a race against a concurrent registration
            if isinstance(e.__cause__, IntegrityError):
                raise ConflictError(
                    "User with this email or username already exists",
                    {"email": email, "username": username},
                ) from e.__cause__
            raise

        logger.info(f"Registered new user: {username}")
        return PublicUser.from_user(user)

    async def _issue_tokens(self, user: User, operation: str) -> TokenPair:
        tokens = TokenPair(
            access_token=self.jwt_manager.create_access_token(user),
            refresh_token=self.jwt_manager.create_refresh_token(user),
        )
        user.refresh_token = tokens.refresh_token
        user.updated_at = utcnow()
        self.session.add(user)
        await self._commit(operation, user)
        return tokens

    async def login_user(
        self,
        password: str,
        email: Optional[str] = None,
        username: Optional[str] = None,
    ):
        """Return the public user and a fresh token pair"""
        if not (email and email.strip()) and not (username and username.strip()):
            raise InvalidArgumentError(
                "username", username, "Username or email is required to login"
            )
        if not password:
            raise InvalidArgumentError("password", "***", "password is required")

        if email and email.strip():
            lookup = email.strip().lower()
            statement = select(User).where(col(User.email) == lookup)
        else:
            lookup = username.strip().lower()
            statement = select(User).where(col(User.username) == lookup)

        user = await self._first(statement, "login_user")
        if user is None:
            raise UserNotFoundError(lookup)

        if not PasswordManager.verify_password(password, user.password):
            logger.warning(f"Invalid credentials for {user.username}")
            raise AuthenticationError("Invalid user credentials")

        tokens = await self._issue_tokens(user, "login_user")
        logger.info(f"User {user.username} logged in")
        return PublicUser.from_user(user), tokens

    async def logout_user(self, user_id: str) -> None:
        user = await self.get_user_by_id(user_id)
        user.refresh_token = None
        user.updated_at = utcnow()
        self.session.add(user)
        await self._commit("logout_user", user)
        logger.info(f"User {user.username} logged out")

    async def refresh_access_token(self, refresh_token: Optional[str]) -> TokenPair:
        if not refresh_token:
            raise AuthenticationError("No refresh token provided")

        payload = self.jwt_manager.verify_token(refresh_token, TokenType.REFRESH)
        try:
            user = await self.get_user_by_id(payload["sub"])
        except (UserNotFoundError, InvalidArgumentError):
            raise AuthenticationError("Invalid refresh token")

        if user.refresh_token != refresh_token:
            raise AuthenticationError("Refresh token is expired or used")

        tokens = await self._issue_tokens(user, "refresh_access_token")
        logger.info(f"Rotated tokens for {user.username}")
        return tokens

    async def authenticate_access_token(self, access_token: str) -> User:
        """Resolve a bearer access token to its user"""
        payload = self.jwt_manager.verify_token(access_token, TokenType.ACCESS)
        try:
            return await self.get_user_by_id(payload["sub"])
        except (UserNotFoundError, InvalidArgumentError):
            raise AuthenticationError("User not found for token")

"""
Unit tests for UserService
"""
import uuid
import pytest

from core.auth import TokenType
from core.exceptions import (
    AuthenticationError,
    ConflictError,
    InvalidArgumentError,
    UserNotFoundError,
)
from core.models import User
from services.user_service import UserService
from conftest import TEST_PASSWORD


@pytest.fixture
def user_svc(session, jwt_manager):
    return UserService(session, jwt_manager)


def registration(**overrides):
    fields = {
        "fullname": "Alice Liddell",
        "email": "Alice@Example.com",
        "username": "Alice",
        "password": TEST_PASSWORD,
        "avatar": "https://cdn.example.com/alice.png",
    }
    fields.update(overrides)
    return fields


class TestRegisterUser:
    @pytest.mark.asyncio
    async def test_register_normalises_and_hides_password(self, user_svc, session):
        public = await user_svc.register_user(**registration())

        assert public.username == "alice"
        assert public.email == "alice@example.com"
        assert public.cover_image == ""
        payload = public.model_dump(by_alias=True)
        assert "password" not in payload
        assert "refreshToken" not in payload

        stored = await session.get(User, public.id)
        assert stored.password != TEST_PASSWORD
        assert stored.password.startswith("$2")

    @pytest.mark.asyncio
    async def test_duplicate_username(self, user_svc, make_user):
        await make_user("alice", email="someone@example.com")

        with pytest.raises(ConflictError) as exc_info:
            await user_svc.register_user(**registration())

        assert exc_info.value.status_code == 409

    @pytest.mark.asyncio
    async def test_duplicate_email(self, user_svc, make_user):
        await make_user("someone", email="alice@example.com")

        with pytest.raises(ConflictError):
            await user_svc.register_user(**registration())

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "overrides",
        [
            {"fullname": "  "},
            {"email": "not-an-email"},
            {"username": "a"},
            {"username": "has space"},
            {"password": "short"},
            {"avatar": ""},
            {"cover_image": "ftp://cdn.example.com/cover.png"},
        ],
    )
    async def test_invalid_input(self, user_svc, overrides):
        with pytest.raises(InvalidArgumentError):
            await user_svc.register_user(**registration(**overrides))


class TestLoginUser:
    @pytest.mark.asyncio
    async def test_login_by_username(self, user_svc, make_user, jwt_manager):
        user = await make_user("alice")

        public, tokens = await user_svc.login_user(TEST_PASSWORD, username=" ALICE ")

        assert public.id == user.id
        assert tokens.token_type == "bearer"
        payload = jwt_manager.verify_token(tokens.access_token, TokenType.ACCESS)
        assert payload["sub"] == user.id
        assert user.refresh_token == tokens.refresh_token

    @pytest.mark.asyncio
    async def test_login_by_email(self, user_svc, make_user):
        user = await make_user("alice")

        public, _ = await user_svc.login_user(TEST_PASSWORD, email="ALICE@example.com")

        assert public.id == user.id

    @pytest.mark.asyncio
    async def test_wrong_password(self, user_svc, make_user):
        await make_user("alice")

        with pytest.raises(AuthenticationError):
            await user_svc.login_user("WrongPass1!", username="alice")

    @pytest.mark.asyncio
    async def test_unknown_user(self, user_svc):
        with pytest.raises(UserNotFoundError):
            await user_svc.login_user(TEST_PASSWORD, username="ghost")

    @pytest.mark.asyncio
    async def test_missing_identifier(self, user_svc):
        with pytest.raises(InvalidArgumentError):
            await user_svc.login_user(TEST_PASSWORD)

    @pytest.mark.asyncio
    async def test_missing_password(self, user_svc):
        with pytest.raises(InvalidArgumentError):
            await user_svc.login_user("", username="alice")


class TestTokens:
    @pytest.mark.asyncio
    async def test_refresh_rotates_tokens(self, user_svc, make_user):
        await make_user("alice")
        _, first = await user_svc.login_user(TEST_PASSWORD, username="alice")

        second = await user_svc.refresh_access_token(first.refresh_token)

        assert second.refresh_token != first.refresh_token
        with pytest.raises(AuthenticationError):
            await user_svc.refresh_access_token(first.refresh_token)

    @pytest.mark.asyncio
    async def test_access_token_cannot_refresh(self, user_svc, make_user):
        await make_user("alice")
        _, tokens = await user_svc.login_user(TEST_PASSWORD, username="alice")

        with pytest.raises(AuthenticationError):
            await user_svc.refresh_access_token(tokens.access_token)

    @pytest.mark.asyncio
    async def test_missing_refresh_token(self, user_svc):
        with pytest.raises(AuthenticationError):
            await user_svc.refresh_access_token(None)

    @pytest.mark.asyncio
    async def test_logout_revokes_refresh_token(self, user_svc, make_user):
        user = await make_user("alice")
        _, tokens = await user_svc.login_user(TEST_PASSWORD, username="alice")

        await user_svc.logout_user(user.id)

        assert user.refresh_token is None
        with pytest.raises(AuthenticationError):
            await user_svc.refresh_access_token(tokens.refresh_token)

    @pytest.mark.asyncio
    async def test_authenticate_access_token(self, user_svc, make_user, jwt_manager):
        user = await make_user("alice")

        resolved = await user_svc.authenticate_access_token(
            jwt_manager.create_access_token(user)
        )

        assert resolved.id == user.id

    @pytest.mark.asyncio
    async def test_token_for_deleted_user(self, user_svc, jwt_manager):
        ghost = User(
            id=str(uuid.uuid4()),
            username="ghost",
            email="ghost@example.com",
            fullname="Ghost",
            password="x",
            avatar="https://cdn.example.com/ghost.png",
        )

        with pytest.raises(AuthenticationError):
            await user_svc.authenticate_access_token(jwt_manager.create_access_token(ghost))


class TestGetUserById:
    @pytest.mark.asyncio
    async def test_found(self, user_svc, make_user):
        user = await make_user("alice")
        assert (await user_svc.get_user_by_id(user.id)).username == "alice"

    @pytest.mark.asyncio
    async def test_malformed_id(self, user_svc):
        with pytest.raises(InvalidArgumentError):
            await user_svc.get_user_by_id("42")

    @pytest.mark.asyncio
    async def test_unknown_id(self, user_svc):
        with pytest.raises(UserNotFoundError):
            await user_svc.get_user_by_id(str(uuid.uuid4()))

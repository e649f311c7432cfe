"""
User and Channel Endpoints.

Account management and public channel profiles.

Endpoints Provided:
- `/register`: creates an account.
- `/login`: authenticates by username or email and returns a token pair.
- `/logout`: clears the caller's refresh token.
- `/refresh-token`: rotates the token pair using the current refresh token.
- `/me`: returns the authenticated user.
- `/c/{username}`: public channel profile with subscription counts. The
  `isSubscribed` flag is computed for the caller when a bearer token is sent.

Request bodies declare every field optional so that missing input is reported
by the services as a 400 with a readable message rather than a schema error.
"""

from typing import Optional
from fastapi import APIRouter, Depends

from core.logging_config import get_logger, log_function_call
from core.models import CamelModel, PublicUser, User
from services.channel_service import ChannelProfileResolver
from services.user_service import UserService
from .dependencies import (
    get_channel_resolver,
    get_current_user,
    get_optional_viewer_id,
    get_user_service,
)
from .responses import api_response

logger = get_logger(__name__)
router = APIRouter(prefix="/api/v1/users", tags=["Users"])


# Request Models
class RegisterRequest(CamelModel):
    fullname: Optional[str] = None
    email: Optional[str] = None
    username: Optional[str] = None
    password: Optional[str] = None
    avatar: Optional[str] = None
    cover_image: Optional[str] = None


class LoginRequest(CamelModel):
    email: Optional[str] = None
    username: Optional[str] = None
    password: Optional[str] = None


class RefreshTokenRequest(CamelModel):
    refresh_token: Optional[str] = None


@router.post("/register", status_code=201)
@log_function_call(logger)
async def register_user(
    request: RegisterRequest, user_svc: UserService = Depends(get_user_service)
):
    """Register a new user"""
    user = await user_svc.register_user(
        fullname=request.fullname,
        email=request.email,
        username=request.username,
        password=request.password,
        avatar=request.avatar,
        cover_image=request.cover_image,
    )
    return api_response(user, "User registered successfully", 201)


@router.post("/login")
@log_function_call(logger)
async def login_user(
    request: LoginRequest, user_svc: UserService = Depends(get_user_service)
):
    """Authenticate and return access and refresh tokens"""
    user, tokens = await user_svc.login_user(
        password=request.password, email=request.email, username=request.username
    )
    return api_response(
        {
            "user": user.model_dump(mode="json", by_alias=True),
            **tokens.model_dump(mode="json", by_alias=True),
        },
        "User logged in successfully",
    )


@router.post("/logout")
@log_function_call(logger)
async def logout_user(
    current_user: User = Depends(get_current_user),
    user_svc: UserService = Depends(get_user_service),
):
    """Invalidate the caller's refresh token"""
    await user_svc.logout_user(current_user.id)
    return api_response({}, "User logged out successfully")


@router.post("/refresh-token")
@log_function_call(logger)
async def refresh_access_token(
    request: RefreshTokenRequest, user_svc: UserService = Depends(get_user_service)
):
    """Exchange a refresh token for a new token pair"""
    tokens = await user_svc.refresh_access_token(request.refresh_token)
    return api_response(tokens, "Access token refreshed successfully")


@router.get("/me")
async def get_me(current_user: User = Depends(get_current_user)):
    return api_response(
        PublicUser.from_user(current_user), "Current user fetched successfully"
    )


@router.get("/c/{username}")
@log_function_call(logger)
async def get_channel_profile(
    username: str,
    viewer_id: Optional[str] = Depends(get_optional_viewer_id),
    resolver: ChannelProfileResolver = Depends(get_channel_resolver),
):
    """Public channel profile for a username"""
    logger.info(f"Channel profile request for: {username}")
    profile = await resolver.resolve_channel_profile(username, viewer_id)
    return api_response(profile, "User channel fetched successfully")

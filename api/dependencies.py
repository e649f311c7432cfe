from typing import Optional
from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlmodel.ext.asyncio.session import AsyncSession

from core.logging_config import get_logger
from core.database import get_session
from core.exceptions import AuthenticationError
from core.models import User
from services.channel_service import ChannelProfileResolver
from services.user_service import UserService
from services.video_service import VideoListingResolver, VideoService

logger = get_logger(__name__)
bearer_scheme = HTTPBearer(auto_error=False)


def get_user_service(session: AsyncSession = Depends(get_session)) -> UserService:
    return UserService(session)


def get_channel_resolver(
    session: AsyncSession = Depends(get_session),
) -> ChannelProfileResolver:
    return ChannelProfileResolver(session)


def get_video_listing_resolver(
    session: AsyncSession = Depends(get_session),
) -> VideoListingResolver:
    return VideoListingResolver(session)


def get_video_service(session: AsyncSession = Depends(get_session)) -> VideoService:
    return VideoService(session)


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    user_svc: UserService = Depends(get_user_service),
) -> User:
    """Authenticated user from the bearer access token"""
    if credentials is None:
        raise AuthenticationError("Access token is required")
    return await user_svc.authenticate_access_token(credentials.credentials)


async def get_optional_viewer_id(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    user_svc: UserService = Depends(get_user_service),
) -> Optional[str]:
    """
    Viewer id for endpoints that also serve anonymous requests.

    An expired or unusable token is treated as an anonymous viewer rather than
    failing a public read.
    """
    if credentials is None:
        return None
    try:
        user = await user_svc.authenticate_access_token(credentials.credentials)
    except AuthenticationError as e:
        logger.debug(f"Ignoring bearer token on public endpoint: {e.message}")
        return None
    return user.id

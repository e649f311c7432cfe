"""
Core data models for the VidShare API

Defines the User, Video and Subscription tables and the read models returned
by the services. Read models serialise with camelCase keys.
"""

import uuid
from datetime import datetime, timezone
from typing import Generic, List, Optional, TypeVar
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel
from sqlalchemy import UniqueConstraint
from sqlmodel import SQLModel, Field


def new_id() -> str:
    return str(uuid.uuid4())


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def is_valid_id(value) -> bool:
    """True when value is a syntactically valid identity reference (a UUID)."""
    if not isinstance(value, str):
        return False
    try:
        uuid.UUID(value)
    except ValueError:
        return False
    return True


class User(SQLModel, table=True):
    """
    Registered account. A user is also a channel that others subscribe to.
    """

    __tablename__ = "users"

    id: str = Field(default_factory=new_id, primary_key=True, max_length=36)
    username: str = Field(index=True, unique=True, max_length=30)  # lower-cased
    email: str = Field(index=True, unique=True, max_length=254)
    fullname: str = Field(max_length=120)
    password: str = Field(max_length=255)  # bcrypt hash
    avatar: str = Field(max_length=1024)
    cover_image: str = Field(default="", max_length=1024)
    refresh_token: Optional[str] = Field(default=None, max_length=1024)
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)


class Video(SQLModel, table=True):
    __tablename__ = "videos"

    id: str = Field(default_factory=new_id, primary_key=True, max_length=36)
    title: str = Field(index=True, max_length=200)
    description: str = Field(max_length=5000)
    video_file: str = Field(max_length=1024)
    thumbnail: str = Field(max_length=1024)
    duration: float = Field(default=0)  # seconds
    views: int = Field(default=0)
    is_published: bool = Field(default=True, index=True)
    owner_id: str = Field(foreign_key="users.id", index=True, max_length=36)
    created_at: datetime = Field(default_factory=utcnow, index=True)
    updated_at: datetime = Field(default_factory=utcnow)


class Subscription(SQLModel, table=True):
    """
    Directed edge: `subscriber_id` follows the channel `channel_id`.
    """

    __tablename__ = "subscriptions"
    __table_args__ = (
        UniqueConstraint("subscriber_id", "channel_id", name="uq_subscription_edge"),
    )

    id: str = Field(default_factory=new_id, primary_key=True, max_length=36)
    subscriber_id: str = Field(foreign_key="users.id", index=True, max_length=36)
    channel_id: str = Field(foreign_key="users.id", index=True, max_length=36)
    created_at: datetime = Field(default_factory=utcnow)


# Read models


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class PublicUser(CamelModel):
    """User fields that are safe to return to clients."""

    id: str
    username: str
    email: str
    fullname: str
    avatar: str
    cover_image: str
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_user(cls, user: User) -> "PublicUser":
        return cls(
            id=user.id,
            username=user.username,
            email=user.email,
            fullname=user.fullname,
            avatar=user.avatar,
            cover_image=user.cover_image,
            created_at=user.created_at,
            updated_at=user.updated_at,
        )


class ChannelProfile(CamelModel):
    id: str
    fullname: str
    username: str
    email: str
    avatar: str
    cover_image: str
    subscribers_count: int
    channels_subscribed_to_count: int
    is_subscribed: bool
    created_at: datetime
    updated_at: datetime


class OwnerSummary(CamelModel):
    """Owner fields joined onto a video. All empty when the owner is gone."""

    id: Optional[str] = None
    username: Optional[str] = None
    fullname: Optional[str] = None
    avatar: Optional[str] = None


class VideoSummary(CamelModel):
    id: str
    title: str
    description: str
    video_file: str
    thumbnail: str
    duration: float
    views: int
    is_published: bool
    created_at: datetime
    owner: OwnerSummary


class Pagination(CamelModel):
    current_page: int
    page_size: int
    total_pages: int
    total_count: int
    has_next: bool
    has_prev: bool


T = TypeVar("T")


class PagedResult(CamelModel, Generic[T]):
    items: List[T]
    pagination: Pagination


class TokenPair(CamelModel):
    access_token: str
    refresh_token: str
    token_type: str = "bearer"

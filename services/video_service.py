"""
Video Listing and Management.

This module holds the public video listing query and the owner-side video
operations (publish, update, delete, toggle publish).

Listing is composed from small, separately testable steps instead of one
opaque pipeline:

1. `VideoFilters.clauses()` turns the optional filters into a conjunction.
   The published flag is always part of it, so unpublished videos can never
   reach a public listing.
2. `build_count_query` counts the matching videos.
3. `paginate` turns the count, page and limit into an offset.
4. `build_listing_query` selects the page, LEFT OUTER JOINed to the owner's
   public fields and ordered by the requested sort with the video id as a
   tie-breaker. A video whose owner row is missing is still listed, with an
   empty owner summary.

Key Components:
- `VideoFilters`, `VideoSort`, `SortDirection`: typed listing inputs.
- `VideoListingResolver`: runs the listing and returns a `PagedResult`.
- `VideoService`: publish, detail, update, delete and publish toggling.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, List, Optional
from sqlalchemy import or_
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import col, func, select
from sqlmodel.ext.asyncio.session import AsyncSession

from core.exceptions import (
    InvalidArgumentError,
    PermissionDeniedError,
    UpstreamFailureError,
    VideoNotFoundError,
)
from core.models import (
    OwnerSummary,
    PagedResult,
    User,
    Video,
    VideoSummary,
    is_valid_id,
    utcnow,
)
from core.pagination import (
    DEFAULT_PAGE,
    DEFAULT_PAGE_SIZE,
    build_pagination,
    clamp_page_size,
    paginate,
    require_positive_int,
)
from core.validation import InputValidator

logger = logging.getLogger(__name__)


class SortDirection(str, Enum):
    ASC = "asc"
    DESC = "desc"

    @classmethod
    def parse(cls, value: Any) -> "SortDirection":
        if isinstance(value, cls):
            return value
        aliases = {
            "asc": cls.ASC,
            "ascending": cls.ASC,
            "desc": cls.DESC,
            "descending": cls.DESC,
        }
        direction = aliases.get(str(value).strip().lower()) if value is not None else None
        if direction is None:
            raise InvalidArgumentError("sortType", value, "must be 'asc' or 'desc'")
        return direction


# Public sort keys, camelCase as sent by clients plus the column names
SORTABLE_FIELDS = {
    "createdAt": Video.created_at,
    "created_at": Video.created_at,
    "updatedAt": Video.updated_at,
    "updated_at": Video.updated_at,
    "views": Video.views,
    "duration": Video.duration,
    "title": Video.title,
}


@dataclass(frozen=True)
class VideoSort:
    field: str = "createdAt"
    direction: SortDirection = SortDirection.DESC

    @classmethod
    def parse(cls, field: Optional[str] = None, direction: Any = None) -> "VideoSort":
        field = field or cls.field
        if field not in SORTABLE_FIELDS:
            raise InvalidArgumentError(
                "sortBy", field, f"must be one of: {', '.join(sorted(SORTABLE_FIELDS))}"
            )
        if direction is None:
            return cls(field=field)
        return cls(field=field, direction=SortDirection.parse(direction))

    def order_by(self) -> list:
        column = col(SORTABLE_FIELDS[self.field])
        tie_breaker = col(Video.id)
        if self.direction is SortDirection.ASC:
            return [column.asc(), tie_breaker.asc()]
        return [column.desc(), tie_breaker.desc()]


@dataclass(frozen=True)
class VideoFilters:
    """Optional listing filters; combined with AND"""

    query: Optional[str] = None
    owner_id: Optional[str] = None

    def clauses(self) -> list:
        clauses = [col(Video.is_published).is_(True)]

        query = self.query.strip() if isinstance(self.query, str) else None
        if query:
            clauses.append(
                or_(
                    col(Video.title).icontains(query, autoescape=True),
                    col(Video.description).icontains(query, autoescape=True),
                )
            )

        # A malformed owner id is ignored rather than rejected
        if self.owner_id and is_valid_id(self.owner_id):
            clauses.append(col(Video.owner_id) == self.owner_id)

        return clauses


def build_count_query(filters: VideoFilters):
    return select(func.count(col(Video.id))).where(*filters.clauses())


def build_listing_query(filters: VideoFilters, sort: VideoSort, skip: int, limit: int):
    return (
        select(Video, User.username, User.fullname, User.avatar)
        .outerjoin(User, col(Video.owner_id) == col(User.id))
        .where(*filters.clauses())
        .order_by(*sort.order_by())
        .offset(skip)
        .limit(limit)
    )


def to_video_summary(
    video: Video,
    owner_username: Optional[str],
    owner_fullname: Optional[str],
    owner_avatar: Optional[str],
) -> VideoSummary:
    if owner_username is None:
        owner = OwnerSummary()
    else:
        owner = OwnerSummary(
            id=video.owner_id,
            username=owner_username,
            fullname=owner_fullname,
            avatar=owner_avatar,
        )

    return VideoSummary(
        id=video.id,
        title=video.title,
        description=video.description,
        video_file=video.video_file,
        thumbnail=video.thumbnail,
        duration=video.duration,
        views=video.views,
        is_published=video.is_published,
        created_at=video.created_at,
        owner=owner,
    )


class VideoListingResolver:
    """Public, paginated video listing"""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def list_videos(
        self,
        filters: Optional[VideoFilters] = None,
        sort: Optional[VideoSort] = None,
        page: int = DEFAULT_PAGE,
        limit: int = DEFAULT_PAGE_SIZE,
    ) -> PagedResult[VideoSummary]:
        filters = filters or VideoFilters()
        sort = sort or VideoSort()
        page = require_positive_int("page", page)
        limit = clamp_page_size(limit)

        try:
            total_count = (await self.session.exec(build_count_query(filters))).one()
            window = paginate(total_count, page, limit)

            items: List[VideoSummary] = []
            if window.skip < total_count:
                result = await self.session.exec(
                    build_listing_query(filters, sort, window.skip, limit)
                )
                items = [to_video_summary(*row) for row in result.all()]
        except SQLAlchemyError as e:
            raise UpstreamFailureError("list_videos", str(e)) from e

        logger.debug(
            f"Listed {len(items)} of {total_count} videos (page {page}, limit {limit})"
        )
        return PagedResult[VideoSummary](
            items=items, pagination=build_pagination(total_count, page, limit)
        )


class VideoService:
    """Owner-side video operations"""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def _get_video(self, video_id: str) -> Video:
        InputValidator.validate_id("videoId", video_id)
        try:
            video = await self.session.get(Video, video_id)
        except SQLAlchemyError as e:
            raise UpstreamFailureError("get_video", str(e)) from e
        if video is None:
            raise VideoNotFoundError(video_id)
        return video

    async def _get_owned_video(self, video_id: str, user_id: str, action: str) -> Video:
        video = await self._get_video(video_id)
        if video.owner_id != user_id:
            raise PermissionDeniedError(action, video_id)
        return video

    async def _commit(self, operation: str, video: Optional[Video] = None):
        try:
            await self.session.commit()
            if video is not None:
                await self.session.refresh(video)
        except SQLAlchemyError as e:
            await self.session.rollback()
            raise UpstreamFailureError(operation, str(e)) from e

    async def _summarize(self, video: Video) -> VideoSummary:
        try:
            owner = await self.session.get(User, video.owner_id)
        except SQLAlchemyError as e:
            raise UpstreamFailureError("get_video_owner", str(e)) from e
        if owner is None:
            return to_video_summary(video, None, None, None)
        return to_video_summary(video, owner.username, owner.fullname, owner.avatar)

    async def publish_video(
        self,
        owner_id: str,
        title: str,
        description: str,
        video_file: str,
        thumbnail: str,
        duration: float = 0,
    ) -> VideoSummary:
        video = Video(
            title=InputValidator.require_text("title", title, max_length=200),
            description=InputValidator.require_text("description", description, max_length=5000),
            video_file=InputValidator.validate_url("videoFile", video_file),
            thumbnail=InputValidator.validate_url("thumbnail", thumbnail),
            duration=InputValidator.validate_duration(duration),
            owner_id=owner_id,
        )
        self.session.add(video)
        await self._commit("publish_video", video)

        logger.info(f"Video {video.id} published by {owner_id}")
        return await self._summarize(video)

    async def get_video_by_id(
        self, video_id: str, viewer_id: Optional[str] = None
    ) -> VideoSummary:
        """Unpublished videos are only visible to their owner"""
        video = await self._get_video(video_id)
        if not video.is_published and video.owner_id != viewer_id:
            raise VideoNotFoundError(video_id)
        return await self._summarize(video)

    async def update_video(
        self,
        video_id: str,
        user_id: str,
        title: Optional[str] = None,
        description: Optional[str] = None,
        thumbnail: Optional[str] = None,
    ) -> VideoSummary:
        video = await self._get_owned_video(video_id, user_id, "update")

        title = InputValidator.optional_text("title", title, max_length=200)
        description = InputValidator.optional_text("description", description, max_length=5000)
        if title:
            video.title = title
        if description:
            video.description = description
        if thumbnail is not None and thumbnail.strip():
            video.thumbnail = InputValidator.validate_url("thumbnail", thumbnail)

        video.updated_at = utcnow()
        self.session.add(video)
        await self._commit("update_video", video)

        logger.info(f"Video {video_id} updated by {user_id}")
        return await self._summarize(video)

    async def delete_video(self, video_id: str, user_id: str) -> None:
        video = await self._get_owned_video(video_id, user_id, "delete")
        await self.session.delete(video)
        await self._commit("delete_video")
        logger.info(f"Video {video_id} deleted by {user_id}")

    async def toggle_publish_status(self, video_id: str, user_id: str) -> bool:
        video = await self._get_owned_video(video_id, user_id, "publish or unpublish")
        video.is_published = not video.is_published
        video.updated_at = utcnow()
        self.session.add(video)
        await self._commit("toggle_publish_status", video)

        logger.info(
            f"Video {video_id} is now {'published' if video.is_published else 'unpublished'}"
        )
        return video.is_published

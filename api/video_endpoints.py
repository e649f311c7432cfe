"""
Video Endpoints.

Endpoints Provided:
- `GET /`: public listing of published videos with search, owner filter,
  sorting and pagination (`page`, `limit`, `query`, `sortBy`, `sortType`,
  `userId`). `page` and `limit` are taken as raw strings so that malformed
  values get the same 400 error body as non-positive ones. Page sizes above
  `MAX_PAGE_SIZE` are served as pages of that size.
- `POST /`: publish a video from already hosted media URLs.
- `GET /{video_id}`: video detail with owner summary.
- `PATCH /{video_id}`: update title, description or thumbnail (owner only).
- `DELETE /{video_id}`: delete a video (owner only).
- `PATCH /toggle/publish/{video_id}`: flip the published flag (owner only).
"""

from typing import Optional
from fastapi import APIRouter, Depends, Query

from core.logging_config import get_logger, log_function_call
from core.models import CamelModel, User
from core.pagination import DEFAULT_PAGE, DEFAULT_PAGE_SIZE, parse_positive_int
from services.video_service import (
    VideoFilters,
    VideoListingResolver,
    VideoService,
    VideoSort,
)
from .dependencies import (
    get_current_user,
    get_optional_viewer_id,
    get_video_listing_resolver,
    get_video_service,
)
from .responses import api_response

logger = get_logger(__name__)
router = APIRouter(prefix="/api/v1/videos", tags=["Videos"])


# Request Models
class PublishVideoRequest(CamelModel):
    title: Optional[str] = None
    description: Optional[str] = None
    video_file: Optional[str] = None
    thumbnail: Optional[str] = None
    duration: float = 0


class UpdateVideoRequest(CamelModel):
    title: Optional[str] = None
    description: Optional[str] = None
    thumbnail: Optional[str] = None


@router.get("")
@log_function_call(logger)
async def list_videos(
    page: Optional[str] = Query(None),
    limit: Optional[str] = Query(None),
    query: Optional[str] = Query(None),
    sort_by: str = Query("createdAt", alias="sortBy"),
    sort_type: str = Query("desc", alias="sortType"),
    user_id: Optional[str] = Query(None, alias="userId"),
    resolver: VideoListingResolver = Depends(get_video_listing_resolver),
):
    """List published videos"""
    result = await resolver.list_videos(
        filters=VideoFilters(query=query, owner_id=user_id),
        sort=VideoSort.parse(sort_by, sort_type),
        page=parse_positive_int("page", page, DEFAULT_PAGE),
        limit=parse_positive_int("limit", limit, DEFAULT_PAGE_SIZE),
    )
    return api_response(result, "Videos fetched successfully")


@router.post("", status_code=201)
@log_function_call(logger)
async def publish_video(
    request: PublishVideoRequest,
    current_user: User = Depends(get_current_user),
    video_svc: VideoService = Depends(get_video_service),
):
    """Publish a video"""
    video = await video_svc.publish_video(
        owner_id=current_user.id,
        title=request.title,
        description=request.description,
        video_file=request.video_file,
        thumbnail=request.thumbnail,
        duration=request.duration,
    )
    return api_response(video, "Video posted successfully", 201)


@router.get("/{video_id}")
async def get_video(
    video_id: str,
    viewer_id: Optional[str] = Depends(get_optional_viewer_id),
    video_svc: VideoService = Depends(get_video_service),
):
    video = await video_svc.get_video_by_id(video_id, viewer_id)
    return api_response(video, "Video fetched successfully")


@router.patch("/{video_id}")
@log_function_call(logger)
async def update_video(
    video_id: str,
    request: UpdateVideoRequest,
    current_user: User = Depends(get_current_user),
    video_svc: VideoService = Depends(get_video_service),
):
    video = await video_svc.update_video(
        video_id,
        current_user.id,
        title=request.title,
        description=request.description,
        thumbnail=request.thumbnail,
    )
    return api_response(video, "Video updated successfully")


@router.delete("/{video_id}")
@log_function_call(logger)
async def delete_video(
    video_id: str,
    current_user: User = Depends(get_current_user),
    video_svc: VideoService = Depends(get_video_service),
):
    await video_svc.delete_video(video_id, current_user.id)
    return api_response({}, "Video deleted successfully")


@router.patch("/toggle/publish/{video_id}")
@log_function_call(logger)
async def toggle_publish_status(
    video_id: str,
    current_user: User = Depends(get_current_user),
    video_svc: VideoService = Depends(get_video_service),
):
    is_published = await video_svc.toggle_publish_status(video_id, current_user.id)
    return api_response(
        {"isPublished": is_published},
        f"Video is now {'published' if is_published else 'unpublished'}",
    )

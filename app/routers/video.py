"""
Video API Router

Registering uploaded videos and likes.
"""

from fastapi import APIRouter, Depends, HTTPException, status

from ..config import get_settings
from ..core.logging import get_logger
from ..core.security import get_current_user
from ..models.upload import UploadCategory
from ..models.video import CreateVideoRequest, FeedbackKind, LikeRequest, VideoItem
from ..services.catalog_service import get_catalog_service
from ..services.recommender import get_recommender
from ..services.search_service import get_search_service

logger = get_logger(__name__)
settings = get_settings()

router = APIRouter(prefix="/video", tags=["video"])


@router.post("")
async def create_video(
    body: CreateVideoRequest,
    current_user: dict = Depends(get_current_user)
):
    """
    Register a video whose files are already in the object store.

    The object key's suffix doubles as the video id. The catalog row is
    written first (feed and search hydrate from it), then the video is
    made searchable and recommendable.
    """
    prefix = f"{UploadCategory.VIDEO.value}/"
    video_id = body.video_file_key[len(prefix):]
    if not body.video_file_key.startswith(prefix) or not video_id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="videoFileKey must look like video/<id>",
        )

    base_url = settings.oss_base_url
    video = VideoItem(
        id=video_id,
        title=body.title,
        url=f"{base_url}/{body.video_file_key}",
        cover_url=f"{base_url}/{body.cover_file_key}",
        description=body.description,
        author_id=current_user["uid"],
    )

    await get_catalog_service().insert_video(video)
    await get_search_service().insert_video(
        video_id,
        title=body.title,
        description=body.description,
        tags=body.tags
    )
    await get_recommender().insert_item(
        video_id,
        labels=body.tags,
        categories=[body.category]
    )

    logger.info("video_created", uid=current_user["uid"], video_id=video_id)

    return {
        "id": video.id,
        "url": video.url,
        "coverUrl": video.cover_url,
    }


@router.post("/{video_id}/like")
async def like_video(
    video_id: str,
    body: LikeRequest,
    current_user: dict = Depends(get_current_user)
):
    """Like (``like: true``) or unlike a video."""
    recommender = get_recommender()
    uid = current_user["uid"]

    if body.like:
        await recommender.insert_feedback(uid, video_id, FeedbackKind.LIKED)
    else:
        await recommender.delete_feedback(uid, video_id, FeedbackKind.LIKED)

    return {"success": True, "videoId": video_id, "liked": body.like}

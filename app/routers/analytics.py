"""
Analytics API Router

View feedback from the feed player. Writes go to the recommender in the
background so the player's fire-and-forget calls return immediately.
"""

from datetime import datetime
from typing import List

from fastapi import APIRouter, BackgroundTasks, Depends
from pydantic import BaseModel, Field

from ..core.exceptions import ExternalServiceError
from ..core.logging import get_logger
from ..core.security import get_current_user
from ..models.response import FeedbackBatch, FeedbackEvent
from ..models.video import FeedbackKind
from ..services.recommender import get_recommender

logger = get_logger(__name__)

router = APIRouter(prefix="/analytics", tags=["analytics"])


class ViewRequest(BaseModel):
    video_id: str = Field(..., min_length=1, alias="videoId")


async def process_events_async(user_id: str, events: List[FeedbackEvent]):
    """
    Forward events to Gorse.

    One failed event doesn't stop the rest of the batch.
    """
    recommender = get_recommender()
    failed = 0

    for event in events:
        try:
            await recommender.insert_feedback(
                user_id,
                event.video_id,
                event.kind,
                timestamp=event.timestamp
            )
        except ExternalServiceError as e:
            failed += 1
            logger.warning(
                "feedback_forward_failed",
                uid=user_id,
                video_id=event.video_id,
                kind=event.kind.value,
                error=e.message
            )

    logger.info(
        "events_processed",
        uid=user_id,
        count=len(events),
        failed=failed
    )


def _queue_view(
    kind: FeedbackKind,
    body: ViewRequest,
    background_tasks: BackgroundTasks,
    current_user: dict
) -> dict:
    event = FeedbackEvent(kind=kind, videoId=body.video_id)
    background_tasks.add_task(process_events_async, current_user["uid"], [event])
    return {"success": True, "videoId": body.video_id, "kind": kind.value}


@router.post("/view/started")
async def started_view(
    body: ViewRequest,
    background_tasks: BackgroundTasks,
    current_user: dict = Depends(get_current_user)
):
    """Viewer watched at least the first second."""
    return _queue_view(FeedbackKind.STARTED, body, background_tasks, current_user)


@router.post("/view/finished")
async def finished_view(
    body: ViewRequest,
    background_tasks: BackgroundTasks,
    current_user: dict = Depends(get_current_user)
):
    """Viewer watched most of the video."""
    return _queue_view(FeedbackKind.FINISHED, body, background_tasks, current_user)


@router.post("/event")
async def track_events(
    batch: FeedbackBatch,
    background_tasks: BackgroundTasks,
    current_user: dict = Depends(get_current_user)
):
    """
    Batched feedback, for clients that buffer events while offline.
    """
    user_id = current_user["uid"]

    logger.info(
        "analytics_batch_received",
        uid=user_id,
        event_count=len(batch.events),
        session_id=batch.session_id
    )

    background_tasks.add_task(process_events_async, user_id, batch.events)

    return {
        "success": True,
        "message": f"Received {len(batch.events)} events",
        "timestamp": datetime.utcnow().isoformat()
    }

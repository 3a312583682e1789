"""
Feed Generator

Builds one page of the recommendation feed:

1. Decode the cursor (session id, offset, and which ranked list)
2. Ask Gorse for the next ``limit`` ids: personal recommendations, or the
   latest uploads for anonymous visitors and users Gorse knows nothing about
3. Drop ids already sent in this session and hydrate the survivors; if
   nothing survives, move on to the next slice of the list
4. Encode the cursor for the following page
"""

from typing import List, Optional

from ..core.logging import get_logger
from ..models.video import FeedPage, VideoItem
from .deduplication import DeduplicationService, SOURCE_LATEST, SOURCE_RECOMMEND
from .hydrator import Hydrator
from .recommender import RecommenderClient

logger = get_logger(__name__)


class FeedGenerator:
    """
    Cursor-paginated recommendation pages.

    Gorse outages propagate as ExternalServiceError: a failed page must not
    look like the end of the feed.
    """

    # Slices of the ranked list scanned for one page before giving up
    MAX_SCAN_ROUNDS = 4

    def __init__(
        self,
        recommender: RecommenderClient,
        dedup_service: DeduplicationService,
        hydrator: Hydrator
    ):
        self.recommender = recommender
        self.dedup = dedup_service
        self.hydrator = hydrator

    async def _candidates(
        self,
        source: str,
        user_id: Optional[str],
        limit: int,
        offset: int
    ) -> List[str]:
        if source == SOURCE_LATEST:
            return await self.recommender.latest(n=limit, offset=offset)
        return await self.recommender.recommend(user_id, n=limit, offset=offset)

    async def generate(
        self,
        user_id: Optional[str],
        limit: int,
        cursor: Optional[str] = None
    ) -> FeedPage:
        """
        Produce the next feed page.

        Args:
            user_id: Signed-in user, or None for anonymous visitors
            limit: Page size requested by the client
            cursor: Cursor from the previous page, None for the first page

        Returns:
            FeedPage; ``next_cursor`` is None once the ranked list runs dry.

        Raises:
            ExternalServiceError: Gorse is down; the client keeps its cursor
        """
        if cursor:
            session_id, offset, source = self.dedup.decode_cursor(cursor)
        else:
            session_id, offset, source = self.dedup.generate_session_id(), 0, SOURCE_RECOMMEND
        if not user_id:
            source = SOURCE_LATEST

        start_offset = offset
        seen = await self.dedup.get_session_seen_ids(session_id)
        videos: List[VideoItem] = []
        exhausted = False
        scanned = 0

        for _ in range(self.MAX_SCAN_ROUNDS):
            candidate_ids = await self._candidates(source, user_id, limit, offset)

            if not candidate_ids and offset == 0 and source == SOURCE_RECOMMEND:
                # Cold start: no personal ranking yet
                logger.info("feed_cold_start_fallback", uid=user_id)
                source = SOURCE_LATEST
                candidate_ids = await self._candidates(source, user_id, limit, offset)

            offset += len(candidate_ids)
            scanned += len(candidate_ids)
            fresh_ids = self.dedup.filter_seen(candidate_ids, seen)
            seen.update(fresh_ids)
            videos.extend(await self.hydrator.hydrate(fresh_ids))

            # A short slice means the ranked list is exhausted
            if len(candidate_ids) < limit:
                exhausted = True
                break
            if videos:
                break

        await self.dedup.mark_ids_sent(session_id, [video.id for video in videos])

        next_cursor = None
        if not exhausted:
            next_cursor = self.dedup.encode_cursor(session_id, offset, source)

        logger.info(
            "feed_page_generated",
            uid=user_id or "anonymous",
            source=source,
            offset=start_offset,
            scanned=scanned,
            returned=len(videos),
            has_more=next_cursor is not None
        )

        return FeedPage(videos=videos, next_cursor=next_cursor)

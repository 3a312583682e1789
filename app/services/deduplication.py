"""
Deduplication Service

Keeps one pagination session of the recommendation feed free of repeats.
Gorse may return an item again on a later page before the feedback that
would demote it has been processed, so ids already sent are tracked per
session in Redis.
"""

import base64
import binascii
import json
import uuid
from typing import List, Set

from ..core.logging import get_logger

logger = get_logger(__name__)

# Which ranked list a cursor's offset points into
SOURCE_RECOMMEND = "recommend"
SOURCE_LATEST = "latest"
CURSOR_SOURCES = (SOURCE_RECOMMEND, SOURCE_LATEST)


class DeduplicationService:
    """
    Session-level dedup for cursor pagination.

    The cursor carries the session id, the offset into a ranked list and
    which list that is (personal recommendations or latest uploads).
    """

    def __init__(self, redis_client, session_ttl: int = 600):
        self.redis = redis_client
        self.session_ttl = session_ttl

        if not self.redis:
            logger.error("redis_required_for_deduplication")

    def generate_session_id(self) -> str:
        """Generate a new session ID for pagination tracking."""
        return str(uuid.uuid4())

    def encode_cursor(self, session_id: str, offset: int, source: str = SOURCE_RECOMMEND) -> str:
        """Encode pagination cursor."""
        payload = json.dumps({"session_id": session_id, "offset": offset, "source": source})
        return base64.urlsafe_b64encode(payload.encode()).decode()

    def decode_cursor(self, cursor: str) -> tuple[str, int, str]:
        """
        Decode pagination cursor.

        Returns:
            Tuple of (session_id, offset, source). A cursor that doesn't
            decode starts a fresh session at offset 0 of the personal list.
        """
        try:
            payload = base64.urlsafe_b64decode(cursor.encode()).decode()
            data = json.loads(payload)
            session_id, offset = str(data["session_id"]), int(data["offset"])
            source = data.get("source", SOURCE_RECOMMEND)
            if source not in CURSOR_SOURCES:
                raise ValueError(source)
            return session_id, offset, source
        except (binascii.Error, UnicodeDecodeError, ValueError, KeyError, TypeError, AttributeError):
            logger.warning("invalid_cursor", cursor=cursor[:64])
            return self.generate_session_id(), 0, SOURCE_RECOMMEND

    async def get_session_seen_ids(self, session_id: str) -> Set[str]:
        """IDs already sent in this session."""
        if not self.redis:
            return set()

        try:
            ids = await self.redis.smembers(f"session:{session_id}")
            return set(ids) if ids else set()
        except Exception as e:
            logger.warning("redis_get_failed", error=str(e))
            return set()

    async def mark_ids_sent(self, session_id: str, ids: List[str]):
        """Mark IDs as sent in this session (TTL refreshed on each page)."""
        if not ids or not self.redis:
            return

        try:
            await self.redis.sadd(f"session:{session_id}", *ids)
            await self.redis.expire(f"session:{session_id}", self.session_ttl)
        except Exception as e:
            logger.warning("redis_set_failed", error=str(e))

    def filter_seen(self, candidate_ids: List[str], seen_ids: Set[str]) -> List[str]:
        """
        Drop ids already sent, and repeats within the candidates themselves,
        keeping first-seen order.
        """
        result = []
        emitted = set(seen_ids)
        for item_id in candidate_ids:
            if item_id in emitted:
                continue
            emitted.add(item_id)
            result.append(item_id)
        return result

"""
Upload Signer

Issues signed POST-policy tickets so clients upload straight to the
object store (Aliyun OSS) without the file passing through the API.
"""

import base64
import hashlib
import hmac
import json
import time
from datetime import datetime, timedelta, timezone
from typing import Callable

from fastapi import Request

from ..config import Settings
from ..core.logging import get_logger
from ..models.upload import UploadCategory, UploadTicket

logger = get_logger(__name__)


class UploadSigner:
    """
    Signs upload policies with the store's access key.

    Every ticket:
    - expires after ``expiry_seconds``
    - limits the body to ``max_bytes``
    - only permits object keys under the category prefix
    """

    def __init__(
        self,
        access_key_id: str,
        access_key_secret: str,
        expiry_seconds: int = 3600,
        max_bytes: int = 1048576000,
        clock: Callable[[], float] = time.time,
    ):
        self.access_key_id = access_key_id
        self._secret = access_key_secret.encode()
        self.expiry_seconds = expiry_seconds
        self.max_bytes = max_bytes
        self._clock = clock

    @classmethod
    def from_settings(cls, settings: Settings) -> "UploadSigner":
        return cls(
            access_key_id=settings.oss_access_key_id,
            access_key_secret=settings.oss_access_key_secret,
            expiry_seconds=settings.upload_expiry_seconds,
            max_bytes=settings.upload_max_bytes,
        )

    def build_policy(self, category: UploadCategory, now: float) -> dict:
        """Policy document for one upload."""
        expires = datetime.fromtimestamp(now, tz=timezone.utc) + timedelta(seconds=self.expiry_seconds)
        return {
            "expiration": expires.strftime("%Y-%m-%dT%H:%M:%S.") + f"{expires.microsecond // 1000:03d}Z",
            "conditions": [
                ["content-length-range", 0, self.max_bytes],
                ["starts-with", "$key", category.value],
            ],
        }

    def sign(self, encoded_policy: str) -> str:
        """base64(HMAC-SHA1(secret, base64 policy))."""
        digest = hmac.new(self._secret, encoded_policy.encode(), hashlib.sha1).digest()
        return base64.b64encode(digest).decode()

    def create_ticket(self, category: UploadCategory) -> UploadTicket:
        """
        Issue a ticket for one object.

        Args:
            category: avatar, video or cover; becomes the key prefix

        Returns:
            UploadTicket with key ``{category}/{epoch millis}``
        """
        now = self._clock()
        key = f"{category.value}/{int(now * 1000)}"
        policy = json.dumps(self.build_policy(category, now), separators=(",", ":"))
        encoded_policy = base64.b64encode(policy.encode()).decode()

        logger.info("upload_ticket_issued", category=category.value, key=key)

        return UploadTicket(
            OSSAccessKeyId=self.access_key_id,
            policy=encoded_policy,
            Signature=self.sign(encoded_policy),
            key=key,
        )


def get_upload_signer(request: Request) -> UploadSigner:
    """FastAPI dependency; the signer is built once in the app lifespan."""
    return request.app.state.upload_signer

"""
Upload Models

Signed POST-policy credentials for direct browser/client uploads to the
object store.
"""

from enum import Enum
from pydantic import BaseModel, Field, ConfigDict


class UploadCategory(str, Enum):
    """Object key prefixes accepted by the upload policy."""
    AVATAR = "avatar"
    VIDEO = "video"
    COVER = "cover"


class UploadTicket(BaseModel):
    """
    Form fields a client posts alongside the file.

    Serialized with the field names the storage endpoint expects.
    """
    access_key_id: str = Field(..., alias="OSSAccessKeyId")
    policy: str
    signature: str = Field(..., alias="Signature")
    object_key: str = Field(..., alias="key")

    model_config = ConfigDict(populate_by_name=True)

    def form_fields(self) -> dict:
        """Multipart form fields, in the order the store documents them."""
        return {
            "key": self.object_key,
            "OSSAccessKeyId": self.access_key_id,
            "policy": self.policy,
            "Signature": self.signature,
        }

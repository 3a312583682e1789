"""
Upload API Router

Issues signed tickets for direct uploads to the object store.
"""

from fastapi import APIRouter, Depends, Request
from slowapi import Limiter
from slowapi.util import get_remote_address

from ..config import get_settings
from ..core.logging import get_logger
from ..core.security import get_current_user
from ..models.upload import UploadCategory, UploadTicket
from ..services.upload_signer import UploadSigner, get_upload_signer

logger = get_logger(__name__)
settings = get_settings()

limiter = Limiter(key_func=get_remote_address)

router = APIRouter(prefix="/upload", tags=["upload"])


@router.post("/{category}", response_model=UploadTicket)
@limiter.limit(f"{settings.rate_limit_per_minute}/minute")
async def request_upload_ticket(
    request: Request,
    category: UploadCategory,
    signer: UploadSigner = Depends(get_upload_signer),
    current_user: dict = Depends(get_current_user)
):
    """
    Signed upload fields for one avatar, video or cover file.

    The ticket is valid for an hour, caps the file at 1GB and only allows
    keys under ``{category}/``.
    """
    ticket = signer.create_ticket(category)
    logger.info(
        "upload_ticket_request",
        uid=current_user["uid"],
        category=category.value,
        key=ticket.object_key
    )
    return ticket

from datetime import datetime
from uuid import UUID

from app.schemas.common import CamelModel


class KolVideoOut(CamelModel):
    video_id: str
    title: str | None = None
    description: str | None = None
    video_url: str
    product_id: str
    affiliate_profile_id: str
    created_at: datetime
    is_active: bool


class KolVideoUpdate(CamelModel):
    """Full replacement of the editable fields (no partial semantics)."""

    title: str | None = None
    description: str | None = None
    product_id: UUID | None = None
    is_active: bool = True


class KolVideoUploadOut(CamelModel):
    url: str
    public_id: str
    video_info: KolVideoOut

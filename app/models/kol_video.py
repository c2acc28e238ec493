from datetime import datetime, timezone
from uuid import UUID, uuid4

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, String, Text
from sqlalchemy.orm import relationship

from app.db.base import Base


NIL_PRODUCT_ID = str(UUID(int=0))


class KolVideo(Base):
    __tablename__ = "kol_videos"

    id = Column(String, primary_key=True, default=lambda: str(uuid4()))
    title = Column(String, nullable=True)
    description = Column(Text, nullable=True)
    video_url = Column(String, nullable=False)
    public_id = Column(String, nullable=True)  # Cloudinary public_id, needed to purge the asset later
    product_id = Column(String, nullable=False, default=NIL_PRODUCT_ID)
    # ownership is set once at upload and never reassigned
    affiliate_profile_id = Column(
        String,
        ForeignKey("affiliate_profiles.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    created_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
    is_active = Column(Boolean, nullable=False, default=True)

    affiliate_profile = relationship("AffiliateProfile", back_populates="videos")

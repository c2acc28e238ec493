"""
KOL videos: upload to Cloudinary, affiliate-scoped CRUD, unscoped admin listings.

A video owned by another affiliate is reported exactly like a missing one,
so callers cannot probe for other affiliates' video ids.
"""
import enum
import logging
import os
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import BinaryIO
from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.models.affiliate_profile import AffiliateProfile
from app.models.kol_video import NIL_PRODUCT_ID, KolVideo
from app.schemas.kol_videos import KolVideoUpdate
from app.services.affiliates.service import AffiliateProfileService
from app.services.outcome import ErrorKind, Outcome
from app.storage.base import MediaStorage
from app.utils.metrics import kol_video_uploads_total

logger = logging.getLogger(__name__)

PROFILE_NOT_FOUND = "Affiliate profile not found"
VIDEO_NOT_FOUND = "Video not found"


@dataclass(frozen=True)
class VideoUploadPolicy:
    allowed_extensions: frozenset[str]
    max_bytes: int
    folder: str = "kol-videos"

    @classmethod
    def from_settings(cls, settings) -> "VideoUploadPolicy":
        return cls(
            allowed_extensions=frozenset(settings.allowed_video_extensions_set),
            max_bytes=settings.kol_video_max_upload_bytes,
            folder=settings.kol_video_folder,
        )

    @property
    def max_mb(self) -> int:
        return self.max_bytes // (1024 * 1024)

    def validate(self, filename: str | None, size: int) -> str | None:
        """Return the first violated rule's message, or None if the file is acceptable."""
        if not filename or size <= 0:
            return "No video file provided."
        extension = os.path.splitext(filename)[1].lower()
        if extension not in self.allowed_extensions:
            formats = ", ".join(sorted(ext.lstrip(".") for ext in self.allowed_extensions))
            return f"Invalid video format. Allowed formats: {formats}."
        if size > self.max_bytes:
            return f"File too large. Max size allowed is {self.max_mb}MB"
        return None


@dataclass
class VideoUpload:
    filename: str | None
    size: int
    stream: BinaryIO | None


@dataclass
class VideoMetadata:
    title: str | None = None
    description: str | None = None
    product_id: UUID | None = None


@dataclass
class UploadedVideo:
    url: str
    public_id: str
    video: KolVideo


class Ownership(str, enum.Enum):
    OK = "ok"
    PROFILE_MISSING = "profile_missing"
    NOT_FOUND_OR_FORBIDDEN = "not_found_or_forbidden"


@dataclass
class OwnedVideo:
    status: Ownership
    profile: AffiliateProfile | None = None
    video: KolVideo | None = None

    def as_outcome(self) -> Outcome[KolVideo]:
        if self.status == Ownership.PROFILE_MISSING:
            return Outcome.fail(ErrorKind.VALIDATION, PROFILE_NOT_FOUND)
        if self.status == Ownership.NOT_FOUND_OR_FORBIDDEN:
            return Outcome.fail(ErrorKind.NOT_FOUND, VIDEO_NOT_FOUND)
        return Outcome.success(self.video)


def _product_id(value: UUID | None) -> str:
    return str(value) if value is not None else NIL_PRODUCT_ID


class KolVideoService:
    def __init__(
        self,
        db: Session,
        storage: MediaStorage | None = None,
        policy: VideoUploadPolicy | None = None,
    ):
        self.db = db
        self.storage = storage
        self.policy = policy
        self.profiles = AffiliateProfileService(db)

    # ------------------------------------------------------------------
    # Affiliate-scoped
    # ------------------------------------------------------------------

    def resolve_owned_video(self, user_id: str, video_id: str) -> OwnedVideo:
        """Caller's profile first, then the video; foreign and missing videos look the same."""
        profile = self.profiles.get_by_user_id(user_id)
        if profile is None:
            return OwnedVideo(status=Ownership.PROFILE_MISSING)
        video = self.get(video_id)
        if video is None or video.affiliate_profile_id != profile.id:
            return OwnedVideo(status=Ownership.NOT_FOUND_OR_FORBIDDEN, profile=profile)
        return OwnedVideo(status=Ownership.OK, profile=profile, video=video)

    def list_my_videos(self, user_id: str) -> Outcome[list[KolVideo]]:
        profile = self.profiles.get_by_user_id(user_id)
        if profile is None:
            return Outcome.fail(ErrorKind.VALIDATION, PROFILE_NOT_FOUND)
        return Outcome.success(self._list_by_profile_id(profile.id))

    def get_my_video(self, user_id: str, video_id: str) -> Outcome[KolVideo]:
        return self.resolve_owned_video(user_id, video_id).as_outcome()

    def update_my_video(self, user_id: str, video_id: str, data: KolVideoUpdate) -> Outcome[KolVideo]:
        outcome = self.resolve_owned_video(user_id, video_id).as_outcome()
        if not outcome.ok:
            return outcome
        video = outcome.value
        video.title = data.title
        video.description = data.description
        video.product_id = _product_id(data.product_id)
        video.is_active = data.is_active
        try:
            self.db.add(video)
            self.db.commit()
            self.db.refresh(video)
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.exception("kol_video_update_failed", extra={"video_id": video_id})
            return Outcome.fail(ErrorKind.UPSTREAM, f"An error occurred while updating the video: {e}")
        logger.info("kol_video_updated", extra={"video_id": video_id, "user_id": user_id})
        return Outcome.success(video, "Video updated successfully")

    def delete_my_video(self, user_id: str, video_id: str) -> Outcome[KolVideo]:
        outcome = self.resolve_owned_video(user_id, video_id).as_outcome()
        if not outcome.ok:
            return outcome
        try:
            self.db.delete(outcome.value)
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.exception("kol_video_delete_failed", extra={"video_id": video_id})
            return Outcome.fail(ErrorKind.UPSTREAM, f"An error occurred while deleting the video: {e}")
        logger.info("kol_video_deleted", extra={"video_id": video_id, "user_id": user_id})
        return Outcome.success(outcome.value, "Video deleted successfully")

    # ------------------------------------------------------------------
    # Upload
    # ------------------------------------------------------------------

    def upload_video(self, user_id: str, upload: VideoUpload, metadata: VideoMetadata) -> Outcome[UploadedVideo]:
        """
        Validate (presence, extension, size, profile), push the stream to the media store,
        then persist the video under the caller's profile.
        """
        if self.storage is None or self.policy is None:
            raise RuntimeError("KolVideoService.upload_video requires storage and policy")

        error = self.policy.validate(upload.filename, upload.size)
        if error is not None:
            kol_video_uploads_total.labels(result="rejected").inc()
            return Outcome.fail(ErrorKind.VALIDATION, error)

        profile = self.profiles.get_by_user_id(user_id)
        if profile is None:
            kol_video_uploads_total.labels(result="rejected").inc()
            return Outcome.fail(ErrorKind.VALIDATION, PROFILE_NOT_FOUND)

        result = self.storage.upload_video(upload.filename, upload.stream, self.policy.folder)
        if not result.ok:
            kol_video_uploads_total.labels(result="upstream_error").inc()
            logger.warning(
                "kol_video_upload_failed",
                extra={"user_id": user_id, "status_code": result.status_code, "error": result.error_message},
            )
            return Outcome.fail(ErrorKind.UPSTREAM, f"Upload error: {result.error_message}")

        video = KolVideo(
            title=metadata.title,
            description=metadata.description,
            video_url=result.secure_url,
            public_id=result.public_id,
            product_id=_product_id(metadata.product_id),
            affiliate_profile_id=profile.id,
            created_at=datetime.now(timezone.utc),
            is_active=True,
        )
        try:
            self.db.add(video)
            self.db.commit()
            self.db.refresh(video)
        except SQLAlchemyError as e:
            self.db.rollback()
            kol_video_uploads_total.labels(result="upstream_error").inc()
            logger.exception("kol_video_persist_failed", extra={"public_id": result.public_id})
            return Outcome.fail(ErrorKind.UPSTREAM, f"An error occurred while saving the video: {e}")

        kol_video_uploads_total.labels(result="success").inc()
        logger.info(
            "kol_video_uploaded",
            extra={
                "video_id": video.id,
                "affiliate_profile_id": profile.id,
                "public_id": result.public_id,
                "size_bytes": upload.size,
            },
        )
        return Outcome.success(UploadedVideo(url=result.secure_url, public_id=result.public_id or "", video=video))

    # ------------------------------------------------------------------
    # Unscoped (admin / internal)
    # ------------------------------------------------------------------

    def get(self, video_id: str) -> KolVideo | None:
        return self.db.query(KolVideo).filter(KolVideo.id == video_id).one_or_none()

    def list_all(self) -> list[KolVideo]:
        return self.db.query(KolVideo).order_by(KolVideo.created_at.asc()).all()

    def _list_by_profile_id(self, profile_id: str) -> list[KolVideo]:
        return (
            self.db.query(KolVideo)
            .filter(KolVideo.affiliate_profile_id == profile_id)
            .order_by(KolVideo.created_at.asc())
            .all()
        )

    def list_by_affiliate(self, profile_id: str) -> Outcome[list[KolVideo]]:
        if self.profiles.get(profile_id) is None:
            return Outcome.fail(ErrorKind.NOT_FOUND, PROFILE_NOT_FOUND)
        return Outcome.success(self._list_by_profile_id(profile_id))

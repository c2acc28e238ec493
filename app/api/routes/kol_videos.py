"""
KOL video API. Affiliate routes are scoped to the caller's affiliate profile;
getAllVideos* routes are unscoped reads for internal callers.
Fixed paths are declared before /{video_id}.
"""
from functools import lru_cache
from uuid import UUID

from fastapi import APIRouter, Depends, File, Form, UploadFile
from sqlalchemy.orm import Session

from app.api.errors import envelope_error, raise_for_outcome
from app.core.config import settings
from app.db.session import get_db
from app.models.kol_video import KolVideo
from app.models.user import ROLE_AFFILIATE
from app.schemas.common import ApiResponse
from app.schemas.kol_videos import KolVideoOut, KolVideoUpdate, KolVideoUploadOut
from app.services.auth.jwt import CurrentUser, require_roles
from app.services.kol_videos.service import (
    VIDEO_NOT_FOUND,
    KolVideoService,
    VideoMetadata,
    VideoUpload,
    VideoUploadPolicy,
)
from app.services.outcome import ErrorKind, Outcome
from app.storage.cloudinary import CloudinaryConfig, CloudinaryStorage


router = APIRouter(prefix="/api/kolvideocontroller", tags=["kol-videos"])

require_affiliate = require_roles(ROLE_AFFILIATE)


@lru_cache
def get_media_storage() -> CloudinaryStorage:
    return CloudinaryStorage(CloudinaryConfig.from_settings(settings))


def get_kol_video_service(db: Session = Depends(get_db)) -> KolVideoService:
    return KolVideoService(
        db,
        storage=get_media_storage(),
        policy=VideoUploadPolicy.from_settings(settings),
    )


def video_to_out(video: KolVideo) -> KolVideoOut:
    return KolVideoOut(
        video_id=video.id,
        title=video.title,
        description=video.description,
        video_url=video.video_url,
        product_id=video.product_id,
        affiliate_profile_id=video.affiliate_profile_id,
        created_at=video.created_at,
        is_active=video.is_active,
    )


def _upload_size(file: UploadFile) -> int:
    if file.size is not None:
        return file.size
    file.file.seek(0, 2)
    size = file.file.tell()
    file.file.seek(0)
    return size


# ---------- Affiliate-scoped ----------
@router.get("/myVideos")
def my_videos(
    current_user: CurrentUser = Depends(require_affiliate),
    service: KolVideoService = Depends(get_kol_video_service),
):
    outcome = service.list_my_videos(current_user.id)
    raise_for_outcome(outcome)
    if not outcome.value:
        return ApiResponse[list[KolVideoOut]](success=True, message="No videos found", data=[])
    return [video_to_out(v) for v in outcome.value]


@router.post("/upload", response_model=KolVideoUploadOut)
def upload_video(
    video_file: UploadFile | None = File(None, alias="videoFile"),
    title: str | None = Form(None),
    description: str | None = Form(None),
    product_id: UUID | None = Form(None, alias="productId"),
    current_user: CurrentUser = Depends(require_affiliate),
    service: KolVideoService = Depends(get_kol_video_service),
) -> KolVideoUploadOut:
    if video_file is None:
        upload = VideoUpload(filename=None, size=0, stream=None)
    else:
        upload = VideoUpload(filename=video_file.filename, size=_upload_size(video_file), stream=video_file.file)
    outcome = service.upload_video(
        current_user.id,
        upload,
        VideoMetadata(title=title, description=description, product_id=product_id),
    )
    raise_for_outcome(outcome)
    uploaded = outcome.value
    return KolVideoUploadOut(
        url=uploaded.url,
        public_id=uploaded.public_id,
        video_info=video_to_out(uploaded.video),
    )


# ---------- Unscoped (internal) ----------
@router.get("/getAllVideos", response_model=ApiResponse[list[KolVideoOut]])
def get_all_videos(service: KolVideoService = Depends(get_kol_video_service)):
    videos = service.list_all()
    return ApiResponse[list[KolVideoOut]](
        success=True,
        message="Videos retrieved successfully" if videos else "No videos found",
        data=[video_to_out(v) for v in videos],
    )


@router.get("/getAllVideosById/{video_id}", response_model=ApiResponse[KolVideoOut])
def get_all_videos_by_id(video_id: str, service: KolVideoService = Depends(get_kol_video_service)):
    video = service.get(video_id)
    if video is None:
        return envelope_error(Outcome.fail(ErrorKind.NOT_FOUND, VIDEO_NOT_FOUND))
    return ApiResponse[KolVideoOut](success=True, message="Video retrieved successfully", data=video_to_out(video))


@router.get("/getAllVideosByAffiliateId/{affiliate_id}", response_model=ApiResponse[list[KolVideoOut]])
def get_all_videos_by_affiliate_id(affiliate_id: str, service: KolVideoService = Depends(get_kol_video_service)):
    outcome = service.list_by_affiliate(affiliate_id)
    if not outcome.ok:
        return envelope_error(outcome)
    return ApiResponse[list[KolVideoOut]](
        success=True,
        message="Videos retrieved successfully" if outcome.value else "No videos found for this affiliate",
        data=[video_to_out(v) for v in outcome.value],
    )


# ---------- Affiliate-scoped by id ----------
@router.get("/{video_id}", response_model=ApiResponse[KolVideoOut])
def get_video(
    video_id: str,
    current_user: CurrentUser = Depends(require_affiliate),
    service: KolVideoService = Depends(get_kol_video_service),
):
    outcome = service.get_my_video(current_user.id, video_id)
    if not outcome.ok:
        return envelope_error(outcome)
    return ApiResponse[KolVideoOut](success=True, message="Video retrieved successfully", data=video_to_out(outcome.value))


@router.put("/{video_id}", response_model=ApiResponse[KolVideoOut])
def update_video(
    video_id: str,
    payload: KolVideoUpdate,
    current_user: CurrentUser = Depends(require_affiliate),
    service: KolVideoService = Depends(get_kol_video_service),
):
    outcome = service.update_my_video(current_user.id, video_id, payload)
    if not outcome.ok:
        return envelope_error(outcome)
    return ApiResponse[KolVideoOut](success=True, message=outcome.message, data=video_to_out(outcome.value))


@router.delete("/{video_id}", response_model=ApiResponse[KolVideoOut])
def delete_video(
    video_id: str,
    current_user: CurrentUser = Depends(require_affiliate),
    service: KolVideoService = Depends(get_kol_video_service),
):
    outcome = service.delete_my_video(current_user.id, video_id)
    if not outcome.ok:
        return envelope_error(outcome)
    return ApiResponse[KolVideoOut](success=True, message=outcome.message, data=video_to_out(outcome.value))

"""Tests for KolVideoService: ownership scoping, upload pipeline, unscoped listings."""
import io
from uuid import uuid4

import pytest

from app.models.affiliate_profile import AffiliateProfile
from app.models.kol_video import NIL_PRODUCT_ID, KolVideo
from app.models.user import ROLE_AFFILIATE, User
from app.schemas.kol_videos import KolVideoUpdate
from app.services.kol_videos.service import (
    PROFILE_NOT_FOUND,
    VIDEO_NOT_FOUND,
    KolVideoService,
    Ownership,
    VideoMetadata,
    VideoUpload,
    VideoUploadPolicy,
)
from app.services.outcome import ErrorKind
from app.storage.base import MediaStorage, UploadResult


class FakeStorage(MediaStorage):
    def __init__(self, result: UploadResult | None = None):
        self.result = result or UploadResult(
            status_code=200,
            secure_url="https://res.cloudinary.com/demo/video/upload/kol-videos/abc.mp4",
            public_id="kol-videos/abc",
        )
        self.calls = []

    def upload_video(self, filename, stream, folder):
        self.calls.append((filename, folder))
        return self.result


POLICY = VideoUploadPolicy(allowed_extensions=frozenset({".mp4", ".mov"}), max_bytes=10 * 1024 * 1024)


def _affiliate(db, email=None):
    user = User(email=email or f"{uuid4()}@kol.test", role=ROLE_AFFILIATE)
    db.add(user)
    db.flush()
    profile = AffiliateProfile(user_id=user.id, display_name="Linh")
    db.add(profile)
    db.commit()
    return user, profile


def _video(db, profile, title="Serum review"):
    video = KolVideo(title=title, video_url="https://cdn/x.mp4", affiliate_profile_id=profile.id)
    db.add(video)
    db.commit()
    return video


def _upload(filename="clip.mp4", size=1024):
    return VideoUpload(filename=filename, size=size, stream=io.BytesIO(b"\0" * min(size, 16)))


class TestOwnership:
    def test_own_video(self, db):
        user, profile = _affiliate(db)
        video = _video(db, profile)

        owned = KolVideoService(db).resolve_owned_video(user.id, video.id)

        assert owned.status == Ownership.OK
        assert owned.video.id == video.id

    def test_foreign_video_looks_missing(self, db):
        owner, owner_profile = _affiliate(db)
        other, _ = _affiliate(db)
        video = _video(db, owner_profile)
        svc = KolVideoService(db)

        foreign = svc.get_my_video(other.id, video.id)
        missing = svc.get_my_video(other.id, str(uuid4()))

        assert foreign.error == missing.error == ErrorKind.NOT_FOUND
        assert foreign.message == missing.message == VIDEO_NOT_FOUND

    def test_caller_without_profile(self, db):
        outcome = KolVideoService(db).get_my_video("no-profile", str(uuid4()))
        assert outcome.error == ErrorKind.VALIDATION
        assert outcome.message == PROFILE_NOT_FOUND

    def test_list_my_videos_only_returns_own(self, db):
        user, profile = _affiliate(db)
        _, other_profile = _affiliate(db)
        _video(db, profile, "mine")
        _video(db, other_profile, "theirs")

        outcome = KolVideoService(db).list_my_videos(user.id)

        assert outcome.ok
        assert [v.title for v in outcome.value] == ["mine"]


class TestUpdateDelete:
    def test_update_overwrites_all_fields(self, db):
        user, profile = _affiliate(db)
        video = _video(db, profile)
        product_id = uuid4()

        outcome = KolVideoService(db).update_my_video(
            user.id,
            video.id,
            KolVideoUpdate(title="New", description=None, product_id=product_id, is_active=False),
        )

        assert outcome.ok
        assert outcome.message == "Video updated successfully"
        assert outcome.value.title == "New"
        assert outcome.value.description is None
        assert outcome.value.product_id == str(product_id)
        assert outcome.value.is_active is False
        assert outcome.value.affiliate_profile_id == profile.id

    def test_update_without_product_resets_to_nil(self, db):
        user, profile = _affiliate(db)
        video = _video(db, profile)

        outcome = KolVideoService(db).update_my_video(user.id, video.id, KolVideoUpdate(title="t"))

        assert outcome.value.product_id == NIL_PRODUCT_ID

    def test_update_foreign_video_is_not_found(self, db):
        _, owner_profile = _affiliate(db)
        other, _ = _affiliate(db)
        video = _video(db, owner_profile, "original")

        outcome = KolVideoService(db).update_my_video(other.id, video.id, KolVideoUpdate(title="hijack"))

        assert outcome.error == ErrorKind.NOT_FOUND
        db.expire_all()
        assert db.get(KolVideo, video.id).title == "original"

    def test_delete_returns_removed_video(self, db):
        user, profile = _affiliate(db)
        video = _video(db, profile)
        video_id = video.id

        outcome = KolVideoService(db).delete_my_video(user.id, video_id)

        assert outcome.ok
        assert outcome.message == "Video deleted successfully"
        assert outcome.value.id == video_id
        assert db.get(KolVideo, video_id) is None


class TestUpload:
    def test_upload_persists_video_under_callers_profile(self, db):
        user, profile = _affiliate(db)
        storage = FakeStorage()
        svc = KolVideoService(db, storage=storage, policy=POLICY)

        outcome = svc.upload_video(user.id, _upload(), VideoMetadata(title="Toner"))

        assert outcome.ok
        uploaded = outcome.value
        assert uploaded.url == storage.result.secure_url
        assert uploaded.public_id == "kol-videos/abc"
        assert uploaded.video.affiliate_profile_id == profile.id
        assert uploaded.video.product_id == NIL_PRODUCT_ID
        assert uploaded.video.is_active is True
        assert storage.calls == [("clip.mp4", "kol-videos")]
        assert db.query(KolVideo).count() == 1

    @pytest.mark.parametrize(
        "upload, message",
        [
            (VideoUpload(filename=None, size=0, stream=None), "No video file provided."),
            (_upload("notes.txt"), "Invalid video format. Allowed formats: mov, mp4."),
            (_upload(size=11 * 1024 * 1024), "File too large. Max size allowed is 10MB"),
        ],
    )
    def test_invalid_upload_never_reaches_storage(self, db, upload, message):
        user, _ = _affiliate(db)
        storage = FakeStorage()

        outcome = KolVideoService(db, storage=storage, policy=POLICY).upload_video(user.id, upload, VideoMetadata())

        assert outcome.error == ErrorKind.VALIDATION
        assert outcome.message == message
        assert storage.calls == []

    def test_missing_profile(self, db):
        storage = FakeStorage()

        outcome = KolVideoService(db, storage=storage, policy=POLICY).upload_video(
            "no-profile", _upload(), VideoMetadata()
        )

        assert outcome.error == ErrorKind.VALIDATION
        assert outcome.message == PROFILE_NOT_FOUND
        assert storage.calls == []

    def test_storage_failure_persists_nothing(self, db):
        user, _ = _affiliate(db)
        storage = FakeStorage(UploadResult(status_code=503, error_message="Media storage is temporarily unavailable"))

        outcome = KolVideoService(db, storage=storage, policy=POLICY).upload_video(user.id, _upload(), VideoMetadata())

        assert outcome.error == ErrorKind.UPSTREAM
        assert outcome.message == "Upload error: Media storage is temporarily unavailable"
        assert db.query(KolVideo).count() == 0


class TestUnscoped:
    def test_list_all_and_get(self, db):
        _, p1 = _affiliate(db)
        _, p2 = _affiliate(db)
        v1 = _video(db, p1)
        _video(db, p2)
        svc = KolVideoService(db)

        assert len(svc.list_all()) == 2
        assert svc.get(v1.id).id == v1.id
        assert svc.get("missing") is None

    def test_list_by_affiliate(self, db):
        _, profile = _affiliate(db)
        _video(db, profile)
        svc = KolVideoService(db)

        assert len(svc.list_by_affiliate(profile.id).value) == 1
        missing = svc.list_by_affiliate("missing")
        assert missing.error == ErrorKind.NOT_FOUND
        assert missing.message == PROFILE_NOT_FOUND

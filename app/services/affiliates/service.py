from sqlalchemy.orm import Session

from app.models.affiliate_profile import AffiliateProfile


class AffiliateProfileService:
    def __init__(self, db: Session):
        self.db = db

    def get(self, profile_id: str) -> AffiliateProfile | None:
        return self.db.query(AffiliateProfile).filter(AffiliateProfile.id == profile_id).one_or_none()

    def get_by_user_id(self, user_id: str) -> AffiliateProfile | None:
        return (
            self.db.query(AffiliateProfile)
            .filter(AffiliateProfile.user_id == user_id)
            .one_or_none()
        )

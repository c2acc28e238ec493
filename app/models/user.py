from datetime import datetime, timezone
from uuid import uuid4

from sqlalchemy import Column, DateTime, String
from sqlalchemy.orm import relationship

from app.db.base import Base


ROLE_CUSTOMER = "Customers"
ROLE_AFFILIATE = "Affiliates"
ROLE_STAFF = "Staff"
ROLE_MANAGER = "Manager"


class User(Base):
    __tablename__ = "users"

    id = Column(String, primary_key=True, default=lambda: str(uuid4()))
    email = Column(String, unique=True, nullable=False, index=True)
    full_name = Column(String, nullable=True)
    role = Column(String, nullable=False, default=ROLE_CUSTOMER)  # Customers / Affiliates / Staff / Manager
    created_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    affiliate_profile = relationship("AffiliateProfile", back_populates="user", uselist=False)

"""
ORM models. Importing the package registers every mapper on Base.metadata,
so string relationships resolve regardless of which model is imported first.
"""
from app.models.user import User
from app.models.affiliate_profile import AffiliateProfile
from app.models.kol_video import KolVideo
from app.models.order import Order, OrderDetail, OrderStatus
from app.models.payment_transaction import PaymentStatus, PaymentTransaction

__all__ = [
    "User",
    "AffiliateProfile",
    "KolVideo",
    "Order",
    "OrderDetail",
    "OrderStatus",
    "PaymentStatus",
    "PaymentTransaction",
]

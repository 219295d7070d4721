from sqlalchemy import JSON, CheckConstraint, Column, DateTime, Float, ForeignKey, Integer, String

from storefront.shared.config.database import Base
from storefront.shared.utils import utcnow

# pending -> paid -> partially_refunded -> refunded; failed is terminal
PAYMENT_STATUSES = ("pending", "paid", "failed", "partially_refunded", "refunded")


class Payment(Base):
    __tablename__ = "payments"
    __table_args__ = (
        CheckConstraint(f"payment_status IN {PAYMENT_STATUSES}", name="ck_payments_status"),
    )

    id = Column(Integer, primary_key=True, index=True)
    order_id = Column(Integer, ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True)
    amount = Column(Float, nullable=False)
    currency = Column(String(3), default="INR", nullable=False)
    payment_method = Column(String(30), default="razorpay", nullable=False)
    payment_status = Column(String(20), default="pending", nullable=False)
    gateway_order_id = Column(String(64), nullable=True, index=True)
    transaction_id = Column(String(64), nullable=True, index=True)
    refunded_amount = Column(Float, default=0.0, nullable=False)
    gateway_response = Column(JSON, nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)

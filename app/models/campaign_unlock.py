"""Campaign unlock model."""

from datetime import datetime

from app.database import db
from leadmagnet.payments.webhooks import (
    PAYMENT_ID_MAX_LENGTH,
    RESOURCE_ID_MAX_LENGTH,
    USER_ID_MAX_LENGTH,
)


class CampaignUnlock(db.Model):
    """Model for a paid campaign unlock.

    One row per verified payment for a campaign. The unique constraint on
    (resource_id, payment_id) is what makes repeated webhook deliveries apply
    only once, including when two deliveries race each other.
    """

    __tablename__ = "campaign_unlocks"

    id = db.Column(db.Integer, primary_key=True, autoincrement=True)
    user_id = db.Column(db.String(USER_ID_MAX_LENGTH), db.ForeignKey("users.id"), nullable=False)
    resource_id = db.Column(db.String(RESOURCE_ID_MAX_LENGTH), nullable=False)
    payment_id = db.Column(db.String(PAYMENT_ID_MAX_LENGTH), nullable=False)
    order_id = db.Column(db.String(255), nullable=True)
    amount = db.Column(db.Integer, nullable=True)  # smallest currency unit
    currency = db.Column(db.String(10), nullable=True)
    status = db.Column(db.String(50), nullable=False, default="paid")
    source = db.Column(db.String(50), nullable=False, default="webhook")  # webhook, checkout
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    user = db.relationship("User", back_populates="unlocks")

    __table_args__ = (
        db.UniqueConstraint("resource_id", "payment_id", name="uq_campaign_unlocks_resource_payment"),
        db.Index("idx_campaign_unlocks_user_id", "user_id"),
        db.Index("idx_campaign_unlocks_payment_id", "payment_id"),
    )

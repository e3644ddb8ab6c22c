"""User model."""

from datetime import datetime

from leadmagnet.payments.webhooks import USER_ID_MAX_LENGTH

from . import db

VALID_PLANS = {"free", "premium"}


class User(db.Model):
    """Model for a user and the entitlement fields attached to it."""

    __tablename__ = "users"

    # ids are issued by the auth provider
    id = db.Column(db.String(USER_ID_MAX_LENGTH), primary_key=True)
    email = db.Column(db.String(255), unique=True, nullable=True)
    plan = db.Column(db.String(50), nullable=False, default="free")
    subscription_status = db.Column(db.String(50), nullable=True)
    subscription_expiry = db.Column(db.DateTime, nullable=True)
    campaign_count = db.Column(db.Integer, nullable=False, default=0)
    campaign_count_period = db.Column(db.String(7), nullable=True)  # YYYY-MM
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    unlocks = db.relationship("CampaignUnlock", back_populates="user", lazy=True)

    def __repr__(self):
        """Return a string representation of the user."""
        return f"<User {self.id} plan={self.plan}>"

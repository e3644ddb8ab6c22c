"""Models package initialization."""

from app.database import db

# Import all models here
from .user import User
from .campaign_unlock import CampaignUnlock

# List all models for easy access
__all__ = [
    "db",
    "User",
    "CampaignUnlock",
]

"""Registers every ORM model with ``Base.metadata``."""
from app.accounts.models import Account, AccountBlock, FeedRejection
from app.connections.models import ConnectionRequest, Conversation
from app.policies.models import AppSettings, PremiumPlan

__all__ = [
    "Account",
    "AccountBlock",
    "AppSettings",
    "ConnectionRequest",
    "Conversation",
    "FeedRejection",
    "PremiumPlan",
]

"""Database models and configuration"""

from flowdash_auth.models.db import get_engine, get_session, init_db
from flowdash_auth.models.pending_token import PendingToken, TokenPurpose
from flowdash_auth.models.user_account import Role, UserAccount

__all__ = [
    # Database
    "init_db",
    "get_session",
    "get_engine",
    # Models
    "UserAccount",
    "Role",
    "PendingToken",
    "TokenPurpose",
]

"""
Domain Entities

Each entity in its own file.
"""

# Export all enums
from .enums import TokenType, UserRole

# Export all entities
from .user import User, normalize_email
from .refresh_token import RefreshToken
from .presence_session import PresenceSession

__all__ = [
    # Enums
    "TokenType",
    "UserRole",
    # Entities
    "User",
    "RefreshToken",
    "PresenceSession",
    # Helpers
    "normalize_email",
]

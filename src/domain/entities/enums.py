"""
Domain Enums

All enumeration types used across domain entities.
"""

from enum import Enum


class UserRole(str, Enum):
    """Role of a user within the school"""

    STUDENT = "STUDENT"
    PREFECT = "PREFECT"
    PROFESSOR = "PROFESSOR"
    AUROR = "AUROR"


class TokenType(str, Enum):
    """Class of a signed token, carried in its `type` claim"""

    access = "access"
    refresh = "refresh"

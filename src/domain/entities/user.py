"""
User Entity

Credential record for a person who can sign in.
"""

from datetime import datetime
from typing import Optional
from uuid import UUID, uuid4

from sqlmodel import Column, DateTime, Field, SQLModel

from src.domain.base import utc_now
from .enums import UserRole


def normalize_email(email: str) -> str:
    return email.strip().lower()


class User(SQLModel, table=True):
    """
    User entity - credentials and role of a person.

    Business Rules:
    - Email is stored normalized (trimmed, lowercased) and is unique
    - Password stored as bcrypt hash, never returned to callers
    - New users default to the STUDENT role
    """

    __tablename__ = "users"

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    email: str = Field(unique=True, index=True, max_length=255)
    password_hash: str = Field(max_length=60)  # Bcrypt output is 60 chars

    first_name: str = Field(max_length=100)
    last_name: str = Field(max_length=100)
    role: UserRole = Field(default=UserRole.STUDENT)
    house: Optional[str] = Field(default=None, max_length=50)

    # Timestamps
    created_at: datetime = Field(default_factory=utc_now, sa_column=Column(DateTime))
    updated_at: datetime = Field(default_factory=utc_now, sa_column=Column(DateTime))

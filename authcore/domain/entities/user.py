"""
User Entity

Account identity record: credentials plus two-factor state.
"""

from datetime import datetime
from typing import Optional

from sqlmodel import Column, DateTime, Field, Index, SQLModel

from authcore.domain.base import utcnow


class User(SQLModel, table=True):
    """
    User entity - one row per account.

    Business Rules:
    - Email and nickname are unique (looked up case-insensitively)
    - Password stored as an argon2id PHC string
    - totp_secret_enc holds the AEAD-encrypted TOTP secret (pending or enabled)
    - totp_confirmed_at is set when 2FA enrollment is confirmed
    - Never deleted by the auth core
    """

    __tablename__ = "users"

    id: Optional[int] = Field(default=None, primary_key=True)
    email: str = Field(unique=True, max_length=255)
    nickname: str = Field(unique=True, max_length=16)
    password_hash: str = Field(max_length=255)

    # Two-factor authentication
    totp_enabled: bool = Field(default=False)
    totp_secret_enc: Optional[str] = Field(default=None, max_length=255)
    totp_confirmed_at: Optional[datetime] = Field(default=None, sa_column=Column(DateTime))

    created_at: datetime = Field(default_factory=utcnow, sa_column=Column(DateTime, nullable=False))

    __table_args__ = (
        Index("idx_users_email", "email"),
        Index("idx_users_nickname", "nickname"),
    )

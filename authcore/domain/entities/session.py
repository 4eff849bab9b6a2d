"""
Session Entity

One row per logical client/device pairing. The row id is stable; the stored
token hash changes on every rotation.
"""

from datetime import datetime
from typing import Optional

from sqlalchemy import LargeBinary
from sqlmodel import Column, DateTime, Field, Index, SQLModel

from authcore.domain.base import utcnow


class Session(SQLModel, table=True):
    """
    Session entity - stores the hash of the current refresh token.

    Business Rules:
    - token_hash is the SHA-256 of the client's token, never the token itself
    - refreshed_at advances on every rotation
    - last_authenticated_at advances only when credentials were re-verified
    - last_authenticated_at == epoch means the session was logged out
    """

    __tablename__ = "sessions"

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="users.id", nullable=False, index=True)

    token_hash: bytes = Field(sa_column=Column(LargeBinary(32), unique=True, nullable=False))
    device_id: str = Field(max_length=64)
    device_name: Optional[str] = Field(default=None, max_length=255)
    ip_address: Optional[str] = Field(default=None, max_length=64)

    # Timestamps
    created_at: datetime = Field(default_factory=utcnow, sa_column=Column(DateTime, nullable=False))
    refreshed_at: datetime = Field(default_factory=utcnow, sa_column=Column(DateTime, nullable=False))
    last_used_at: datetime = Field(default_factory=utcnow, sa_column=Column(DateTime, nullable=False))
    last_authenticated_at: datetime = Field(
        default_factory=utcnow, sa_column=Column(DateTime, nullable=False)
    )

    __table_args__ = (
        Index("idx_sessions_user_device", "user_id", "device_id"),
        Index("idx_sessions_last_used_at", "last_used_at"),
    )

"""
Two-Factor Recovery Code Entity

Single-use backup credentials issued when 2FA enrollment is confirmed.
"""

from datetime import datetime
from typing import Optional

from sqlalchemy import LargeBinary
from sqlmodel import Column, DateTime, Field, SQLModel

from authcore.domain.base import utcnow


class TwoFaRecoveryCode(SQLModel, table=True):
    """
    Recovery code entity - stores the SHA-256 of one plaintext code.

    Business Rules:
    - Issued in batches that replace any previous batch
    - used_at is set exactly once, by a conditional update
    """

    __tablename__ = "two_fa_recovery_codes"

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="users.id", nullable=False, index=True)
    code_hash: bytes = Field(sa_column=Column(LargeBinary(32), unique=True, nullable=False))
    used_at: Optional[datetime] = Field(default=None, sa_column=Column(DateTime))
    created_at: datetime = Field(default_factory=utcnow, sa_column=Column(DateTime, nullable=False))

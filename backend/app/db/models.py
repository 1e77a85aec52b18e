"""
Database models for users, audit requests and login sessions
"""
from datetime import datetime
from enum import Enum
from typing import Optional, List

from sqlalchemy import (
    String, Text, Integer, DateTime, ForeignKey, Index, Enum as SQLEnum
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db.database import Base


# === ENUMS ===

class Role(str, Enum):
    USER = "USER"
    AUDITOR = "AUDITOR"


class AuditStatus(str, Enum):
    PENDING_DATA = "PENDING_DATA"  # declared, never produced by the current flow
    PENDING_REVIEW = "PENDING_REVIEW"
    VERIFIED = "VERIFIED"
    REJECTED = "REJECTED"


class ReviewDecision(str, Enum):
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


def _enum_values(enum_cls) -> list[str]:
    return [member.value for member in enum_cls]


# === MODELS ===

class User(Base):
    """Account with a fixed role"""
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    username: Mapped[str] = mapped_column(String(30), unique=True, nullable=False)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    role: Mapped[Role] = mapped_column(
        SQLEnum(Role, name="user_role", values_callable=_enum_values, create_constraint=True),
        nullable=False,
    )
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, nullable=False)

    # Relationships
    sessions: Mapped[List["UserSession"]] = relationship(back_populates="user", cascade="all, delete-orphan")


class AuditRequest(Base):
    """Purchase approval request"""
    __tablename__ = "audits"
    __table_args__ = (
        Index("idx_audits_status", "status"),
        Index("idx_audits_creator", "created_by"),
        Index("idx_audits_assigned", "assigned_to"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    type: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    assigned_to: Mapped[Optional[int]] = mapped_column(Integer, ForeignKey("users.id"), nullable=True)
    created_by: Mapped[int] = mapped_column(Integer, ForeignKey("users.id"), nullable=False)
    # JSON blobs stored as text; parsed at the repository boundary so a corrupt row
    # degrades to {} instead of failing the whole query.
    config: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    purchase_data: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    status: Mapped[AuditStatus] = mapped_column(
        SQLEnum(AuditStatus, name="audit_status", values_callable=_enum_values, create_constraint=True),
        default=AuditStatus.PENDING_REVIEW,
        nullable=False,
    )
    admin_notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    submitted_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    reviewed_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    reviewed_by: Mapped[Optional[int]] = mapped_column(Integer, ForeignKey("users.id"), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, nullable=False)


class UserSession(Base):
    """Server-side login session referenced by the session cookie"""
    __tablename__ = "sessions"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    user_id: Mapped[int] = mapped_column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, nullable=False)
    expires_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)

    # Relationships
    user: Mapped["User"] = relationship(back_populates="sessions")

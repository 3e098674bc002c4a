import enum
from datetime import datetime
from typing import Optional

from sqlalchemy import (
    String,
    DateTime,
    ForeignKey,
    Integer,
    Text,
    Index,
)
from sqlalchemy.orm import relationship, Mapped, mapped_column

from ..db import Base


# =====================================================
# ENUMS
# =====================================================

class Role(str, enum.Enum):
    ADMIN = "admin"
    PARTNER = "partner"
    LAWYER = "lawyer"
    STAFF = "staff"
    CLIENT = "client"


class CaseStatus(str, enum.Enum):
    OPEN = "open"
    IN_PROGRESS = "in_progress"
    CLOSED = "closed"


class ScheduleStatus(str, enum.Enum):
    PENDING = "pending"
    DONE = "done"
    CANCELLED = "cancelled"
    OVERDUE = "overdue"


def int_pk() -> Mapped[int]:
    return mapped_column(Integer, primary_key=True, autoincrement=True)


# =====================================================
# TABLES
# =====================================================

class User(Base):
    __tablename__ = "users"

    id: Mapped[int] = int_pk()
    first_name: Mapped[str] = mapped_column(String(100), nullable=False)
    last_name: Mapped[str] = mapped_column(String(100), nullable=False, default="")
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False, index=True)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    role: Mapped[str] = mapped_column(String(20), nullable=False, default=Role.CLIENT.value, index=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=datetime.utcnow)

    client_profile = relationship("Client", back_populates="user", uselist=False)

    @property
    def full_name(self) -> str:
        return " ".join(p for p in [self.first_name or "", self.last_name or ""] if p).strip()


class Client(Base):
    __tablename__ = "clients"

    id: Mapped[int] = int_pk()
    # Set for clients who registered an account; NULL for records created by the firm
    user_id: Mapped[Optional[int]] = mapped_column(Integer, ForeignKey("users.id", ondelete="SET NULL"), unique=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    email: Mapped[Optional[str]] = mapped_column(String(255))
    contact: Mapped[Optional[str]] = mapped_column(String(100))
    address: Mapped[Optional[str]] = mapped_column(String(500))
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=datetime.utcnow)

    user = relationship("User", back_populates="client_profile")
    cases = relationship("Case", back_populates="client")


class Case(Base):
    __tablename__ = "cases"

    id: Mapped[int] = int_pk()
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default=CaseStatus.OPEN.value, index=True)
    progress: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    client_id: Mapped[int] = mapped_column(Integer, ForeignKey("clients.id"), nullable=False, index=True)
    lawyer_id: Mapped[int] = mapped_column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=datetime.utcnow, index=True)

    client = relationship("Client", back_populates="cases")
    lawyer = relationship("User")
    # Events belong to their case; deleting the case deletes them
    schedules = relationship("Schedule", back_populates="case", cascade="all, delete-orphan")


class Schedule(Base):
    __tablename__ = "schedules"

    id: Mapped[int] = int_pk()
    case_id: Mapped[int] = mapped_column(Integer, ForeignKey("cases.id", ondelete="CASCADE"), nullable=False, index=True)
    scheduled_by: Mapped[Optional[int]] = mapped_column(Integer, ForeignKey("users.id", ondelete="SET NULL"))
    event_title: Mapped[str] = mapped_column(String(255), nullable=False)
    start_date: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    end_date: Mapped[Optional[datetime]] = mapped_column(DateTime)
    location: Mapped[Optional[str]] = mapped_column(String(255))
    notes: Mapped[Optional[str]] = mapped_column(Text)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default=ScheduleStatus.PENDING.value)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=datetime.utcnow)

    case = relationship("Case", back_populates="schedules")

    __table_args__ = (
        Index("idx_schedules_start", "start_date"),
    )


class ActivityLog(Base):
    """Append-only record of user actions, shown on the dashboard feed."""
    __tablename__ = "activity_log"

    id: Mapped[int] = int_pk()
    user_id: Mapped[Optional[int]] = mapped_column(Integer, ForeignKey("users.id", ondelete="SET NULL"), index=True)
    action_type: Mapped[str] = mapped_column(String(50), nullable=False)  # CASE_CREATED|CASE_UPDATED
    description: Mapped[str] = mapped_column(String(1000), nullable=False)
    related_entity_type: Mapped[Optional[str]] = mapped_column(String(50))  # case
    related_entity_id: Mapped[Optional[int]] = mapped_column(Integer)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=datetime.utcnow, nullable=False, index=True)

    user = relationship("User")

    __table_args__ = (
        Index("idx_activity_entity", "related_entity_type", "related_entity_id"),
    )


class PasswordReset(Base):
    __tablename__ = "password_resets"

    id: Mapped[int] = int_pk()
    email: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    token: Mapped[str] = mapped_column(String(128), unique=True, index=True, nullable=False)
    expires_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    used_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))

"""Time entry model: one clock-in to clock-out work session."""

import enum
from uuid import uuid4

from sqlalchemy import Column, Integer, String, DateTime, Text, ForeignKey, Index, text
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from app.database import Base


class TimeEntryStatus(str, enum.Enum):
    ACTIVE = "active"
    COMPLETED = "completed"


class TimeEntry(Base):
    """A user's work session. Active while clock_out_time is null."""

    __tablename__ = "time_entries"

    id = Column(Integer, primary_key=True, index=True)
    uuid = Column(String(36), unique=True, nullable=False, default=lambda: str(uuid4()))

    # Owner
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)

    # Session times (naive wall-clock in settings.timezone)
    clock_in_time = Column(DateTime, nullable=False, index=True)
    clock_out_time = Column(DateTime, nullable=True)
    status = Column(String(20), nullable=False, default=TimeEntryStatus.ACTIVE.value)  # 'active', 'completed'

    # Rolled up from completed breaks at clock-out
    total_break_minutes = Column(Integer, nullable=False, default=0)
    notes = Column(Text, nullable=True)

    # Timestamps
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    # Relationships
    user = relationship("User", back_populates="time_entries")
    breaks = relationship(
        "TimeBreak",
        back_populates="time_entry",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="TimeBreak.start_time",
    )

    __table_args__ = (
        # At most one active session per user, enforced by the store
        Index(
            'uq_time_entries_one_active_per_user',
            'user_id',
            unique=True,
            postgresql_where=text("status = 'active'"),
            sqlite_where=text("status = 'active'"),
        ),
        Index('idx_time_entries_user_clock_in', 'user_id', 'clock_in_time'),
    )

    @property
    def is_active(self) -> bool:
        return self.status == TimeEntryStatus.ACTIVE

    def __repr__(self):
        return f"<TimeEntry(id={self.id}, user_id={self.user_id}, status='{self.status}', clock_in={self.clock_in_time})>"

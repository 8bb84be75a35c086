"""Break model: a pause nested inside one time entry."""

import enum
from uuid import uuid4

from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, Index, text
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from app.database import Base


class BreakStatus(str, enum.Enum):
    ACTIVE = "active"
    COMPLETED = "completed"


class TimeBreak(Base):
    """Break period owned by exactly one time entry."""

    __tablename__ = "time_breaks"

    id = Column(Integer, primary_key=True, index=True)
    uuid = Column(String(36), unique=True, nullable=False, default=lambda: str(uuid4()))

    time_entry_id = Column(Integer, ForeignKey("time_entries.id", ondelete="CASCADE"), nullable=False, index=True)

    start_time = Column(DateTime, nullable=False)
    end_time = Column(DateTime, nullable=True)
    status = Column(String(20), nullable=False, default=BreakStatus.ACTIVE.value)  # 'active', 'completed'

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    time_entry = relationship("TimeEntry", back_populates="breaks")

    __table_args__ = (
        Index(
            'uq_time_breaks_one_active_per_entry',
            'time_entry_id',
            unique=True,
            postgresql_where=text("status = 'active'"),
            sqlite_where=text("status = 'active'"),
        ),
    )

    @property
    def is_active(self) -> bool:
        return self.status == BreakStatus.ACTIVE

    def __repr__(self):
        return f"<TimeBreak(id={self.id}, time_entry_id={self.time_entry_id}, status='{self.status}')>"

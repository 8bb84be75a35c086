"""Append-only audit trail for time entry transitions and manual edits."""

import enum
from uuid import uuid4

from sqlalchemy import Column, Integer, String, DateTime, Text, ForeignKey, Index
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from app.database import Base


class AuditAction(str, enum.Enum):
    CLOCK_IN = "clock_in"
    CLOCK_OUT = "clock_out"
    BREAK_START = "break_start"
    BREAK_END = "break_end"
    EDIT_CLOCK_IN = "edit_clock_in"
    EDIT_CLOCK_OUT = "edit_clock_out"
    EDIT_BREAK = "edit_break"
    DELETE = "delete"


class TimeEntryAudit(Base):
    """One row per state transition or manual edit. Rows are never updated or deleted."""

    __tablename__ = "time_entry_audits"

    id = Column(Integer, primary_key=True, index=True)
    uuid = Column(String(36), unique=True, nullable=False, default=lambda: str(uuid4()))

    # No foreign key: the trail outlives a deleted time entry
    time_entry_id = Column(Integer, nullable=False, index=True)

    # Actor, may differ from the entry owner
    modified_by_user_id = Column(Integer, ForeignKey("users.id"), nullable=False)

    # Action details
    action = Column(String(30), nullable=False)
    field_name = Column(String(50), nullable=True)  # 'clockInTime', 'clockOutTime', 'startTime', 'endTime'
    old_value = Column(Text, nullable=True)
    new_value = Column(Text, nullable=True)
    reason = Column(Text, nullable=True)

    created_at = Column(DateTime, server_default=func.now(), nullable=False)

    modified_by_user = relationship("User")

    __table_args__ = (
        Index('idx_time_entry_audits_entry_created', 'time_entry_id', 'created_at'),
        Index('idx_time_entry_audits_action', 'action'),
    )

    def __repr__(self):
        return f"<TimeEntryAudit(id={self.id}, entry={self.time_entry_id}, action='{self.action}')>"

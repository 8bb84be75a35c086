"""Database models."""

from app.models.user import User
from app.models.time_entry import TimeEntry, TimeEntryStatus
from app.models.time_break import TimeBreak, BreakStatus
from app.models.time_entry_audit import TimeEntryAudit, AuditAction

__all__ = [
    "User",
    "TimeEntry",
    "TimeEntryStatus",
    "TimeBreak",
    "BreakStatus",
    "TimeEntryAudit",
    "AuditAction",
]

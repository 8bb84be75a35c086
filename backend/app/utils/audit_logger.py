"""Audit trail helper for time entry transitions and manual edits."""

from datetime import datetime
from typing import Optional
from sqlalchemy.orm import Session

from app.models.time_entry_audit import AuditAction, TimeEntryAudit


def format_timestamp(value: Optional[datetime]) -> Optional[str]:
    """Serialize a timestamp for old_value/new_value columns."""
    return value.isoformat() if value is not None else None


def create_audit_log(
    db: Session,
    time_entry_id: int,
    modified_by_user_id: int,
    action: AuditAction,
    created_at: datetime,
    field_name: Optional[str] = None,
    old_value: Optional[str] = None,
    new_value: Optional[str] = None,
    reason: Optional[str] = None
) -> TimeEntryAudit:
    """
    Add an audit row to the caller's transaction.

    The row is flushed but not committed: the caller commits it together with
    the state change it describes, so neither can be persisted without the other.

    Args:
        db: Database session holding the open transaction
        time_entry_id: Internal id of the time entry the row refers to
        modified_by_user_id: Actor who caused the transition
        action: Transition or edit being recorded
        created_at: Timestamp of the transition
        field_name: Edited field, for edit actions
        old_value: Previous value, for edit and delete actions
        new_value: New value
        reason: Manager-supplied justification

    Returns:
        Pending TimeEntryAudit instance

    Usage:
        ```python
        create_audit_log(
            db,
            time_entry_id=entry.id,
            modified_by_user_id=manager_id,
            action=AuditAction.EDIT_CLOCK_OUT,
            created_at=now,
            field_name="clockOutTime",
            old_value=None,
            new_value=format_timestamp(new_clock_out),
            reason="Forgot to clock out",
        )
        ```
    """
    audit_log = TimeEntryAudit(
        time_entry_id=time_entry_id,
        modified_by_user_id=modified_by_user_id,
        action=AuditAction(action).value,
        field_name=field_name,
        old_value=old_value,
        new_value=new_value,
        reason=reason,
        created_at=created_at
    )

    db.add(audit_log)
    db.flush()

    return audit_log

"""Pause/resume of breaks inside the active session."""

import logging

from sqlalchemy.orm import Session

from app.exceptions import AlreadyOnBreak, BreakNotFound, InvalidTimeRange, NotClockedInForBreak, NotOnBreak
from app.models.time_break import BreakStatus, TimeBreak
from app.models.time_entry import TimeEntryStatus
from app.models.time_entry_audit import AuditAction
from app.services.patch import BreakPatch, is_set
from app.services.session_machine import SessionStateMachine, completed_break_minutes, find_active_break
from app.utils.audit_logger import create_audit_log, format_timestamp
from app.utils.clock import Clock

log = logging.getLogger(__name__)


class BreakStateMachine:
    """NoBreak -> Active -> Completed, scoped to one session."""

    def __init__(self, db: Session, clock: Clock, sessions: SessionStateMachine):
        self.db = db
        self.clock = clock
        self.sessions = sessions

    def start_break(self, user_id: int) -> TimeBreak:
        entry = self.sessions.get_active_session(user_id)
        if entry is None:
            raise NotClockedInForBreak()
        if find_active_break(entry) is not None:
            raise AlreadyOnBreak()

        now = self.clock()
        time_break = TimeBreak(start_time=now, status=BreakStatus.ACTIVE.value)
        entry.breaks.append(time_break)
        self.db.flush()

        create_audit_log(
            self.db,
            time_entry_id=entry.id,
            modified_by_user_id=user_id,
            action=AuditAction.BREAK_START,
            created_at=now,
            new_value=format_timestamp(now),
        )
        return time_break

    def end_break(self, user_id: int) -> TimeBreak:
        # The session's total_break_minutes is only rolled up at clock-out
        entry = self.sessions.require_active_session(user_id)
        time_break = find_active_break(entry)
        if time_break is None:
            raise NotOnBreak()

        now = self.clock()
        time_break.end_time = now
        time_break.status = BreakStatus.COMPLETED.value
        self.db.flush()

        create_audit_log(
            self.db,
            time_entry_id=entry.id,
            modified_by_user_id=user_id,
            action=AuditAction.BREAK_END,
            created_at=now,
            new_value=format_timestamp(now),
        )
        return time_break

    def apply_edit(
        self,
        entry_uuid: str,
        break_uuid: str,
        patch: BreakPatch,
        modified_by_user_id: int,
        reason: str,
    ) -> TimeBreak:
        """Manager correction of a break's start or end time."""
        entry = self.sessions.get_by_uuid(entry_uuid)
        time_break = next((b for b in entry.breaks if b.uuid == break_uuid), None)
        if time_break is None:
            raise BreakNotFound()

        start_time = patch.start_time if is_set(patch.start_time) else time_break.start_time
        end_time = patch.end_time if is_set(patch.end_time) else time_break.end_time
        if end_time is not None and end_time < start_time:
            raise InvalidTimeRange()

        now = self.clock()
        changes = (
            ("start_time", "startTime"),
            ("end_time", "endTime"),
        )
        for attr, field_name in changes:
            new_value = getattr(patch, attr)
            old_value = getattr(time_break, attr)
            if not is_set(new_value) or new_value == old_value:
                continue
            create_audit_log(
                self.db,
                time_entry_id=entry.id,
                modified_by_user_id=modified_by_user_id,
                action=AuditAction.EDIT_BREAK,
                created_at=now,
                field_name=field_name,
                old_value=format_timestamp(old_value),
                new_value=format_timestamp(new_value),
                reason=reason,
            )
            setattr(time_break, attr, new_value)

        if time_break.end_time is not None:
            time_break.status = BreakStatus.COMPLETED.value

        if entry.status == TimeEntryStatus.COMPLETED:
            entry.total_break_minutes = completed_break_minutes(entry)

        self.db.flush()
        return time_break

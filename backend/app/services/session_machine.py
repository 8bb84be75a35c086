"""Clock-in / clock-out lifecycle of a user's work session."""

import json
import logging
from typing import Optional

from sqlalchemy.orm import Session, selectinload

from app.exceptions import (
    AlreadyClockedIn,
    CannotClockOutDuringBreak,
    InvalidTimeRange,
    NotClockedIn,
    TimeEntryNotFound,
)
from app.models.time_break import BreakStatus, TimeBreak
from app.models.time_entry import TimeEntry, TimeEntryStatus
from app.models.time_entry_audit import AuditAction
from app.services.patch import TimeEntryPatch, is_set
from app.utils.audit_logger import create_audit_log, format_timestamp
from app.utils.clock import Clock
from app.utils.durations import minutes_between, round_minutes

log = logging.getLogger(__name__)


def find_active_break(entry: TimeEntry) -> Optional[TimeBreak]:
    return next((b for b in entry.breaks if b.is_active), None)


def completed_break_minutes(entry: TimeEntry) -> int:
    """Sum of completed break durations, rounded once over the total."""
    total = 0.0
    for time_break in entry.breaks:
        if time_break.status == BreakStatus.COMPLETED and time_break.end_time:
            total += minutes_between(time_break.start_time, time_break.end_time)
    return round_minutes(total)


class SessionStateMachine:
    """
    Owns the NoSession -> Active -> Completed lifecycle.

    Methods stage changes on the given session and never commit; the
    facade wraps each call in a single transaction.
    """

    def __init__(self, db: Session, clock: Clock):
        self.db = db
        self.clock = clock

    def get_active_session(self, user_id: int) -> Optional[TimeEntry]:
        return (
            self.db.query(TimeEntry)
            .options(selectinload(TimeEntry.breaks))
            .filter(TimeEntry.user_id == user_id, TimeEntry.status == TimeEntryStatus.ACTIVE.value)
            .first()
        )

    def get_by_uuid(self, entry_uuid: str) -> TimeEntry:
        entry = self.db.query(TimeEntry).filter(TimeEntry.uuid == entry_uuid).first()
        if entry is None:
            raise TimeEntryNotFound()
        return entry

    def require_active_session(self, user_id: int) -> TimeEntry:
        entry = self.get_active_session(user_id)
        if entry is None:
            raise NotClockedIn()
        return entry

    def clock_in(self, user_id: int) -> TimeEntry:
        if self.get_active_session(user_id) is not None:
            raise AlreadyClockedIn()

        now = self.clock()
        entry = TimeEntry(
            user_id=user_id,
            clock_in_time=now,
            status=TimeEntryStatus.ACTIVE.value,
            total_break_minutes=0,
        )
        self.db.add(entry)
        self.db.flush()

        create_audit_log(
            self.db,
            time_entry_id=entry.id,
            modified_by_user_id=user_id,
            action=AuditAction.CLOCK_IN,
            created_at=now,
            new_value=format_timestamp(now),
        )
        return entry

    def clock_out(self, user_id: int) -> TimeEntry:
        entry = self.require_active_session(user_id)
        if find_active_break(entry) is not None:
            raise CannotClockOutDuringBreak()

        now = self.clock()
        entry.clock_out_time = now
        entry.status = TimeEntryStatus.COMPLETED.value
        entry.total_break_minutes = completed_break_minutes(entry)
        self.db.flush()

        create_audit_log(
            self.db,
            time_entry_id=entry.id,
            modified_by_user_id=user_id,
            action=AuditAction.CLOCK_OUT,
            created_at=now,
            new_value=format_timestamp(now),
        )
        return entry

    def apply_edit(self, entry_uuid: str, patch: TimeEntryPatch, modified_by_user_id: int, reason: str) -> TimeEntry:
        """Apply a manager edit, writing one audit row per changed time field."""
        entry = self.get_by_uuid(entry_uuid)
        now = self.clock()

        # Check the resulting times, not just the ones sent
        clock_in = patch.clock_in_time if is_set(patch.clock_in_time) else entry.clock_in_time
        clock_out = patch.clock_out_time if is_set(patch.clock_out_time) else entry.clock_out_time
        if clock_out is not None and clock_out < clock_in:
            raise InvalidTimeRange()

        if is_set(patch.clock_in_time) and patch.clock_in_time != entry.clock_in_time:
            create_audit_log(
                self.db,
                time_entry_id=entry.id,
                modified_by_user_id=modified_by_user_id,
                action=AuditAction.EDIT_CLOCK_IN,
                created_at=now,
                field_name="clockInTime",
                old_value=format_timestamp(entry.clock_in_time),
                new_value=format_timestamp(patch.clock_in_time),
                reason=reason,
            )
            entry.clock_in_time = patch.clock_in_time

        if is_set(patch.clock_out_time) and patch.clock_out_time != entry.clock_out_time:
            if patch.clock_out_time is None and entry.status != TimeEntryStatus.ACTIVE:
                # Re-opening must not produce a second active session for the owner
                other = self.get_active_session(entry.user_id)
                if other is not None and other.id != entry.id:
                    raise AlreadyClockedIn()

            create_audit_log(
                self.db,
                time_entry_id=entry.id,
                modified_by_user_id=modified_by_user_id,
                action=AuditAction.EDIT_CLOCK_OUT,
                created_at=now,
                field_name="clockOutTime",
                old_value=format_timestamp(entry.clock_out_time),
                new_value=format_timestamp(patch.clock_out_time),
                reason=reason,
            )
            entry.clock_out_time = patch.clock_out_time
            if patch.clock_out_time is not None:
                entry.status = TimeEntryStatus.COMPLETED.value
            else:
                entry.status = TimeEntryStatus.ACTIVE.value

        # Notes are not audited
        if is_set(patch.notes):
            entry.notes = patch.notes

        self.db.flush()
        return entry

    def delete(self, entry_uuid: str, modified_by_user_id: int, reason: str) -> None:
        """Record a delete audit row with the pre-deletion snapshot, then remove the entry."""
        entry = self.get_by_uuid(entry_uuid)

        snapshot = {
            "clockInTime": format_timestamp(entry.clock_in_time),
            "clockOutTime": format_timestamp(entry.clock_out_time),
            "totalBreakMinutes": entry.total_break_minutes,
        }
        create_audit_log(
            self.db,
            time_entry_id=entry.id,
            modified_by_user_id=modified_by_user_id,
            action=AuditAction.DELETE,
            created_at=self.clock(),
            old_value=json.dumps(snapshot),
            reason=reason,
        )

        self.db.delete(entry)
        self.db.flush()
        log.debug(f"Time entry {entry_uuid} removed after delete audit")

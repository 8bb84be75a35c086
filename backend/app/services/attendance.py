"""Attendance facade: the callable surface over sessions, breaks, audit and aggregation."""

import logging
from contextlib import contextmanager
from datetime import date, datetime
from typing import Any, Dict, List, Optional, Sequence

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.exceptions import ReasonRequired, TimeEntryNotFound
from app.models.time_break import TimeBreak
from app.models.time_entry import TimeEntry
from app.models.time_entry_audit import TimeEntryAudit
from app.services.aggregation import AggregationService
from app.services.break_machine import BreakStateMachine
from app.services.patch import BreakPatch, TimeEntryPatch
from app.services.session_machine import SessionStateMachine, find_active_break
from app.utils.clock import Clock, local_now

log = logging.getLogger(__name__)


class AttendanceService:
    """
    Service composing the session and break state machines, the audit trail
    and the aggregation engine.

    Every mutating call runs in exactly one transaction on the injected
    database session: the state check, the row write and the audit write are
    committed together or rolled back together.

    Manager-only operations (update_entry, update_break, delete_entry) do not
    re-check authorization; callers must reject non-managers first.
    """

    def __init__(self, db: Session, clock: Optional[Clock] = None):
        """
        Initialize attendance service.

        Args:
            db: Request-scoped database session
            clock: Callable returning the current naive local time (defaults to local_now)
        """
        self.db = db
        self.clock = clock or local_now
        self.sessions = SessionStateMachine(db, self.clock)
        self.breaks = BreakStateMachine(db, self.clock, self.sessions)
        self.aggregation = AggregationService(db, self.clock)

    @contextmanager
    def _transaction(self, operation: str):
        try:
            yield
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            log.warning(f"{operation} rejected by storage constraint: {e.orig}")
            raise
        except Exception:
            self.db.rollback()
            raise

    @staticmethod
    def _require_reason(reason: Optional[str]) -> str:
        if reason is None or not reason.strip():
            raise ReasonRequired()
        return reason.strip()

    # Status

    def get_active_session(self, user_id: int) -> Optional[TimeEntry]:
        return self.sessions.get_active_session(user_id)

    def get_current_status(self, user_id: int) -> Dict[str, Any]:
        active_session = self.sessions.get_active_session(user_id)
        if active_session is None:
            return {
                "is_clocked_in": False,
                "active_session": None,
                "has_active_break": False,
                "current_break": None,
            }

        current_break = find_active_break(active_session)
        return {
            "is_clocked_in": True,
            "active_session": active_session,
            "has_active_break": current_break is not None,
            "current_break": current_break,
        }

    # Session transitions

    def clock_in(self, user_id: int) -> TimeEntry:
        with self._transaction("clock_in"):
            entry = self.sessions.clock_in(user_id)
        log.info(f"User {user_id} clocked in (entry {entry.uuid})")
        return entry

    def clock_out(self, user_id: int) -> TimeEntry:
        with self._transaction("clock_out"):
            entry = self.sessions.clock_out(user_id)
        log.info(f"User {user_id} clocked out (entry {entry.uuid}, breaks {entry.total_break_minutes} min)")
        return entry

    # Break transitions

    def start_break(self, user_id: int) -> TimeBreak:
        with self._transaction("start_break"):
            time_break = self.breaks.start_break(user_id)
        log.info(f"User {user_id} started break {time_break.uuid}")
        return time_break

    def end_break(self, user_id: int) -> TimeBreak:
        with self._transaction("end_break"):
            time_break = self.breaks.end_break(user_id)
        log.info(f"User {user_id} ended break {time_break.uuid}")
        return time_break

    # Manager operations

    def update_entry(
        self,
        entry_uuid: str,
        patch: TimeEntryPatch,
        modified_by_user_id: int,
        reason: str,
    ) -> TimeEntry:
        reason = self._require_reason(reason)
        with self._transaction("update_entry"):
            entry = self.sessions.apply_edit(entry_uuid, patch, modified_by_user_id, reason)
        log.info(
            f"Time entry {entry_uuid} edited by user {modified_by_user_id}: "
            f"fields={sorted(patch.provided())}, reason='{reason}'"
        )
        return entry

    def update_break(
        self,
        entry_uuid: str,
        break_uuid: str,
        patch: BreakPatch,
        modified_by_user_id: int,
        reason: str,
    ) -> TimeBreak:
        reason = self._require_reason(reason)
        with self._transaction("update_break"):
            time_break = self.breaks.apply_edit(entry_uuid, break_uuid, patch, modified_by_user_id, reason)
        log.info(f"Break {break_uuid} of entry {entry_uuid} edited by user {modified_by_user_id}, reason='{reason}'")
        return time_break

    def delete_entry(self, entry_uuid: str, modified_by_user_id: int, reason: str) -> None:
        reason = self._require_reason(reason)
        with self._transaction("delete_entry"):
            self.sessions.delete(entry_uuid, modified_by_user_id, reason)
        log.info(f"Time entry {entry_uuid} deleted by user {modified_by_user_id}, reason='{reason}'")

    # Audit

    def get_audit_history(self, entry_uuid: str) -> List[TimeEntryAudit]:
        """Audit rows of a live entry, most recent first.

        Deleted entries raise TimeEntryNotFound even though their rows remain stored.
        """
        entry = self.db.query(TimeEntry).filter(TimeEntry.uuid == entry_uuid).first()
        if entry is None:
            raise TimeEntryNotFound()

        return (
            self.db.query(TimeEntryAudit)
            .filter(TimeEntryAudit.time_entry_id == entry.id)
            .order_by(TimeEntryAudit.created_at.desc(), TimeEntryAudit.id.desc())
            .all()
        )

    # Read side

    def get_today_summary(self, user_id: int) -> Dict[str, Any]:
        return self.aggregation.today_summary(user_id)

    def get_weekly_summary(self, user_id: int, week_start: Optional[date] = None) -> Dict[str, Any]:
        return self.aggregation.weekly_summary(user_id, week_start)

    def get_history(
        self,
        user_id: Optional[int],
        start: datetime,
        end: datetime,
        page: int = 1,
        limit: int = 20,
    ) -> Dict[str, Any]:
        return self.aggregation.entries_by_date_range(user_id, start, end, page, limit)

    def get_entries_for_export(
        self,
        user_id: Optional[int],
        start: datetime,
        end: datetime,
        requesting_user_id: int,
        is_manager: bool,
    ) -> List[TimeEntry]:
        return self.aggregation.entries_for_export(user_id, start, end, requesting_user_id, is_manager)

    def get_export_rows(
        self,
        user_id: Optional[int],
        start: datetime,
        end: datetime,
        requesting_user_id: int,
        is_manager: bool,
    ) -> List[Dict[str, Any]]:
        entries = self.get_entries_for_export(user_id, start, end, requesting_user_id, is_manager)
        return self.aggregation.export_rows(entries)

    def get_team_entries(self, user_ids: Sequence[int], start: datetime, end: datetime) -> List[TimeEntry]:
        return self.aggregation.team_entries(user_ids, start, end)

    def calculate_worked_hours(self, entry: TimeEntry) -> float:
        return self.aggregation.calculate_worked_hours(entry)

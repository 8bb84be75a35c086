import json
from datetime import datetime

import pytest

from app.exceptions import AlreadyClockedIn, BreakNotFound, InvalidTimeRange, ReasonRequired, TimeEntryNotFound
from app.models.time_break import BreakStatus
from app.models.time_entry import TimeEntry, TimeEntryStatus
from app.models.time_entry_audit import AuditAction, TimeEntryAudit
from app.services.patch import UNSET, BreakPatch, TimeEntryPatch


@pytest.fixture
def completed_entry(service, employee, clock):
    """09:00-18:00 with a 10:00-10:15 break."""
    service.clock_in(employee.id)
    clock.set(datetime(2024, 1, 1, 10, 0))
    service.start_break(employee.id)
    clock.set(datetime(2024, 1, 1, 10, 15))
    service.end_break(employee.id)
    clock.set(datetime(2024, 1, 1, 18, 0))
    return service.clock_out(employee.id)


def _edit_rows(db, entry_id):
    return (
        db.query(TimeEntryAudit)
        .filter(
            TimeEntryAudit.time_entry_id == entry_id,
            TimeEntryAudit.action.in_([
                AuditAction.EDIT_CLOCK_IN.value,
                AuditAction.EDIT_CLOCK_OUT.value,
                AuditAction.EDIT_BREAK.value,
            ]),
        )
        .order_by(TimeEntryAudit.id.asc())
        .all()
    )


class TestPatch:
    def test_unset_is_distinct_from_none(self):
        patch = TimeEntryPatch(clock_out_time=None)
        assert patch.clock_in_time is UNSET
        assert patch.provided() == {"clock_out_time": None}

    def test_clock_in_cannot_be_cleared(self):
        with pytest.raises(ValueError):
            TimeEntryPatch(clock_in_time=None)

    def test_break_times_cannot_be_cleared(self):
        with pytest.raises(ValueError):
            BreakPatch(end_time=None)

    def test_from_dict_ignores_unknown_keys(self):
        patch = BreakPatch.from_dict({"start_time": datetime(2024, 1, 1, 10, 0), "reason": "x"})
        assert patch.provided() == {"start_time": datetime(2024, 1, 1, 10, 0)}


class TestUpdateEntry:
    def test_clock_out_on_active_session_completes_it(self, service, db, employee, manager, clock):
        entry = service.clock_in(employee.id)
        clock_out = datetime(2024, 1, 1, 17, 30)

        updated = service.update_entry(entry.uuid, TimeEntryPatch(clock_out_time=clock_out), manager.id, "correction")

        assert updated.status == TimeEntryStatus.COMPLETED
        assert updated.clock_out_time == clock_out
        rows = _edit_rows(db, entry.id)
        assert len(rows) == 1
        assert rows[0].action == AuditAction.EDIT_CLOCK_OUT.value
        assert rows[0].field_name == "clockOutTime"
        assert rows[0].old_value is None
        assert rows[0].new_value == "2024-01-01T17:30:00"
        assert rows[0].reason == "correction"
        assert rows[0].modified_by_user_id == manager.id

    def test_both_times_write_two_rows(self, service, db, manager, completed_entry):
        patch = TimeEntryPatch(
            clock_in_time=datetime(2024, 1, 1, 8, 30),
            clock_out_time=datetime(2024, 1, 1, 17, 30),
        )
        service.update_entry(completed_entry.uuid, patch, manager.id, "wrong times")

        rows = _edit_rows(db, completed_entry.id)
        assert [row.field_name for row in rows] == ["clockInTime", "clockOutTime"]
        assert rows[0].old_value == "2024-01-01T09:00:00"
        assert rows[0].new_value == "2024-01-01T08:30:00"
        assert rows[1].old_value == "2024-01-01T18:00:00"

    def test_unchanged_value_writes_no_row(self, service, db, manager, completed_entry):
        patch = TimeEntryPatch(clock_in_time=completed_entry.clock_in_time)
        service.update_entry(completed_entry.uuid, patch, manager.id, "no-op")
        assert _edit_rows(db, completed_entry.id) == []

    def test_notes_are_not_audited(self, service, db, manager, completed_entry):
        updated = service.update_entry(completed_entry.uuid, TimeEntryPatch(notes="Dentist"), manager.id, "note")
        assert updated.notes == "Dentist"
        assert _edit_rows(db, completed_entry.id) == []

    def test_clearing_clock_out_reopens_entry(self, service, db, employee, manager, completed_entry):
        updated = service.update_entry(completed_entry.uuid, TimeEntryPatch(clock_out_time=None), manager.id, "reopen")

        assert updated.status == TimeEntryStatus.ACTIVE
        assert updated.clock_out_time is None
        assert service.get_active_session(employee.id).id == completed_entry.id
        rows = _edit_rows(db, completed_entry.id)
        assert rows[0].old_value == "2024-01-01T18:00:00"
        assert rows[0].new_value is None

    def test_reopen_refused_when_another_session_is_active(self, service, employee, manager, clock, completed_entry):
        clock.set(datetime(2024, 1, 2, 9, 0))
        service.clock_in(employee.id)

        with pytest.raises(AlreadyClockedIn):
            service.update_entry(completed_entry.uuid, TimeEntryPatch(clock_out_time=None), manager.id, "reopen")

        service.db.refresh(completed_entry)
        assert completed_entry.status == TimeEntryStatus.COMPLETED

    def test_blank_reason_rejected(self, service, manager, completed_entry):
        with pytest.raises(ReasonRequired):
            service.update_entry(completed_entry.uuid, TimeEntryPatch(notes="x"), manager.id, "   ")

    def test_unknown_entry(self, service, manager):
        with pytest.raises(TimeEntryNotFound):
            service.update_entry("missing", TimeEntryPatch(notes="x"), manager.id, "typo")

    def test_clock_out_before_stored_clock_in_rejected(self, service, db, manager, completed_entry):
        patch = TimeEntryPatch(clock_out_time=datetime(2024, 1, 1, 7, 0))

        with pytest.raises(InvalidTimeRange):
            service.update_entry(completed_entry.uuid, patch, manager.id, "typo")

        db.refresh(completed_entry)
        assert completed_entry.clock_out_time == datetime(2024, 1, 1, 18, 0)
        assert _edit_rows(db, completed_entry.id) == []
        assert service.get_today_summary(completed_entry.user_id)["net_worked_minutes"] == 525

    def test_clock_in_after_stored_clock_out_rejected(self, service, db, manager, completed_entry):
        patch = TimeEntryPatch(clock_in_time=datetime(2024, 1, 1, 19, 0))

        with pytest.raises(InvalidTimeRange):
            service.update_entry(completed_entry.uuid, patch, manager.id, "typo")
        assert _edit_rows(db, completed_entry.id) == []

    def test_clock_in_moved_on_active_session(self, service, employee, manager):
        entry = service.clock_in(employee.id)
        patch = TimeEntryPatch(clock_in_time=datetime(2024, 1, 1, 8, 0))

        updated = service.update_entry(entry.uuid, patch, manager.id, "badge reader down")
        assert updated.clock_in_time == datetime(2024, 1, 1, 8, 0)


class TestUpdateBreak:
    def test_edit_break_recomputes_total(self, service, db, manager, completed_entry):
        time_break = completed_entry.breaks[0]
        patch = BreakPatch(end_time=datetime(2024, 1, 1, 10, 30))

        updated = service.update_break(completed_entry.uuid, time_break.uuid, patch, manager.id, "longer lunch")

        assert updated.end_time == datetime(2024, 1, 1, 10, 30)
        assert completed_entry.total_break_minutes == 30
        rows = _edit_rows(db, completed_entry.id)
        assert len(rows) == 1
        assert rows[0].action == AuditAction.EDIT_BREAK.value
        assert rows[0].field_name == "endTime"
        assert rows[0].old_value == "2024-01-01T10:15:00"

    def test_closing_active_break(self, service, employee, manager, clock):
        entry = service.clock_in(employee.id)
        clock.advance(hours=1)
        time_break = service.start_break(employee.id)

        patch = BreakPatch(end_time=datetime(2024, 1, 1, 10, 20))
        updated = service.update_break(entry.uuid, time_break.uuid, patch, manager.id, "forgot to end break")

        assert updated.status == BreakStatus.COMPLETED
        assert service.get_current_status(employee.id)["has_active_break"] is False

    def test_unknown_break(self, service, manager, completed_entry):
        with pytest.raises(BreakNotFound):
            service.update_break(completed_entry.uuid, "missing", BreakPatch(), manager.id, "typo")

    def test_start_after_stored_end_rejected(self, service, db, manager, completed_entry):
        time_break = completed_entry.breaks[0]
        patch = BreakPatch(start_time=datetime(2024, 1, 1, 12, 0))

        with pytest.raises(InvalidTimeRange):
            service.update_break(completed_entry.uuid, time_break.uuid, patch, manager.id, "typo")

        db.refresh(completed_entry)
        assert completed_entry.total_break_minutes == 15
        assert completed_entry.breaks[0].start_time == datetime(2024, 1, 1, 10, 0)
        assert _edit_rows(db, completed_entry.id) == []

    def test_end_before_stored_start_rejected(self, service, manager, completed_entry):
        time_break = completed_entry.breaks[0]
        patch = BreakPatch(end_time=datetime(2024, 1, 1, 9, 30))

        with pytest.raises(InvalidTimeRange):
            service.update_break(completed_entry.uuid, time_break.uuid, patch, manager.id, "typo")


class TestDeleteEntry:
    def test_delete_writes_audit_before_removal(self, service, db, manager, completed_entry):
        entry_id = completed_entry.id
        entry_uuid = completed_entry.uuid

        service.delete_entry(entry_uuid, manager.id, "duplicate")

        assert db.query(TimeEntry).filter(TimeEntry.uuid == entry_uuid).first() is None
        row = (
            db.query(TimeEntryAudit)
            .filter(TimeEntryAudit.time_entry_id == entry_id, TimeEntryAudit.action == AuditAction.DELETE.value)
            .one()
        )
        assert row.reason == "duplicate"
        assert json.loads(row.old_value) == {
            "clockInTime": "2024-01-01T09:00:00",
            "clockOutTime": "2024-01-01T18:00:00",
            "totalBreakMinutes": 15,
        }
        # The delete row is the last one written for the entry
        last = (
            db.query(TimeEntryAudit)
            .filter(TimeEntryAudit.time_entry_id == entry_id)
            .order_by(TimeEntryAudit.id.desc())
            .first()
        )
        assert last.id == row.id

    def test_delete_keeps_earlier_audit_rows(self, service, db, manager, completed_entry):
        entry_id = completed_entry.id
        service.delete_entry(completed_entry.uuid, manager.id, "duplicate")
        assert db.query(TimeEntryAudit).filter(TimeEntryAudit.time_entry_id == entry_id).count() == 5

    def test_delete_unknown_entry(self, service, manager):
        with pytest.raises(TimeEntryNotFound):
            service.delete_entry("missing", manager.id, "duplicate")

    def test_delete_requires_reason(self, service, manager, completed_entry):
        with pytest.raises(ReasonRequired):
            service.delete_entry(completed_entry.uuid, manager.id, "")


class TestAuditHistory:
    def test_newest_first(self, service, manager, completed_entry):
        service.update_entry(completed_entry.uuid, TimeEntryPatch(clock_in_time=datetime(2024, 1, 1, 8, 45)), manager.id, "late badge")

        history = service.get_audit_history(completed_entry.uuid)
        assert [row.action for row in history] == [
            AuditAction.EDIT_CLOCK_IN.value,
            AuditAction.CLOCK_OUT.value,
            AuditAction.BREAK_END.value,
            AuditAction.BREAK_START.value,
            AuditAction.CLOCK_IN.value,
        ]

    def test_deleted_entry_history_not_found(self, service, manager, completed_entry):
        entry_uuid = completed_entry.uuid
        service.delete_entry(entry_uuid, manager.id, "duplicate")
        with pytest.raises(TimeEntryNotFound):
            service.get_audit_history(entry_uuid)

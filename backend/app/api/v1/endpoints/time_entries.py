"""Time tracking endpoints: clock in/out, breaks, summaries, history, export and manager edits."""

import csv
import logging
from datetime import date, timedelta
from io import StringIO
from typing import Annotated, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status
from sqlalchemy.orm import Session

from app.auth import get_current_active_user, get_current_manager
from app.config import settings
from app.database import get_db
from app.schemas.audit import AuditEntryInDB
from app.schemas.auth import User
from app.schemas.time_entry import (
    BreakUpdate,
    ClockStatus,
    ExportRow,
    PaginatedTimeEntries,
    TimeBreakInDB,
    TimeEntryDelete,
    TimeEntryInDB,
    TimeEntryUpdate,
    TimeEntryWithUser,
    TodaySummary,
    WeeklySummary,
)
from app.services.attendance import AttendanceService
from app.services.patch import BreakPatch, TimeEntryPatch
from app.utils.clock import end_of_day, start_of_day

log = logging.getLogger(__name__)
router = APIRouter()

EXPORT_COLUMNS = list(ExportRow.model_fields)


def get_attendance_service(db: Session = Depends(get_db)) -> AttendanceService:
    return AttendanceService(db)


def _resolve_target_user(current_user: User, user_id: Optional[str]) -> Optional[int]:
    """Managers may target any user or 'all' (None); everyone else gets their own id."""
    if not current_user.is_manager or not user_id:
        return current_user.id
    if user_id == "all":
        return None
    try:
        return int(user_id)
    except ValueError:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="user_id must be an integer or 'all'")


# Status and quick actions

@router.get("/status", response_model=ClockStatus)
async def get_current_status(
    current_user: Annotated[User, Depends(get_current_active_user)],
    service: AttendanceService = Depends(get_attendance_service)
):
    """Get current clock status."""
    return service.get_current_status(current_user.id)


@router.post("/clock-in", response_model=TimeEntryInDB, status_code=status.HTTP_201_CREATED)
async def clock_in(
    current_user: Annotated[User, Depends(get_current_active_user)],
    service: AttendanceService = Depends(get_attendance_service)
):
    """Clock in."""
    return service.clock_in(current_user.id)


@router.post("/clock-out", response_model=TimeEntryInDB)
async def clock_out(
    current_user: Annotated[User, Depends(get_current_active_user)],
    service: AttendanceService = Depends(get_attendance_service)
):
    """Clock out."""
    return service.clock_out(current_user.id)


@router.post("/break/start", response_model=TimeBreakInDB, status_code=status.HTTP_201_CREATED)
async def start_break(
    current_user: Annotated[User, Depends(get_current_active_user)],
    service: AttendanceService = Depends(get_attendance_service)
):
    """Start a break in the active session."""
    return service.start_break(current_user.id)


@router.post("/break/end", response_model=TimeBreakInDB)
async def end_break(
    current_user: Annotated[User, Depends(get_current_active_user)],
    service: AttendanceService = Depends(get_attendance_service)
):
    """End the running break."""
    return service.end_break(current_user.id)


# Summaries

@router.get("/today", response_model=TodaySummary)
async def get_today_summary(
    current_user: Annotated[User, Depends(get_current_active_user)],
    service: AttendanceService = Depends(get_attendance_service)
):
    """Get today's worked and break totals."""
    return service.get_today_summary(current_user.id)


@router.get("/weekly", response_model=WeeklySummary)
async def get_weekly_summary(
    current_user: Annotated[User, Depends(get_current_active_user)],
    week_start: Optional[date] = Query(None, description="Any date in the requested week (YYYY-MM-DD)"),
    service: AttendanceService = Depends(get_attendance_service)
):
    """Get the Monday-anchored weekly summary."""
    return service.get_weekly_summary(current_user.id, week_start)


# History, team view and export

@router.get("/history", response_model=PaginatedTimeEntries)
async def get_history(
    current_user: Annotated[User, Depends(get_current_active_user)],
    start_date: Optional[date] = Query(None, description="Filter clock_in_time >= YYYY-MM-DD"),
    end_date: Optional[date] = Query(None, description="Filter clock_in_time <= YYYY-MM-DD"),
    user_id: Optional[str] = Query(None, description="Managers: a user id or 'all'"),
    page: int = Query(1, ge=1),
    limit: Optional[int] = Query(None, ge=1),
    service: AttendanceService = Depends(get_attendance_service)
):
    """Retrieve paginated time entries, newest first. Defaults to the last 30 days."""
    end_d = end_date or service.clock().date()
    start_d = start_date or (end_d - timedelta(days=settings.history_default_days))
    limit = min(limit or settings.history_default_limit, settings.history_max_limit)

    target_user_id = _resolve_target_user(current_user, user_id)
    return service.get_history(target_user_id, start_of_day(start_d), end_of_day(end_d), page, limit)


@router.get("/team", response_model=List[TimeEntryWithUser])
async def get_team_entries(
    current_user: Annotated[User, Depends(get_current_manager)],
    user_ids: List[int] = Query(..., description="Users to include"),
    start_date: date = Query(...),
    end_date: date = Query(...),
    service: AttendanceService = Depends(get_attendance_service)
):
    """Entries of several users for a manager's team view."""
    return service.get_team_entries(user_ids, start_of_day(start_date), end_of_day(end_date))


@router.get("/export")
async def export_entries(
    current_user: Annotated[User, Depends(get_current_active_user)],
    start_date: date = Query(...),
    end_date: date = Query(...),
    user_id: Optional[str] = Query(None, description="Managers: a user id or 'all'"),
    format: str = Query("json", pattern="^(json|csv)$"),
    service: AttendanceService = Depends(get_attendance_service)
):
    """Export entries as JSON rows or CSV. Non-managers always export their own data."""
    target_user_id = _resolve_target_user(current_user, user_id)
    rows = service.get_export_rows(
        target_user_id,
        start_of_day(start_date),
        end_of_day(end_date),
        requesting_user_id=current_user.id,
        is_manager=current_user.is_manager
    )

    if format == "json":
        return [ExportRow(**row) for row in rows]

    buffer = StringIO()
    writer = csv.DictWriter(buffer, fieldnames=EXPORT_COLUMNS)
    writer.writeheader()
    writer.writerows(rows)
    filename = f"time-entries_{start_date.isoformat()}_{end_date.isoformat()}.csv"
    return Response(
        content=buffer.getvalue(),
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'}
    )


# Entry management (manager only for update/delete)

@router.patch("/{entry_uuid}", response_model=TimeEntryInDB)
async def update_entry(
    entry_uuid: str,
    update: TimeEntryUpdate,
    current_user: Annotated[User, Depends(get_current_manager)],
    service: AttendanceService = Depends(get_attendance_service)
):
    """Correct clock times or notes of an entry. Every time change is audited with the reason."""
    patch = TimeEntryPatch.from_dict(update.patch_fields())
    return service.update_entry(entry_uuid, patch, current_user.id, update.reason)


@router.patch("/{entry_uuid}/breaks/{break_uuid}", response_model=TimeBreakInDB)
async def update_break(
    entry_uuid: str,
    break_uuid: str,
    update: BreakUpdate,
    current_user: Annotated[User, Depends(get_current_manager)],
    service: AttendanceService = Depends(get_attendance_service)
):
    """Correct the start or end time of a break."""
    patch = BreakPatch.from_dict(update.patch_fields())
    return service.update_break(entry_uuid, break_uuid, patch, current_user.id, update.reason)


@router.delete("/{entry_uuid}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_entry(
    entry_uuid: str,
    body: TimeEntryDelete,
    current_user: Annotated[User, Depends(get_current_manager)],
    service: AttendanceService = Depends(get_attendance_service)
):
    """Delete an entry. A delete audit row with the previous state is written first."""
    service.delete_entry(entry_uuid, current_user.id, body.reason)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/{entry_uuid}/audit", response_model=List[AuditEntryInDB])
async def get_audit_trail(
    entry_uuid: str,
    current_user: Annotated[User, Depends(get_current_active_user)],
    service: AttendanceService = Depends(get_attendance_service)
):
    """Get the audit trail of an entry, most recent first."""
    return service.get_audit_history(entry_uuid)

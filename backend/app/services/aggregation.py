"""Read-side summaries, history and export over committed sessions."""

import logging
import math
from collections import OrderedDict
from datetime import date, datetime, timedelta
from typing import Any, Dict, List, Optional, Sequence, Tuple

from sqlalchemy.orm import Session, selectinload

from app.config import settings
from app.models.time_entry import TimeEntry
from app.utils.clock import Clock, monday_of, start_of_day
from app.utils.durations import minutes_between, round_minutes, to_hours

log = logging.getLogger(__name__)

IN_PROGRESS_LABELS = {"es": "En curso", "en": "In progress"}


class AggregationService:
    """
    Computes status, summaries, paginated history and export rows.

    Pure read path: never writes, never touches the audit trail. Minute
    totals are accumulated as floats and rounded only when reported.
    """

    def __init__(self, db: Session, clock: Clock):
        self.db = db
        self.clock = clock

    def session_minutes(self, entry: TimeEntry, now: datetime) -> Tuple[float, float]:
        """Worked and break minutes for one session, unrounded.

        Active sessions count up to ``now``; their stored break total does not
        include completed breaks yet, so only a running break is added live.
        """
        clock_out = entry.clock_out_time or now
        worked = minutes_between(entry.clock_in_time, clock_out)
        breaks = float(entry.total_break_minutes or 0)

        if entry.is_active:
            for time_break in entry.breaks:
                if time_break.is_active:
                    breaks += minutes_between(time_break.start_time, now)

        return worked, breaks

    def _sessions_between(self, user_id: int, start: datetime, end: datetime) -> List[TimeEntry]:
        """Sessions of one user whose clock-in falls in [start, end)."""
        return (
            self.db.query(TimeEntry)
            .options(selectinload(TimeEntry.breaks))
            .filter(
                TimeEntry.user_id == user_id,
                TimeEntry.clock_in_time >= start,
                TimeEntry.clock_in_time < end,
            )
            .order_by(TimeEntry.clock_in_time.asc())
            .all()
        )

    def today_summary(self, user_id: int) -> Dict[str, Any]:
        now = self.clock()
        day_start = start_of_day(now.date())
        entries = self._sessions_between(user_id, day_start, day_start + timedelta(days=1))

        total_worked = 0.0
        total_break = 0.0
        for entry in entries:
            worked, breaks = self.session_minutes(entry, now)
            total_worked += worked
            total_break += breaks

        net = total_worked - total_break
        return {
            "entries": entries,
            "total_worked_minutes": round_minutes(total_worked),
            "total_break_minutes": round_minutes(total_break),
            "net_worked_minutes": round_minutes(net),
            "total_worked_hours": to_hours(net),
        }

    def weekly_summary(self, user_id: int, week_start: Optional[date] = None) -> Dict[str, Any]:
        now = self.clock()
        week_start = monday_of(week_start or now.date())
        window_start = start_of_day(week_start)
        entries = self._sessions_between(user_id, window_start, window_start + timedelta(days=7))

        daily: "OrderedDict[date, Dict[str, float]]" = OrderedDict(
            (week_start + timedelta(days=i), {"worked": 0.0, "breaks": 0.0}) for i in range(7)
        )

        # A session belongs to the day it started on, even if it crosses midnight
        for entry in entries:
            bucket = daily.get(entry.clock_in_time.date())
            if bucket is None:
                continue
            worked, breaks = self.session_minutes(entry, now)
            bucket["worked"] += worked
            bucket["breaks"] += breaks

        days = []
        total_worked = 0.0
        total_break = 0.0
        for day, data in daily.items():
            net = data["worked"] - data["breaks"]
            total_worked += data["worked"]
            total_break += data["breaks"]
            days.append({
                "date": day,
                "worked_minutes": round_minutes(data["worked"]),
                "break_minutes": round_minutes(data["breaks"]),
                "net_worked_minutes": round_minutes(net),
                "net_worked_hours": to_hours(net),
            })

        total_net = total_worked - total_break
        return {
            "week_start": week_start,
            "week_end": week_start + timedelta(days=6),
            "days": days,
            "total_worked_minutes": round_minutes(total_worked),
            "total_break_minutes": round_minutes(total_break),
            "total_net_worked_minutes": round_minutes(total_net),
            "total_net_worked_hours": to_hours(total_net),
        }

    def entries_by_date_range(
        self,
        user_id: Optional[int],
        start: datetime,
        end: datetime,
        page: int = 1,
        limit: int = 20,
    ) -> Dict[str, Any]:
        """Paginated sessions with clock-in in [start, end], newest first. user_id None means all users."""
        query = self.db.query(TimeEntry).filter(TimeEntry.clock_in_time.between(start, end))
        if user_id is not None:
            query = query.filter(TimeEntry.user_id == user_id)

        total = query.count()
        entries = (
            query.options(selectinload(TimeEntry.breaks), selectinload(TimeEntry.user))
            .order_by(TimeEntry.clock_in_time.desc(), TimeEntry.id.desc())
            .offset((page - 1) * limit)
            .limit(limit)
            .all()
        )

        return {
            "entries": entries,
            "total": total,
            "page": page,
            "total_pages": math.ceil(total / limit) if limit else 0,
        }

    def entries_for_export(
        self,
        user_id: Optional[int],
        start: datetime,
        end: datetime,
        requesting_user_id: int,
        is_manager: bool,
    ) -> List[TimeEntry]:
        # Non-managers only ever get their own rows, whatever they asked for
        target_user_id = user_id if is_manager else requesting_user_id
        if target_user_id != user_id:
            log.debug(f"Export target overridden to requesting user {requesting_user_id}")

        query = (
            self.db.query(TimeEntry)
            .options(selectinload(TimeEntry.breaks), selectinload(TimeEntry.user))
            .filter(TimeEntry.clock_in_time.between(start, end))
        )
        if target_user_id is not None:
            query = query.filter(TimeEntry.user_id == target_user_id)

        return query.order_by(TimeEntry.user_id.asc(), TimeEntry.clock_in_time.asc()).all()

    def team_entries(self, user_ids: Sequence[int], start: datetime, end: datetime) -> List[TimeEntry]:
        if not user_ids:
            return []
        return (
            self.db.query(TimeEntry)
            .options(selectinload(TimeEntry.breaks), selectinload(TimeEntry.user))
            .filter(
                TimeEntry.user_id.in_(list(user_ids)),
                TimeEntry.clock_in_time.between(start, end),
            )
            .order_by(TimeEntry.user_id.asc(), TimeEntry.clock_in_time.desc())
            .all()
        )

    def calculate_worked_hours(self, entry: TimeEntry) -> float:
        """Net hours of one session using its stored break total; active sessions run to now."""
        clock_out = entry.clock_out_time or self.clock()
        total = minutes_between(entry.clock_in_time, clock_out)
        return to_hours(total - (entry.total_break_minutes or 0))

    def export_rows(self, entries: Sequence[TimeEntry]) -> List[Dict[str, Any]]:
        in_progress = IN_PROGRESS_LABELS.get(settings.locale, IN_PROGRESS_LABELS["es"])
        rows = []
        for entry in entries:
            user = entry.user
            rows.append({
                "user": (user.full_name or user.username) if user else "N/A",
                "date": entry.clock_in_time.date().isoformat(),
                "clock_in": entry.clock_in_time.strftime("%H:%M:%S"),
                "clock_out": entry.clock_out_time.strftime("%H:%M:%S") if entry.clock_out_time else in_progress,
                "break_minutes": entry.total_break_minutes,
                "worked_hours": self.calculate_worked_hours(entry),
                "status": entry.status,
                "notes": entry.notes or "",
            })
        return rows

from typing import Any, Dict, List, Optional
from datetime import date, datetime
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from app.schemas.auth import UserSummary
from app.utils.clock import to_local_naive

class TimeBreakInDB(BaseModel):
    id: int
    uuid: str
    time_entry_id: int
    start_time: datetime
    end_time: Optional[datetime] = None
    status: str

    model_config = ConfigDict(from_attributes=True)

class TimeEntryInDB(BaseModel):
    id: int
    uuid: str
    user_id: int
    clock_in_time: datetime
    clock_out_time: Optional[datetime] = None
    status: str
    total_break_minutes: int
    notes: Optional[str] = None
    breaks: List[TimeBreakInDB] = []
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)

class TimeEntryWithUser(TimeEntryInDB):
    user: Optional[UserSummary] = None

class ClockStatus(BaseModel):
    is_clocked_in: bool
    active_session: Optional[TimeEntryInDB] = None
    has_active_break: bool
    current_break: Optional[TimeBreakInDB] = None

class TodaySummary(BaseModel):
    entries: List[TimeEntryInDB]
    total_worked_minutes: int
    total_break_minutes: int
    net_worked_minutes: int
    total_worked_hours: float

class DaySummary(BaseModel):
    date: date
    worked_minutes: int
    break_minutes: int
    net_worked_minutes: int
    net_worked_hours: float

class WeeklySummary(BaseModel):
    week_start: date
    week_end: date
    days: List[DaySummary]
    total_worked_minutes: int
    total_break_minutes: int
    total_net_worked_minutes: int
    total_net_worked_hours: float

class PaginatedTimeEntries(BaseModel):
    entries: List[TimeEntryWithUser]
    total: int
    page: int
    total_pages: int

class ExportRow(BaseModel):
    user: str
    date: str
    clock_in: str
    clock_out: str
    break_minutes: int
    worked_hours: float
    status: str
    notes: str

class ManagerAction(BaseModel):
    reason: str = Field(..., description="Mandatory justification stored on every audit row")

    @field_validator("reason")
    @classmethod
    def reason_not_blank(cls, value: str) -> str:
        if not value or not value.strip():
            raise ValueError("reason must not be blank")
        return value.strip()

class TimeEntryUpdate(ManagerAction):
    """Only the keys present in the request body are applied; an explicit null clock_out_time re-opens the entry."""
    clock_in_time: Optional[datetime] = Field(None, description="New clock-in time (cannot be cleared)")
    clock_out_time: Optional[datetime] = Field(None, description="New clock-out time, or null to re-open")
    notes: Optional[str] = Field(None, description="Free-text notes (not audited)")

    @field_validator("clock_in_time", "clock_out_time")
    @classmethod
    def normalize_timezone(cls, value: Optional[datetime]) -> Optional[datetime]:
        return to_local_naive(value) if value is not None else None

    @model_validator(mode="after")
    def check_times(self) -> "TimeEntryUpdate":
        if "clock_in_time" in self.model_fields_set and self.clock_in_time is None:
            raise ValueError("clock_in_time cannot be cleared")
        if self.clock_in_time and self.clock_out_time and self.clock_out_time < self.clock_in_time:
            raise ValueError("clock_out_time must not be before clock_in_time")
        return self

    def patch_fields(self) -> Dict[str, Any]:
        return {
            key: getattr(self, key)
            for key in ("clock_in_time", "clock_out_time", "notes")
            if key in self.model_fields_set
        }

class BreakUpdate(ManagerAction):
    start_time: Optional[datetime] = Field(None, description="New break start")
    end_time: Optional[datetime] = Field(None, description="New break end")

    @field_validator("start_time", "end_time")
    @classmethod
    def normalize_timezone(cls, value: Optional[datetime]) -> Optional[datetime]:
        return to_local_naive(value) if value is not None else None

    @model_validator(mode="after")
    def check_times(self) -> "BreakUpdate":
        for key in ("start_time", "end_time"):
            if key in self.model_fields_set and getattr(self, key) is None:
                raise ValueError(f"{key} cannot be cleared")
        if self.start_time and self.end_time and self.end_time < self.start_time:
            raise ValueError("end_time must not be before start_time")
        return self

    def patch_fields(self) -> Dict[str, Any]:
        return {key: getattr(self, key) for key in ("start_time", "end_time") if key in self.model_fields_set}

class TimeEntryDelete(ManagerAction):
    pass

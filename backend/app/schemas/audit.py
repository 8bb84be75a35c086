from typing import Optional
from datetime import datetime
from pydantic import BaseModel, ConfigDict

from app.schemas.auth import UserSummary

class AuditEntryBase(BaseModel):
    action: str
    field_name: Optional[str] = None
    old_value: Optional[str] = None
    new_value: Optional[str] = None
    reason: Optional[str] = None

class AuditEntryInDB(AuditEntryBase):
    id: int
    uuid: str
    time_entry_id: int
    modified_by_user_id: int
    modified_by_user: Optional[UserSummary] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)

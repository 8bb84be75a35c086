"""Partial-update payloads for manager edits.

A field left at UNSET is not touched. A field set to None is an explicit
clear. The two must never be conflated.
"""

from dataclasses import dataclass, fields
from datetime import datetime
from typing import Any, Dict, Optional, Union


class _Unset:
    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __bool__(self):
        return False

    def __repr__(self):
        return "UNSET"


UNSET: Any = _Unset()


def is_set(value: Any) -> bool:
    return value is not UNSET


@dataclass(frozen=True)
class _Patch:

    def provided(self) -> Dict[str, Any]:
        """Fields that carry a value, including explicit None."""
        return {f.name: getattr(self, f.name) for f in fields(self) if is_set(getattr(self, f.name))}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "_Patch":
        """Build a patch from a dict holding only the keys the caller sent."""
        known = {f.name for f in fields(cls)}
        return cls(**{key: value for key, value in data.items() if key in known})


@dataclass(frozen=True)
class TimeEntryPatch(_Patch):
    clock_in_time: Union[datetime, _Unset] = UNSET
    clock_out_time: Union[Optional[datetime], _Unset] = UNSET
    notes: Union[Optional[str], _Unset] = UNSET

    def __post_init__(self):
        if self.clock_in_time is None:
            raise ValueError("clock_in_time cannot be cleared")


@dataclass(frozen=True)
class BreakPatch(_Patch):
    start_time: Union[datetime, _Unset] = UNSET
    end_time: Union[datetime, _Unset] = UNSET

    def __post_init__(self):
        if self.start_time is None or self.end_time is None:
            raise ValueError("break times cannot be cleared")

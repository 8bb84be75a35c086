"""Attendance and time tracking backend."""

__version__ = "1.0.0"

"""
Staff Ledger - Attendance Schemas
"""

from datetime import date, datetime, time
from typing import Optional, List

from pydantic import BaseModel, ConfigDict, Field

from app.models.attendance import AttendanceStatus


class AttendanceMarkRequest(BaseModel):
    """Mark (or re-mark) attendance for one day."""
    status: AttendanceStatus
    attendance_date: Optional[date] = Field(None, description="Defaults to today")
    check_in_time: Optional[time] = None
    check_out_time: Optional[time] = None
    notes: Optional[str] = Field(None, max_length=1000)


class AttendanceResponse(BaseModel):
    """Attendance record response."""
    model_config = ConfigDict(from_attributes=True)

    id: int
    employee_id: int
    attendance_date: date
    status: AttendanceStatus
    check_in_time: Optional[time] = None
    check_out_time: Optional[time] = None
    notes: Optional[str] = None
    created_at: datetime


class AttendanceHistoryResponse(BaseModel):
    """Attendance history of one employee."""
    employee_id: int
    records: List[AttendanceResponse]
    count: int

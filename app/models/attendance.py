"""
Staff Ledger - Attendance Model
"""

from datetime import date, time
from enum import Enum
from typing import TYPE_CHECKING, Optional

from sqlalchemy import Date, ForeignKey, String, Text, Time, UniqueConstraint, Enum as SQLEnum
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.models.base import BaseModel, CreatedAtMixin

if TYPE_CHECKING:
    from app.models.employee import Employee


class AttendanceStatus(str, Enum):
    """Daily attendance status."""
    PRESENT = "present"
    ABSENT = "absent"


class AttendanceRecord(BaseModel, CreatedAtMixin):
    """One attendance mark per employee per day; re-marking a day overwrites it."""

    __tablename__ = "attendance"
    __table_args__ = (
        UniqueConstraint("employee_id", "attendance_date", name="uq_attendance_employee_date"),
    )

    employee_id: Mapped[int] = mapped_column(
        ForeignKey("employees.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    attendance_date: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    status: Mapped[AttendanceStatus] = mapped_column(
        SQLEnum(AttendanceStatus, values_callable=lambda x: [e.value for e in x]),
        nullable=False,
    )
    check_in_time: Mapped[Optional[time]] = mapped_column(Time, nullable=True)
    check_out_time: Mapped[Optional[time]] = mapped_column(Time, nullable=True)
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    employee: Mapped["Employee"] = relationship(
        "Employee",
        back_populates="attendance_records",
        lazy="noload",
    )

"""
Staff Ledger - Attendance Service

Daily attendance marking. One record per employee per day; marking the
same day again overwrites the earlier mark.
"""

import logging
from datetime import date
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import atomic_unit
from app.models.attendance import AttendanceRecord
from app.models.employee import Employee
from app.schemas.attendance import AttendanceMarkRequest
from app.utils.error_handling import (
    EmployeeNotFoundOrInactiveException,
    InvalidDateRangeException,
)


logger = logging.getLogger(__name__)


class AttendanceService:
    """Service for attendance operations."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def _require_active_employee(self, employee_id: int, for_update: bool = False) -> Employee:
        query = select(Employee).where(Employee.id == employee_id, Employee.is_active == True)  # noqa: E712
        if for_update:
            # Serializes concurrent first marks of the same day
            query = query.with_for_update()
        result = await self.db.execute(query)
        employee = result.scalar_one_or_none()
        if employee is None:
            raise EmployeeNotFoundOrInactiveException(employee_id)
        return employee

    async def mark_attendance(
        self,
        employee_id: int,
        data: AttendanceMarkRequest,
    ) -> AttendanceRecord:
        """
        Mark attendance for an active employee (upsert on employee + date).

        Raises:
            EmployeeNotFoundOrInactiveException
        """
        attendance_date = data.attendance_date or date.today()

        async with atomic_unit(self.db):
            await self._require_active_employee(employee_id, for_update=True)

            result = await self.db.execute(
                select(AttendanceRecord)
                .where(
                    AttendanceRecord.employee_id == employee_id,
                    AttendanceRecord.attendance_date == attendance_date,
                )
                .with_for_update()
                .execution_options(populate_existing=True)
            )
            record = result.scalar_one_or_none()

            if record is None:
                record = AttendanceRecord(
                    employee_id=employee_id,
                    attendance_date=attendance_date,
                )
                self.db.add(record)

            record.status = data.status
            record.check_in_time = data.check_in_time
            record.check_out_time = data.check_out_time
            record.notes = data.notes
            await self.db.flush()

        logger.info(
            f"Marked employee {employee_id} {record.status.value} on {attendance_date.isoformat()}"
        )
        return record

    async def get_attendance_history(
        self,
        employee_id: int,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> List[AttendanceRecord]:
        """Get attendance records of an active employee, newest first."""
        if start_date and end_date and start_date > end_date:
            raise InvalidDateRangeException(start_date.isoformat(), end_date.isoformat())

        await self._require_active_employee(employee_id)

        query = select(AttendanceRecord).where(AttendanceRecord.employee_id == employee_id)
        if start_date:
            query = query.where(AttendanceRecord.attendance_date >= start_date)
        if end_date:
            query = query.where(AttendanceRecord.attendance_date <= end_date)
        query = query.order_by(AttendanceRecord.attendance_date.desc())

        result = await self.db.execute(query)
        return list(result.scalars().all())

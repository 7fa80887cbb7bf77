"""
Staff Ledger - Attendance and Reports Tests
"""

import pytest
from datetime import date, time, timedelta
from decimal import Decimal

from sqlalchemy import func, select

from app.models.attendance import AttendanceRecord, AttendanceStatus
from app.schemas.attendance import AttendanceMarkRequest
from app.services.attendance_service import AttendanceService
from app.services.employee_service import EmployeeService
from app.services.ledger_service import LedgerService
from app.services.reports_service import ReportsService
from app.services.settlement_service import SettlementService
from app.utils.error_handling import (
    EmployeeNotFoundOrInactiveException,
    InvalidDateRangeException,
)


class TestAttendanceService:
    """Test cases for AttendanceService."""

    @pytest.mark.asyncio
    async def test_mark_defaults_to_today(self, db_session, test_employee):
        record = await AttendanceService(db_session).mark_attendance(
            test_employee.id,
            AttendanceMarkRequest(status=AttendanceStatus.PRESENT, check_in_time=time(8, 30)),
        )

        assert record.attendance_date == date.today()
        assert record.status == AttendanceStatus.PRESENT
        assert record.check_in_time == time(8, 30)

    @pytest.mark.asyncio
    async def test_remarking_a_day_overwrites_it(self, db_session, test_employee):
        service = AttendanceService(db_session)
        day = date.today() - timedelta(days=2)

        first = await service.mark_attendance(
            test_employee.id, AttendanceMarkRequest(status=AttendanceStatus.PRESENT, attendance_date=day)
        )
        second = await service.mark_attendance(
            test_employee.id,
            AttendanceMarkRequest(status=AttendanceStatus.ABSENT, attendance_date=day, notes="Sick"),
        )

        assert second.id == first.id
        assert second.status == AttendanceStatus.ABSENT
        assert second.notes == "Sick"
        count = await db_session.scalar(
            select(func.count()).select_from(AttendanceRecord).where(
                AttendanceRecord.employee_id == test_employee.id
            )
        )
        assert count == 1

    @pytest.mark.asyncio
    async def test_history_is_newest_first_and_bounded(self, db_session, test_employee):
        service = AttendanceService(db_session)
        today = date.today()
        for days_ago in range(5):
            await service.mark_attendance(
                test_employee.id,
                AttendanceMarkRequest(
                    status=AttendanceStatus.PRESENT,
                    attendance_date=today - timedelta(days=days_ago),
                ),
            )

        records = await service.get_attendance_history(
            test_employee.id,
            start_date=today - timedelta(days=3),
            end_date=today - timedelta(days=1),
        )

        assert [r.attendance_date for r in records] == [
            today - timedelta(days=1),
            today - timedelta(days=2),
            today - timedelta(days=3),
        ]

    @pytest.mark.asyncio
    async def test_inverted_history_range_is_rejected(self, db_session, test_employee):
        with pytest.raises(InvalidDateRangeException):
            await AttendanceService(db_session).get_attendance_history(
                test_employee.id, start_date=date(2026, 5, 2), end_date=date(2026, 5, 1)
            )

    @pytest.mark.asyncio
    async def test_marking_inactive_employee_is_rejected(self, db_session, test_employee):
        await EmployeeService(db_session).deactivate_employee(test_employee.id)

        with pytest.raises(EmployeeNotFoundOrInactiveException):
            await AttendanceService(db_session).mark_attendance(
                test_employee.id, AttendanceMarkRequest(status=AttendanceStatus.PRESENT)
            )

    @pytest.mark.asyncio
    async def test_marking_unknown_employee_is_rejected(self, db_session):
        with pytest.raises(EmployeeNotFoundOrInactiveException):
            await AttendanceService(db_session).mark_attendance(
                8080, AttendanceMarkRequest(status=AttendanceStatus.PRESENT)
            )


class TestReportsService:
    """Test cases for ReportsService."""

    @pytest.mark.asyncio
    async def test_summary(self, db_session, create_employee):
        first = await create_employee(name="Emeka Uche", daily_wage=Decimal("100"), opening_bonus=Decimal("60"))
        second = await create_employee(name="Funke Ola", daily_wage=Decimal("80"))
        retired = await create_employee(name="Gbenga Ade", daily_wage=Decimal("500"))
        await EmployeeService(db_session).deactivate_employee(retired.id)
        ledger = LedgerService(db_session)
        await ledger.apply_transaction(first.id, "withdrawal", "15")
        await ledger.apply_transaction(second.id, "deduction", "5")
        await AttendanceService(db_session).mark_attendance(
            first.id, AttendanceMarkRequest(status=AttendanceStatus.PRESENT)
        )

        summary = await ReportsService(db_session).get_summary()

        assert summary["total_employees"] == 3
        assert summary["active_employees"] == 2
        assert summary["present_today"] == 1
        assert summary["total_daily_wages"] == Decimal("180.00")
        assert summary["total_current_balance"] == Decimal("40.00")
        assert summary["total_withdrawals_today"] == Decimal("15.00")
        assert summary["total_bonuses_today"] == Decimal("60.00")
        assert summary["total_deductions_today"] == Decimal("5.00")

    @pytest.mark.asyncio
    async def test_attendance_report(self, db_session, create_employee):
        first = await create_employee(name="Hauwa Musa")
        second = await create_employee(name="Ife Dare")
        service = AttendanceService(db_session)
        start = date(2026, 3, 2)
        for offset, status in enumerate(
            [AttendanceStatus.PRESENT, AttendanceStatus.PRESENT, AttendanceStatus.ABSENT]
        ):
            await service.mark_attendance(
                first.id, AttendanceMarkRequest(status=status, attendance_date=start + timedelta(days=offset))
            )
        # Outside the reported range
        await service.mark_attendance(
            first.id, AttendanceMarkRequest(status=AttendanceStatus.PRESENT, attendance_date=date(2026, 4, 1))
        )

        items = await ReportsService(db_session).get_attendance_report(start, start + timedelta(days=6))

        by_name = {item["name"]: item for item in items}
        assert by_name["Hauwa Musa"]["present_days"] == 2
        assert by_name["Hauwa Musa"]["absent_days"] == 1
        assert by_name["Hauwa Musa"]["total_days"] == 3
        assert by_name["Hauwa Musa"]["attendance_percentage"] == Decimal("66.67")
        assert by_name["Ife Dare"]["total_days"] == 0
        assert by_name["Ife Dare"]["attendance_percentage"] == Decimal("0.00")
        assert by_name["Ife Dare"]["employee_id"] == second.id

    @pytest.mark.asyncio
    async def test_attendance_report_rejects_inverted_range(self, db_session):
        with pytest.raises(InvalidDateRangeException) as exc_info:
            await ReportsService(db_session).get_attendance_report(date(2026, 6, 30), date(2026, 6, 1))

        assert exc_info.value.status_code == 422

    @pytest.mark.asyncio
    async def test_financial_report(self, db_session, create_employee):
        funded = await create_employee(name="Jide Kalu", opening_bonus=Decimal("300"))
        idle = await create_employee(name="Kemi Lawal")
        ledger = LedgerService(db_session)
        await ledger.apply_transaction(funded.id, "withdrawal", "50")
        await ledger.apply_transaction(funded.id, "deduction", "25")
        await SettlementService(db_session).settle_account(funded.id)

        items = await ReportsService(db_session).get_financial_report()

        by_id = {item["employee_id"]: item for item in items}
        report = by_id[funded.id]
        assert report["total_bonuses"] == Decimal("300.00")
        assert report["total_withdrawals"] == Decimal("50.00")
        assert report["total_deductions"] == Decimal("25.00")
        assert report["total_salary_payments"] == Decimal("225.00")
        assert report["current_balance"] == Decimal("0.00")
        assert report["last_payment_date"] == date.today()
        assert by_id[idle.id]["total_bonuses"] == Decimal("0.00")
        assert by_id[idle.id]["last_payment_date"] is None

    @pytest.mark.asyncio
    async def test_financial_report_date_bounds(self, db_session, test_employee):
        ledger = LedgerService(db_session)
        today = date.today()
        await ledger.apply_transaction(test_employee.id, "bonus", "10", transaction_date=today - timedelta(days=10))
        await ledger.apply_transaction(test_employee.id, "bonus", "20", transaction_date=today)

        items = await ReportsService(db_session).get_financial_report(start_date=today - timedelta(days=1))

        assert items[0]["total_bonuses"] == Decimal("20.00")
        assert items[0]["current_balance"] == Decimal("30.00")

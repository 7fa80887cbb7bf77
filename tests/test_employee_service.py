"""
Staff Ledger - Employee Service Tests

Directory CRUD, listing, balance lookup and today's aggregates.
"""

import pytest
import pytest_asyncio
from datetime import date, timedelta
from decimal import Decimal

from pydantic import ValidationError

from app.models.attendance import AttendanceStatus
from app.models.employee import PaymentStatus
from app.schemas.attendance import AttendanceMarkRequest
from app.schemas.employee import (
    EmployeeCreate,
    EmployeeSearchCriteria,
    EmployeeUpdate,
    Pagination,
)
from app.services.attendance_service import AttendanceService
from app.services.employee_service import EmployeeService
from app.services.ledger_service import LedgerService
from app.utils.error_handling import (
    DuplicateEntryException,
    EmployeeNotFoundOrInactiveException,
    ValidationException,
)


class TestEmployeeCreate:
    """Creating employees."""

    @pytest.mark.asyncio
    async def test_create_employee(self, db_session):
        service = EmployeeService(db_session)

        employee = await service.create_employee(
            EmployeeCreate(
                name="  Chidi Okeke ",
                position="Welder",
                phone="08031234567",
                daily_wage=Decimal("200.00"),
            )
        )

        assert employee.id is not None
        assert employee.name == "Chidi Okeke"
        assert employee.phone == "08031234567"
        assert employee.current_balance == Decimal("0.00")
        assert employee.total_bonuses == Decimal("0.00")
        assert employee.total_deductions == Decimal("0.00")
        assert employee.payment_status == PaymentStatus.PENDING
        assert employee.is_active is True
        assert employee.hire_date == date.today()
        assert employee.created_at is not None

    @pytest.mark.asyncio
    async def test_create_without_phone(self, db_session):
        employee = await EmployeeService(db_session).create_employee(
            EmployeeCreate(name="Ngozi Eze", position="Cashier", phone="  ", daily_wage=Decimal("90"))
        )

        assert employee.phone == ""

    @pytest.mark.asyncio
    async def test_duplicate_name_is_rejected(self, db_session, test_employee):
        with pytest.raises(DuplicateEntryException) as exc_info:
            await EmployeeService(db_session).create_employee(
                EmployeeCreate(name=test_employee.name, position="Driver", daily_wage=Decimal("50"))
            )

        assert exc_info.value.status_code == 409
        assert exc_info.value.details["field"] == "name"

    @pytest.mark.parametrize(
        "payload",
        [
            {"name": "A", "position": "Driver", "daily_wage": "10"},
            {"name": "Valid Name", "position": "D", "daily_wage": "10"},
            {"name": "Valid Name", "position": "Driver", "daily_wage": "-1"},
            {"name": "Valid Name", "position": "Driver", "daily_wage": "10000.01"},
            {"name": "Valid Name", "position": "Driver", "daily_wage": "10", "phone": "123"},
            {"name": "Valid Name", "position": "Driver", "daily_wage": "10.123"},
            {"position": "Driver", "daily_wage": "10"},
        ],
    )
    def test_invalid_create_payloads(self, payload):
        with pytest.raises(ValidationError):
            EmployeeCreate(**payload)

    def test_balance_fields_are_not_accepted(self):
        data = EmployeeCreate(
            name="Tunde Bello",
            position="Driver",
            daily_wage=Decimal("10"),
            current_balance=Decimal("5000"),
        )

        assert not hasattr(data, "current_balance")


class TestEmployeeUpdate:
    """Partial updates and soft delete."""

    @pytest.mark.asyncio
    async def test_partial_update(self, db_session, test_employee):
        service = EmployeeService(db_session)

        employee = await service.update_employee(
            test_employee.id,
            EmployeeUpdate(position="Supervisor", daily_wage=Decimal("175.50")),
        )

        assert employee.position == "Supervisor"
        assert employee.daily_wage == Decimal("175.50")
        assert employee.name == test_employee.name

    @pytest.mark.asyncio
    async def test_update_payment_status_and_clear_phone(self, db_session, create_employee):
        created = await create_employee(name="Bisi Ade")
        service = EmployeeService(db_session)

        employee = await service.update_employee(
            created.id,
            EmployeeUpdate(payment_status=PaymentStatus.DEFERRED, phone=None),
        )

        assert employee.payment_status == PaymentStatus.DEFERRED
        assert employee.phone == ""

    @pytest.mark.asyncio
    async def test_empty_update_is_rejected(self, db_session, test_employee):
        with pytest.raises(ValidationException):
            await EmployeeService(db_session).update_employee(test_employee.id, EmployeeUpdate())

    @pytest.mark.asyncio
    async def test_null_required_fields_are_rejected(self, db_session, test_employee):
        with pytest.raises(ValidationException) as exc_info:
            await EmployeeService(db_session).update_employee(
                test_employee.id, EmployeeUpdate(name=None, daily_wage=None)
            )

        fields = {error["field"] for error in exc_info.value.details["errors"]}
        assert fields == {"name", "daily_wage"}

    @pytest.mark.asyncio
    async def test_rename_to_taken_name_is_rejected(self, db_session, create_employee):
        await create_employee(name="First Person")
        second = await create_employee(name="Second Person")

        with pytest.raises(DuplicateEntryException):
            await EmployeeService(db_session).update_employee(
                second.id, EmployeeUpdate(name="First Person")
            )

    @pytest.mark.asyncio
    async def test_update_unknown_employee(self, db_session):
        with pytest.raises(EmployeeNotFoundOrInactiveException):
            await EmployeeService(db_session).update_employee(777, EmployeeUpdate(position="Driver"))

    @pytest.mark.asyncio
    async def test_deactivate_employee(self, db_session, test_employee):
        service = EmployeeService(db_session)

        employee = await service.deactivate_employee(test_employee.id)

        assert employee.is_active is False
        with pytest.raises(EmployeeNotFoundOrInactiveException):
            await service.deactivate_employee(test_employee.id)
        with pytest.raises(EmployeeNotFoundOrInactiveException):
            await service.update_employee(test_employee.id, EmployeeUpdate(position="Driver"))
        with pytest.raises(EmployeeNotFoundOrInactiveException):
            await service.get_employee_with_today_aggregates(test_employee.id)


class TestEmployeeBalance:
    """Balance lookup never raises for a missing employee."""

    @pytest.mark.asyncio
    async def test_balance_of_active_employee(self, db_session, create_employee):
        funded = await create_employee(opening_bonus=Decimal("12.34"))

        balance = await EmployeeService(db_session).get_balance(funded.id)

        assert balance.exists is True
        assert balance.is_active is True
        assert balance.current_balance == Decimal("12.34")

    @pytest.mark.asyncio
    async def test_balance_of_missing_employee(self, db_session):
        balance = await EmployeeService(db_session).get_balance(31337)

        assert balance.exists is False
        assert balance.is_active is False
        assert balance.current_balance is None

    @pytest.mark.asyncio
    async def test_balance_of_inactive_employee(self, db_session, create_employee):
        funded = await create_employee(opening_bonus=Decimal("5"))
        service = EmployeeService(db_session)
        await service.deactivate_employee(funded.id)

        balance = await service.get_balance(funded.id)

        assert balance.exists is True
        assert balance.is_active is False
        assert balance.current_balance == Decimal("5.00")


class TestTodayAggregates:
    """Employee view with today's ledger totals and attendance."""

    @pytest.mark.asyncio
    async def test_defaults_without_activity(self, db_session, test_employee):
        data = await EmployeeService(db_session).get_employee_with_today_aggregates(test_employee.id)

        assert data["id"] == test_employee.id
        assert data["name"] == test_employee.name
        assert data["today_withdrawals"] == Decimal("0.00")
        assert data["today_bonuses"] == Decimal("0.00")
        assert data["today_deductions"] == Decimal("0.00")
        assert data["today_attendance"] == AttendanceStatus.ABSENT

    @pytest.mark.asyncio
    async def test_sums_only_todays_transactions(self, db_session, test_employee):
        ledger = LedgerService(db_session)
        yesterday = date.today() - timedelta(days=1)
        await ledger.apply_transaction(test_employee.id, "bonus", "100", transaction_date=yesterday)
        await ledger.apply_transaction(test_employee.id, "bonus", "30")
        await ledger.apply_transaction(test_employee.id, "bonus", "20")
        await ledger.apply_transaction(test_employee.id, "withdrawal", "25.50")
        await ledger.apply_transaction(test_employee.id, "deduction", "4.50")
        await ledger.apply_transaction(test_employee.id, "salary_payment", "10")
        await AttendanceService(db_session).mark_attendance(
            test_employee.id, AttendanceMarkRequest(status=AttendanceStatus.PRESENT)
        )

        data = await EmployeeService(db_session).get_employee_with_today_aggregates(test_employee.id)

        assert data["today_bonuses"] == Decimal("50.00")
        assert data["today_withdrawals"] == Decimal("25.50")
        assert data["today_deductions"] == Decimal("4.50")
        assert data["today_attendance"] == AttendanceStatus.PRESENT
        assert data["current_balance"] == Decimal("110.00")

    @pytest.mark.asyncio
    async def test_unknown_employee(self, db_session):
        with pytest.raises(EmployeeNotFoundOrInactiveException):
            await EmployeeService(db_session).get_employee_with_today_aggregates(5150)


class TestEmployeeListing:
    """Filters, ordering and pagination."""

    @pytest_asyncio.fixture
    async def staff(self, create_employee):
        return [
            await create_employee(name="Amaka Nwosu", position="Tailor", daily_wage=Decimal("120")),
            await create_employee(name="Bayo Adams", position="Driver", daily_wage=Decimal("80")),
            await create_employee(name="Chika Obi", position="Senior Tailor", daily_wage=Decimal("150")),
            await create_employee(name="Dayo Bello", position="Guard", daily_wage=Decimal("60")),
        ]

    @pytest.mark.asyncio
    async def test_default_order_is_by_name(self, db_session, staff):
        result = await EmployeeService(db_session).list_employees()

        assert [e["name"] for e in result["employees"]] == [
            "Amaka Nwosu", "Bayo Adams", "Chika Obi", "Dayo Bello",
        ]
        assert result["total"] == 4
        assert result["total_pages"] == 1
        assert result["has_next"] is False
        assert result["has_previous"] is False

    @pytest.mark.asyncio
    async def test_filter_by_position_is_case_insensitive(self, db_session, staff):
        result = await EmployeeService(db_session).list_employees(
            EmployeeSearchCriteria(position="tailor")
        )

        assert {e["name"] for e in result["employees"]} == {"Amaka Nwosu", "Chika Obi"}

    @pytest.mark.asyncio
    async def test_filter_by_name(self, db_session, staff):
        result = await EmployeeService(db_session).list_employees(EmployeeSearchCriteria(name="BAYO"))

        assert [e["name"] for e in result["employees"]] == ["Bayo Adams"]

    @pytest.mark.asyncio
    async def test_filter_by_payment_status(self, db_session, staff):
        service = EmployeeService(db_session)
        await service.update_employee(staff[1].id, EmployeeUpdate(payment_status=PaymentStatus.PAID))

        result = await service.list_employees(EmployeeSearchCriteria(payment_status=PaymentStatus.PAID))

        assert [e["name"] for e in result["employees"]] == ["Bayo Adams"]

    @pytest.mark.asyncio
    async def test_filter_by_attendance_status(self, db_session, staff):
        attendance = AttendanceService(db_session)
        await attendance.mark_attendance(staff[0].id, AttendanceMarkRequest(status=AttendanceStatus.PRESENT))
        await attendance.mark_attendance(staff[1].id, AttendanceMarkRequest(status=AttendanceStatus.ABSENT))
        service = EmployeeService(db_session)

        present = await service.list_employees(
            EmployeeSearchCriteria(attendance_status=AttendanceStatus.PRESENT)
        )
        absent = await service.list_employees(
            EmployeeSearchCriteria(attendance_status=AttendanceStatus.ABSENT)
        )

        assert [e["name"] for e in present["employees"]] == ["Amaka Nwosu"]
        assert [e["name"] for e in absent["employees"]] == ["Bayo Adams", "Chika Obi", "Dayo Bello"]

    @pytest.mark.asyncio
    async def test_sort_by_wage_descending(self, db_session, staff):
        result = await EmployeeService(db_session).list_employees(
            pagination=Pagination(sort_by="daily_wage", sort_order="DESC")
        )

        assert [e["name"] for e in result["employees"]] == [
            "Chika Obi", "Amaka Nwosu", "Bayo Adams", "Dayo Bello",
        ]

    @pytest.mark.asyncio
    async def test_pagination(self, db_session, staff):
        result = await EmployeeService(db_session).list_employees(pagination=Pagination(page=2, limit=3))

        assert [e["name"] for e in result["employees"]] == ["Dayo Bello"]
        assert result["total"] == 4
        assert result["total_pages"] == 2
        assert result["has_next"] is False
        assert result["has_previous"] is True

    @pytest.mark.asyncio
    async def test_inactive_employees_are_hidden(self, db_session, staff):
        service = EmployeeService(db_session)
        await service.deactivate_employee(staff[0].id)

        result = await service.list_employees()

        assert "Amaka Nwosu" not in [e["name"] for e in result["employees"]]
        assert result["total"] == 3

    def test_unknown_sort_field_is_rejected(self):
        with pytest.raises(ValidationError):
            Pagination(sort_by="current_balance; DROP TABLE employees")

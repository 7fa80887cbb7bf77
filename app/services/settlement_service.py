"""
Staff Ledger - Settlement Service

Zeroes an employee's outstanding balance with a salary payment.

The balance read, the salary_payment posting and the payment status update
share one atomic unit that locks the employee row first, so the amount paid
is always the balance at the instant of payment.
"""

import logging
from datetime import date
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from app.config import Settings
from app.database import atomic_unit
from app.models.employee import PaymentStatus
from app.models.ledger import TransactionType
from app.services.ledger_service import LedgerService
from app.utils.error_handling import NothingToSettleException


logger = logging.getLogger(__name__)


class SettlementService:
    """Service for settling employee accounts."""

    def __init__(self, db: AsyncSession, settings: Optional[Settings] = None):
        self.db = db
        self.ledger = LedgerService(db, settings)

    async def settle_account(self, employee_id: int) -> bool:
        """
        Pay out the full positive balance of an employee.

        Posts a salary_payment for the whole balance (not subject to the
        amount ceiling), marks the employee paid and stamps today's date.

        Raises:
            EmployeeNotFoundOrInactiveException: unknown or inactive employee
            NothingToSettleException: balance is zero or negative
        """
        async with atomic_unit(self.db):
            employee = await self.ledger.lock_active_employee(employee_id)
            balance = employee.current_balance

            if balance <= 0:
                logger.warning(f"Nothing to settle for employee {employee_id}: balance {balance}")
                raise NothingToSettleException(employee_id, balance)

            today = date.today()
            entry = await self.ledger.post(
                employee,
                TransactionType.SALARY_PAYMENT,
                balance,
                description=f"Salary settlement for {employee.name} on {today.isoformat()}",
                transaction_date=today,
            )
            employee.payment_status = PaymentStatus.PAID
            employee.last_payment_date = today
            await self.db.flush()

        logger.info(
            f"Settled employee {employee_id}: paid {balance} (transaction {entry.id})"
        )
        return True

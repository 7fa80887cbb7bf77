"""
Staff Ledger - Ledger Service

Balance mutation for employee accounts.

Every approved financial operation produces exactly one append-only
FinancialTransaction row and one update of the employee's cached totals,
both inside a single atomic unit that holds the employee row lock:

    withdrawal      balance -amount
    deduction       balance -amount, total_deductions +amount
    bonus           balance +amount, total_bonuses +amount
    salary_payment  balance -amount

Only withdrawals are capped by the current balance.
"""

import logging
from dataclasses import dataclass
from datetime import date
from decimal import Decimal, InvalidOperation
from typing import Any, List, Optional, Tuple

from sqlalchemy import case, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import Settings, settings as default_settings
from app.database import atomic_unit
from app.models.employee import Employee
from app.models.ledger import BALANCE_SIGN, FinancialTransaction, TransactionType
from app.utils.error_handling import (
    AmountSuspiciousException,
    AppException,
    EmployeeNotFoundOrInactiveException,
    InsufficientBalanceException,
    InvalidAmountException,
    InvalidTransactionTypeException,
    ValidationException,
    raise_validation_errors,
)


logger = logging.getLogger(__name__)

CENT = Decimal("0.01")
ZERO = Decimal("0.00")
SYSTEM_ACTOR = "system"

# Largest value a Numeric(12, 2) column holds
MAX_AMOUNT = Decimal("9999999999.99")


@dataclass(frozen=True)
class LedgerReconciliation:
    """Cached employee totals next to the totals derived from the ledger."""
    employee_id: int
    current_balance: Decimal
    ledger_balance: Decimal
    total_bonuses: Decimal
    ledger_bonuses: Decimal
    total_deductions: Decimal
    ledger_deductions: Decimal
    entry_count: int

    @property
    def is_consistent(self) -> bool:
        return (
            self.current_balance == self.ledger_balance
            and self.total_bonuses == self.ledger_bonuses
            and self.total_deductions == self.ledger_deductions
        )


def parse_amount(amount: Any) -> Decimal:
    """
    Convert a requested amount to a Decimal with two decimal places.

    Raises:
        InvalidAmountException: not a number, not finite, not positive,
            more than two decimal places, or larger than MAX_AMOUNT
    """
    if isinstance(amount, bool) or amount is None:
        raise InvalidAmountException(amount)
    try:
        value = Decimal(str(amount).strip())
        if not value.is_finite() or value <= 0:
            raise InvalidAmountException(amount)
        quantized = value.quantize(CENT)
    except (InvalidOperation, ValueError) as exc:
        raise InvalidAmountException(amount) from exc
    if quantized != value:
        raise InvalidAmountException(
            amount,
            message=f"Invalid amount: {amount}. At most 2 decimal places are allowed.",
        )
    if quantized > MAX_AMOUNT:
        raise InvalidAmountException(
            amount,
            message=f"Invalid amount: {amount}. The largest amount accepted is {MAX_AMOUNT}.",
        )
    return quantized


class LedgerService:
    """Service for applying financial transactions to employee balances."""

    def __init__(self, db: AsyncSession, settings: Optional[Settings] = None):
        self.db = db
        self.settings = settings or default_settings

    # ===========================================
    # VALIDATION
    # ===========================================

    def validate_transaction_request(
        self,
        transaction_type: Any,
        amount: Any,
    ) -> Tuple[TransactionType, Decimal]:
        """
        Validate the transaction kind and amount without touching the store.

        Every violated field is reported: one violation raises its specific
        exception, several raise a single ValidationException listing all.

        Returns:
            Normalized (TransactionType, Decimal amount)
        """
        errors: List[ValidationException] = []
        kind: Optional[TransactionType] = None
        value: Optional[Decimal] = None

        try:
            kind = TransactionType(transaction_type)
        except ValueError:
            errors.append(
                InvalidTransactionTypeException(
                    transaction_type, [t.value for t in TransactionType]
                )
            )

        try:
            value = parse_amount(amount)
        except InvalidAmountException as exc:
            errors.append(exc)
        else:
            ceiling = self.settings.transaction_amount_ceiling
            if self.settings.enforce_amount_ceiling and value > ceiling:
                errors.append(AmountSuspiciousException(value, ceiling))

        raise_validation_errors(errors)
        return kind, value

    # ===========================================
    # MUTATION
    # ===========================================

    async def apply_transaction(
        self,
        employee_id: int,
        transaction_type: Any,
        amount: Any,
        description: Optional[str] = None,
        transaction_date: Optional[date] = None,
        created_by: Optional[str] = None,
    ) -> FinancialTransaction:
        """
        Validate and apply one financial transaction.

        The balance check, the ledger insert and the employee update run in
        one atomic unit under the employee row lock. Nothing is written when
        any step fails.

        Raises:
            InvalidTransactionTypeException / InvalidAmountException /
            AmountSuspiciousException / ValidationException: bad request
            EmployeeNotFoundOrInactiveException: unknown or inactive employee
            InsufficientBalanceException: withdrawal above current balance
            StoreUnavailableException / DatabaseException: store failure
        """
        try:
            kind, value = self.validate_transaction_request(transaction_type, amount)

            async with atomic_unit(self.db):
                employee = await self.lock_active_employee(employee_id)
                if kind is TransactionType.WITHDRAWAL and value > employee.current_balance:
                    raise InsufficientBalanceException(
                        employee_id, requested=value, available=employee.current_balance
                    )
                entry = await self.post(
                    employee,
                    kind,
                    value,
                    description=description,
                    transaction_date=transaction_date,
                    created_by=created_by,
                )
        except AppException as exc:
            if exc.status_code < 500:
                logger.warning(
                    f"Rejected {transaction_type!r} of {amount!r} for employee {employee_id}: "
                    f"{exc.code.value} {exc.message}"
                )
            raise

        logger.info(
            f"Applied {kind.value} of {value} for employee {employee_id} "
            f"(transaction {entry.id}, balance now {employee.current_balance})"
        )
        return entry

    async def lock_active_employee(self, employee_id: int) -> Employee:
        """
        Load the employee row FOR UPDATE, refreshing any identity-map copy.

        Must be called inside an atomic unit.
        """
        result = await self.db.execute(
            select(Employee)
            .where(Employee.id == employee_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        employee = result.scalar_one_or_none()
        if employee is None or not employee.is_active:
            raise EmployeeNotFoundOrInactiveException(employee_id)
        return employee

    async def post(
        self,
        employee: Employee,
        transaction_type: TransactionType,
        amount: Decimal,
        description: Optional[str] = None,
        transaction_date: Optional[date] = None,
        created_by: Optional[str] = None,
    ) -> FinancialTransaction:
        """
        Append a ledger entry and apply its effect to a locked employee.

        Performs no validation; callers validate and hold the row lock.
        """
        entry = await self._append_ledger_entry(
            employee.id, transaction_type, amount, description, transaction_date, created_by
        )
        await self._apply_delta(employee, transaction_type, amount)
        return entry

    async def _append_ledger_entry(
        self,
        employee_id: int,
        transaction_type: TransactionType,
        amount: Decimal,
        description: Optional[str],
        transaction_date: Optional[date],
        created_by: Optional[str],
    ) -> FinancialTransaction:
        entry = FinancialTransaction(
            employee_id=employee_id,
            transaction_type=transaction_type,
            amount=amount,
            description=description,
            transaction_date=transaction_date or date.today(),
            created_by=created_by or SYSTEM_ACTOR,
        )
        self.db.add(entry)
        await self.db.flush()
        return entry

    async def _apply_delta(
        self,
        employee: Employee,
        transaction_type: TransactionType,
        amount: Decimal,
    ) -> None:
        employee.current_balance = employee.current_balance + BALANCE_SIGN[transaction_type] * amount
        if transaction_type is TransactionType.BONUS:
            employee.total_bonuses = employee.total_bonuses + amount
        elif transaction_type is TransactionType.DEDUCTION:
            employee.total_deductions = employee.total_deductions + amount
        await self.db.flush()

    # ===========================================
    # QUERIES
    # ===========================================

    async def get_employee_transactions(
        self,
        employee_id: int,
        limit: Optional[int] = None,
    ) -> List[FinancialTransaction]:
        """Get an employee's ledger entries, newest first."""
        await self._require_active_employee(employee_id)

        result = await self.db.execute(
            select(FinancialTransaction)
            .where(FinancialTransaction.employee_id == employee_id)
            .order_by(
                FinancialTransaction.transaction_date.desc(),
                FinancialTransaction.created_at.desc(),
                FinancialTransaction.id.desc(),
            )
            .limit(limit or self.settings.default_transaction_limit)
        )
        return list(result.scalars().all())

    async def reconcile(self, employee_id: int) -> LedgerReconciliation:
        """
        Recompute an employee's totals from the ledger and compare them with
        the cached values on the employee row.
        """
        employee = await self._require_active_employee(employee_id)

        signed = case(
            (FinancialTransaction.transaction_type == TransactionType.BONUS, FinancialTransaction.amount),
            else_=-FinancialTransaction.amount,
        )
        bonuses = case(
            (FinancialTransaction.transaction_type == TransactionType.BONUS, FinancialTransaction.amount),
            else_=0,
        )
        deductions = case(
            (FinancialTransaction.transaction_type == TransactionType.DEDUCTION, FinancialTransaction.amount),
            else_=0,
        )
        result = await self.db.execute(
            select(
                func.coalesce(func.sum(signed), 0).label("balance"),
                func.coalesce(func.sum(bonuses), 0).label("bonuses"),
                func.coalesce(func.sum(deductions), 0).label("deductions"),
                func.count(FinancialTransaction.id).label("entries"),
            ).where(FinancialTransaction.employee_id == employee_id)
        )
        row = result.one()

        return LedgerReconciliation(
            employee_id=employee_id,
            current_balance=Decimal(employee.current_balance).quantize(CENT),
            ledger_balance=Decimal(str(row.balance)).quantize(CENT),
            total_bonuses=Decimal(employee.total_bonuses).quantize(CENT),
            ledger_bonuses=Decimal(str(row.bonuses)).quantize(CENT),
            total_deductions=Decimal(employee.total_deductions).quantize(CENT),
            ledger_deductions=Decimal(str(row.deductions)).quantize(CENT),
            entry_count=row.entries,
        )

    async def _require_active_employee(self, employee_id: int) -> Employee:
        employee = await self.db.get(Employee, employee_id)
        if employee is None or not employee.is_active:
            raise EmployeeNotFoundOrInactiveException(employee_id)
        return employee

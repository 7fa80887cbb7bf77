"""
Staff Ledger - Financial Transaction Model

The ledger: an append-only log of every financial operation applied to an
employee's balance. Rows are inserted once and never updated or deleted.
"""

from datetime import date
from decimal import Decimal
from enum import Enum
from typing import TYPE_CHECKING, Dict, Optional

from sqlalchemy import (
    CheckConstraint, Date, ForeignKey, Index, Numeric, String, Text,
    Enum as SQLEnum,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.models.base import BaseModel, CreatedAtMixin

if TYPE_CHECKING:
    from app.models.employee import Employee


class TransactionType(str, Enum):
    """Kind of financial transaction."""
    WITHDRAWAL = "withdrawal"
    DEDUCTION = "deduction"
    BONUS = "bonus"
    SALARY_PAYMENT = "salary_payment"


# Sign applied to the amount when computing the balance delta
BALANCE_SIGN: Dict[TransactionType, int] = {
    TransactionType.WITHDRAWAL: -1,
    TransactionType.DEDUCTION: -1,
    TransactionType.BONUS: 1,
    TransactionType.SALARY_PAYMENT: -1,
}


class FinancialTransaction(BaseModel, CreatedAtMixin):
    """
    One immutable ledger entry.

    The amount is always stored positive; its effect on the balance is
    derived from transaction_type (see BALANCE_SIGN).
    """

    __tablename__ = "financial_transactions"
    __table_args__ = (
        CheckConstraint("amount > 0", name="amount_positive"),
        Index("ix_financial_transactions_employee_date", "employee_id", "transaction_date"),
    )

    employee_id: Mapped[int] = mapped_column(
        ForeignKey("employees.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )
    transaction_type: Mapped[TransactionType] = mapped_column(
        SQLEnum(TransactionType, values_callable=lambda x: [e.value for e in x]),
        nullable=False,
        index=True,
    )
    amount: Mapped[Decimal] = mapped_column(
        Numeric(precision=12, scale=2),
        nullable=False,
    )
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    transaction_date: Mapped[date] = mapped_column(Date, nullable=False)
    created_by: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)

    employee: Mapped["Employee"] = relationship(
        "Employee",
        back_populates="transactions",
        lazy="noload",
    )

    @property
    def balance_delta(self) -> Decimal:
        """Signed effect of this entry on the employee balance."""
        return self.amount * BALANCE_SIGN[self.transaction_type]

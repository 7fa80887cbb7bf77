"""
Staff Ledger - Financial Transaction Schemas

Pydantic schemas for ledger requests and responses.

The transaction type and amount are accepted as sent so that the ledger
service reports an unknown kind and an unparseable amount together, each under
its own error code.
"""

from datetime import date, datetime
from decimal import Decimal
from typing import Any, Optional, List

from pydantic import BaseModel, ConfigDict, Field

from app.models.ledger import TransactionType


# ===========================================
# REQUEST SCHEMAS
# ===========================================

class TransactionCreateRequest(BaseModel):
    """Schema for posting a financial transaction."""
    transaction_type: str = Field(..., description="withdrawal, deduction, bonus or salary_payment")
    amount: Any = Field(..., description="Positive amount, at most 2 decimal places")
    description: Optional[str] = Field(None, max_length=500)
    transaction_date: Optional[date] = Field(None, description="Defaults to today")
    created_by: Optional[str] = Field(None, max_length=100)


# ===========================================
# RESPONSE SCHEMAS
# ===========================================

class TransactionResponse(BaseModel):
    """Ledger entry response."""
    model_config = ConfigDict(from_attributes=True)

    id: int
    employee_id: int
    transaction_type: TransactionType
    amount: Decimal
    description: Optional[str] = None
    transaction_date: date
    created_by: Optional[str] = None
    created_at: datetime


class TransactionListResponse(BaseModel):
    """Recent ledger entries of one employee."""
    employee_id: int
    transactions: List[TransactionResponse]
    count: int


class SettlementResponse(BaseModel):
    """Result of settling an employee account."""
    employee_id: int
    settled: bool


class ReconciliationResponse(BaseModel):
    """Cached balance compared with the balance derived from the ledger."""
    employee_id: int
    current_balance: Decimal
    ledger_balance: Decimal
    total_bonuses: Decimal
    ledger_bonuses: Decimal
    total_deductions: Decimal
    ledger_deductions: Decimal
    entry_count: int
    is_consistent: bool

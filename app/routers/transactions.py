"""
Staff Ledger - Transactions Router

API endpoints for the employee ledger: posting transactions, history,
reconciliation and settlement.
"""

from typing import Optional

from fastapi import APIRouter, Depends, status, Query, Path
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_async_session
from app.schemas.transaction import (
    TransactionCreateRequest,
    TransactionResponse,
    TransactionListResponse,
    SettlementResponse,
    ReconciliationResponse,
)
from app.services.ledger_service import LedgerService
from app.services.settlement_service import SettlementService


router = APIRouter()


@router.post(
    "/{employee_id}/transactions",
    response_model=TransactionResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Post a financial transaction",
    description="Apply a withdrawal, deduction, bonus or salary payment to the employee balance.",
)
async def create_transaction(
    data: TransactionCreateRequest,
    employee_id: int = Path(..., gt=0),
    db: AsyncSession = Depends(get_async_session),
):
    service = LedgerService(db)
    return await service.apply_transaction(
        employee_id=employee_id,
        transaction_type=data.transaction_type,
        amount=data.amount,
        description=data.description,
        transaction_date=data.transaction_date,
        created_by=data.created_by,
    )


@router.get(
    "/{employee_id}/transactions",
    response_model=TransactionListResponse,
    summary="List employee transactions",
)
async def list_transactions(
    employee_id: int = Path(..., gt=0),
    limit: Optional[int] = Query(None, ge=1, le=500, description="Defaults to 50"),
    db: AsyncSession = Depends(get_async_session),
):
    """Recent ledger entries, newest first."""
    service = LedgerService(db)
    transactions = await service.get_employee_transactions(employee_id, limit=limit)
    return TransactionListResponse(
        employee_id=employee_id,
        transactions=[TransactionResponse.model_validate(t) for t in transactions],
        count=len(transactions),
    )


@router.get(
    "/{employee_id}/reconciliation",
    response_model=ReconciliationResponse,
    summary="Reconcile balance with ledger",
)
async def reconcile_employee(
    employee_id: int = Path(..., gt=0),
    db: AsyncSession = Depends(get_async_session),
):
    """Compare the cached balance and counters with the ledger sums."""
    service = LedgerService(db)
    result = await service.reconcile(employee_id)
    return ReconciliationResponse(
        employee_id=result.employee_id,
        current_balance=result.current_balance,
        ledger_balance=result.ledger_balance,
        total_bonuses=result.total_bonuses,
        ledger_bonuses=result.ledger_bonuses,
        total_deductions=result.total_deductions,
        ledger_deductions=result.ledger_deductions,
        entry_count=result.entry_count,
        is_consistent=result.is_consistent,
    )


@router.post(
    "/{employee_id}/settle",
    response_model=SettlementResponse,
    summary="Settle employee account",
    description="Pay out the full positive balance as a salary payment.",
)
async def settle_employee(
    employee_id: int = Path(..., gt=0),
    db: AsyncSession = Depends(get_async_session),
):
    service = SettlementService(db)
    settled = await service.settle_account(employee_id)
    return SettlementResponse(employee_id=employee_id, settled=settled)

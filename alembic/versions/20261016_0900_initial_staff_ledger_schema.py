"""Initial Staff Ledger schema - employees, financial transactions, attendance

Revision ID: 20261016_0900_initial_staff_ledger_schema
Revises:
Create Date: 2026-10-16 09:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = '20261016_0900_initial_staff_ledger_schema'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # Create ENUMs
    payment_status_enum = postgresql.ENUM('pending', 'paid', 'deferred', name='paymentstatus', create_type=False)
    payment_status_enum.create(op.get_bind(), checkfirst=True)

    transaction_type_enum = postgresql.ENUM('withdrawal', 'deduction', 'bonus', 'salary_payment', name='transactiontype', create_type=False)
    transaction_type_enum.create(op.get_bind(), checkfirst=True)

    attendance_status_enum = postgresql.ENUM('present', 'absent', name='attendancestatus', create_type=False)
    attendance_status_enum.create(op.get_bind(), checkfirst=True)

    # =====================================================
    # EMPLOYEES TABLE
    # =====================================================
    op.create_table(
        'employees',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.Column('position', sa.String(length=100), nullable=False),
        sa.Column('phone', sa.String(length=20), nullable=False, server_default=''),
        sa.Column('hire_date', sa.Date(), nullable=False, server_default=sa.text('CURRENT_DATE')),
        sa.Column('daily_wage', sa.Numeric(precision=12, scale=2), nullable=False, server_default='0.00'),
        sa.Column('current_balance', sa.Numeric(precision=12, scale=2), nullable=False, server_default='0.00'),
        sa.Column('total_bonuses', sa.Numeric(precision=12, scale=2), nullable=False, server_default='0.00'),
        sa.Column('total_deductions', sa.Numeric(precision=12, scale=2), nullable=False, server_default='0.00'),
        sa.Column('payment_status', payment_status_enum, nullable=False, server_default='pending'),
        sa.Column('last_payment_date', sa.Date(), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.CheckConstraint('daily_wage >= 0', name=op.f('ck_employees_daily_wage_non_negative')),
        sa.CheckConstraint('total_bonuses >= 0', name=op.f('ck_employees_total_bonuses_non_negative')),
        sa.CheckConstraint('total_deductions >= 0', name=op.f('ck_employees_total_deductions_non_negative')),
        sa.PrimaryKeyConstraint('id', name=op.f('pk_employees')),
        sa.UniqueConstraint('name', name=op.f('uq_employees_name')),
    )
    op.create_index(op.f('ix_employees_is_active'), 'employees', ['is_active'], unique=False)

    # =====================================================
    # FINANCIAL TRANSACTIONS TABLE (append-only ledger)
    # =====================================================
    op.create_table(
        'financial_transactions',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('employee_id', sa.Integer(), nullable=False),
        sa.Column('transaction_type', transaction_type_enum, nullable=False),
        sa.Column('amount', sa.Numeric(precision=12, scale=2), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('transaction_date', sa.Date(), nullable=False),
        sa.Column('created_by', sa.String(length=100), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.CheckConstraint('amount > 0', name=op.f('ck_financial_transactions_amount_positive')),
        sa.ForeignKeyConstraint(['employee_id'], ['employees.id'], name=op.f('fk_financial_transactions_employee_id_employees'), ondelete='RESTRICT'),
        sa.PrimaryKeyConstraint('id', name=op.f('pk_financial_transactions')),
    )
    op.create_index(op.f('ix_financial_transactions_employee_id'), 'financial_transactions', ['employee_id'], unique=False)
    op.create_index('ix_financial_transactions_employee_date', 'financial_transactions', ['employee_id', 'transaction_date'], unique=False)
    op.create_index(op.f('ix_financial_transactions_transaction_type'), 'financial_transactions', ['transaction_type'], unique=False)

    # =====================================================
    # ATTENDANCE TABLE
    # =====================================================
    op.create_table(
        'attendance',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('employee_id', sa.Integer(), nullable=False),
        sa.Column('attendance_date', sa.Date(), nullable=False),
        sa.Column('status', attendance_status_enum, nullable=False),
        sa.Column('check_in_time', sa.Time(), nullable=True),
        sa.Column('check_out_time', sa.Time(), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.ForeignKeyConstraint(['employee_id'], ['employees.id'], name=op.f('fk_attendance_employee_id_employees'), ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id', name=op.f('pk_attendance')),
        sa.UniqueConstraint('employee_id', 'attendance_date', name='uq_attendance_employee_date'),
    )
    op.create_index(op.f('ix_attendance_employee_id'), 'attendance', ['employee_id'], unique=False)
    op.create_index(op.f('ix_attendance_attendance_date'), 'attendance', ['attendance_date'], unique=False)


def downgrade() -> None:
    op.drop_index(op.f('ix_attendance_attendance_date'), table_name='attendance')
    op.drop_index(op.f('ix_attendance_employee_id'), table_name='attendance')
    op.drop_table('attendance')

    op.drop_index(op.f('ix_financial_transactions_transaction_type'), table_name='financial_transactions')
    op.drop_index('ix_financial_transactions_employee_date', table_name='financial_transactions')
    op.drop_index(op.f('ix_financial_transactions_employee_id'), table_name='financial_transactions')
    op.drop_table('financial_transactions')

    op.drop_index(op.f('ix_employees_is_active'), table_name='employees')
    op.drop_table('employees')

    op.execute('DROP TYPE IF EXISTS attendancestatus')
    op.execute('DROP TYPE IF EXISTS transactiontype')
    op.execute('DROP TYPE IF EXISTS paymentstatus')

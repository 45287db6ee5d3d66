"""create billing, payroll and export tables

Revision ID: 202610190003
Revises: 202610190002
Create Date: 2026-10-19 00:03:00
"""

from collections.abc import Sequence

from alembic import op
import sqlalchemy as sa


revision: str = "202610190003"
down_revision: str | None = "202610190002"
branch_labels: Sequence[str] | None = None
depends_on: Sequence[str] | None = None


def upgrade() -> None:
    op.create_table(
        "billing_invoice",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("invoice_number", sa.String(length=40), nullable=False),
        sa.Column("amount_cents", sa.Integer(), nullable=False),
        sa.Column("status", sa.String(length=32), nullable=False, server_default="DRAFT"),
        sa.Column("issued_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("due_date", sa.DateTime(timezone=True), nullable=False),
        sa.Column("paid_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("client_id", sa.Uuid(), nullable=False),
        sa.Column("work_order_id", sa.Uuid(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["client_id"], ["crm_client.id"], ondelete="RESTRICT"),
        sa.ForeignKeyConstraint(["work_order_id"], ["ops_work_order.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("invoice_number"),
    )
    op.create_index("ix_billing_invoice_status", "billing_invoice", ["status"], unique=False)
    op.create_index("ix_billing_invoice_client_id", "billing_invoice", ["client_id"], unique=False)
    op.create_index("ix_billing_invoice_due_date", "billing_invoice", ["due_date"], unique=False)
    op.create_table(
        "billing_payment_record",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("invoice_id", sa.Uuid(), nullable=False),
        sa.Column("amount_cents", sa.Integer(), nullable=False),
        sa.Column("processor", sa.String(length=60), nullable=False),
        sa.Column("external_reference", sa.String(length=120), nullable=True),
        sa.Column("status", sa.String(length=16), nullable=False, server_default="SETTLED"),
        sa.Column("paid_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["invoice_id"], ["billing_invoice.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_billing_payment_record_invoice_id", "billing_payment_record", ["invoice_id"], unique=False)
    op.create_index("ix_billing_payment_record_status", "billing_payment_record", ["status"], unique=False)
    op.create_table(
        "payroll_run",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("period_start", sa.DateTime(timezone=True), nullable=False),
        sa.Column("period_end", sa.DateTime(timezone=True), nullable=False),
        sa.Column("status", sa.String(length=16), nullable=False, server_default="DRAFT"),
        sa.Column("total_gross_cents", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("processed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_payroll_run_period_end", "payroll_run", ["period_end"], unique=False)
    op.create_table(
        "payroll_entry",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("payroll_run_id", sa.Uuid(), nullable=False),
        sa.Column("employee_id", sa.Uuid(), nullable=False),
        sa.Column("hours_worked", sa.Float(), nullable=False),
        sa.Column("base_rate_cents", sa.Integer(), nullable=False),
        sa.Column("bonus_cents", sa.Integer(), nullable=False),
        sa.Column("gross_cents", sa.Integer(), nullable=False),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["payroll_run_id"], ["payroll_run.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["employee_id"], ["crm_employee.id"], ondelete="RESTRICT"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_payroll_entry_payroll_run_id", "payroll_entry", ["payroll_run_id"], unique=False)
    op.create_index("ix_payroll_entry_employee_id", "payroll_entry", ["employee_id"], unique=False)
    op.create_table(
        "report_export_job",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("resource", sa.String(length=40), nullable=False),
        sa.Column("format", sa.String(length=16), nullable=False, server_default="csv"),
        sa.Column("status", sa.String(length=16), nullable=False, server_default="COMPLETED"),
        sa.Column("requested_by", sa.String(length=120), nullable=False),
        sa.Column("row_count", sa.Integer(), nullable=False),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_report_export_job_created_at", "report_export_job", ["created_at"], unique=False)


def downgrade() -> None:
    op.drop_index("ix_report_export_job_created_at", table_name="report_export_job")
    op.drop_table("report_export_job")
    op.drop_index("ix_payroll_entry_employee_id", table_name="payroll_entry")
    op.drop_index("ix_payroll_entry_payroll_run_id", table_name="payroll_entry")
    op.drop_table("payroll_entry")
    op.drop_index("ix_payroll_run_period_end", table_name="payroll_run")
    op.drop_table("payroll_run")
    op.drop_index("ix_billing_payment_record_status", table_name="billing_payment_record")
    op.drop_index("ix_billing_payment_record_invoice_id", table_name="billing_payment_record")
    op.drop_table("billing_payment_record")
    op.drop_index("ix_billing_invoice_due_date", table_name="billing_invoice")
    op.drop_index("ix_billing_invoice_client_id", table_name="billing_invoice")
    op.drop_index("ix_billing_invoice_status", table_name="billing_invoice")
    op.drop_table("billing_invoice")

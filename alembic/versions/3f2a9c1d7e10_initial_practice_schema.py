"""Initial practice schema

Revision ID: 3f2a9c1d7e10
Revises:
Create Date: 2026-10-19 09:12:44.204518

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '3f2a9c1d7e10'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _id():
    return sa.Column("id", sa.String(length=36), primary_key=True)


def _owner():
    return sa.Column("user_id", sa.String(length=36), nullable=False)


def _timestamps():
    return [
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
    ]


def upgrade():
    op.create_table(
        "profiles",
        _id(),
        sa.Column("user_id", sa.String(length=36), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("password_hash", sa.String(length=255), nullable=False),
        sa.Column("first_name", sa.String(length=100)),
        sa.Column("last_name", sa.String(length=100)),
        sa.Column("company_name", sa.String(length=255)),
        sa.Column("phone", sa.String(length=30)),
        sa.Column("status", sa.String(length=32), nullable=False),
        sa.Column("email_confirmed_at", sa.DateTime()),
        sa.Column("last_sign_in_at", sa.DateTime()),
        *_timestamps(),
    )
    op.create_index("ix_profiles_user_id", "profiles", ["user_id"], unique=True)
    op.create_index("ix_profiles_email", "profiles", ["email"], unique=True)

    op.create_table(
        "revoked_tokens",
        sa.Column("jti", sa.String(length=36), primary_key=True),
        _owner(),
        sa.Column("expires_at", sa.DateTime(), nullable=False),
        sa.Column("revoked_at", sa.DateTime(), nullable=False),
    )
    op.create_index("ix_revoked_tokens_user_id", "revoked_tokens", ["user_id"])

    op.create_table(
        "clients",
        _id(),
        _owner(),
        sa.Column("client_type", sa.String(length=32), nullable=False),
        sa.Column("first_name", sa.String(length=100)),
        sa.Column("last_name", sa.String(length=100)),
        sa.Column("company_name", sa.String(length=255)),
        sa.Column("email", sa.String(length=255)),
        sa.Column("phone", sa.String(length=30)),
        sa.Column("address", sa.Text()),
        sa.Column("city", sa.String(length=100)),
        sa.Column("postal_code", sa.String(length=20)),
        sa.Column("country", sa.String(length=100)),
        sa.Column("registration_number", sa.String(length=50)),
        sa.Column("notes", sa.Text()),
        *_timestamps(),
    )
    op.create_index("ix_clients_user_id", "clients", ["user_id"])
    op.create_index("ix_clients_created_at", "clients", ["created_at"])

    op.create_table(
        "legal_cases",
        _id(),
        _owner(),
        sa.Column("case_number", sa.String(length=50), nullable=False),
        sa.Column("title", sa.String(length=255), nullable=False),
        sa.Column("description", sa.Text()),
        sa.Column("case_type", sa.String(length=100), nullable=False),
        sa.Column("status", sa.String(length=32), nullable=False),
        sa.Column("priority", sa.String(length=32), nullable=False),
        sa.Column("start_date", sa.Date(), nullable=False),
        sa.Column("end_date", sa.Date()),
        sa.Column("opposing_party", sa.String(length=255)),
        sa.Column("court_name", sa.String(length=255)),
        sa.Column("estimated_value", sa.Numeric(12, 2)),
        sa.Column("actual_value", sa.Numeric(12, 2)),
        sa.Column("client_id", sa.String(length=36), sa.ForeignKey("clients.id", ondelete="SET NULL")),
        *_timestamps(),
        sa.UniqueConstraint("user_id", "case_number", name="uq_legal_cases_user_case_number"),
    )
    op.create_index("ix_legal_cases_user_id", "legal_cases", ["user_id"])
    op.create_index("ix_legal_cases_status", "legal_cases", ["status"])
    op.create_index("ix_legal_cases_client_id", "legal_cases", ["client_id"])
    op.create_index("ix_legal_cases_created_at", "legal_cases", ["created_at"])

    op.create_table(
        "tasks",
        _id(),
        _owner(),
        sa.Column("title", sa.String(length=255), nullable=False),
        sa.Column("description", sa.Text()),
        sa.Column("task_type", sa.String(length=100), nullable=False),
        sa.Column("status", sa.String(length=32), nullable=False),
        sa.Column("priority", sa.String(length=32), nullable=False),
        sa.Column("due_date", sa.DateTime()),
        sa.Column("completed_at", sa.DateTime()),
        sa.Column("reminder_date", sa.DateTime()),
        sa.Column("assigned_to", sa.String(length=36)),
        sa.Column("legal_case_id", sa.String(length=36), sa.ForeignKey("legal_cases.id", ondelete="SET NULL")),
        *_timestamps(),
    )
    op.create_index("ix_tasks_user_id", "tasks", ["user_id"])
    op.create_index("ix_tasks_status", "tasks", ["status"])
    op.create_index("ix_tasks_due_date", "tasks", ["due_date"])
    op.create_index("ix_tasks_legal_case_id", "tasks", ["legal_case_id"])

    op.create_table(
        "invoices",
        _id(),
        _owner(),
        sa.Column("invoice_number", sa.String(length=50), nullable=False),
        sa.Column("status", sa.String(length=32), nullable=False),
        sa.Column("issue_date", sa.Date(), nullable=False),
        sa.Column("due_date", sa.Date(), nullable=False),
        sa.Column("subtotal", sa.Numeric(12, 2), nullable=False),
        sa.Column("tax_rate", sa.Numeric(5, 4), nullable=False),
        sa.Column("tax_amount", sa.Numeric(12, 2), nullable=False),
        sa.Column("total_amount", sa.Numeric(12, 2), nullable=False),
        sa.Column("paid_amount", sa.Numeric(12, 2), nullable=False),
        sa.Column("payment_method", sa.String(length=50)),
        sa.Column("payment_date", sa.Date()),
        sa.Column("notes", sa.Text()),
        sa.Column("client_id", sa.String(length=36), sa.ForeignKey("clients.id"), nullable=False),
        sa.Column("legal_case_id", sa.String(length=36), sa.ForeignKey("legal_cases.id", ondelete="SET NULL")),
        *_timestamps(),
    )
    op.create_index("ix_invoices_user_id", "invoices", ["user_id"])
    op.create_index("ix_invoices_invoice_number", "invoices", ["invoice_number"])
    op.create_index("ix_invoices_status", "invoices", ["status"])
    op.create_index("ix_invoices_due_date", "invoices", ["due_date"])
    op.create_index("ix_invoices_client_id", "invoices", ["client_id"])
    op.create_index("ix_invoices_legal_case_id", "invoices", ["legal_case_id"])
    op.create_index("ix_invoices_created_at", "invoices", ["created_at"])

    op.create_table(
        "invoice_lines",
        _id(),
        sa.Column("invoice_id", sa.String(length=36), sa.ForeignKey("invoices.id", ondelete="CASCADE"), nullable=False),
        sa.Column("description", sa.String(length=255), nullable=False),
        sa.Column("quantity", sa.Numeric(10, 2), nullable=False),
        sa.Column("unit_price", sa.Numeric(12, 2), nullable=False),
        sa.Column("total_price", sa.Numeric(12, 2), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
    )
    op.create_index("ix_invoice_lines_invoice_id", "invoice_lines", ["invoice_id"])

    op.create_table(
        "appointments",
        _id(),
        _owner(),
        sa.Column("title", sa.String(length=255), nullable=False),
        sa.Column("description", sa.Text()),
        sa.Column("start_datetime", sa.DateTime(), nullable=False),
        sa.Column("end_datetime", sa.DateTime(), nullable=False),
        sa.Column("location", sa.String(length=255)),
        sa.Column("status", sa.String(length=32), nullable=False),
        sa.Column("appointment_type", sa.String(length=100), nullable=False),
        sa.Column("notes", sa.Text()),
        sa.Column("reminder_sent", sa.Boolean()),
        sa.Column("client_id", sa.String(length=36), sa.ForeignKey("clients.id", ondelete="SET NULL")),
        sa.Column("legal_case_id", sa.String(length=36), sa.ForeignKey("legal_cases.id", ondelete="SET NULL")),
        *_timestamps(),
    )
    op.create_index("ix_appointments_user_id", "appointments", ["user_id"])
    op.create_index("ix_appointments_start_datetime", "appointments", ["start_datetime"])
    op.create_index("ix_appointments_status", "appointments", ["status"])
    op.create_index("ix_appointments_client_id", "appointments", ["client_id"])
    op.create_index("ix_appointments_legal_case_id", "appointments", ["legal_case_id"])

    op.create_table(
        "documents",
        _id(),
        _owner(),
        sa.Column("title", sa.String(length=255), nullable=False),
        sa.Column("description", sa.Text()),
        sa.Column("document_type", sa.String(length=32), nullable=False),
        sa.Column("file_name", sa.String(length=255)),
        sa.Column("file_url", sa.String(length=500)),
        sa.Column("file_size", sa.BigInteger()),
        sa.Column("mime_type", sa.String(length=100)),
        sa.Column("is_confidential", sa.Boolean()),
        sa.Column("version", sa.Integer()),
        sa.Column("storage_state", sa.String(length=32), nullable=False, server_default="stored"),
        sa.Column("legal_case_id", sa.String(length=36), sa.ForeignKey("legal_cases.id", ondelete="CASCADE")),
        sa.Column("client_id", sa.String(length=36), sa.ForeignKey("clients.id", ondelete="SET NULL")),
        *_timestamps(),
    )
    op.create_index("ix_documents_user_id", "documents", ["user_id"])
    op.create_index("ix_documents_document_type", "documents", ["document_type"])
    op.create_index("ix_documents_legal_case_id", "documents", ["legal_case_id"])
    op.create_index("ix_documents_client_id", "documents", ["client_id"])
    op.create_index("ix_documents_created_at", "documents", ["created_at"])

    op.create_table(
        "communications",
        _id(),
        _owner(),
        sa.Column("communication_type", sa.String(length=50), nullable=False),
        sa.Column("direction", sa.String(length=32), nullable=False),
        sa.Column("subject", sa.String(length=255)),
        sa.Column("content", sa.Text()),
        sa.Column("contact_person", sa.String(length=255)),
        sa.Column("communication_date", sa.DateTime(), nullable=False),
        sa.Column("follow_up_required", sa.Boolean()),
        sa.Column("follow_up_date", sa.Date()),
        sa.Column("client_id", sa.String(length=36), sa.ForeignKey("clients.id", ondelete="SET NULL")),
        sa.Column("legal_case_id", sa.String(length=36), sa.ForeignKey("legal_cases.id", ondelete="SET NULL")),
        *_timestamps(),
    )
    op.create_index("ix_communications_user_id", "communications", ["user_id"])
    op.create_index("ix_communications_communication_date", "communications", ["communication_date"])
    op.create_index("ix_communications_client_id", "communications", ["client_id"])
    op.create_index("ix_communications_legal_case_id", "communications", ["legal_case_id"])


def downgrade():
    op.drop_table("communications")
    op.drop_table("documents")
    op.drop_table("appointments")
    op.drop_table("invoice_lines")
    op.drop_table("invoices")
    op.drop_table("tasks")
    op.drop_table("legal_cases")
    op.drop_table("clients")
    op.drop_table("revoked_tokens")
    op.drop_table("profiles")

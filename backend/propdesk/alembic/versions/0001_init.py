"""init schema

Revision ID: 0001_init
Revises:
Create Date: 2026-10-18
"""
from alembic import op
import sqlalchemy as sa


revision = "0001_init"
down_revision = None
branch_labels = None
depends_on = None

MONEY = sa.Numeric(12, 2)


def _created_at():
    return sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now())


def upgrade():
    op.create_table(
        "organizations",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("name", sa.String(length=160), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("address", sa.String(length=255), nullable=True),
        sa.Column("phone", sa.String(length=40), nullable=True),
        sa.Column("email", sa.String(length=200), nullable=True),
        sa.Column("website", sa.String(length=200), nullable=True),
        _created_at(),
    )

    op.create_table(
        "app_users",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("organization_id", sa.Integer(), sa.ForeignKey("organizations.id"), nullable=True),
        sa.Column("email", sa.String(length=200), nullable=False),
        sa.Column("first_name", sa.String(length=80), nullable=True),
        sa.Column("last_name", sa.String(length=80), nullable=True),
        sa.Column("role", sa.String(length=30), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        _created_at(),
    )
    op.create_index("ix_app_users_email", "app_users", ["email"], unique=True)
    op.create_index("ix_app_users_organization_id", "app_users", ["organization_id"])

    op.create_table(
        "entities",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column(
            "organization_id", sa.Integer(), sa.ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False
        ),
        sa.Column("name", sa.String(length=160), nullable=False),
        sa.Column("legal_name", sa.String(length=200), nullable=True),
        sa.Column("entity_type", sa.String(length=40), nullable=False, server_default="LLC"),
        sa.Column("tax_id", sa.String(length=40), nullable=True),
        sa.Column("address", sa.String(length=255), nullable=True),
        sa.Column("phone", sa.String(length=40), nullable=True),
        sa.Column("email", sa.String(length=200), nullable=True),
        _created_at(),
    )
    op.create_index("ix_entities_organization_id", "entities", ["organization_id"])

    op.create_table(
        "properties",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("entity_id", sa.Integer(), sa.ForeignKey("entities.id", ondelete="CASCADE"), nullable=False),
        sa.Column("name", sa.String(length=160), nullable=False),
        sa.Column("address", sa.String(length=255), nullable=False),
        sa.Column("city", sa.String(length=120), nullable=False),
        sa.Column("state", sa.String(length=2), nullable=False),
        sa.Column("zip_code", sa.String(length=10), nullable=False),
        sa.Column("property_type", sa.String(length=40), nullable=False, server_default="RESIDENTIAL"),
        sa.Column("total_units", sa.Integer(), nullable=True),
        sa.Column("year_built", sa.Integer(), nullable=True),
        sa.Column("square_feet", sa.Integer(), nullable=True),
        sa.Column("description", sa.Text(), nullable=True),
        _created_at(),
    )
    op.create_index("ix_properties_entity_id", "properties", ["entity_id"])

    op.create_table(
        "spaces",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("property_id", sa.Integer(), sa.ForeignKey("properties.id", ondelete="CASCADE"), nullable=False),
        sa.Column("unit_number", sa.String(length=40), nullable=False),
        sa.Column("name", sa.String(length=160), nullable=True),
        sa.Column("space_type", sa.String(length=40), nullable=False, server_default="UNIT"),
        sa.Column("floor", sa.Integer(), nullable=True),
        sa.Column("bedrooms", sa.Integer(), nullable=True),
        sa.Column("bathrooms", sa.Float(), nullable=True),
        sa.Column("square_feet", sa.Integer(), nullable=True),
        sa.Column("rent", MONEY, nullable=True),
        sa.Column("deposit", MONEY, nullable=True),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("amenities", sa.Text(), nullable=True),
        _created_at(),
        sa.Column("updated_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.UniqueConstraint("property_id", "unit_number", name="uq_spaces_property_unit_number"),
    )
    op.create_index("ix_spaces_property_id", "spaces", ["property_id"])

    op.create_table(
        "tenants",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("organization_id", sa.Integer(), sa.ForeignKey("organizations.id"), nullable=False),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("app_users.id"), nullable=True),
        sa.Column("first_name", sa.String(length=80), nullable=False),
        sa.Column("last_name", sa.String(length=80), nullable=False),
        sa.Column("email", sa.String(length=200), nullable=True),
        sa.Column("phone", sa.String(length=40), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        _created_at(),
    )
    op.create_index("ix_tenants_organization_id", "tenants", ["organization_id"])
    op.create_index("ix_tenants_user_id", "tenants", ["user_id"])

    op.create_table(
        "leases",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("space_id", sa.Integer(), sa.ForeignKey("spaces.id", ondelete="CASCADE"), nullable=False),
        sa.Column("tenant_id", sa.Integer(), sa.ForeignKey("tenants.id"), nullable=False),
        sa.Column("start_date", sa.DateTime(), nullable=False),
        sa.Column("end_date", sa.DateTime(), nullable=False),
        sa.Column("monthly_rent", MONEY, nullable=False),
        sa.Column("security_deposit", MONEY, nullable=True),
        sa.Column("status", sa.String(length=20), nullable=False, server_default="DRAFT"),
        _created_at(),
    )
    op.create_index("ix_leases_space_id", "leases", ["space_id"])
    op.create_index("ix_leases_tenant_id", "leases", ["tenant_id"])
    op.create_index("ix_leases_status", "leases", ["status"])
    op.create_index(
        "uq_leases_one_active_per_space",
        "leases",
        ["space_id"],
        unique=True,
        sqlite_where=sa.text("status = 'ACTIVE'"),
        postgresql_where=sa.text("status = 'ACTIVE'"),
    )

    op.create_table(
        "invoices",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("lease_id", sa.Integer(), sa.ForeignKey("leases.id", ondelete="CASCADE"), nullable=False),
        sa.Column("invoice_number", sa.String(length=40), nullable=False),
        sa.Column("invoice_type", sa.String(length=20), nullable=False, server_default="RENT"),
        sa.Column("amount", MONEY, nullable=False),
        sa.Column("due_date", sa.DateTime(), nullable=False),
        sa.Column("status", sa.String(length=20), nullable=False, server_default="DRAFT"),
        _created_at(),
        sa.UniqueConstraint("invoice_number", name="uq_invoices_invoice_number"),
    )
    op.create_index("ix_invoices_lease_id", "invoices", ["lease_id"])
    op.create_index("ix_invoices_due_date", "invoices", ["due_date"])
    op.create_index("ix_invoices_status", "invoices", ["status"])

    op.create_table(
        "payments",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("invoice_id", sa.Integer(), sa.ForeignKey("invoices.id", ondelete="CASCADE"), nullable=False),
        sa.Column("amount", MONEY, nullable=False),
        sa.Column("payment_date", sa.DateTime(), nullable=False),
        sa.Column("payment_method", sa.String(length=20), nullable=False, server_default="BANK_TRANSFER"),
        sa.Column("status", sa.String(length=20), nullable=False, server_default="PENDING"),
        sa.Column("reference_number", sa.String(length=80), nullable=True),
        _created_at(),
    )
    op.create_index("ix_payments_invoice_id", "payments", ["invoice_id"])
    op.create_index("ix_payments_payment_date", "payments", ["payment_date"])
    op.create_index("ix_payments_status", "payments", ["status"])

    op.create_table(
        "payment_applications",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("payment_id", sa.Integer(), sa.ForeignKey("payments.id", ondelete="CASCADE"), nullable=False),
        sa.Column("invoice_id", sa.Integer(), sa.ForeignKey("invoices.id", ondelete="CASCADE"), nullable=False),
        sa.Column("applied_amount", MONEY, nullable=False),
        sa.Column("applied_date", sa.DateTime(), nullable=False, server_default=sa.func.now()),
    )
    op.create_index("ix_payment_applications_payment_id", "payment_applications", ["payment_id"])
    op.create_index("ix_payment_applications_invoice_id", "payment_applications", ["invoice_id"])

    op.create_table(
        "property_expenses",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("property_id", sa.Integer(), sa.ForeignKey("properties.id", ondelete="CASCADE"), nullable=False),
        sa.Column("expense_type", sa.String(length=20), nullable=False, server_default="OTHER"),
        sa.Column("amount", MONEY, nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("expense_date", sa.DateTime(), nullable=False),
        sa.Column("vendor", sa.String(length=160), nullable=True),
        _created_at(),
    )
    op.create_index("ix_property_expenses_property_id", "property_expenses", ["property_id"])
    op.create_index("ix_property_expenses_expense_date", "property_expenses", ["expense_date"])

    op.create_table(
        "maintenance_requests",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("property_id", sa.Integer(), sa.ForeignKey("properties.id", ondelete="CASCADE"), nullable=False),
        sa.Column("space_id", sa.Integer(), sa.ForeignKey("spaces.id", ondelete="SET NULL"), nullable=True),
        sa.Column("tenant_id", sa.Integer(), sa.ForeignKey("tenants.id"), nullable=True),
        sa.Column("title", sa.String(length=200), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("priority", sa.String(length=20), nullable=False, server_default="MEDIUM"),
        sa.Column("status", sa.String(length=20), nullable=False, server_default="OPEN"),
        sa.Column("estimated_cost", MONEY, nullable=True),
        sa.Column("actual_cost", MONEY, nullable=True),
        sa.Column("requested_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column("completed_at", sa.DateTime(), nullable=True),
    )
    op.create_index("ix_maintenance_requests_property_id", "maintenance_requests", ["property_id"])
    op.create_index("ix_maintenance_requests_space_id", "maintenance_requests", ["space_id"])
    op.create_index("ix_maintenance_requests_tenant_id", "maintenance_requests", ["tenant_id"])
    op.create_index("ix_maintenance_requests_status", "maintenance_requests", ["status"])
    op.create_index("ix_maintenance_requests_requested_at", "maintenance_requests", ["requested_at"])

    op.create_table(
        "maintenance_assignments",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column(
            "maintenance_request_id",
            sa.Integer(),
            sa.ForeignKey("maintenance_requests.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("assigned_user_id", sa.Integer(), sa.ForeignKey("app_users.id"), nullable=False),
        sa.Column("status", sa.String(length=20), nullable=False, server_default="ASSIGNED"),
        _created_at(),
    )
    op.create_index(
        "ix_maintenance_assignments_maintenance_request_id", "maintenance_assignments", ["maintenance_request_id"]
    )
    op.create_index("ix_maintenance_assignments_assigned_user_id", "maintenance_assignments", ["assigned_user_id"])

    op.create_table(
        "user_entities",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("app_users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("entity_id", sa.Integer(), sa.ForeignKey("entities.id", ondelete="CASCADE"), nullable=False),
        sa.UniqueConstraint("user_id", "entity_id", name="uq_user_entities_user_entity"),
    )
    op.create_index("ix_user_entities_user_id", "user_entities", ["user_id"])
    op.create_index("ix_user_entities_entity_id", "user_entities", ["entity_id"])

    op.create_table(
        "user_properties",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("app_users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("property_id", sa.Integer(), sa.ForeignKey("properties.id", ondelete="CASCADE"), nullable=False),
        sa.UniqueConstraint("user_id", "property_id", name="uq_user_properties_user_property"),
    )
    op.create_index("ix_user_properties_user_id", "user_properties", ["user_id"])
    op.create_index("ix_user_properties_property_id", "user_properties", ["property_id"])

    op.create_table(
        "audit_events",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("org_id", sa.Integer(), sa.ForeignKey("organizations.id"), nullable=True),
        sa.Column("actor_user_id", sa.Integer(), nullable=True),
        sa.Column("actor_role", sa.String(length=30), nullable=True),
        sa.Column("action", sa.String(length=80), nullable=False),
        sa.Column("entity_type", sa.String(length=80), nullable=False),
        sa.Column("entity_id", sa.String(length=80), nullable=False),
        sa.Column("before_json", sa.Text(), nullable=True),
        sa.Column("after_json", sa.Text(), nullable=True),
        _created_at(),
    )
    op.create_index("ix_audit_events_org_id", "audit_events", ["org_id"])


def downgrade():
    op.drop_table("audit_events")
    op.drop_table("user_properties")
    op.drop_table("user_entities")
    op.drop_table("maintenance_assignments")
    op.drop_table("maintenance_requests")
    op.drop_table("property_expenses")
    op.drop_table("payment_applications")
    op.drop_table("payments")
    op.drop_table("invoices")
    op.drop_table("leases")
    op.drop_table("tenants")
    op.drop_table("spaces")
    op.drop_table("properties")
    op.drop_table("entities")
    op.drop_table("app_users")
    op.drop_table("organizations")

"""Initial database schema

Revision ID: 000_initial_schema
Revises:
Create Date: 2026-10-19

"""

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision: str = "000_initial_schema"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps():
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
    ]


def upgrade() -> None:
    """Create all initial tables."""

    # Users table
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("full_name", sa.String(150), nullable=False),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column(
            "role",
            sa.Enum("clinic_admin", "clinic_viewer", "manager", "consultant", name="userrole"),
            nullable=False,
        ),
        sa.Column("is_active", sa.Boolean(), default=True, nullable=False),
        sa.Column("phone", sa.String(50), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)

    # Hierarchies table
    op.create_table(
        "hierarchies",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("manager_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("consultant_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=False, unique=True),
        *_timestamps(),
        sa.CheckConstraint("manager_id <> consultant_id", name="ck_hierarchies_not_self"),
    )
    op.create_index("ix_hierarchies_manager_id", "hierarchies", ["manager_id"])

    # Establishment commission settings
    op.create_table(
        "establishment_commissions",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("establishment_code", sa.String(50), nullable=False),
        sa.Column("consultant_value_per_unit", sa.Numeric(12, 2), nullable=True),
        sa.Column("consultant_bonus_interval", sa.Integer(), nullable=True),
        sa.Column("consultant_bonus_value", sa.Numeric(12, 2), nullable=True),
        sa.Column("consultant_bonus_active", sa.Boolean(), server_default=sa.true(), nullable=False),
        sa.Column("manager_bonus_active", sa.Boolean(), server_default=sa.true(), nullable=False),
        sa.Column("manager_bonus_35", sa.Numeric(12, 2), nullable=True),
        sa.Column("manager_bonus_50", sa.Numeric(12, 2), nullable=True),
        sa.Column("manager_bonus_75", sa.Numeric(12, 2), nullable=True),
        *_timestamps(),
    )
    op.create_index(
        "ix_establishment_commissions_establishment_code",
        "establishment_commissions",
        ["establishment_code"],
        unique=True,
    )

    # Leads table
    op.create_table(
        "leads",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("full_name", sa.String(150), nullable=False),
        sa.Column("phone", sa.String(50), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column(
            "status",
            sa.Enum("new", "contacted", "scheduled", "converted", "lost", name="leadstatus"),
            nullable=False,
        ),
        sa.Column("consultant_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("establishment_code", sa.String(50), nullable=True),
        sa.Column("units_sold", sa.Integer(), nullable=True),
        sa.Column("converted_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column(
            "origin_type",
            sa.Enum("direct", "referral", name="origintype"),
            nullable=False,
        ),
        sa.Column("origin_lead_id", sa.Integer(), sa.ForeignKey("leads.id"), nullable=True),
        sa.Column("split_percentage", sa.Numeric(5, 2), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_leads_status", "leads", ["status"])
    op.create_index("ix_leads_consultant_id", "leads", ["consultant_id"])
    op.create_index("ix_leads_establishment_code", "leads", ["establishment_code"])

    # Lead referrals table
    op.create_table(
        "lead_referrals",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("original_lead_id", sa.Integer(), sa.ForeignKey("leads.id"), nullable=False),
        sa.Column("new_lead_id", sa.Integer(), sa.ForeignKey("leads.id"), nullable=False),
        sa.Column("commission_percentage", sa.Numeric(5, 2), nullable=False),
        sa.Column("commission_amount", sa.Numeric(12, 2), nullable=True),
        sa.Column("processed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_by_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=True),
        *_timestamps(),
        sa.UniqueConstraint("original_lead_id", "new_lead_id", name="uq_lead_referrals_pair"),
    )
    op.create_index("ix_lead_referrals_original_lead_id", "lead_referrals", ["original_lead_id"])
    op.create_index("ix_lead_referrals_new_lead_id", "lead_referrals", ["new_lead_id"])

    # Commissions table
    op.create_table(
        "commissions",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("lead_id", sa.Integer(), sa.ForeignKey("leads.id"), nullable=False),
        sa.Column("beneficiary_user_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=False),
        sa.Column(
            "kind",
            sa.Enum(
                "consultant", "consultant_referral", "manager_override", "manager_milestone",
                name="commissionkind",
            ),
            nullable=False,
        ),
        sa.Column(
            "status",
            sa.Enum("pending", "paid", "cancelled", name="commissionstatus"),
            nullable=False,
        ),
        sa.Column("establishment_code", sa.String(50), nullable=False),
        sa.Column("units_sold", sa.Integer(), nullable=False),
        sa.Column("base_amount", sa.Numeric(12, 2), nullable=False),
        sa.Column("bonus_amount", sa.Numeric(12, 2), nullable=False),
        sa.Column("total_amount", sa.Numeric(12, 2), nullable=False),
        sa.Column("unit_rate", sa.Numeric(12, 2), nullable=False),
        sa.Column("tiers_crossed", sa.Integer(), nullable=False),
        sa.Column("percentage", sa.Numeric(5, 2), nullable=True),
        sa.Column("origin_lead_id", sa.Integer(), sa.ForeignKey("leads.id"), nullable=True),
        sa.Column("paid_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        sa.UniqueConstraint("lead_id", "kind", name="uq_commissions_lead_kind"),
    )
    op.create_index("ix_commissions_lead_id", "commissions", ["lead_id"])
    op.create_index("ix_commissions_beneficiary_user_id", "commissions", ["beneficiary_user_id"])
    op.create_index("ix_commissions_status", "commissions", ["status"])

    # Running unit counters
    op.create_table(
        "unit_counters",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("scope", sa.Enum("consultant", "team", name="counterscope"), nullable=False),
        sa.Column("owner_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("establishment_code", sa.String(50), nullable=False),
        sa.Column("units", sa.Integer(), nullable=False),
        *_timestamps(),
        sa.UniqueConstraint(
            "scope", "owner_id", "establishment_code",
            name="uq_unit_counters_scope_owner_code",
        ),
    )
    op.create_index("ix_unit_counters_owner_id", "unit_counters", ["owner_id"])

    # Audit logs table
    op.create_table(
        "audit_logs",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=True),
        sa.Column(
            "action",
            sa.Enum("convert_lead", "rebuild_counters", name="auditaction"),
            nullable=False,
        ),
        sa.Column("target_type", sa.String(50), nullable=True),
        sa.Column("target_id", sa.Integer(), nullable=True),
        sa.Column("action_metadata", sa.JSON(), nullable=True),
        sa.Column("ip_address", sa.String(45), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index("ix_audit_logs_user_id", "audit_logs", ["user_id"])
    op.create_index("ix_audit_logs_action", "audit_logs", ["action"])
    op.create_index("ix_audit_logs_created_at", "audit_logs", ["created_at"])


def downgrade() -> None:
    """Drop all tables."""
    op.drop_table("audit_logs")
    op.drop_table("unit_counters")
    op.drop_table("commissions")
    op.drop_table("lead_referrals")
    op.drop_table("leads")
    op.drop_table("establishment_commissions")
    op.drop_table("hierarchies")
    op.drop_table("users")

    for enum_name in (
        "auditaction", "counterscope", "commissionstatus", "commissionkind",
        "origintype", "leadstatus", "userrole",
    ):
        sa.Enum(name=enum_name).drop(op.get_bind(), checkfirst=True)

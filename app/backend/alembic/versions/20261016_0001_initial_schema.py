"""initial schema

Revision ID: 20261016_0001
Revises:
Create Date: 2026-10-16
"""

from __future__ import annotations

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = "20261016_0001"
down_revision = None
branch_labels = None
depends_on = None


user_role = sa.Enum("admin", "user", name="user_role")
sales_channel = sa.Enum("facebook", "shopee", "lazada", name="sales_channel")
expense_type = sa.Enum("cost", "ads", "fees", name="expense_type")


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True, nullable=False),
        sa.Column("username", sa.String(length=64), nullable=False, unique=True),
        sa.Column("password_hash", sa.String(length=255), nullable=False),
        sa.Column("display_name", sa.String(length=255), nullable=False),
        sa.Column("role", user_role, nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
    )

    op.create_table(
        "branches",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True, nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("color", sa.String(length=16), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
    )

    op.create_table(
        "employees",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True, nullable=False),
        sa.Column(
            "branch_id",
            sa.Integer(),
            sa.ForeignKey("branches.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("target_facebook", sa.Numeric(14, 2), nullable=False),
        sa.Column("target_shopee", sa.Numeric(14, 2), nullable=False),
        sa.Column("target_lazada", sa.Numeric(14, 2), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint("target_facebook >= 0", name="ck_employees_target_facebook_non_negative"),
        sa.CheckConstraint("target_shopee >= 0", name="ck_employees_target_shopee_non_negative"),
        sa.CheckConstraint("target_lazada >= 0", name="ck_employees_target_lazada_non_negative"),
    )
    op.create_index("ix_employees_branch_id", "employees", ["branch_id"])

    op.create_table(
        "monthly_targets",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True, nullable=False),
        sa.Column(
            "employee_id",
            sa.Integer(),
            sa.ForeignKey("employees.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("year", sa.Integer(), nullable=False),
        sa.Column("month", sa.Integer(), nullable=False),
        sa.Column("facebook", sa.Numeric(14, 2), nullable=False),
        sa.Column("shopee", sa.Numeric(14, 2), nullable=False),
        sa.Column("lazada", sa.Numeric(14, 2), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint("month >= 1 AND month <= 12", name="ck_monthly_targets_month_range"),
        sa.CheckConstraint("facebook >= 0", name="ck_monthly_targets_facebook_non_negative"),
        sa.CheckConstraint("shopee >= 0", name="ck_monthly_targets_shopee_non_negative"),
        sa.CheckConstraint("lazada >= 0", name="ck_monthly_targets_lazada_non_negative"),
        sa.UniqueConstraint("employee_id", "year", "month", name="uq_monthly_targets_employee_period"),
    )
    op.create_index("ix_monthly_targets_period", "monthly_targets", ["year", "month"])

    op.create_table(
        "sales",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True, nullable=False),
        sa.Column(
            "employee_id",
            sa.Integer(),
            sa.ForeignKey("employees.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("channel", sales_channel, nullable=False),
        sa.Column("amount", sa.Numeric(14, 2), nullable=False),
        sa.Column("year", sa.Integer(), nullable=False),
        sa.Column("month", sa.Integer(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint("amount >= 0", name="ck_sales_amount_non_negative"),
        sa.CheckConstraint("month >= 1 AND month <= 12", name="ck_sales_month_range"),
        sa.UniqueConstraint("employee_id", "channel", "year", "month", name="uq_sales_employee_channel_period"),
    )
    op.create_index("ix_sales_period", "sales", ["year", "month"])

    op.create_table(
        "expenses",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True, nullable=False),
        sa.Column(
            "employee_id",
            sa.Integer(),
            sa.ForeignKey("employees.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("type", expense_type, nullable=False),
        sa.Column("amount", sa.Numeric(14, 2), nullable=False),
        sa.Column("year", sa.Integer(), nullable=False),
        sa.Column("month", sa.Integer(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint("amount >= 0", name="ck_expenses_amount_non_negative"),
        sa.CheckConstraint("month >= 1 AND month <= 12", name="ck_expenses_month_range"),
        sa.UniqueConstraint("employee_id", "type", "year", "month", name="uq_expenses_employee_type_period"),
    )
    op.create_index("ix_expenses_period", "expenses", ["year", "month"])


def downgrade() -> None:
    op.drop_index("ix_expenses_period", table_name="expenses")
    op.drop_table("expenses")
    op.drop_index("ix_sales_period", table_name="sales")
    op.drop_table("sales")
    op.drop_index("ix_monthly_targets_period", table_name="monthly_targets")
    op.drop_table("monthly_targets")
    op.drop_index("ix_employees_branch_id", table_name="employees")
    op.drop_table("employees")
    op.drop_table("branches")
    op.drop_table("users")

    bind = op.get_bind()
    expense_type.drop(bind, checkfirst=True)
    sales_channel.drop(bind, checkfirst=True)
    user_role.drop(bind, checkfirst=True)

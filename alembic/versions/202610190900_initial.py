"""initial schema

Revision ID: 202610190900
Revises:
Create Date: 2026-10-19 09:00:00.000000

"""

from alembic import op
import sqlalchemy as sa


revision = "202610190900"
down_revision = None
branch_labels = None
depends_on = None

CADENCE = sa.Enum(
    "one-time", "weekly", "biweekly", "monthly", "yearly", name="cadence"
)


def upgrade():
    op.create_table(
        "user",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("password", sa.String(length=255), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.UniqueConstraint("email"),
    )

    op.create_table(
        "income",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column(
            "user_email",
            sa.String(length=255),
            sa.ForeignKey("user.email", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("source", sa.String(length=120), nullable=False),
        sa.Column("amount_cents", sa.Integer(), nullable=False),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("cadence", CADENCE, nullable=False, server_default="monthly"),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.CheckConstraint("amount_cents >= 0", name="ck_income_amount_positive"),
    )
    op.create_index("ix_income_user_date", "income", ["user_email", "date"])

    op.create_table(
        "expense",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column(
            "user_email",
            sa.String(length=255),
            sa.ForeignKey("user.email", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("category", sa.String(length=100), nullable=False),
        sa.Column("description", sa.Text()),
        sa.Column("amount_cents", sa.Integer(), nullable=False),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("cadence", CADENCE, nullable=False, server_default="monthly"),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.CheckConstraint("amount_cents >= 0", name="ck_expense_amount_positive"),
    )
    op.create_index("ix_expense_user_date", "expense", ["user_email", "date"])
    op.create_index("ix_expense_user_category", "expense", ["user_email", "category"])

    op.create_table(
        "budget",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column(
            "user_email",
            sa.String(length=255),
            sa.ForeignKey("user.email", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("category", sa.String(length=100), nullable=False),
        sa.Column("amount_cents", sa.Integer(), nullable=False),
        sa.Column("cadence", CADENCE, nullable=False, server_default="monthly"),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.CheckConstraint("amount_cents >= 0", name="ck_budget_amount_positive"),
    )
    op.create_index("ix_budget_user_category", "budget", ["user_email", "category"])

    op.create_table(
        "user_categories",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column(
            "user_email",
            sa.String(length=255),
            sa.ForeignKey("user.email", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("category", sa.String(length=100), nullable=False),
        sa.UniqueConstraint("user_email", "category", name="uq_user_category"),
    )


def downgrade():
    op.drop_table("user_categories")
    op.drop_index("ix_budget_user_category", table_name="budget")
    op.drop_table("budget")
    op.drop_index("ix_expense_user_category", table_name="expense")
    op.drop_index("ix_expense_user_date", table_name="expense")
    op.drop_table("expense")
    op.drop_index("ix_income_user_date", table_name="income")
    op.drop_table("income")
    op.drop_table("user")
    CADENCE.drop(op.get_bind(), checkfirst=True)

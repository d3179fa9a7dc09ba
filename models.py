from datetime import date, datetime
from enum import Enum
from typing import Optional

from sqlalchemy import (
    CheckConstraint,
    Date,
    DateTime,
    Enum as SAEnum,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column

from database import Base


class Cadence(str, Enum):
    one_time = "one-time"
    weekly = "weekly"
    biweekly = "biweekly"
    monthly = "monthly"
    yearly = "yearly"


CADENCE_ENUM = SAEnum(
    Cadence,
    name="cadence",
    values_callable=lambda enum_cls: [member.value for member in enum_cls],
)


class TimestampMixin:
    created_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, nullable=False
    )


class User(Base, TimestampMixin):
    __tablename__ = "user"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    password: Mapped[str] = mapped_column(String(255), nullable=False)


class Income(Base, TimestampMixin):
    __tablename__ = "income"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    user_email: Mapped[str] = mapped_column(
        ForeignKey("user.email", ondelete="CASCADE"), nullable=False
    )
    source: Mapped[str] = mapped_column(String(120), nullable=False)
    amount_cents: Mapped[int] = mapped_column(Integer, nullable=False)
    date: Mapped[date] = mapped_column(Date, nullable=False)
    cadence: Mapped[Cadence] = mapped_column(
        CADENCE_ENUM, nullable=False, default=Cadence.monthly
    )

    __table_args__ = (
        Index("ix_income_user_date", "user_email", "date"),
        CheckConstraint("amount_cents >= 0", name="ck_income_amount_positive"),
    )


class Expense(Base, TimestampMixin):
    __tablename__ = "expense"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    user_email: Mapped[str] = mapped_column(
        ForeignKey("user.email", ondelete="CASCADE"), nullable=False
    )
    category: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text)
    amount_cents: Mapped[int] = mapped_column(Integer, nullable=False)
    date: Mapped[date] = mapped_column(Date, nullable=False)
    cadence: Mapped[Cadence] = mapped_column(
        CADENCE_ENUM, nullable=False, default=Cadence.monthly
    )

    __table_args__ = (
        Index("ix_expense_user_date", "user_email", "date"),
        Index("ix_expense_user_category", "user_email", "category"),
        CheckConstraint("amount_cents >= 0", name="ck_expense_amount_positive"),
    )


class Budget(Base, TimestampMixin):
    """One budget row per insert.

    Several rows may share a category for the same user; reports sum them.
    """

    __tablename__ = "budget"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    user_email: Mapped[str] = mapped_column(
        ForeignKey("user.email", ondelete="CASCADE"), nullable=False
    )
    category: Mapped[str] = mapped_column(String(100), nullable=False)
    amount_cents: Mapped[int] = mapped_column(Integer, nullable=False)
    cadence: Mapped[Cadence] = mapped_column(
        CADENCE_ENUM, nullable=False, default=Cadence.monthly
    )

    __table_args__ = (
        Index("ix_budget_user_category", "user_email", "category"),
        CheckConstraint("amount_cents >= 0", name="ck_budget_amount_positive"),
    )


class UserCategory(Base):
    __tablename__ = "user_categories"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    user_email: Mapped[str] = mapped_column(
        ForeignKey("user.email", ondelete="CASCADE"), nullable=False
    )
    category: Mapped[str] = mapped_column(String(100), nullable=False)

    __table_args__ = (
        UniqueConstraint("user_email", "category", name="uq_user_category"),
    )

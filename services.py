from __future__ import annotations

import logging
import time
from typing import Optional

from sqlalchemy import select
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from auth import AuthenticationError, hash_password, verify_password
from formatting import format_currency, units_to_cents
from models import Budget, Expense, Income, User, UserCategory
from reporting import (
    BudgetRecord,
    ExpenseRecord,
    IncomeRecord,
    MonthlyTotal,
    ReportPayload,
    build_report,
    monthly_series,
    trim_to_recent_months,
)
from schemas import (
    BudgetIn,
    ExpenseIn,
    ExpenseUpdate,
    IncomeIn,
    IncomeUpdate,
)

logger = logging.getLogger(__name__)

BUILT_IN_CATEGORIES = [
    "Rent",
    "Utilities",
    "Food/Groceries",
    "Transportation",
    "Entertainment",
    "Health",
    "Other",
]


class NotFoundError(ValueError):
    pass


class DuplicateEmailError(ValueError):
    pass


def _apply_updates(row: object, updates: dict[str, object], nullable: set[str]) -> None:
    for key, value in updates.items():
        if key in nullable and isinstance(value, str):
            value = value.strip() or None
        if value is None and key not in nullable:
            raise ValueError(f"{key} cannot be empty")
        if key == "amount":
            row.amount_cents = units_to_cents(value)
        else:
            setattr(row, key, value)


class UserService:
    def __init__(self, session: Session) -> None:
        self.session = session

    def get(self, email: str) -> Optional[User]:
        return self.session.scalar(select(User).where(User.email == email))

    def exists(self, email: str) -> bool:
        return self.get(email) is not None

    def create_account(self, email: str, password: str) -> User:
        email = email.strip()
        if not email or not password:
            raise ValueError("Email and password are required.")
        if self.exists(email):
            raise DuplicateEmailError("Email already exists.")
        user = User(email=email, password=hash_password(password))
        self.session.add(user)
        try:
            self.session.commit()
        except IntegrityError as exc:
            self.session.rollback()
            raise DuplicateEmailError("Email already exists.") from exc
        self.session.refresh(user)
        logger.info(f"account_created: email={email}")
        return user

    def authenticate(self, email: str, password: str) -> User:
        user = self.get(email.strip())
        if not user or not verify_password(password, user.password):
            logger.info(f"login_failed: email={email}")
            raise AuthenticationError("Invalid email or password.")
        return user


class IncomeService:
    def __init__(self, session: Session, user_email: str) -> None:
        self.session = session
        self.user_email = user_email

    def list(self) -> list[Income]:
        stmt = (
            select(Income)
            .where(Income.user_email == self.user_email)
            .order_by(Income.date.desc(), Income.id.desc())
        )
        return self.session.scalars(stmt).all()

    def get(self, income_id: int) -> Income:
        income = self.session.get(Income, income_id)
        if not income or income.user_email != self.user_email:
            raise NotFoundError("Income not found")
        return income

    def create(self, data: IncomeIn) -> Income:
        income = Income(
            user_email=self.user_email,
            source=data.source,
            amount_cents=units_to_cents(data.amount),
            date=data.date,
            cadence=data.cadence,
        )
        self.session.add(income)
        self.session.commit()
        self.session.refresh(income)
        return income

    def update(self, income_id: int, data: IncomeUpdate) -> Income:
        income = self.get(income_id)
        _apply_updates(income, data.model_dump(exclude_unset=True), nullable=set())
        self.session.commit()
        return income

    def delete(self, income_id: int) -> None:
        income = self.get(income_id)
        self.session.delete(income)
        self.session.commit()

    def records(self) -> list[IncomeRecord]:
        return [
            IncomeRecord(
                id=row.id,
                amount_cents=row.amount_cents,
                date=row.date,
                source=row.source,
                cadence=row.cadence.value if row.cadence else None,
            )
            for row in self.list()
        ]

    def trend(self, months: Optional[int]) -> list[MonthlyTotal]:
        return trim_to_recent_months(monthly_series(self.records(), "income"), months)


class ExpenseService:
    def __init__(self, session: Session, user_email: str) -> None:
        self.session = session
        self.user_email = user_email

    def list(self) -> list[Expense]:
        stmt = (
            select(Expense)
            .where(Expense.user_email == self.user_email)
            .order_by(Expense.date.desc(), Expense.id.desc())
        )
        return self.session.scalars(stmt).all()

    def get(self, expense_id: int) -> Expense:
        expense = self.session.get(Expense, expense_id)
        if not expense or expense.user_email != self.user_email:
            raise NotFoundError("Expense not found")
        return expense

    def create(self, data: ExpenseIn) -> Expense:
        expense = Expense(
            user_email=self.user_email,
            category=data.category,
            description=(data.description or "").strip() or None,
            amount_cents=units_to_cents(data.amount),
            date=data.date,
            cadence=data.cadence,
        )
        self.session.add(expense)
        self.session.commit()
        self.session.refresh(expense)
        return expense

    def update(self, expense_id: int, data: ExpenseUpdate) -> Expense:
        expense = self.get(expense_id)
        _apply_updates(
            expense, data.model_dump(exclude_unset=True), nullable={"description"}
        )
        self.session.commit()
        return expense

    def delete(self, expense_id: int) -> None:
        expense = self.get(expense_id)
        self.session.delete(expense)
        self.session.commit()

    def records(self) -> list[ExpenseRecord]:
        return [
            ExpenseRecord(
                id=row.id,
                category=row.category,
                amount_cents=row.amount_cents,
                date=row.date,
                description=row.description,
                cadence=row.cadence.value if row.cadence else None,
            )
            for row in self.list()
        ]

    def trend(self, months: Optional[int]) -> list[MonthlyTotal]:
        return trim_to_recent_months(
            monthly_series(self.records(), "expense"), months
        )


class CategoryService:
    def __init__(self, session: Session, user_email: str) -> None:
        self.session = session
        self.user_email = user_email

    def custom(self) -> list[str]:
        stmt = (
            select(UserCategory.category)
            .where(UserCategory.user_email == self.user_email)
            .order_by(UserCategory.id)
        )
        return list(self.session.scalars(stmt).all())

    def list_all(self) -> list[str]:
        categories = list(BUILT_IN_CATEGORIES)
        categories.extend(name for name in self.custom() if name not in categories)
        return categories

    def ensure(self, category: str) -> None:
        """Remember a custom category; a category already stored is left alone."""
        if category in BUILT_IN_CATEGORIES:
            return
        stmt = (
            sqlite_insert(UserCategory)
            .values(user_email=self.user_email, category=category)
            .on_conflict_do_nothing(index_elements=["user_email", "category"])
        )
        self.session.execute(stmt)


class BudgetService:
    def __init__(self, session: Session, user_email: str) -> None:
        self.session = session
        self.user_email = user_email

    def list(self) -> list[Budget]:
        stmt = (
            select(Budget)
            .where(Budget.user_email == self.user_email)
            .order_by(Budget.category, Budget.id)
        )
        return self.session.scalars(stmt).all()

    def create(self, data: BudgetIn) -> Budget:
        budget = Budget(
            user_email=self.user_email,
            category=data.category,
            amount_cents=units_to_cents(data.amount),
            cadence=data.cadence,
        )
        self.session.add(budget)
        CategoryService(self.session, self.user_email).ensure(data.category)
        self.session.commit()
        self.session.refresh(budget)
        return budget

    def delete(self, budget_id: int) -> None:
        budget = self.session.get(Budget, budget_id)
        if not budget or budget.user_email != self.user_email:
            raise NotFoundError("Budget not found")
        self.session.delete(budget)
        self.session.commit()

    def records(self) -> list[BudgetRecord]:
        return [
            BudgetRecord(
                id=row.id,
                category=row.category,
                amount_cents=row.amount_cents,
                cadence=row.cadence.value if row.cadence else None,
            )
            for row in self.list()
        ]


class ReportService:
    def __init__(self, session: Session, user_email: str) -> None:
        self.session = session
        self.user_email = user_email

    def build(self) -> ReportPayload:
        started = time.perf_counter()
        income = IncomeService(self.session, self.user_email).records()
        expense = ExpenseService(self.session, self.user_email).records()
        budget = BudgetService(self.session, self.user_email).records()

        payload = build_report(income, expense, budget)

        for warning in payload.warnings:
            logger.warning(
                f"report_row_skipped: email={self.user_email} kind={warning.kind} "
                f"id={warning.record_id} reason={warning.message}"
            )
        logger.info(
            f"report_generated: email={self.user_email} income_rows={len(income)} "
            f"expense_rows={len(expense)} budget_rows={len(budget)} "
            f"warnings={len(payload.warnings)} "
            f"net={format_currency(payload.totals.net_cents)} "
            f"duration={time.perf_counter() - started:.3f}s"
        )
        return payload

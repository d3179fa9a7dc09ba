import logging
from datetime import date
from decimal import Decimal

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import Session

from auth import AuthenticationError
from database import Base
from models import Cadence
from schemas import BudgetIn, ExpenseIn, ExpenseUpdate, IncomeIn, IncomeUpdate
from services import (
    BUILT_IN_CATEGORIES,
    BudgetService,
    CategoryService,
    DuplicateEmailError,
    ExpenseService,
    IncomeService,
    NotFoundError,
    ReportService,
    UserService,
)


def _session() -> Session:
    engine = create_engine("sqlite:///:memory:")
    Base.metadata.create_all(engine)
    return Session(engine)


def test_create_account_and_authenticate() -> None:
    with _session() as session:
        user = UserService(session).create_account(" ana@example.com ", "secret")

        assert user.email == "ana@example.com"
        assert user.password != "secret"
        assert UserService(session).authenticate("ana@example.com", "secret") == user

        with pytest.raises(AuthenticationError):
            UserService(session).authenticate("ana@example.com", "wrong")
        with pytest.raises(AuthenticationError):
            UserService(session).authenticate("nobody@example.com", "secret")


def test_create_account_rejects_duplicates_and_blanks() -> None:
    with _session() as session:
        UserService(session).create_account("ana@example.com", "secret")

        with pytest.raises(DuplicateEmailError):
            UserService(session).create_account("ana@example.com", "other")
        with pytest.raises(ValueError, match="required"):
            UserService(session).create_account("   ", "secret")
        with pytest.raises(ValueError, match="required"):
            UserService(session).create_account("bo@example.com", "")


def test_income_crud_is_scoped_to_user() -> None:
    with _session() as session:
        UserService(session).create_account("ana@example.com", "pw")
        UserService(session).create_account("bo@example.com", "pw")
        service = IncomeService(session, "ana@example.com")

        first = service.create(
            IncomeIn(source="Salary", amount="$2,500.00", date=date(2024, 1, 31))
        )
        second = service.create(
            IncomeIn(
                source="Gift",
                amount=Decimal("40.5"),
                date=date(2024, 2, 14),
                cadence=Cadence.one_time,
            )
        )

        assert first.amount_cents == 250_000
        assert first.cadence == Cadence.monthly
        assert [row.id for row in service.list()] == [second.id, first.id]

        updated = service.update(first.id, IncomeUpdate(amount=Decimal("2600")))
        assert updated.amount_cents == 260_000
        assert updated.source == "Salary"

        other = IncomeService(session, "bo@example.com")
        assert other.list() == []
        with pytest.raises(NotFoundError):
            other.get(first.id)
        with pytest.raises(NotFoundError):
            other.delete(first.id)

        service.delete(second.id)
        assert [row.id for row in service.list()] == [first.id]


def test_update_rejects_clearing_required_fields() -> None:
    with _session() as session:
        UserService(session).create_account("ana@example.com", "pw")
        service = ExpenseService(session, "ana@example.com")
        expense = service.create(
            ExpenseIn(
                category="Food",
                description="  Lunch  ",
                amount="12.40",
                date=date(2024, 3, 1),
            )
        )
        assert expense.description == "Lunch"

        with pytest.raises(ValueError, match="category cannot be empty"):
            service.update(expense.id, ExpenseUpdate(category=None))

        blank = service.update(expense.id, ExpenseUpdate(description="   "))
        assert blank.description is None

        renamed = service.update(expense.id, ExpenseUpdate(description=" Dinner "))
        assert renamed.description == "Dinner"

        cleared = service.update(expense.id, ExpenseUpdate(description=None))
        assert cleared.description is None


def test_expense_trend_trims_to_recent_months() -> None:
    with _session() as session:
        UserService(session).create_account("ana@example.com", "pw")
        service = ExpenseService(session, "ana@example.com")
        for when, amount in [
            (date(2023, 9, 3), "10"),
            (date(2024, 1, 8), "20"),
            (date(2024, 2, 2), "5"),
            (date(2024, 2, 20), "7.50"),
        ]:
            service.create(ExpenseIn(category="Food", amount=amount, date=when))

        recent = service.trend(3)
        everything = service.trend(None)

        assert [(m.year_month, m.total_cents) for m in recent] == [
            ("2024-01", 2_000),
            ("2024-02", 1_250),
        ]
        assert [m.year_month for m in everything] == ["2023-09", "2024-01", "2024-02"]


def test_budget_category_is_remembered_once() -> None:
    with _session() as session:
        UserService(session).create_account("ana@example.com", "pw")
        budgets = BudgetService(session, "ana@example.com")

        budgets.create(BudgetIn(category="Pets", amount="30"))
        budgets.create(BudgetIn(category="Pets", amount="20"))
        budgets.create(BudgetIn(category="Rent", amount="900"))

        categories = CategoryService(session, "ana@example.com")
        assert categories.custom() == ["Pets"]
        assert categories.list_all() == BUILT_IN_CATEGORIES + ["Pets"]
        assert CategoryService(session, "bo@example.com").custom() == []
        assert [b.category for b in budgets.list()] == ["Pets", "Pets", "Rent"]


def test_budget_delete_checks_owner() -> None:
    with _session() as session:
        UserService(session).create_account("ana@example.com", "pw")
        budget = BudgetService(session, "ana@example.com").create(
            BudgetIn(category="Rent", amount="900")
        )

        with pytest.raises(NotFoundError):
            BudgetService(session, "bo@example.com").delete(budget.id)

        BudgetService(session, "ana@example.com").delete(budget.id)
        assert BudgetService(session, "ana@example.com").list() == []


def test_report_service_aggregates_stored_rows(caplog) -> None:
    with _session() as session:
        UserService(session).create_account("ana@example.com", "pw")
        UserService(session).create_account("bo@example.com", "pw")
        income = IncomeService(session, "ana@example.com")
        income.create(IncomeIn(source="Job", amount="100", date=date(2024, 1, 5)))
        income.create(IncomeIn(source="Job", amount="50", date=date(2024, 1, 28)))
        income.create(IncomeIn(source="Job", amount="75", date=date(2024, 2, 2)))
        expense = ExpenseService(session, "ana@example.com")
        expense.create(ExpenseIn(category="Rent", amount="100", date=date(2024, 1, 2)))
        expense.create(ExpenseIn(category="Rent", amount="50", date=date(2024, 2, 2)))
        expense.create(ExpenseIn(category="Food", amount="30", date=date(2024, 2, 9)))
        budgets = BudgetService(session, "ana@example.com")
        budgets.create(BudgetIn(category="Rent", amount="500"))
        budgets.create(BudgetIn(category="Rent", amount="500"))
        IncomeService(session, "bo@example.com").create(
            IncomeIn(source="Other", amount="999", date=date(2024, 1, 1))
        )

        with caplog.at_level(logging.INFO, logger="services"):
            payload = ReportService(session, "ana@example.com").build()

        assert payload.totals.income_cents == 22_500
        assert payload.totals.expenses_cents == 18_000
        assert payload.totals.net_cents == 4_500
        assert [(m.year_month, m.total_cents) for m in payload.monthly_income] == [
            ("2024-01", 15_000),
            ("2024-02", 7_500),
        ]
        assert [(c.category, c.total_cents) for c in payload.expenses_by_category] == [
            ("Rent", 15_000),
            ("Food", 3_000),
        ]
        assert payload.budgets.total_cents == 100_000
        assert [(c.category, c.total_cents) for c in payload.budgets.by_category] == [
            ("Rent", 100_000)
        ]
        assert payload.warnings == []
        assert "report_generated: email=ana@example.com" in caplog.text
        assert "net=$45.00" in caplog.text


def test_report_for_user_without_rows_is_empty() -> None:
    with _session() as session:
        UserService(session).create_account("ana@example.com", "pw")

        payload = ReportService(session, "ana@example.com").build()

        assert payload.totals.net_cents == 0
        assert payload.monthly_income == []
        assert payload.expenses_by_category == []
        assert payload.budgets.by_category == []


def test_ensure_category_is_idempotent() -> None:
    with _session() as session:
        UserService(session).create_account("ana@example.com", "pw")
        categories = CategoryService(session, "ana@example.com")

        categories.ensure("Pets")
        session.commit()
        categories.ensure("Pets")
        budget = BudgetService(session, "ana@example.com").create(
            BudgetIn(category="Pets", amount="15")
        )

        assert budget.id is not None
        assert categories.custom() == ["Pets"]
        assert len(BudgetService(session, "ana@example.com").list()) == 1

"""Report aggregation for the dashboards.

Everything here is a pure function of its inputs: no database access, no
logging, no mutation of the records passed in. Amounts are integer cents.
"""

from __future__ import annotations

import datetime as dt
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from typing import Iterable, Optional, Sequence, Union

DateLike = Union[dt.date, str, None]


@dataclass(frozen=True)
class IncomeRecord:
    id: Optional[int]
    amount_cents: object
    date: DateLike
    source: Optional[str] = None
    cadence: Optional[str] = None


@dataclass(frozen=True)
class ExpenseRecord:
    id: Optional[int]
    category: Optional[str]
    amount_cents: object
    date: DateLike
    description: Optional[str] = None
    cadence: Optional[str] = None


@dataclass(frozen=True)
class BudgetRecord:
    id: Optional[int]
    category: Optional[str]
    amount_cents: object
    cadence: Optional[str] = None


@dataclass(frozen=True)
class Totals:
    income_cents: int
    expenses_cents: int
    net_cents: int


@dataclass(frozen=True)
class MonthlyTotal:
    month: dt.date  # first day of the month
    total_cents: int

    @property
    def year_month(self) -> str:
        return f"{self.month.year:04d}-{self.month.month:02d}"


@dataclass(frozen=True)
class CategoryTotal:
    category: str
    total_cents: int


@dataclass(frozen=True)
class BudgetSummary:
    total_cents: int
    by_category: list[CategoryTotal]


@dataclass(frozen=True)
class ReportWarning:
    kind: str
    record_id: Optional[int]
    message: str


@dataclass(frozen=True)
class ReportPayload:
    totals: Totals
    monthly_income: list[MonthlyTotal]
    expenses_by_category: list[CategoryTotal]
    budgets: BudgetSummary
    warnings: list[ReportWarning] = field(default_factory=list)


@dataclass(frozen=True)
class BudgetComparison:
    category: str
    budget_cents: int
    actual_cents: int

    @property
    def remaining_cents(self) -> int:
        return self.budget_cents - self.actual_cents


class InvalidInput(ValueError):
    """A record breaks a precondition the write path should have enforced."""

    def __init__(self, kind: str, record_id: Optional[int], message: str) -> None:
        super().__init__(message)
        self.kind = kind
        self.record_id = record_id

    def to_warning(self) -> ReportWarning:
        return ReportWarning(
            kind=self.kind, record_id=self.record_id, message=str(self)
        )


def month_start(value: dt.date) -> dt.date:
    return value.replace(day=1)


def shift_month(value: dt.date, months: int) -> dt.date:
    month_index = (value.year * 12 + value.month - 1) + months
    year = month_index // 12
    month = month_index % 12 + 1
    return dt.date(year, month, 1)


def parse_month(value: DateLike) -> Optional[dt.date]:
    """Return the first day of the month ``value`` falls in, or None."""
    if isinstance(value, dt.datetime):
        return month_start(value.date())
    if isinstance(value, dt.date):
        return month_start(value)
    if not isinstance(value, str):
        return None
    text = value.strip()
    day, separator, clock = text.partition("T")
    try:
        parsed = dt.date.fromisoformat(day)
        if separator:
            dt.time.fromisoformat(clock[:-1] if clock.endswith("Z") else clock)
        return month_start(parsed)
    except ValueError:
        pass
    try:
        return dt.datetime.strptime(text, "%Y-%m").date()
    except ValueError:
        return None


def _coerce_cents(kind: str, record_id: Optional[int], value: object) -> int:
    if value is None:
        raise InvalidInput(kind, record_id, "missing amount")
    if isinstance(value, bool):
        raise InvalidInput(kind, record_id, f"invalid amount {value!r}")
    if isinstance(value, int):
        cents = value
    else:
        try:
            amount = Decimal(str(value))
        except InvalidOperation as exc:
            raise InvalidInput(kind, record_id, f"invalid amount {value!r}") from exc
        if not amount.is_finite() or amount != amount.to_integral_value():
            raise InvalidInput(kind, record_id, f"invalid amount {value!r}")
        cents = int(amount)
    if cents < 0:
        raise InvalidInput(kind, record_id, f"negative amount {cents}")
    return cents


def _require_category(kind: str, record_id: Optional[int], value: Optional[str]) -> str:
    if value is None or value == "":
        raise InvalidInput(kind, record_id, "missing category")
    return value


def _require_date(kind: str, record_id: Optional[int], value: DateLike) -> DateLike:
    if value is None or (isinstance(value, str) and not value.strip()):
        raise InvalidInput(kind, record_id, "missing date")
    return value


def _bucket_by_month(
    records: Iterable[Union[IncomeRecord, ExpenseRecord]],
    kind: str,
    warnings: list[ReportWarning],
) -> tuple[int, list[MonthlyTotal]]:
    total = 0
    by_month: dict[dt.date, int] = {}
    for record in records:
        try:
            amount = _coerce_cents(kind, record.id, record.amount_cents)
            _require_date(kind, record.id, record.date)
        except InvalidInput as exc:
            warnings.append(exc.to_warning())
            continue
        total += amount
        month = parse_month(record.date)
        if month is None:
            warnings.append(
                ReportWarning(
                    kind=kind,
                    record_id=record.id,
                    message=f"unparseable date {record.date!r}; "
                    "excluded from monthly series",
                )
            )
            continue
        by_month[month] = by_month.get(month, 0) + amount
    series = [MonthlyTotal(month=m, total_cents=by_month[m]) for m in sorted(by_month)]
    return total, series


def _group_by_category(
    records: Iterable[Union[ExpenseRecord, BudgetRecord]],
    kind: str,
    warnings: list[ReportWarning],
    *,
    require_date: bool,
) -> dict[str, int]:
    totals: dict[str, int] = {}
    for record in records:
        try:
            amount = _coerce_cents(kind, record.id, record.amount_cents)
            category = _require_category(kind, record.id, record.category)
            if require_date:
                _require_date(kind, record.id, record.date)
        except InvalidInput as exc:
            warnings.append(exc.to_warning())
            continue
        totals[category] = totals.get(category, 0) + amount
    return totals


def build_report(
    income: Iterable[IncomeRecord],
    expense: Iterable[ExpenseRecord],
    budget: Iterable[BudgetRecord],
) -> ReportPayload:
    """Aggregate one user's records into the dashboard payload.

    Bad rows never abort the report: they are skipped and described in
    ``warnings``. An income row whose date cannot be parsed still counts
    toward the income total but is left out of the monthly series.

    Expense categories with equal totals are ordered by name so the output is
    stable regardless of the order rows were read in. Budget rows sharing a
    category are summed.
    """
    warnings: list[ReportWarning] = []

    income_cents, monthly_income = _bucket_by_month(income, "income", warnings)

    expense_totals = _group_by_category(expense, "expense", warnings, require_date=True)
    expenses_cents = sum(expense_totals.values())
    expenses_by_category = [
        CategoryTotal(category=name, total_cents=cents)
        for name, cents in sorted(
            expense_totals.items(), key=lambda item: (-item[1], item[0])
        )
    ]

    budget_totals = _group_by_category(budget, "budget", warnings, require_date=False)
    budgets_by_category = [
        CategoryTotal(category=name, total_cents=budget_totals[name])
        for name in sorted(budget_totals)
    ]

    return ReportPayload(
        totals=Totals(
            income_cents=income_cents,
            expenses_cents=expenses_cents,
            net_cents=income_cents - expenses_cents,
        ),
        monthly_income=monthly_income,
        expenses_by_category=expenses_by_category,
        budgets=BudgetSummary(
            total_cents=sum(budget_totals.values()),
            by_category=budgets_by_category,
        ),
        warnings=warnings,
    )


def monthly_series(
    records: Iterable[Union[IncomeRecord, ExpenseRecord]], kind: str = "income"
) -> list[MonthlyTotal]:
    warnings: list[ReportWarning] = []
    _total, series = _bucket_by_month(records, kind, warnings)
    return series


def trim_to_recent_months(
    series: Sequence[MonthlyTotal], months: Optional[int]
) -> list[MonthlyTotal]:
    """Keep the last ``months`` calendar months, counted back from the newest
    month present in ``series``. ``None`` keeps everything."""
    if months is None or not series:
        return list(series)
    if months < 1:
        raise ValueError("months must be at least 1")
    latest = max(entry.month for entry in series)
    try:
        cutoff = shift_month(latest, -(months - 1))
    except ValueError:
        # The window reaches back past year 1.
        cutoff = dt.date.min
    return [entry for entry in series if entry.month >= cutoff]


def budget_vs_actual(
    budgets_by_category: Sequence[CategoryTotal],
    expenses_by_category: Sequence[CategoryTotal],
) -> list[BudgetComparison]:
    # Budgeted categories first, then spend-only categories; a side with no
    # entry for a category counts as zero.
    budgeted: dict[str, int] = {}
    for entry in budgets_by_category:
        budgeted[entry.category] = budgeted.get(entry.category, 0) + entry.total_cents
    spent: dict[str, int] = {}
    for entry in expenses_by_category:
        spent[entry.category] = spent.get(entry.category, 0) + entry.total_cents

    categories = list(budgeted)
    categories.extend(name for name in spent if name not in budgeted)
    return [
        BudgetComparison(
            category=name,
            budget_cents=budgeted.get(name, 0),
            actual_cents=spent.get(name, 0),
        )
        for name in categories
    ]

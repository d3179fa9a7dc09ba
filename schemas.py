import datetime as dt
from decimal import Decimal
from typing import Annotated, Optional

from pydantic import (
    AfterValidator,
    BaseModel,
    BeforeValidator,
    ConfigDict,
    Field,
    field_validator,
)

from formatting import cents_to_units, parse_amount
from models import Cadence


def _strip_required(value: str) -> str:
    value = value.strip()
    if not value:
        raise ValueError("must not be blank")
    return value


RequiredText = Annotated[str, AfterValidator(_strip_required)]


def _amount_from_text(value: object) -> object:
    # Form inputs post formatted text such as "$1,250.00".
    if isinstance(value, str):
        return cents_to_units(parse_amount(value))
    return value


Amount = Annotated[Decimal, BeforeValidator(_amount_from_text)]


class CredentialsIn(BaseModel):
    email: str = Field(default="", max_length=255)
    password: str = Field(default="", max_length=200)

    @field_validator("email")
    @classmethod
    def _normalize_email(cls, value: str) -> str:
        return value.strip()


class IncomeIn(BaseModel):
    source: RequiredText = Field(..., max_length=120)
    amount: Amount = Field(..., gt=0, max_digits=12, decimal_places=2)
    date: dt.date
    cadence: Cadence = Cadence.monthly


class IncomeUpdate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    source: Optional[RequiredText] = Field(default=None, max_length=120)
    amount: Optional[Amount] = Field(
        default=None, gt=0, max_digits=12, decimal_places=2
    )
    date: Optional[dt.date] = None
    cadence: Optional[Cadence] = None


class ExpenseIn(BaseModel):
    category: RequiredText = Field(..., max_length=100)
    description: Optional[str] = Field(default=None, max_length=500)
    amount: Amount = Field(..., gt=0, max_digits=12, decimal_places=2)
    date: dt.date
    cadence: Cadence = Cadence.monthly


class ExpenseUpdate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    category: Optional[RequiredText] = Field(default=None, max_length=100)
    description: Optional[str] = Field(default=None, max_length=500)
    amount: Optional[Amount] = Field(
        default=None, gt=0, max_digits=12, decimal_places=2
    )
    date: Optional[dt.date] = None
    cadence: Optional[Cadence] = None


class BudgetIn(BaseModel):
    category: RequiredText = Field(..., max_length=100)
    amount: Amount = Field(..., gt=0, max_digits=12, decimal_places=2)
    cadence: Cadence = Cadence.monthly


class IncomeOut(BaseModel):
    id: int
    source: str
    amount: float
    date: dt.date
    cadence: Cadence


class ExpenseOut(BaseModel):
    id: int
    category: str
    description: Optional[str]
    amount: float
    date: dt.date
    cadence: Cadence


class BudgetOut(BaseModel):
    id: int
    category: str
    amount: float
    cadence: Cadence
    created_at: Optional[dt.datetime] = None


class MonthlyTotalOut(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    year_month: str = Field(alias="yearMonth")
    date: dt.date
    label: str
    total: float


class CategoryTotalOut(BaseModel):
    category: str
    total: float


class BudgetsOut(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    total: float
    by_category: list[CategoryTotalOut] = Field(alias="byCategory")


class TotalsOut(BaseModel):
    income: float
    expenses: float
    net: float


class BudgetComparisonOut(BaseModel):
    category: str
    budget: float
    actual: float
    remaining: float


class ReportWarningOut(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    kind: str
    record_id: Optional[int] = Field(alias="recordId")
    message: str


class ReportOut(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    totals: TotalsOut
    monthly_income: list[MonthlyTotalOut] = Field(alias="monthlyIncome")
    expenses_by_category: list[CategoryTotalOut] = Field(
        alias="expensesByCategory"
    )
    budgets: BudgetsOut
    budget_vs_actual: list[BudgetComparisonOut] = Field(
        alias="budgetVsActual"
    )
    warnings: list[ReportWarningOut]


class TrendOut(BaseModel):
    range: str
    points: list[MonthlyTotalOut]

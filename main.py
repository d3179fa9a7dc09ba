import logging
from datetime import date
from typing import Optional

from fastapi import Depends, FastAPI, Header, HTTPException, Request
from fastapi.responses import Response
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from auth import AuthenticationError, bearer_token, issue_token, read_token
from config import get_settings
from csv_utils import export_report
from database import Base, engine, get_db
from formatting import category_color, cents_to_units, month_label
from models import Budget, Expense, Income
from periods import MonthRange, resolve_range
from reporting import MonthlyTotal, ReportPayload, budget_vs_actual
from schemas import (
    BudgetComparisonOut,
    BudgetIn,
    BudgetOut,
    BudgetsOut,
    CategoryTotalOut,
    CredentialsIn,
    ExpenseIn,
    ExpenseOut,
    ExpenseUpdate,
    IncomeIn,
    IncomeOut,
    IncomeUpdate,
    MonthlyTotalOut,
    ReportOut,
    ReportWarningOut,
    TotalsOut,
    TrendOut,
)
from services import (
    BudgetService,
    CategoryService,
    DuplicateEmailError,
    ExpenseService,
    IncomeService,
    NotFoundError,
    ReportService,
    UserService,
)

logging.basicConfig(level=get_settings().log_level)
logger = logging.getLogger(__name__)

app = FastAPI(title="Finance Tracker")


@app.on_event("startup")
def startup_event():
    if get_settings().auto_create_schema:
        Base.metadata.create_all(engine)


def current_user(
    authorization: Optional[str] = Header(None), db: Session = Depends(get_db)
) -> str:
    token = bearer_token(authorization)
    if not token:
        raise HTTPException(status_code=401, detail="No authentication token.")
    try:
        email = read_token(token)
    except AuthenticationError as exc:
        raise HTTPException(
            status_code=401, detail="Invalid or expired token."
        ) from exc
    if not UserService(db).exists(email):
        raise HTTPException(status_code=403, detail="User not found.")
    return email


def range_from_request(request: Request) -> MonthRange:
    try:
        return resolve_range(request.query_params.get("range"))
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc


def _units(cents: int) -> float:
    return float(cents_to_units(cents))


def income_out(row: Income) -> IncomeOut:
    return IncomeOut(
        id=row.id,
        source=row.source,
        amount=_units(row.amount_cents),
        date=row.date,
        cadence=row.cadence,
    )


def expense_out(row: Expense) -> ExpenseOut:
    return ExpenseOut(
        id=row.id,
        category=row.category,
        description=row.description,
        amount=_units(row.amount_cents),
        date=row.date,
        cadence=row.cadence,
    )


def budget_out(row: Budget) -> BudgetOut:
    return BudgetOut(
        id=row.id,
        category=row.category,
        amount=_units(row.amount_cents),
        cadence=row.cadence,
        created_at=row.created_at,
    )


def monthly_total_out(entry: MonthlyTotal) -> MonthlyTotalOut:
    return MonthlyTotalOut(
        year_month=entry.year_month,
        date=entry.month,
        label=month_label(entry.month),
        total=_units(entry.total_cents),
    )


def report_out(payload: ReportPayload) -> ReportOut:
    return ReportOut(
        totals=TotalsOut(
            income=_units(payload.totals.income_cents),
            expenses=_units(payload.totals.expenses_cents),
            net=_units(payload.totals.net_cents),
        ),
        monthly_income=[monthly_total_out(m) for m in payload.monthly_income],
        expenses_by_category=[
            CategoryTotalOut(category=c.category, total=_units(c.total_cents))
            for c in payload.expenses_by_category
        ],
        budgets=BudgetsOut(
            total=_units(payload.budgets.total_cents),
            by_category=[
                CategoryTotalOut(category=c.category, total=_units(c.total_cents))
                for c in payload.budgets.by_category
            ],
        ),
        budget_vs_actual=[
            BudgetComparisonOut(
                category=row.category,
                budget=_units(row.budget_cents),
                actual=_units(row.actual_cents),
                remaining=_units(row.remaining_cents),
            )
            for row in budget_vs_actual(
                payload.budgets.by_category, payload.expenses_by_category
            )
        ],
        warnings=[
            ReportWarningOut(kind=w.kind, record_id=w.record_id, message=w.message)
            for w in payload.warnings
        ],
    )


def _build_report(db: Session, email: str) -> ReportPayload:
    try:
        return ReportService(db, email).build()
    except SQLAlchemyError as exc:
        logger.exception(f"report_failed: email={email}")
        raise HTTPException(status_code=500, detail="Error building report.") from exc


@app.get("/health")
def health() -> dict:
    return {"status": "ok"}


@app.post("/api/create-account", status_code=201)
def create_account(payload: CredentialsIn, db: Session = Depends(get_db)):
    try:
        UserService(db).create_account(payload.email, payload.password)
    except DuplicateEmailError as exc:
        raise HTTPException(status_code=409, detail=str(exc)) from exc
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return {"message": "Account created successfully!"}


@app.post("/api/login")
def login(payload: CredentialsIn, db: Session = Depends(get_db)):
    try:
        user = UserService(db).authenticate(payload.email, payload.password)
    except AuthenticationError as exc:
        raise HTTPException(status_code=401, detail=str(exc)) from exc
    return {"token": issue_token(user.email)}


@app.get("/api/income")
def list_income(email: str = Depends(current_user), db: Session = Depends(get_db)):
    rows = IncomeService(db, email).list()
    return {"items": [income_out(row) for row in rows]}


@app.post("/api/income", status_code=201)
def create_income(
    payload: IncomeIn,
    email: str = Depends(current_user),
    db: Session = Depends(get_db),
):
    income = IncomeService(db, email).create(payload)
    return {"id": income.id}


@app.patch("/api/income/{income_id}", response_model=IncomeOut)
def update_income(
    income_id: int,
    payload: IncomeUpdate,
    email: str = Depends(current_user),
    db: Session = Depends(get_db),
):
    try:
        income = IncomeService(db, email).update(income_id, payload)
    except NotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return income_out(income)


@app.delete("/api/income/{income_id}", status_code=204)
def delete_income(
    income_id: int,
    email: str = Depends(current_user),
    db: Session = Depends(get_db),
):
    try:
        IncomeService(db, email).delete(income_id)
    except NotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    return Response(status_code=204)


@app.get("/api/income/trend", response_model=TrendOut)
def income_trend(
    request: Request,
    email: str = Depends(current_user),
    db: Session = Depends(get_db),
):
    month_range = range_from_request(request)
    series = IncomeService(db, email).trend(month_range.months)
    return TrendOut(
        range=month_range.slug, points=[monthly_total_out(m) for m in series]
    )


@app.get("/api/expense")
def list_expense(email: str = Depends(current_user), db: Session = Depends(get_db)):
    rows = ExpenseService(db, email).list()
    return {"items": [expense_out(row) for row in rows]}


@app.post("/api/expense", status_code=201)
def create_expense(
    payload: ExpenseIn,
    email: str = Depends(current_user),
    db: Session = Depends(get_db),
):
    expense = ExpenseService(db, email).create(payload)
    return {"id": expense.id}


@app.patch("/api/expense/{expense_id}", response_model=ExpenseOut)
def update_expense(
    expense_id: int,
    payload: ExpenseUpdate,
    email: str = Depends(current_user),
    db: Session = Depends(get_db),
):
    try:
        expense = ExpenseService(db, email).update(expense_id, payload)
    except NotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return expense_out(expense)


@app.delete("/api/expense/{expense_id}", status_code=204)
def delete_expense(
    expense_id: int,
    email: str = Depends(current_user),
    db: Session = Depends(get_db),
):
    try:
        ExpenseService(db, email).delete(expense_id)
    except NotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    return Response(status_code=204)


@app.get("/api/expense/trend", response_model=TrendOut)
def expense_trend(
    request: Request,
    email: str = Depends(current_user),
    db: Session = Depends(get_db),
):
    month_range = range_from_request(request)
    series = ExpenseService(db, email).trend(month_range.months)
    return TrendOut(
        range=month_range.slug, points=[monthly_total_out(m) for m in series]
    )


@app.get("/api/budgets")
def list_budgets(email: str = Depends(current_user), db: Session = Depends(get_db)):
    rows = BudgetService(db, email).list()
    return {"items": [budget_out(row) for row in rows]}


@app.post("/api/budgets", status_code=201)
def create_budget(
    payload: BudgetIn,
    email: str = Depends(current_user),
    db: Session = Depends(get_db),
):
    budget = BudgetService(db, email).create(payload)
    return {"id": budget.id}


@app.delete("/api/budgets/{budget_id}", status_code=204)
def delete_budget(
    budget_id: int,
    email: str = Depends(current_user),
    db: Session = Depends(get_db),
):
    try:
        BudgetService(db, email).delete(budget_id)
    except NotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    return Response(status_code=204)


@app.get("/api/categories")
def list_categories(
    email: str = Depends(current_user), db: Session = Depends(get_db)
):
    categories = CategoryService(db, email).list_all()
    return {
        "categories": categories,
        "colors": {name: category_color(name) for name in categories},
    }


@app.get("/api/reports", response_model=ReportOut)
def reports(email: str = Depends(current_user), db: Session = Depends(get_db)):
    return report_out(_build_report(db, email))


@app.get("/api/reports/export.csv")
def export_reports(
    email: str = Depends(current_user), db: Session = Depends(get_db)
):
    content = export_report(_build_report(db, email))
    filename = f"Financial_Report_{date.today().isoformat()}.csv"
    return Response(
        content=content,
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


def main():
    import uvicorn

    uvicorn.run("main:app", host="0.0.0.0", port=8000, reload=False)


if __name__ == "__main__":
    main()

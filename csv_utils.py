import csv
import re
from io import StringIO

from formatting import cents_to_units
from reporting import ReportPayload, budget_vs_actual


def sanitize_csv_value(value: str) -> str:
    """
    Sanitize CSV values to prevent formula injection by prefixing dangerous patterns with tab.
    """
    if not value or value.strip() == "":
        return ""

    value = value.strip()

    formula_triggers = ("=", "+", "-", "@", "\t", "\r")

    if value.startswith(formula_triggers):
        return "\t" + value

    dangerous_patterns = [
        r"^cmd\s*",
        r"^powershell\s*",
        r"^bash\s*",
        r"^sh\s*",
        r"^http[s]?://",
    ]

    for pattern in dangerous_patterns:
        if re.match(pattern, value, re.IGNORECASE):
            return "\t" + value

    return value


def export_report(payload: ReportPayload) -> str:
    output = StringIO()
    writer = csv.writer(output)

    writer.writerow(["Section", "Key", "Amount", "Actual"])
    totals = payload.totals
    writer.writerow(["Totals", "Income", f"{cents_to_units(totals.income_cents)}"])
    writer.writerow(
        ["Totals", "Expenses", f"{cents_to_units(totals.expenses_cents)}"]
    )
    writer.writerow(["Totals", "Net", f"{cents_to_units(totals.net_cents)}"])
    writer.writerow(
        ["Totals", "Budget", f"{cents_to_units(payload.budgets.total_cents)}"]
    )

    for entry in payload.monthly_income:
        writer.writerow(
            ["MonthlyIncome", entry.year_month, f"{cents_to_units(entry.total_cents)}"]
        )
    for entry in payload.expenses_by_category:
        writer.writerow(
            [
                "ExpensesByCategory",
                sanitize_csv_value(entry.category),
                f"{cents_to_units(entry.total_cents)}",
            ]
        )
    for entry in payload.budgets.by_category:
        writer.writerow(
            [
                "Budgets",
                sanitize_csv_value(entry.category),
                f"{cents_to_units(entry.total_cents)}",
            ]
        )
    for row in budget_vs_actual(
        payload.budgets.by_category, payload.expenses_by_category
    ):
        writer.writerow(
            [
                "BudgetVsActual",
                sanitize_csv_value(row.category),
                f"{cents_to_units(row.budget_cents)}",
                f"{cents_to_units(row.actual_cents)}",
            ]
        )
    return output.getvalue()

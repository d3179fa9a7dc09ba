import hashlib
from datetime import date
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

PRESET_CATEGORY_COLORS = {
    "Rent": "#00A878",
    "Other": "#2274A5",
    "Utilities": "#F75C03",
    "Food/Groceries": "#8C4F7F",
    "Transportation": "#FFB400",
}

# Mid-to-light hex digits keep generated colours readable on white.
_COLOR_DIGITS = "456789ABCDEF"


def parse_amount(value: str) -> int:
    """Convert user-entered currency text such as ``"$1,234.50"`` to cents."""
    clean = value.strip().replace("$", "").replace(",", "").replace(" ", "")
    if not clean:
        raise ValueError("Invalid amount")
    try:
        amount = Decimal(clean)
    except InvalidOperation as exc:
        raise ValueError("Invalid amount") from exc
    if not amount.is_finite():
        raise ValueError("Invalid amount")
    cents = int((amount * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))
    if cents < 0:
        raise ValueError("Amount must be positive")
    return cents


def cents_to_units(cents: int) -> Decimal:
    return (Decimal(cents) / Decimal(100)).quantize(Decimal("0.01"))


def format_currency(cents: int) -> str:
    sign = "-" if cents < 0 else ""
    return f"{sign}${abs(cents) / 100:,.2f}"


def month_label(month: date) -> str:
    return f"{month.strftime('%b')} '{month.year % 100:02d}"


def category_color(category: str) -> str:
    preset = PRESET_CATEGORY_COLORS.get(category)
    if preset:
        return preset
    digest = hashlib.sha1(category.encode("utf-8")).digest()
    return "#" + "".join(_COLOR_DIGITS[b % len(_COLOR_DIGITS)] for b in digest[:6])


def units_to_cents(amount: Decimal) -> int:
    return int((amount * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))

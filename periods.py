from dataclasses import dataclass
from typing import Optional

RANGE_CHOICES = ("3", "6", "12", "ALL")
DEFAULT_RANGE = "6"


@dataclass(frozen=True)
class MonthRange:
    slug: str
    months: Optional[int]


def resolve_range(value: Optional[str]) -> MonthRange:
    """Map the trend pages' range selector onto a month count.

    ``ALL`` means no trimming; an empty value falls back to six months.
    """
    slug = (value or DEFAULT_RANGE).strip().upper()
    if slug not in RANGE_CHOICES:
        raise ValueError(f"Range must be one of {', '.join(RANGE_CHOICES)}")
    if slug == "ALL":
        return MonthRange("ALL", None)
    return MonthRange(slug, int(slug))

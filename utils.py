import calendar
from datetime import date, datetime, timezone
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any, Optional, Tuple


def utcnow() -> datetime:
    """Naive UTC timestamp, the form every DateTime column in this service stores."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


# Helper: rupees (Decimal) -> integer paise
def to_paise(amount: Decimal) -> int:
    return int((amount * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


# Helper: integer paise -> "1234.50"
def paise_to_rupees(value: Optional[int]) -> Optional[str]:
    if value is None:
        return None
    rupees = (Decimal(value) / Decimal(100)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
    return format(rupees, "f")


# Helper: "₹1,234.50" style display for messages and audit details
def format_inr(value: Optional[int]) -> str:
    if value is None:
        return "₹0.00"
    rupees = (Decimal(value) / Decimal(100)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
    return f"₹{rupees:,.2f}"


def parse_decimal(value: Any) -> Optional[Decimal]:
    """Parse a spreadsheet cell as a finite decimal, tolerating thousands separators."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, Decimal)):
        dec = Decimal(value)
    else:
        text = str(value).strip().replace(",", "")
        if text == "":
            return None
        try:
            dec = Decimal(text)
        except InvalidOperation:
            return None
    if not dec.is_finite():
        return None
    return dec


def cell_to_text(value: Any) -> str:
    """Render a cell as text; integral floats lose the ".0" a spreadsheet adds to numeric codes."""
    if value is None:
        return ""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value).strip()


def previous_period(now: datetime) -> Tuple[int, int]:
    """(month, year) of the month that ended before ``now``."""
    if now.month == 1:
        return 12, now.year - 1
    return now.month - 1, now.year


def month_bounds(month: int, year: int) -> Tuple[date, date]:
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, 1), date(year, month, last_day)

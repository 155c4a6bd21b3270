"""Currency and calendar-month helpers.

Month keys are "YYYY-MM" strings. All month arithmetic is done on integer
year/month pairs so month lengths and timezones never shift a result.
"""

import calendar
import re
from datetime import date
from decimal import Decimal, ROUND_HALF_UP
from typing import List, Optional, Tuple

from shared_ledger.config import CURRENCY_SYMBOL

MONTH_NAMES = [
    "enero", "febrero", "marzo", "abril", "mayo", "junio",
    "julio", "agosto", "septiembre", "octubre", "noviembre", "diciembre",
]

_MONTH_KEY_RE = re.compile(r"^(\d{4})-(\d{2})$")
_MONTH_LABEL_RE = re.compile(r"^\s*([a-záéíóú]+)\s+(?:de\s+)?(\d{4})\s*$", re.IGNORECASE)


def monthly_amount(total_amount: float, installments: int) -> float:
    """Amount billed each month; callers guarantee installments >= 1."""
    return float(total_amount) / installments


def round_half_up(value: float, ndigits: int = 0) -> float:
    """Round halves away from zero instead of Python's banker's rounding."""
    quantum = Decimal(1).scaleb(-ndigits)
    return float(Decimal(str(value)).quantize(quantum, rounding=ROUND_HALF_UP))


def format_currency(amount: float, symbol: str = CURRENCY_SYMBOL) -> str:
    """Render an amount the es-AR way: "$ 1.234,5" (0 to 2 decimals)."""
    value = round_half_up(abs(float(amount)), 2)
    whole, _, cents = f"{value:.2f}".partition(".")
    whole = f"{int(whole):,}".replace(",", ".")
    cents = cents.rstrip("0")
    text = f"{whole},{cents}" if cents else whole
    sign = "-" if amount < 0 and value != 0 else ""
    return f"{sign}{symbol} {text}"


def parse_month_key(key: str) -> Tuple[int, int]:
    """Split "YYYY-MM" into (year, month); raise ValueError on anything else."""
    m = _MONTH_KEY_RE.match((key or "").strip())
    if not m:
        raise ValueError(f"Invalid month key: {key!r} (expected YYYY-MM)")
    year, month = int(m.group(1)), int(m.group(2))
    if not 1 <= month <= 12:
        raise ValueError(f"Invalid month in key: {key!r}")
    return year, month


def format_month_key(year: int, month: int) -> str:
    return f"{year:04d}-{month:02d}"


def current_month_key(today: Optional[date] = None) -> str:
    today = today or date.today()
    return format_month_key(today.year, today.month)


def shift_month(key: str, offset: int) -> str:
    """Move a month key by offset months (negative goes back in time)."""
    year, month = parse_month_key(key)
    year, month0 = divmod(year * 12 + (month - 1) + offset, 12)
    return format_month_key(year, month0 + 1)


def months_between(start: str, end: str) -> int:
    """Number of whole months from start to end (negative if end is earlier)."""
    sy, sm = parse_month_key(start)
    ey, em = parse_month_key(end)
    return (ey - sy) * 12 + (em - sm)


def month_key_to_label(key: str) -> str:
    """ "2025-03" -> "marzo de 2025" """
    year, month = parse_month_key(key)
    return f"{MONTH_NAMES[month - 1]} de {year}"


def parse_month_label(label: str) -> str:
    """Inverse of month_key_to_label; accepts any capitalisation."""
    m = _MONTH_LABEL_RE.match(label or "")
    if not m or m.group(1).lower() not in MONTH_NAMES:
        raise ValueError(f"Invalid month label: {label!r}")
    return format_month_key(int(m.group(2)), MONTH_NAMES.index(m.group(1).lower()) + 1)


def month_date_range(key: str) -> Tuple[str, str]:
    """First and last calendar day of the month as ISO dates."""
    year, month = parse_month_key(key)
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, 1).isoformat(), date(year, month, last_day).isoformat()


def recent_months(count: int, today: Optional[date] = None) -> List[str]:
    """History listing: the `count` months before the current one, newest first."""
    current = current_month_key(today)
    return [shift_month(current, -i) for i in range(1, count + 1)]


def upcoming_months(count: int = 3, today: Optional[date] = None) -> List[str]:
    """First-charge month choices: the current month plus the next `count`."""
    current = current_month_key(today)
    return [shift_month(current, i) for i in range(0, count + 1)]

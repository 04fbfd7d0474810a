"""
Display helpers shared by the finance views.

Amounts are shown in Indonesian Rupiah without fraction digits and dates use
Indonesian month names, matching how the rest of the admin screens render.
"""
from datetime import date, datetime
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Dict, Optional, Union

MONTHS_ID = [
    "Januari", "Februari", "Maret", "April", "Mei", "Juni",
    "Juli", "Agustus", "September", "Oktober", "November", "Desember",
]

STATUS_LABELS = {
    "draft": "Draft",
    "pending": "Pending",
    "approved": "Disetujui",
    "rejected": "Ditolak",
    "posted": "Diposting",
}

STATUS_VARIANTS = {
    "draft": "default",
    "pending": "warning",
    "approved": "success",
    "rejected": "danger",
    "posted": "info",
}


def to_decimal(value: Any) -> Decimal:
    """Coerce a form or backend amount to Decimal; None and blanks count as zero."""
    if value is None:
        return Decimal("0")
    if isinstance(value, Decimal):
        return value
    if isinstance(value, str) and value.strip() == "":
        return Decimal("0")
    return Decimal(str(value))


def format_number(value: Any) -> str:
    """1234567 -> '1.234.567'"""
    rounded = to_decimal(value).quantize(Decimal("1"), rounding=ROUND_HALF_UP)
    return f"{abs(int(rounded)):,}".replace(",", ".")


def format_currency(value: Any) -> str:
    """5000000 -> 'Rp 5.000.000'"""
    rounded = to_decimal(value).quantize(Decimal("1"), rounding=ROUND_HALF_UP)
    sign = "-" if rounded < 0 else ""
    return f"{sign}Rp {format_number(rounded)}"


def _parse_date(value: Union[date, datetime, str]) -> Union[date, datetime]:
    if isinstance(value, (date, datetime)):
        return value
    text = str(value).replace("Z", "+00:00")
    if len(text) <= 10:
        return date.fromisoformat(text)
    return datetime.fromisoformat(text)


def format_date(value: Optional[Union[date, datetime, str]]) -> str:
    """2026-10-19 -> '19 Oktober 2026'"""
    if value is None or value == "":
        return ""
    parsed = _parse_date(value)
    return f"{parsed.day} {MONTHS_ID[parsed.month - 1]} {parsed.year}"


def format_datetime(value: Optional[Union[datetime, str]]) -> str:
    """2026-10-19T14:30:00 -> '19 Oktober 2026 pukul 14.30'"""
    if value is None or value == "":
        return ""
    parsed = _parse_date(value)
    if not isinstance(parsed, datetime):
        return format_date(parsed)
    return f"{format_date(parsed)} pukul {parsed.hour:02d}.{parsed.minute:02d}"


def status_badge(status: str) -> Dict[str, str]:
    """Label and colour variant for a journal status badge."""
    key = (status or "").lower()
    return {
        "value": key,
        "label": STATUS_LABELS.get(key, status),
        "variant": STATUS_VARIANTS.get(key, "default"),
    }

"""
Double-entry balance checks for journal drafts.

All functions here are pure: they are recomputed from the current lines on
every change instead of being updated incrementally. Lines may be pydantic
models or plain mappings; a missing or null amount counts as zero.
"""
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Dict, Iterable, Mapping, Tuple

from yayasan_erp.services.formatting import format_currency, to_decimal

ZERO = Decimal("0")


def _amount(line: Any, field: str) -> Decimal:
    if isinstance(line, Mapping):
        return to_decimal(line.get(field))
    return to_decimal(getattr(line, field, None))


def compute_totals(lines: Iterable[Any]) -> Tuple[Decimal, Decimal]:
    """Sum debit and credit independently across all lines."""
    total_debit = ZERO
    total_credit = ZERO
    for line in lines:
        total_debit += _amount(line, "debit")
        total_credit += _amount(line, "credit")
    return total_debit, total_credit


def is_balanced(total_debit: Any, total_credit: Any) -> bool:
    """Debits equal credits and the entry actually moves money."""
    debit = to_decimal(total_debit)
    credit = to_decimal(total_credit)
    return debit == credit and debit > ZERO


def validate_line_exclusivity(lines: Iterable[Any]) -> bool:
    """True when no line carries both a positive debit and a positive credit."""
    return not any(
        _amount(line, "debit") > ZERO and _amount(line, "credit") > ZERO
        for line in lines
    )


@dataclass(frozen=True)
class BalanceStatus:
    """What the balance panel next to the journal form shows."""
    total_debit: Decimal
    total_credit: Decimal
    is_balanced: bool

    @property
    def difference(self) -> Decimal:
        return abs(self.total_debit - self.total_credit)

    @property
    def message(self) -> str:
        if self.is_balanced:
            return "Debit and credit are balanced"
        if self.difference == ZERO:
            return "Enter a debit and a credit amount"
        return f"Difference: {format_currency(self.difference)}"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total_debit": float(self.total_debit),
            "total_credit": float(self.total_credit),
            "difference": float(self.difference),
            "is_balanced": self.is_balanced,
            "total_debit_display": format_currency(self.total_debit),
            "total_credit_display": format_currency(self.total_credit),
            "difference_display": format_currency(self.difference),
            "message": self.message,
        }


def balance_status(lines: Iterable[Any]) -> BalanceStatus:
    total_debit, total_credit = compute_totals(lines)
    return BalanceStatus(
        total_debit=total_debit,
        total_credit=total_credit,
        is_balanced=is_balanced(total_debit, total_credit),
    )

"""
Request validation models for journal entry submission.

These are the declarative form schema: a draft is only turned into a
`JournalEntryInput` (and sent to the backend) once every constraint holds.
"""
from datetime import date
from decimal import Decimal
from typing import Dict, List, Optional, Tuple

from pydantic import Field, ValidationError, field_validator, model_validator

from yayasan_erp.models.base import Amount, YEBaseModel

MIN_JOURNAL_LINES = 2

EXCLUSIVE_LINE_MESSAGE = "Each line must be a debit OR a credit, not both"
MIN_LINES_MESSAGE = f"At least {MIN_JOURNAL_LINES} lines are required (debit and credit)"


class JournalLineInput(YEBaseModel):
    """A journal line that is ready to be posted."""
    account_id: str = Field(..., min_length=1)
    description: str = Field(..., min_length=3)
    debit: Amount = Field(default=Decimal("0"), ge=0)
    credit: Amount = Field(default=Decimal("0"), ge=0)

    @field_validator("debit", "credit", mode="before")
    @classmethod
    def default_missing_amount(cls, v):
        return Decimal("0") if v is None else v


class JournalEntryInput(YEBaseModel):
    """The payload accepted by POST /journals on the backend."""
    journal_date: date
    description: str = Field(..., min_length=5)
    reference_no: Optional[str] = None
    items: List[JournalLineInput] = Field(..., min_length=MIN_JOURNAL_LINES)

    @field_validator("reference_no")
    @classmethod
    def empty_reference_is_none(cls, v):
        return v or None

    @model_validator(mode="after")
    def validate_exclusive_lines(self):
        if any(item.debit > 0 and item.credit > 0 for item in self.items):
            raise ValueError(EXCLUSIVE_LINE_MESSAGE)
        return self


# Friendlier wording for the constraint failures users actually hit
_FIELD_MESSAGES = {
    ("account_id", "string_too_short"): "An account must be selected",
    ("description", "string_too_short"): "Description must be at least {min_length} characters",
    ("debit", "greater_than_equal"): "Debit cannot be negative",
    ("credit", "greater_than_equal"): "Credit cannot be negative",
    ("journal_date", "missing"): "Journal date is required",
    ("journal_date", "date_type"): "Journal date is required",
    ("items", "too_short"): MIN_LINES_MESSAGE,
}


def _field_message(path: str, error: Dict) -> str:
    field = path.rsplit(".", 1)[-1]
    template = _FIELD_MESSAGES.get((field, error.get("type", "")))
    if template is None:
        message = str(error.get("msg", "Invalid value"))
        return message[len("Value error, "):] if message.startswith("Value error, ") else message
    return template.format(**(error.get("ctx") or {}))


def collect_errors(exc: ValidationError) -> Tuple[Dict[str, str], List[str]]:
    """
    Split a pydantic ValidationError into field errors and entry-level errors.

    Field errors are keyed by dotted path (``items.0.description``) so they
    can be shown next to the offending input; only the first message per
    field is kept. Errors without a location belong to the whole entry.
    """
    field_errors: Dict[str, str] = {}
    form_errors: List[str] = []
    for error in exc.errors():
        path = ".".join(str(part) for part in error.get("loc", ()))
        message = _field_message(path, error)
        if not path or path == "items":
            if message not in form_errors:
                form_errors.append(message)
        else:
            field_errors.setdefault(path, message)
    return field_errors, form_errors

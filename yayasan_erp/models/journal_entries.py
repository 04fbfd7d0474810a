"""Journal entry models: the editable draft and the records read back from the backend."""
import uuid
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import List, Optional

from pydantic import Field, field_validator

from yayasan_erp.models.base import Amount, BackendModel, YEBaseModel


class JournalStatus(str, Enum):
    DRAFT = "draft"
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    POSTED = "posted"


class ReviewAction(str, Enum):
    APPROVE = "approve"
    REJECT = "reject"


def _blank_amount(value):
    # Empty number inputs arrive as "" or null
    if isinstance(value, str) and value.strip() == "":
        return None
    return value


def _date_part(value):
    # The backend serializes dates as RFC3339 timestamps
    if isinstance(value, str) and len(value) > 10:
        return value[:10]
    return value


class JournalLineDraft(YEBaseModel):
    """
    One editable row of the journal form.

    Drafts are deliberately permissive: they hold whatever the user typed so
    far. Constraints are checked by the input schema at validation time.
    """

    account_id: str = ""
    description: str = ""
    debit: Optional[Amount] = Decimal("0")
    credit: Optional[Amount] = Decimal("0")

    @field_validator("debit", "credit", mode="before")
    @classmethod
    def blank_amount(cls, value):
        return _blank_amount(value)


class JournalEntryDraft(YEBaseModel):
    """In-memory journal entry being edited. Never persisted by this service."""

    form_id: str = Field(default_factory=lambda: uuid.uuid4().hex, min_length=1)
    journal_date: Optional[date] = None
    description: str = ""
    reference_no: Optional[str] = None
    items: List[JournalLineDraft] = Field(default_factory=list)

    @classmethod
    def blank(cls, today: Optional[date] = None) -> "JournalEntryDraft":
        """A fresh draft: today's date and two empty lines."""
        return cls(
            journal_date=today or date.today(),
            items=[JournalLineDraft(), JournalLineDraft()],
        )


class JournalItem(BackendModel):
    id: Optional[str] = None
    account_id: str
    account_code: Optional[str] = None
    account_name: Optional[str] = None
    description: str = ""
    debit: Amount = Decimal("0")
    credit: Amount = Decimal("0")

    @field_validator("id", "account_id", mode="before")
    @classmethod
    def coerce_id(cls, value):
        if value is None:
            return value
        return str(value)


class JournalSummary(BackendModel):
    id: str
    journal_number: str = ""
    journal_date: Optional[date] = None
    description: str = ""
    reference_no: Optional[str] = None
    branch_id: Optional[str] = None
    branch_name: Optional[str] = None
    total_debit: Amount = Decimal("0")
    total_credit: Amount = Decimal("0")
    status: str = JournalStatus.DRAFT.value
    created_by_name: Optional[str] = None
    created_at: Optional[str] = None
    items: List[JournalItem] = Field(default_factory=list)

    @field_validator("journal_date", mode="before")
    @classmethod
    def date_only(cls, value):
        return _date_part(value)

    @field_validator("id", "branch_id", mode="before")
    @classmethod
    def coerce_id(cls, value):
        if value is None:
            return value
        return str(value)


class JournalPage(BackendModel):
    items: List[JournalSummary] = Field(default_factory=list)
    total: int = 0
    page: int = 1
    page_size: int = 20
    total_pages: int = 0

from yayasan_erp.models.base import Amount, BackendModel, YEBaseModel
from yayasan_erp.models.accounts import Account
from yayasan_erp.models.journal_entries import (
    JournalEntryDraft,
    JournalItem,
    JournalLineDraft,
    JournalPage,
    JournalStatus,
    JournalSummary,
    ReviewAction,
)

__all__ = [
    "Account",
    "Amount",
    "BackendModel",
    "JournalEntryDraft",
    "JournalItem",
    "JournalLineDraft",
    "JournalPage",
    "JournalStatus",
    "JournalSummary",
    "ReviewAction",
    "YEBaseModel",
]

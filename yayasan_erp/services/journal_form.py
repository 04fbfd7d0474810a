"""
Journal Entry Form

Holds one journal draft while the user edits it and decides whether it may
be saved. The rules mirror double-entry bookkeeping:

- at least two lines
- every line is a debit OR a credit, never both
- total debit == total credit, and the total is not zero

Totals and errors are derived from the current lines every time they are
asked for; nothing is cached between edits. A failed save never touches the
draft, so the user can retry without re-entering anything.
"""
from __future__ import annotations

from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from typing import Any, AsyncIterator, Dict, Iterable, List, Optional, Set

from pydantic import ValidationError

from yayasan_erp.models.accounts import Account
from yayasan_erp.models.journal_entries import JournalEntryDraft, JournalLineDraft, JournalSummary
from yayasan_erp.services.errors import BackendError, JournalValidationError, SubmissionInProgressError
from yayasan_erp.services.journal_balance import (
    BalanceStatus,
    balance_status,
    compute_totals,
    validate_line_exclusivity,
)
from yayasan_erp.services.logging import log_journal_submission
from yayasan_erp.services.metrics import record_journal_submission
from yayasan_erp.services.validation import (
    EXCLUSIVE_LINE_MESSAGE,
    MIN_JOURNAL_LINES,
    JournalEntryInput,
    collect_errors,
)

HEADER_FIELDS = ("journal_date", "description", "reference_no")


@dataclass
class FormReport:
    balance: BalanceStatus
    lines_exclusive: bool
    field_errors: Dict[str, str] = field(default_factory=dict)
    form_errors: List[str] = field(default_factory=list)

    @property
    def can_submit(self) -> bool:
        return (
            not self.field_errors
            and not self.form_errors
            and self.lines_exclusive
            and self.balance.is_balanced
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "can_submit": self.can_submit,
            "lines_exclusive": self.lines_exclusive,
            "field_errors": dict(self.field_errors),
            "form_errors": list(self.form_errors),
            "balance": self.balance.to_dict(),
        }


class JournalEntryForm:
    MIN_LINES = MIN_JOURNAL_LINES

    def __init__(
        self,
        draft: Optional[JournalEntryDraft] = None,
        accounts: Optional[Iterable[Account]] = None,
    ):
        self.draft = draft if draft is not None else JournalEntryDraft.blank()
        # Without an account list the backend has the last word on account ids
        self.accounts: Optional[Dict[str, Account]] = (
            {acc.id: acc for acc in accounts} if accounts is not None else None
        )
        self.pending = False

    @property
    def form_id(self) -> str:
        return self.draft.form_id

    @property
    def lines(self) -> List[JournalLineDraft]:
        return self.draft.items

    def _check_index(self, index: int) -> None:
        if not 0 <= index < len(self.lines):
            raise IndexError(f"Journal line {index} does not exist")

    # ---- line management ----

    def add_line(self) -> JournalLineDraft:
        line = JournalLineDraft()
        self.lines.append(line)
        return line

    @property
    def can_remove_line(self) -> bool:
        return len(self.lines) > self.MIN_LINES

    def remove_line(self, index: int) -> bool:
        """
        Remove a line. A no-op (returns False) when only the minimum number of
        lines is left, whatever the index; otherwise the index must exist.
        """
        if not self.can_remove_line:
            return False
        self._check_index(index)
        del self.lines[index]
        return True

    def update_line(self, index: int, **changes: Any) -> JournalLineDraft:
        self._check_index(index)
        merged = {**self.lines[index].model_dump(), **changes}
        line = JournalLineDraft.model_validate(merged)
        self.lines[index] = line
        return line

    def update_header(self, **changes: Any) -> JournalEntryDraft:
        unknown = set(changes) - set(HEADER_FIELDS)
        if unknown:
            raise ValueError(f"Unknown journal fields: {', '.join(sorted(unknown))}")
        merged = {**self.draft.model_dump(), **changes}
        self.draft = JournalEntryDraft.model_validate(merged)
        return self.draft

    # ---- derived state ----

    @property
    def totals(self):
        return compute_totals(self.lines)

    def balance_status(self) -> BalanceStatus:
        return balance_status(self.lines)

    def _schema_payload(self) -> Dict[str, Any]:
        return self.draft.model_dump(exclude={"form_id"})

    def check(self, accounts: Optional[Iterable[Account]] = None) -> FormReport:
        """Validate the draft. `accounts` overrides the account list given at construction."""
        known = {acc.id: acc for acc in accounts} if accounts is not None else self.accounts
        field_errors: Dict[str, str] = {}
        form_errors: List[str] = []
        try:
            JournalEntryInput.model_validate(self._schema_payload())
        except ValidationError as exc:
            field_errors, form_errors = collect_errors(exc)

        exclusive = validate_line_exclusivity(self.lines)
        if not exclusive:
            if EXCLUSIVE_LINE_MESSAGE not in form_errors:
                form_errors.append(EXCLUSIVE_LINE_MESSAGE)
            for index, line in enumerate(self.lines):
                if not validate_line_exclusivity([line]):
                    field_errors.setdefault(f"items.{index}.credit", "A line cannot have both debit and credit")

        if known is not None:
            for index, line in enumerate(self.lines):
                if not line.account_id:
                    continue
                account = known.get(line.account_id)
                if account is None or not account.is_postable:
                    field_errors.setdefault(f"items.{index}.account_id", "This account cannot receive postings")

        return FormReport(
            balance=self.balance_status(),
            lines_exclusive=exclusive,
            field_errors=field_errors,
            form_errors=form_errors,
        )

    def state(self) -> Dict[str, Any]:
        """Everything the browser needs to redraw the form."""
        report = self.check()
        removable = self.can_remove_line
        return {
            "form_id": self.form_id,
            "draft": self.draft.model_dump(mode="json"),
            "lines": [{"index": i, "removable": removable} for i in range(len(self.lines))],
            "pending": self.pending,
            **report.to_dict(),
        }

    # ---- submission ----

    async def submit(self, service) -> JournalSummary:
        """
        Validate and send the draft through `service.create_journal`.

        Raises SubmissionInProgressError while a previous submit of this form
        is still pending, JournalValidationError when the draft is invalid or
        unbalanced (nothing is sent), and lets BackendError propagate with
        the draft left intact.
        """
        if self.pending:
            record_journal_submission("duplicate")
            raise SubmissionInProgressError(self.form_id)

        report = self.check()
        total_debit = report.balance.total_debit
        if not report.can_submit:
            outcome = "invalid" if (report.field_errors or report.form_errors) else "unbalanced"
            record_journal_submission(outcome)
            log_journal_submission(self.form_id, outcome, total_debit, len(self.lines))
            raise JournalValidationError(report.to_dict(), draft=self.draft.model_dump(mode="json"))

        entry = JournalEntryInput.model_validate(self._schema_payload())
        self.pending = True
        try:
            journal = await service.create_journal(entry)
        except BackendError as exc:
            record_journal_submission("failed")
            log_journal_submission(self.form_id, "failed", total_debit, len(self.lines), error=exc.message)
            raise
        finally:
            self.pending = False

        record_journal_submission("created")
        log_journal_submission(self.form_id, "created", total_debit, len(self.lines), journal_id=journal.id)
        return journal


class SubmissionGuard:
    """Tracks which form instances have a save request in flight."""

    def __init__(self) -> None:
        self._inflight: Set[str] = set()

    def is_pending(self, form_id: str) -> bool:
        return form_id in self._inflight

    @asynccontextmanager
    async def hold(self, form_id: str) -> AsyncIterator[None]:
        if form_id in self._inflight:
            record_journal_submission("duplicate")
            raise SubmissionInProgressError(form_id)
        self._inflight.add(form_id)
        try:
            yield
        finally:
            self._inflight.discard(form_id)

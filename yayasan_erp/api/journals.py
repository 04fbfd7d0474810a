"""
Journal entry endpoints (general journal screens).

The browser keeps no business state of its own: every edit posts the whole
draft and receives the recomputed form state (totals, balance panel, field
errors, which lines may be removed). Saving goes through the same checks
before anything is sent to the ERP backend.
"""
from __future__ import annotations

import logging
from datetime import date
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel, Field

from yayasan_erp.api.deps import get_journal_service, get_submission_guard
from yayasan_erp.models.accounts import Account
from yayasan_erp.models.journal_entries import JournalEntryDraft, JournalSummary, ReviewAction
from yayasan_erp.services.errors import BackendError
from yayasan_erp.services.formatting import format_currency, format_date, format_datetime, status_badge
from yayasan_erp.services.journal_form import JournalEntryForm, SubmissionGuard
from yayasan_erp.services.journals import JournalService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/finance", tags=["finance-journals"])


class LineActionRequest(BaseModel):
    draft: JournalEntryDraft
    index: Optional[int] = Field(default=None, ge=0)


class SubmitForReviewRequest(BaseModel):
    notes: str = ""


class ReviewRequest(BaseModel):
    action: ReviewAction
    notes: str = ""


class PostRequest(BaseModel):
    post_date: Optional[date] = None


def _journal_view(journal: JournalSummary) -> Dict[str, Any]:
    data = journal.model_dump(mode="json")
    data["status_badge"] = status_badge(journal.status)
    data["display"] = {
        "journal_date": format_date(journal.journal_date),
        "total_debit": format_currency(journal.total_debit),
        "total_credit": format_currency(journal.total_credit),
        "created_at": format_datetime(journal.created_at),
    }
    return data


async def _known_accounts(service: JournalService) -> Optional[List[Account]]:
    # Form checks still run when the chart of accounts cannot be loaded
    try:
        return await service.accounts()
    except BackendError as exc:
        logger.warning("Account list unavailable, skipping account checks: %s", exc.message)
        return None


async def _form_for(draft: JournalEntryDraft, service: JournalService) -> JournalEntryForm:
    return JournalEntryForm(draft, accounts=await _known_accounts(service))


# ==================== LIST / DETAIL ====================

@router.get("/journals")
async def list_journals(
    page: int = Query(default=1, ge=1),
    page_size: Optional[int] = Query(default=None, ge=1),
    search: str = Query(default=""),
    status: str = Query(default="all"),
    service: JournalService = Depends(get_journal_service),
):
    result = await service.list_journals(page=page, page_size=page_size, search=search, status=status)
    return {
        "journals": [_journal_view(journal) for journal in result.items],
        "pagination": {
            "total": result.total,
            "page": result.page,
            "page_size": result.page_size,
            "total_pages": result.total_pages,
        },
    }


@router.get("/journals/new")
async def new_journal_form(service: JournalService = Depends(get_journal_service)):
    form = await _form_for(JournalEntryDraft.blank(), service)
    return form.state()


@router.get("/journals/{journal_id}")
async def get_journal(journal_id: str, service: JournalService = Depends(get_journal_service)):
    journal = await service.get_journal(journal_id)
    return {"journal": _journal_view(journal)}


# ==================== FORM EDITING ====================

@router.post("/journals/preview")
async def preview_journal(
    draft: JournalEntryDraft,
    service: JournalService = Depends(get_journal_service),
):
    form = await _form_for(draft, service)
    return form.state()


@router.post("/journals/form/add-line")
async def add_journal_line(
    request: LineActionRequest,
    service: JournalService = Depends(get_journal_service),
):
    form = await _form_for(request.draft, service)
    form.add_line()
    return form.state()


@router.post("/journals/form/remove-line")
async def remove_journal_line(
    request: LineActionRequest,
    service: JournalService = Depends(get_journal_service),
):
    if request.index is None:
        raise HTTPException(status_code=422, detail={"message": "index is required"})
    form = await _form_for(request.draft, service)
    try:
        removed = form.remove_line(request.index)
    except IndexError as exc:
        raise HTTPException(status_code=422, detail={"message": str(exc)})
    return {**form.state(), "removed": removed}


# ==================== SAVE ====================

@router.post("/journals", status_code=201)
async def create_journal(
    draft: JournalEntryDraft,
    service: JournalService = Depends(get_journal_service),
    guard: SubmissionGuard = Depends(get_submission_guard),
):
    """
    Save a journal draft.

    422 when the draft is invalid or unbalanced, 409 while the same form is
    already being saved. Backend failures answer with the draft echoed back
    so the client can offer a retry without losing input.
    """
    form = await _form_for(draft, service)
    async with guard.hold(form.form_id):
        try:
            journal = await form.submit(service)
        except BackendError as exc:
            exc.context["draft"] = form.draft.model_dump(mode="json")
            raise
    return {
        "message": "Journal saved",
        "form_id": form.form_id,
        "journal": _journal_view(journal),
    }


@router.delete("/journals/{journal_id}")
async def delete_journal(journal_id: str, service: JournalService = Depends(get_journal_service)):
    await service.delete_journal(journal_id)
    return {"deleted": True, "id": journal_id}


# ==================== WORKFLOW ====================

@router.post("/journals/{journal_id}/submit")
async def submit_journal_for_review(
    journal_id: str,
    request: SubmitForReviewRequest,
    service: JournalService = Depends(get_journal_service),
):
    journal = await service.submit_for_review(journal_id, notes=request.notes)
    return {"journal": _journal_view(journal)}


@router.post("/journals/{journal_id}/review")
async def review_journal(
    journal_id: str,
    request: ReviewRequest,
    service: JournalService = Depends(get_journal_service),
):
    journal = await service.review(journal_id, request.action, notes=request.notes)
    return {"journal": _journal_view(journal)}


@router.post("/journals/{journal_id}/post")
async def post_journal(
    journal_id: str,
    request: PostRequest,
    service: JournalService = Depends(get_journal_service),
):
    journal = await service.post(journal_id, post_date=request.post_date)
    return {"journal": _journal_view(journal)}


@router.post("/journals/{journal_id}/unpost")
async def unpost_journal(journal_id: str, service: JournalService = Depends(get_journal_service)):
    journal = await service.unpost(journal_id)
    return {"journal": _journal_view(journal)}

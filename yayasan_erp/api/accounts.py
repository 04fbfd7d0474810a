"""Chart of accounts endpoints for the journal form account selector."""
from __future__ import annotations

from fastapi import APIRouter, Depends, Query

from yayasan_erp.api.deps import get_journal_service
from yayasan_erp.services.journals import JournalService


router = APIRouter(prefix="/finance", tags=["finance-accounts"])


@router.get("/accounts")
async def list_accounts(
    include_headers: bool = Query(default=False),
    service: JournalService = Depends(get_journal_service),
):
    if include_headers:
        accounts = sorted(await service.accounts(), key=lambda acc: acc.code)
    else:
        accounts = await service.selectable_accounts()
    return {
        "accounts": [
            {**acc.model_dump(mode="json"), "label": acc.label, "selectable": acc.is_postable}
            for acc in accounts
        ],
        "count": len(accounts),
    }

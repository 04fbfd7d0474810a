from yayasan_erp.api.accounts import router as accounts_router
from yayasan_erp.api.journals import router as journals_router

__all__ = ["accounts_router", "journals_router"]

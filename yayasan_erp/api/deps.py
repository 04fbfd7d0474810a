"""FastAPI dependencies for the finance services."""
from fastapi import Request

from yayasan_erp.di.container import ServiceContainer
from yayasan_erp.services.journal_form import SubmissionGuard
from yayasan_erp.services.journals import JournalService


def get_container(request: Request) -> ServiceContainer:
    return request.app.state.container


def get_journal_service(request: Request) -> JournalService:
    return get_container(request).journals()


def get_submission_guard(request: Request) -> SubmissionGuard:
    return get_container(request).submissions()

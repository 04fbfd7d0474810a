"""
Yayasan ERP Error Handling

Specific error types with user-friendly messages and debugging context.
"""
from typing import Optional, Dict, Any
from enum import Enum


class ErrorCode(str, Enum):
    """Standardized error codes for client handling."""
    # Input errors (400s)
    INVALID_CONFIG = "INVALID_CONFIG"
    INVALID_JOURNAL = "INVALID_JOURNAL"
    UNBALANCED_JOURNAL = "UNBALANCED_JOURNAL"
    SUBMISSION_IN_PROGRESS = "SUBMISSION_IN_PROGRESS"
    NOT_FOUND = "NOT_FOUND"

    # Backend errors
    BACKEND_UNAUTHORIZED = "BACKEND_UNAUTHORIZED"
    BACKEND_REJECTED = "BACKEND_REJECTED"
    BACKEND_UNAVAILABLE = "BACKEND_UNAVAILABLE"


STATUS_MAP = {
    ErrorCode.INVALID_CONFIG: 500,
    ErrorCode.INVALID_JOURNAL: 422,
    ErrorCode.UNBALANCED_JOURNAL: 422,
    ErrorCode.SUBMISSION_IN_PROGRESS: 409,
    ErrorCode.NOT_FOUND: 404,
    ErrorCode.BACKEND_UNAUTHORIZED: 401,
    ErrorCode.BACKEND_REJECTED: 400,
    ErrorCode.BACKEND_UNAVAILABLE: 502,
}


class YayasanError(Exception):
    """Base exception with structured error info."""

    def __init__(
        self,
        code: ErrorCode,
        message: str,
        detail: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None
    ):
        self.code = code
        self.message = message
        self.detail = detail
        self.context = context or {}
        super().__init__(message)

    @property
    def status_code(self) -> int:
        return STATUS_MAP.get(self.code, 500)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to API response format."""
        result = {
            "error": self.code.value,
            "message": self.message
        }
        if self.detail:
            result["detail"] = self.detail
        if self.context:
            result["context"] = self.context
        return result


class ConfigError(YayasanError):
    """Error in configuration."""

    def __init__(self, field: str, detail: str):
        super().__init__(
            code=ErrorCode.INVALID_CONFIG,
            message=f"Invalid configuration for '{field}'",
            detail=detail,
            context={"field": field}
        )


class JournalValidationError(YayasanError):
    """
    The journal draft cannot be submitted.

    Carries the full form report so the caller can render field errors and
    the balance panel next to the unchanged draft.
    """

    def __init__(self, report: Dict[str, Any], draft: Optional[Dict[str, Any]] = None):
        balance = report.get("balance") or {}
        has_field_errors = bool(report.get("field_errors") or report.get("form_errors"))
        if has_field_errors:
            code = ErrorCode.INVALID_JOURNAL
            message = "Please correct the highlighted journal fields"
        else:
            code = ErrorCode.UNBALANCED_JOURNAL
            message = "Debit and credit must balance before the journal can be saved"
        context: Dict[str, Any] = {"report": report}
        if draft is not None:
            context["draft"] = draft
        super().__init__(
            code=code,
            message=message,
            detail=balance.get("message"),
            context=context,
        )
        self.report = report


class SubmissionInProgressError(YayasanError):
    """A submission for the same form instance is already in flight."""

    def __init__(self, form_id: str):
        super().__init__(
            code=ErrorCode.SUBMISSION_IN_PROGRESS,
            message="This journal is already being saved",
            detail="Wait for the pending request to finish before submitting again",
            context={"form_id": form_id}
        )


class BackendError(YayasanError):
    """Error returned by, or while talking to, the ERP backend."""

    def __init__(
        self,
        code: ErrorCode,
        message: str,
        status: Optional[int] = None,
        detail: Optional[str] = None,
        path: Optional[str] = None,
    ):
        context: Dict[str, Any] = {}
        if status is not None:
            context["backend_status"] = status
        if path:
            context["path"] = path
        super().__init__(code=code, message=message, detail=detail, context=context)
        self.status = status


class NotFoundError(BackendError):
    """Requested record does not exist on the backend."""

    def __init__(self, resource: str, detail: Optional[str] = None, path: Optional[str] = None):
        super().__init__(
            code=ErrorCode.NOT_FOUND,
            message=f"{resource} not found",
            status=404,
            detail=detail,
            path=path,
        )


class BackendAuthError(BackendError):
    """Backend refused our credentials."""

    def __init__(self, status: int, detail: Optional[str] = None, path: Optional[str] = None):
        super().__init__(
            code=ErrorCode.BACKEND_UNAUTHORIZED,
            message="The ERP backend rejected the request credentials",
            status=status,
            detail=detail,
            path=path,
        )


class BackendRejectedError(BackendError):
    """Backend refused the request (validation or business rule)."""

    def __init__(self, status: int, detail: Optional[str] = None, path: Optional[str] = None):
        super().__init__(
            code=ErrorCode.BACKEND_REJECTED,
            message=detail or "The ERP backend rejected the request",
            status=status,
            detail=detail,
            path=path,
        )


class BackendUnavailableError(BackendError):
    """Network failure or 5xx from the backend."""

    def __init__(self, detail: str, status: Optional[int] = None, path: Optional[str] = None):
        super().__init__(
            code=ErrorCode.BACKEND_UNAVAILABLE,
            message="The ERP backend is unavailable, please try again",
            status=status,
            detail=detail,
            path=path,
        )

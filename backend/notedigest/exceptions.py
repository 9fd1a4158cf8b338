"""
NoteDigest Backend: Custom Exception Hierarchy
================================================

What:  Application-specific exceptions for every failure kind the core reports.
How:   Each exception carries a human-readable message, an optional context
       dict (logged, never echoed for server errors), a stable machine `code`
       and the HTTP `status_code` the API layer answers with. A single handler
       in main.py turns any NoteDigestError into a JSON error response.
Who:   Raised by services; caught by the global handler or by callers that
       translate one kind into another (SummaryStore).

Exception Hierarchy:
    NoteDigestError (base)
    ├── ValidationError            → 400  caller input violates a constraint
    ├── InvalidIdError             → 400  identifier is not UUID-shaped
    ├── MissingOwnerError          → 401  no owner id supplied
    ├── NotFoundError              → 404  note absent or owned by someone else
    ├── LifecycleError
    │   ├── AlreadyArchivedError   → 409
    │   └── NotArchivedError       → 409
    ├── EmptyContentError          → 422  nothing to summarize
    ├── TokenLimitExceededError    → 413  pre-flight budget check failed
    ├── ContentTooLargeError       → 413  token limit hit while summarizing
    ├── AttemptTimeoutError        → 504  one AI attempt ran out of time
    ├── RetryExhaustedError        → 503  every AI attempt failed
    ├── AIServiceUnavailableError  → 503  summarization could not reach the AI
    ├── ConfigurationError         → 500
    └── DatabaseError              → 500
"""

from typing import Any, Dict, Optional


class NoteDigestError(Exception):
    """
    Base exception for all NoteDigest application errors.

    Attributes:
        message:  User-facing error description (safe to return in API response)
        context:  Additional debug info
    """

    code = "internal_error"
    status_code = 500

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class ValidationError(NoteDigestError):
    """
    Raised when caller input fails a field constraint.

    Carries the first violated constraint only, e.g.
        {"error": "validation_error", "message": "Title is required",
         "details": {"field": "title"}}
    """

    code = "validation_error"
    status_code = 400

    def __init__(
        self,
        message: str = "Validation failed",
        field: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if field:
            ctx["field"] = field
        super().__init__(message=message, context=ctx)
        self.field = field


class InvalidIdError(NoteDigestError):
    """Raised for identifiers that are not syntactically a UUID. No lookup is made."""

    code = "invalid_id"
    status_code = 400

    def __init__(self, resource_id: str, resource: str = "note"):
        super().__init__(
            message=f"'{resource_id}' is not a valid {resource} ID",
            context={"resource": resource, "resource_id": resource_id},
        )
        self.resource_id = resource_id


class MissingOwnerError(NoteDigestError):
    """Raised by the HTTP layer when the identity provider supplied no owner id."""

    code = "missing_owner"
    status_code = 401

    def __init__(self, header: str = "X-Owner-ID"):
        super().__init__(
            message=f"Missing owner identity. Send the {header} header.",
            context={"header": header},
        )


class NotFoundError(NoteDigestError):
    """
    Raised when a requested resource does not exist or is not visible to the owner.

    SQLAlchemy returns None for missing rows; the stores convert None into
    this exception so callers never branch on None for required rows.
    """

    code = "not_found"
    status_code = 404

    def __init__(
        self,
        resource: str = "resource",
        resource_id: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = f"The requested {resource} was not found"
        if resource_id:
            message = f"{resource} with ID '{resource_id}' was not found"
        ctx = context or {}
        ctx["resource"] = resource
        if resource_id:
            ctx["resource_id"] = resource_id
        super().__init__(message=message, context=ctx)


class LifecycleError(NoteDigestError):
    """A note's archival state does not allow the requested transition."""

    code = "lifecycle_error"
    status_code = 409

    def __init__(self, message: str, note_id: str):
        super().__init__(message=message, context={"note_id": note_id})
        self.note_id = note_id


class AlreadyArchivedError(LifecycleError):
    code = "already_archived"

    def __init__(self, note_id: str):
        super().__init__(f"Note '{note_id}' is already archived", note_id)


class NotArchivedError(LifecycleError):
    code = "not_archived"

    def __init__(self, note_id: str):
        super().__init__(f"Note '{note_id}' is not archived", note_id)


class EmptyContentError(NoteDigestError):
    """Raised when summarization is requested for a note with blank content."""

    code = "empty_content"
    status_code = 422

    def __init__(self, note_id: str):
        super().__init__(
            message="There is nothing to summarize. Add some content to the note first.",
            context={"note_id": note_id},
        )


class TokenLimitExceededError(NoteDigestError):
    """
    Raised by the pre-flight token estimate before any network call is made.

    Never retried: the same text would fail the same check on every attempt.
    """

    code = "token_limit_exceeded"
    status_code = 413

    def __init__(self, token_count: int, limit: int):
        super().__init__(
            message=f"Text exceeds token limit. Current: {token_count}, Max: {limit}",
            context={"token_count": token_count, "limit": limit},
        )
        self.token_count = token_count
        self.limit = limit


class ContentTooLargeError(NoteDigestError):
    """Summarization-facing translation of TokenLimitExceededError."""

    code = "content_too_large"
    status_code = 413

    def __init__(self, context: Optional[Dict[str, Any]] = None):
        super().__init__(
            message="The note is too long to summarize. Try again with shorter content.",
            context=context,
        )


class AttemptTimeoutError(NoteDigestError):
    """
    Raised when a single AI call attempt exceeds its deadline.

    Consumed by RetryingCaller; only its message surfaces, inside
    RetryExhaustedError, when every attempt has failed.
    """

    code = "timeout"
    status_code = 504

    def __init__(self, operation_name: str, timeout: float):
        super().__init__(
            message=f"{operation_name} timed out after {timeout:g}s",
            context={"operation": operation_name, "timeout": timeout},
        )
        self.timeout = timeout


class RetryExhaustedError(NoteDigestError):
    """
    Raised when every attempt of an AI call failed.

    Message format: "<operation_name> failed after <attempts> attempts: <last error>"
    """

    code = "retry_exhausted"
    status_code = 503

    def __init__(self, operation_name: str, attempts: int, last_error: str):
        super().__init__(
            message=f"{operation_name} failed after {attempts} attempts: {last_error}",
            context={"operation": operation_name, "attempts": attempts},
        )
        self.operation_name = operation_name
        self.attempts = attempts
        self.last_error = last_error


class AIServiceUnavailableError(NoteDigestError):
    """User-facing translation of any AI failure during summarization."""

    code = "ai_service_unavailable"
    status_code = 503

    def __init__(
        self,
        message: str = "The AI service is temporarily unavailable. Please try again later.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class ConfigurationError(NoteDigestError):
    """A required setting (e.g. GEMINI_API_KEY) is missing or invalid."""

    code = "configuration_error"
    status_code = 500

    def __init__(self, message: str, setting: Optional[str] = None):
        super().__init__(message=message, context={"setting": setting} if setting else None)


class DatabaseError(NoteDigestError):
    """
    Raised when database operations fail unexpectedly.

    The message returned to the client is always generic; the SQLAlchemy
    error type goes into context and is logged server-side only.
    """

    code = "server_error"
    status_code = 500

    def __init__(
        self,
        message: str = "A database error occurred. Please try again later.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)

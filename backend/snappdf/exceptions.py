"""
SnapPDF Backend - Custom Exception Hierarchy
==============================================

What:  Application-specific exceptions, one per error kind the API reports.
How:   Each exception carries a human-readable message, a stable machine
       code, the HTTP status it maps to and an optional context dict.
       The global handlers in `snappdf.main` turn them into JSON responses.
Who:   Raised by services and dependencies; caught by global handlers.

Exception Hierarchy:
    SnapPDFError (base)                     → 500 INTERNAL_ERROR
    ├── ValidationError                     → 400 (client can fix)
    ├── AuthenticationError                 → 401 (missing/invalid token or credentials)
    ├── IdentityRejectedError               → 400 (Google rejected the code)
    ├── NotFoundError                       → 404
    ├── UpstreamUnavailableError            → 503 (Redis / Postgres unreachable)
    ├── IdentityProviderError               → 502 (Google failed, not a rejection)
    ├── DatabaseError                       → 500
    ├── ObjectStoreError                    → 500 (S3)
    └── QueueError                          → 500 (SQS)

The `code` attribute is part of the API contract: clients branch on it, so
codes never change once published.
"""

from typing import Any, Dict, Optional


class SnapPDFError(Exception):
    """
    Base exception for all SnapPDF application errors.

    Attributes:
        message:  User-facing error description (safe to return in API response)
        code:     Stable machine-readable error code
        context:  Additional debug info (returned as `details` only where the
                  handler decides it is safe)
    """

    status_code: int = 500
    default_code: str = "INTERNAL_ERROR"

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        code: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.code = code or self.default_code
        self.context = context or {}
        super().__init__(self.message)


class ValidationError(SnapPDFError):
    """
    Raised when client input fails validation.

    When:  No files uploaded, disallowed content type, too many files,
           file too large, missing authorization code.
    HTTP:  400 Bad Request
    """

    status_code = 400
    default_code = "VALIDATION_ERROR"

    def __init__(
        self,
        message: str = "Validation failed",
        code: Optional[str] = None,
        field: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if field:
            ctx["field"] = field
        super().__init__(message=message, code=code, context=ctx)
        self.field = field


class AuthenticationError(SnapPDFError):
    """
    Raised when a bearer token or basic credentials are missing or invalid.

    Codes:
        MISSING_AUTH_HEADER  - no Authorization header
        INVALID_AUTH_FORMAT  - header is not "Bearer <token>"
        EMPTY_TOKEN          - "Bearer " with nothing after it
        INVALID_TOKEN        - unknown or expired token (indistinguishable)
        INVALID_CREDENTIALS  - wrong basic-auth credentials on internal routes
    HTTP:  401 Unauthorized
    """

    status_code = 401
    default_code = "INVALID_TOKEN"


class IdentityRejectedError(SnapPDFError):
    """
    Raised when the identity exchange ends in the `rejected` state.

    Codes:
        INVALID_CODE       - authorization code invalid/expired, or ID token failed verification
        INVALID_USER_INFO  - the verified payload carries no email
    HTTP:  400 Bad Request
    """

    status_code = 400
    default_code = "INVALID_CODE"


class NotFoundError(SnapPDFError):
    """
    Raised when a requested resource does not exist.

    HTTP:  404 Not Found
    """

    status_code = 404
    default_code = "NOT_FOUND"

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


class UpstreamUnavailableError(SnapPDFError):
    """
    Raised when a backing store (Redis, PostgreSQL) cannot be reached.

    HTTP:  503 Service Unavailable
    """

    status_code = 503
    default_code = "SERVICE_UNAVAILABLE"

    def __init__(
        self,
        message: str = "Service unavailable: Database connection error",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class IdentityProviderError(SnapPDFError):
    """
    Raised when Google fails in a way that is not a rejection of the code
    (network error, 5xx, misconfigured client credentials).

    HTTP:  502 Bad Gateway
    """

    status_code = 502
    default_code = "IDENTITY_PROVIDER_ERROR"

    def __init__(
        self,
        message: str = "Failed to authenticate with Google. Please try again.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class DatabaseError(SnapPDFError):
    """
    Raised when a database statement fails unexpectedly.

    The client always receives a generic message; SQL details are logged
    server-side only.
    HTTP:  500 Internal Server Error
    """

    default_code = "DATABASE_ERROR"

    def __init__(
        self,
        message: str = "A database error occurred. Please try again later.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class ObjectStoreError(SnapPDFError):
    """
    Raised when an S3 operation fails.

    Siblings already uploaded in the same batch are left in place.
    HTTP:  500 Internal Server Error
    """

    default_code = "UPLOAD_FAILED"

    def __init__(
        self,
        message: str = "Failed to store uploaded file. Please try again.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class QueueError(SnapPDFError):
    """
    Raised when an OCR job message cannot be sent to SQS.

    The remaining jobs of the batch are not sent.
    HTTP:  500 Internal Server Error
    """

    default_code = "QUEUE_FAILED"

    def __init__(
        self,
        message: str = "Failed to dispatch OCR job. Please try again.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)

"""
Hoot API Backend: Custom Exception Hierarchy
=============================================

What:  Application-specific exceptions for the different failure kinds.
How:   Each exception class carries a message and optional context dict.
       Global exception handlers (registered in main.py) catch these and
       return structured JSON error responses with the matching status code.
Who:   Raised by services, the identity verifier and middleware.

Exception Hierarchy:
    HootAPIError (base)
    ├── ValidationError          → 400 Bad Request
    ├── UnauthenticatedError     → 401 Unauthorized
    ├── ForbiddenError           → 403 Forbidden
    ├── NotFoundError            → 404 Not Found
    ├── RateLimitExceededError   → 429 Too Many Requests
    └── DatabaseError            → 500 Internal Server Error
"""

from typing import Any, Dict, Optional


class HootAPIError(Exception):
    """
    Base exception for all Hoot API application errors.

    Attributes:
        message:  User-facing error description (safe to return in API response)
        context:  Additional debug info (logged; only returned for 4xx errors)
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class ValidationError(HootAPIError):
    """
    Raised when client input fails validation.

    When:    Missing or blank title/text, category outside the fixed set,
             malformed identifiers.
    HTTP:    400 Bad Request

    Example response:
        {
            "error": "validation_error",
            "message": "Request validation failed",
            "details": {"errors": [{"field": "body.category", "message": "..."}]}
        }
    """

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


class UnauthenticatedError(HootAPIError):
    """
    Raised when a request carries no usable credential.

    When:    Missing Authorization header, bad signature, expired token,
             token without an identity claim.
    HTTP:    401 Unauthorized (with WWW-Authenticate: Bearer)
    """

    def __init__(
        self,
        message: str = "Invalid authorization token",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class ForbiddenError(HootAPIError):
    """
    Raised when an authenticated caller is not allowed to touch a resource.

    When:    Updating or deleting a hoot the caller did not author; editing a
             comment under the `comment_author` policy.
    HTTP:    403 Forbidden
    """

    def __init__(
        self,
        message: str = "You're not allowed to do that!",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class NotFoundError(HootAPIError):
    """
    Raised when a requested resource does not exist.

    When:    A hoot id that is not stored, or a comment id that is not in the
             hoot's comment sequence.
    HTTP:    404 Not Found
    """

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


class DatabaseError(HootAPIError):
    """
    Raised when database operations fail unexpectedly.

    HTTP:    500 Internal Server Error

    Security Note:
        The message returned to the client is always generic.
        The original exception type is kept in `context` and logged
        server-side only.
    """

    def __init__(
        self,
        message: str = "A database error occurred. Please try again later.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class RateLimitExceededError(HootAPIError):
    """
    Raised when a client exceeds the request rate limit.

    HTTP:    429 Too Many Requests, with a Retry-After header
    """

    def __init__(
        self,
        retry_after: int = 60,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = (
            f"Rate limit exceeded. Please wait {retry_after} seconds before making more requests."
        )
        ctx = context or {}
        ctx["retry_after"] = retry_after
        super().__init__(message=message, context=ctx)
        self.retry_after = retry_after

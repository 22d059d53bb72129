"""
Portbook Backend - Custom Exception Hierarchy
===============================================

What:  Application-specific exceptions for the different failure scenarios.
How:   Each exception class carries a message and optional context dict.
       Global exception handlers (registered in main.py) catch these and
       return the standard JSON envelope with the right HTTP status code.
Who:   Raised by services, the auth dependency and the security helpers.
When:  During request processing, before anything is committed.

Exception Hierarchy:
    PortbookError (base)
    ├── ValidationError   → 400 Bad Request (field-level problems)
    ├── ConflictError     → 400 Bad Request (name collision)
    ├── NotFoundError     → 404 Not Found
    ├── AuthError         → 401 Unauthorized
    └── StoreError        → 500 Internal Server Error

Validation and conflict errors are raised before the aggregate is modified,
so they never leave a partially applied change behind.
"""

from typing import Any, Dict, List, Optional


class PortbookError(Exception):
    """
    Base exception for all Portbook application errors.

    Attributes:
        message:  User-facing error description (safe to return in API response)
        context:  Additional debug info (logged but NOT returned to client)
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class ValidationError(PortbookError):
    """
    Raised when client input fails validation.

    HTTP:    400 Bad Request

    `errors` is the per-field list returned to the client, each entry a
    {"field": ..., "message": ...} dict. Business-rule checks that apply to
    a whole array (e.g. duplicate line names) use the array's field path.

    Example response:
        {
            "success": false,
            "error": "validation_error",
            "message": "Validation errors",
            "errors": [
                {"field": "shippingLines.1.lineName",
                 "message": "Shipping line name must be between 2 and 100 characters"}
            ]
        }
    """

    def __init__(
        self,
        message: str = "Validation errors",
        errors: Optional[List[Dict[str, str]]] = None,
        field: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if field:
            ctx["field"] = field
        super().__init__(message=message, context=ctx)
        self.field = field
        self.errors = list(errors or [])
        if field and not self.errors:
            self.errors.append({"field": field, "message": message})


class ConflictError(PortbookError):
    """
    Raised when a name collides with an existing one.

    When:    Duplicate destination name (exact, case-sensitive match) or a
             shipping line name already used on the same destination
             (case-insensitive match).
    HTTP:    400 Bad Request

    `names` lists every colliding value, which the bulk-add operation
    reports in full.
    """

    def __init__(
        self,
        message: str = "Resource already exists",
        names: Optional[List[str]] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if names:
            ctx["names"] = list(names)
        super().__init__(message=message, context=ctx)
        self.names = list(names or [])


class NotFoundError(PortbookError):
    """
    Raised when a requested resource does not exist.

    When:    A destination id (or a line id inside a destination) does not
             resolve.
    HTTP:    404 Not Found
    """

    def __init__(
        self,
        resource: str = "resource",
        resource_id: Optional[str] = None,
        message: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        if message is None:
            message = f"{resource.capitalize()} not found"
        ctx = context or {}
        ctx["resource"] = resource
        if resource_id:
            ctx["resource_id"] = resource_id
        super().__init__(message=message, context=ctx)


class AuthError(PortbookError):
    """
    Raised when the bearer token is missing, malformed, or invalid.

    HTTP:    401 Unauthorized
    """

    def __init__(
        self,
        message: str = "Token is not valid",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class StoreError(PortbookError):
    """
    Raised when database operations fail unexpectedly.

    When:    Connection lost mid-query, unexpected constraint violation, etc.
    HTTP:    500 Internal Server Error

    The message returned to the client is always generic. Driver messages
    and SQL details are kept in `context` and logged server-side only.
    """

    def __init__(
        self,
        message: str = "A database error occurred. Please try again later.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)

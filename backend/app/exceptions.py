"""
Training Record Backend: Custom Exception Hierarchy
====================================================

What:  Application-specific exceptions for the error scenarios of the endpoint.
How:   Each exception carries a message and an optional context dict.
       Global exception handlers (registered in main.py) catch these and
       return the JSON error envelope with the matching HTTP status code.
Who:   Raised by services and the router; caught by global handlers.

Exception Hierarchy:
    TrainingRecordError (base)   → 500 Internal Server Error
    ├── ValidationError          → 400 Bad Request (client can fix)
    ├── NotFoundError            → 404 Not Found (unknown route)
    └── DatabaseError            → 500 Internal Server Error (store failure)
"""

from typing import Any, Dict, Optional


class TrainingRecordError(Exception):
    """
    Base exception for all application errors.

    Attributes:
        message:  Error description returned in the `error` field
        context:  Additional debug info (logged; only some subclasses expose it)
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class ValidationError(TrainingRecordError):
    """
    Raised when client input fails validation.

    When:    Body is not JSON, a field is missing or ill-typed, weight/reps
             lengths differ, or a menu name is unknown under the reject policy.
    HTTP:    400 Bad Request

    Example response:
        {
            "error": "weight and reps must have the same length (3 != 2)",
            "details": {"field": "reps"}
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


class NotFoundError(TrainingRecordError):
    """
    Raised when the final path segment matches no handler.

    HTTP:    404 Not Found, body {"error": "Not Found"}
    """

    def __init__(
        self,
        message: str = "Not Found",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class DatabaseError(TrainingRecordError):
    """
    Raised when a store operation fails or times out.

    What:    A query, insert or delete failed; the transaction was rolled back.
    HTTP:    500 Internal Server Error

    The store's own message is kept verbatim in `message` (prefixed with the
    failing stage) so callers can tell which step of a multi-table write
    failed. `stage` is also returned as a separate field.

    Stages:
        part_select, menu_select, menu_lookup, menu_insert,
        record_select, record_insert, set_detail_insert,
        set_detail_delete, record_delete, commit
    """

    def __init__(
        self,
        message: str = "A database error occurred",
        stage: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if stage:
            ctx["stage"] = stage
        super().__init__(message=message, context=ctx)
        self.stage = stage

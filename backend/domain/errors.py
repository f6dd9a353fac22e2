"""
Custom domain exceptions for consistent error handling.

Each exception carries the HTTP status code a caller should answer with,
so a request handler can re-raise them unchanged.
"""
from fastapi import HTTPException, status


class DomainError(HTTPException):
    """Base class for all domain-specific errors."""
    def __init__(self, message: str, status_code: int = status.HTTP_400_BAD_REQUEST, details: dict | None = None):
        super().__init__(status_code=status_code, detail=message)
        self.message = message
        self.details = details or {}


class NotFoundError(DomainError):
    """Resource not found (404)."""
    def __init__(self, resource_type: str, identifier: str, details: dict | None = None):
        message = f"{resource_type} not found: {identifier}"
        super().__init__(message, status_code=status.HTTP_404_NOT_FOUND, details=details)


class ValidationError(DomainError):
    """Validation error (400)."""
    def __init__(self, message: str, field: str | None = None, details: dict | None = None):
        if field:
            message = f"Validation error on {field}: {message}"
        super().__init__(message, status_code=status.HTTP_400_BAD_REQUEST, details=details)


class ConflictError(DomainError):
    """Resource conflict (409)."""
    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message, status_code=status.HTTP_409_CONFLICT, details=details)


class InsufficientStockError(ConflictError):
    """A size cannot cover the quantity an order wants to reserve (409)."""
    def __init__(self, size_id: int, requested: int, available: int | None):
        self.size_id = size_id
        self.requested = requested
        self.available = available
        super().__init__(
            f"Insufficient stock for size {size_id}: requested {requested}, available {available}",
            details={"size_id": size_id, "requested": requested, "available": available},
        )


class TransactionFailureError(DomainError):
    """Datastore failure mid-transaction; everything was rolled back (500)."""
    def __init__(self, message: str = "Could not update order", details: dict | None = None):
        super().__init__(message, status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, details=details)

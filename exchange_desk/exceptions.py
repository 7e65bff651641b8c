"""
Custom exception classes and FastAPI exception handlers.

The service layer raises domain errors (InsufficientFundsError,
InvalidTransitionError, ...) without importing HTTP concepts. The handlers
registered here translate them into HTTP responses with a consistent body:

    {"detail": "<message>", "error_type": "<machine-readable tag>"}

Clients branch on error_type rather than matching message text.

Exception hierarchy:
    ExchangeDeskError (base)
    ├── NotFoundError            — a referenced row doesn't exist
    ├── PermissionDeniedError    — caller's role or ownership doesn't allow it
    ├── InsufficientFundsError   — a debit would make a balance negative
    │   └── InsufficientCustodyError — a trade draws more than the cashier holds
    ├── InvalidTransitionError   — status compare-and-swap lost (already moved)
    ├── ConflictError            — duplicate row or still-referenced row
    ├── DuplicateEmailError      — signup with a registered email
    ├── InvalidCredentialsError  — login failure
    └── UnsupportedActionError   — no handler for a notification (type, action)
"""

import uuid
from decimal import Decimal

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse


# ---------------------------------------------------------------------------
# Base exception
# ---------------------------------------------------------------------------

class ExchangeDeskError(Exception):
    """Base exception for all exchange desk domain errors."""

    status_code = 400
    error_type = "exchange_desk_error"

    def __init__(self, detail: str = "An error occurred"):
        self.detail = detail
        super().__init__(self.detail)


# ---------------------------------------------------------------------------
# Domain exceptions
# ---------------------------------------------------------------------------

class NotFoundError(ExchangeDeskError):
    """Raised when a requested row does not exist."""

    status_code = 404
    error_type = "not_found"

    def __init__(self, resource: str, identifier):
        self.resource = resource
        self.identifier = identifier
        super().__init__(f"{resource} {identifier} not found")


class PermissionDeniedError(ExchangeDeskError):
    """Raised when the caller's role or relation to the row doesn't allow the operation."""

    status_code = 403
    error_type = "permission_denied"

    def __init__(self, detail: str = "You do not have permission to perform this action"):
        super().__init__(detail)


class InsufficientFundsError(ExchangeDeskError):
    """
    Raised when a debit would cause a negative wallet balance.

    Attributes:
        wallet_id: The wallet that lacks sufficient funds.
        currency_code: The currency being debited.
        requested: The amount the caller tried to debit.
        available: The current balance in that currency.
    """

    status_code = 422
    error_type = "insufficient_funds"

    def __init__(
        self,
        wallet_id: uuid.UUID,
        currency_code: str,
        requested: Decimal,
        available: Decimal,
        detail: str | None = None,
    ):
        self.wallet_id = wallet_id
        self.currency_code = currency_code
        self.requested = requested
        self.available = available
        super().__init__(
            detail
            or f"Insufficient funds: wallet has {available} {currency_code}, "
            f"but {requested} {currency_code} is required"
        )


class InsufficientCustodyError(InsufficientFundsError):
    """Raised when a trade draws more than a cashier holds in custody."""

    def __init__(
        self,
        cashier_id: uuid.UUID,
        wallet_id: uuid.UUID,
        currency_code: str,
        requested: Decimal,
        available: Decimal,
    ):
        self.cashier_id = cashier_id
        super().__init__(
            wallet_id,
            currency_code,
            requested,
            available,
            detail=(
                f"Insufficient funds in custody: cashier holds {available} {currency_code}, "
                f"but {requested} {currency_code} is required"
            ),
        )


class InvalidTransitionError(ExchangeDeskError):
    """
    Raised when a status transition finds the row in an unexpected state.

    Transitions are conditional updates (WHERE status = expected). If another
    request moved the row first, the update matches nothing and this is raised,
    so a double click on "approve" is processed exactly once.
    """

    status_code = 409
    error_type = "invalid_transition"

    def __init__(self, resource: str, identifier, expected: str, actual: str | None):
        self.resource = resource
        self.identifier = identifier
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"{resource} {identifier} is {actual}, expected {expected}"
        )


class ConflictError(ExchangeDeskError):
    """Raised when a row already exists or is still referenced."""

    status_code = 409
    error_type = "conflict"


class DuplicateEmailError(ExchangeDeskError):
    """Raised when attempting to register with an email that's already in use."""

    status_code = 409
    error_type = "duplicate_email"

    def __init__(self, email: str):
        self.email = email
        super().__init__(f"Email {email} is already registered")


class InvalidCredentialsError(ExchangeDeskError):
    """Raised when login credentials are incorrect."""

    status_code = 401
    error_type = "invalid_credentials"

    def __init__(self):
        super().__init__("Invalid email or password")


class UnsupportedActionError(ExchangeDeskError):
    """Raised when no handler is registered for a notification (type, action)."""

    error_type = "unsupported_action"

    def __init__(self, notification_type: str, action: str):
        self.notification_type = notification_type
        self.action = action
        super().__init__(
            f"Action '{action}' is not supported for notifications of type '{notification_type}'"
        )


# ---------------------------------------------------------------------------
# FastAPI exception handlers
# ---------------------------------------------------------------------------

def register_exception_handlers(app: FastAPI) -> None:
    """
    Register the domain exception handlers with the FastAPI application.

    One handler covers the whole hierarchy: the status code and error_type
    live on the exception class. InsufficientFundsError adds the amounts so
    the front end can show what is available.
    """

    @app.exception_handler(InsufficientFundsError)
    async def insufficient_funds_handler(
        request: Request, exc: InsufficientFundsError
    ) -> JSONResponse:
        return JSONResponse(
            status_code=exc.status_code,
            content={
                "detail": exc.detail,
                "error_type": exc.error_type,
                "currency_code": exc.currency_code,
                "requested": str(exc.requested),
                "available": str(exc.available),
            },
        )

    @app.exception_handler(ExchangeDeskError)
    async def exchange_desk_error_handler(
        request: Request, exc: ExchangeDeskError
    ) -> JSONResponse:
        return JSONResponse(
            status_code=exc.status_code,
            content={"detail": exc.detail, "error_type": exc.error_type},
        )

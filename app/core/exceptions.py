# app/core/exceptions.py
"""Domain errors raised by the borrowing workflow.

Each error carries the HTTP status and a machine readable code, so the
exception handler in ``app.main`` can render them without a lookup table.
"""
from typing import Optional


class BorrowError(Exception):
    status_code: int = 400
    code: str = "borrow_error"

    def __init__(self, message: str, **extra):
        super().__init__(message)
        self.message = message
        self.extra = extra

    def to_dict(self) -> dict:
        body = {"detail": self.message, "code": self.code}
        body.update(self.extra)
        return body


class InvalidInput(BorrowError):
    status_code = 400
    code = "invalid_input"


class ItemNotFound(BorrowError):
    status_code = 404
    code = "item_not_found"


class RequestNotFound(BorrowError):
    status_code = 404
    code = "request_not_found"


class RecordNotFound(BorrowError):
    status_code = 404
    code = "record_not_found"


class DuplicateActiveLoan(BorrowError):
    status_code = 409
    code = "duplicate_active_loan"


class DuplicatePendingRequest(BorrowError):
    status_code = 409
    code = "duplicate_pending_request"


class OutOfStock(BorrowError):
    status_code = 409
    code = "out_of_stock"


class RequestNotPending(BorrowError):
    status_code = 409
    code = "request_not_pending"


class AlreadyReturned(BorrowError):
    status_code = 409
    code = "already_returned"


class FineConfirmationRequired(BorrowError):
    status_code = 409
    code = "fine_confirmation_required"

    def __init__(self, fine: int, currency: Optional[str] = None):
        message = f"Item overdue. Fine: {fine}" + (f" {currency}" if currency else "") + ". Confirm to proceed."
        super().__init__(message, fine=fine)
        self.fine = fine

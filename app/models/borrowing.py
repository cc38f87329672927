# app/models/borrowing.py
from typing import Optional
from pydantic import BaseModel, Field, model_validator
from datetime import date, datetime, timedelta

from .enum import RequestKind, RequestStatus


class BorrowRequest(BaseModel):
    """A student's intent, waiting for an admin decision. Kept as history once resolved."""
    request_id: int
    requester_id: str
    item_id: str
    kind: RequestKind
    extra_days: int = 0
    status: RequestStatus = RequestStatus.PENDING
    request_date: date = Field(default_factory=date.today)
    resolved_by: Optional[str] = None
    resolved_at: Optional[datetime] = None

    @property
    def is_pending(self) -> bool:
        return self.status == RequestStatus.PENDING

    # --- Pydantic Schemas ---
    class Create(BaseModel):
        item_id: str = Field(...)
        kind: RequestKind = RequestKind.NEW_BORROW
        extra_days: Optional[int] = Field(None, description="Required (> 0) for extend requests only")

    class Response(BaseModel):
        request_id: int
        requester_id: str
        item_id: str
        kind: RequestKind
        extra_days: int
        status: RequestStatus
        request_date: date
        resolved_by: Optional[str] = None
        resolved_at: Optional[datetime] = None
        class Config: from_attributes=True; use_enum_values = True


class BorrowRecord(BaseModel):
    """An approved loan. Active until return_date is set."""
    record_id: int
    borrower_id: str
    item_id: str
    borrow_date: date
    due_date: date
    return_date: Optional[date] = None
    extended: bool = False
    fine: Optional[int] = None  # charged at return

    @model_validator(mode="after")
    def check_dates(self):
        if self.due_date < self.borrow_date:
            raise ValueError("due_date cannot be before borrow_date")
        return self

    @property
    def is_active(self) -> bool:
        return self.return_date is None

    def extend_due_date(self, days: int) -> None:
        if days <= 0:
            raise ValueError("days must be positive")
        self.due_date = self.due_date + timedelta(days=days)
        self.extended = True

    def mark_returned(self, returned_on: date, fine: int) -> None:
        if self.return_date is not None:
            raise ValueError("record already returned")
        self.return_date = returned_on
        self.fine = fine

    # --- Pydantic Schemas ---
    class Return(BaseModel):
        confirm_fine: bool = Field(False, description="Must be true to accept a return that carries a fine")
        return_date: Optional[date] = Field(None, description="Defaults to today")

    class Response(BaseModel):
        record_id: int
        borrower_id: str
        item_id: str
        borrow_date: date
        due_date: date
        return_date: Optional[date] = None
        extended: bool
        fine: Optional[int] = None
        overdue: bool = False
        current_fine: int = 0
        class Config: from_attributes=True


class FineQuote(BaseModel):
    record_id: int
    due_date: date
    return_date: date
    days_late: int
    fine: int
    currency: str

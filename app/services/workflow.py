# app/services/workflow.py
from datetime import date, datetime, timedelta
from typing import Callable, Optional, Protocol

from loguru import logger

from app.core.config import LOAN_PERIOD_DAYS, RENEW_DAYS, FINE_PER_DAY, FINE_CURRENCY, REMINDER_LEAD_DAYS
from app.core.exceptions import (
    AlreadyReturned,
    DuplicateActiveLoan,
    DuplicatePendingRequest,
    FineConfirmationRequired,
    InvalidInput,
    ItemNotFound,
    OutOfStock,
    RecordNotFound,
    RequestNotFound,
    RequestNotPending,
)
from app.core.fines import compute_fine, days_late
from app.db.database import InMemoryRepository
from app.models.borrowing import BorrowRecord, BorrowRequest, FineQuote
from app.models.enum import Decision, RequestKind, RequestStatus
from app.models.item import Item


class Notifier(Protocol):
    def notify(self, recipient: Optional[str], subject: str, body: str, attachment_path: Optional[str] = None) -> None: ...


class BorrowWorkflow:
    """
    Request, approval and return flow over one repository.

    Every public operation runs under the repository lock and finishes all of
    its checks before the first write. Notifications go out after the state
    change and never affect it.
    """

    def __init__(
        self,
        repository: InMemoryRepository,
        notifier: Notifier,
        today: Callable[[], date] = date.today,
        loan_period_days: int = LOAN_PERIOD_DAYS,
        renew_days: int = RENEW_DAYS,
        fine_per_day: int = FINE_PER_DAY,
        currency: str = FINE_CURRENCY,
    ):
        self.repository = repository
        self.notifier = notifier
        self.today = today
        self.loan_period_days = loan_period_days
        self.renew_days = renew_days
        self.fine_per_day = fine_per_day
        self.currency = currency

    # --- lookups ---
    def get_item(self, item_id: str) -> Item:
        item = self.repository.get_item(item_id)
        if item is None:
            raise ItemNotFound(f"Item '{item_id}' not found.")
        return item

    def get_request(self, request_id: int) -> BorrowRequest:
        request = self.repository.get_request(request_id)
        if request is None:
            raise RequestNotFound(f"Request {request_id} not found.")
        return request

    def get_record(self, record_id: int) -> BorrowRecord:
        record = self.repository.get_record(record_id)
        if record is None:
            raise RecordNotFound(f"Record {record_id} not found.")
        return record

    def _email_of(self, user_id: str) -> Optional[str]:
        account = self.repository.get_account(user_id)
        return account.email if account else None

    def _name_of(self, user_id: str) -> str:
        account = self.repository.get_account(user_id)
        return account.name if account else user_id

    # --- catalog ---
    def add_item(self, item_id: str, name: str, category: str, total_qty: int) -> Item:
        with self.repository.lock:
            if self.repository.get_item(item_id) is not None:
                raise InvalidInput(f"Item '{item_id}' already exists.")
            item = Item(item_id=item_id, name=name, category=category, total_qty=total_qty, current_qty=total_qty)
            self.repository.add_item(item)
        logger.info(f"Item '{item_id}' ({name}) added with {total_qty} units.")
        return item

    # --- requests ---
    def submit_request(
        self, requester_id: str, item_id: str, kind: RequestKind, extra_days: Optional[int] = None
    ) -> BorrowRequest:
        with self.repository.lock:
            item = self.get_item(item_id)
            active = self.repository.find_active_record(requester_id, item_id)

            if kind == RequestKind.NEW_BORROW and active is not None:
                raise DuplicateActiveLoan(f"You are already borrowing '{item.name}'.")
            if kind in (RequestKind.RENEW, RequestKind.EXTEND) and active is None:
                raise RecordNotFound(f"You are not currently borrowing '{item.name}'.")
            if self.repository.find_pending_request(requester_id, item_id) is not None:
                raise DuplicatePendingRequest(f"You have a pending request for '{item.name}'.")
            if kind == RequestKind.NEW_BORROW and item.current_qty == 0:
                raise OutOfStock(f"'{item.name}' is out of stock.")

            if kind == RequestKind.EXTEND:
                if extra_days is None or extra_days <= 0:
                    raise InvalidInput("extra_days must be a positive number of days for an extend request.")
            else:
                extra_days = 0

            request = BorrowRequest(
                request_id=self.repository.next_sequence_value("requests"),
                requester_id=requester_id,
                item_id=item_id,
                kind=kind,
                extra_days=extra_days,
                request_date=self.today(),
            )
            self.repository.add_request(request)

        logger.info(f"Request {request.request_id}: '{requester_id}' {kind.value} '{item_id}' submitted.")
        return request

    def resolve_request(self, request_id: int, decision: Decision, resolver_id: Optional[str] = None) -> BorrowRequest:
        with self.repository.lock:
            request = self.get_request(request_id)
            if not request.is_pending:
                raise RequestNotPending(f"Request {request_id} is already {request.status.value}.")
            item = self.get_item(request.item_id)

            if decision == Decision.REJECT:
                request.status = RequestStatus.REJECTED
                subject, body = "Request Rejected", f"Your {request.kind.value} request for {item.name} was rejected."
            elif request.kind == RequestKind.NEW_BORROW:
                if item.current_qty == 0:
                    raise OutOfStock(f"'{item.name}' is out of stock.")
                today = self.today()
                item.decrease_qty()
                request.status = RequestStatus.APPROVED
                record = self.repository.add_record(BorrowRecord(
                    record_id=self.repository.next_sequence_value("records"),
                    borrower_id=request.requester_id,
                    item_id=item.item_id,
                    borrow_date=today,
                    due_date=today + timedelta(days=self.loan_period_days),
                ))
                subject = "Borrow Approved"
                body = f"Your request for {item.name} is approved. Please return it by {record.due_date.isoformat()}."
            else:
                record = self.repository.find_active_record(request.requester_id, request.item_id)
                if record is None:
                    raise RecordNotFound(f"No active record of '{item.name}' for '{request.requester_id}'.")
                days = self.renew_days if request.kind == RequestKind.RENEW else request.extra_days
                record.extend_due_date(days)
                request.status = RequestStatus.APPROVED
                subject = "Request Approved"
                body = (
                    f"Your {request.kind.value} request for {item.name} is approved. "
                    f"New due date: {record.due_date.isoformat()}."
                )

            request.resolved_by = resolver_id
            request.resolved_at = datetime.now()

        logger.info(f"Request {request_id} {request.status.value} by '{resolver_id}'.")
        self.notifier.notify(self._email_of(request.requester_id), subject, body)
        return request

    # --- records ---
    def _check_return_date(self, record: BorrowRecord, returned_on: date) -> None:
        if returned_on < record.borrow_date:
            raise InvalidInput(
                f"Return date {returned_on.isoformat()} is before the borrow date {record.borrow_date.isoformat()}."
            )

    def quote_fine(self, record_id: int, return_date: Optional[date] = None) -> FineQuote:
        with self.repository.lock:
            record = self.get_record(record_id)
            if record.return_date is not None:
                returned_on, fine = record.return_date, record.fine or 0
            else:
                returned_on = return_date or self.today()
                self._check_return_date(record, returned_on)
                fine = compute_fine(record.due_date, returned_on, self.fine_per_day)
            return FineQuote(
                record_id=record.record_id,
                due_date=record.due_date,
                return_date=returned_on,
                days_late=days_late(record.due_date, returned_on),
                fine=fine,
                currency=self.currency,
            )

    def process_return(self, record_id: int, return_date: Optional[date] = None, confirm_fine: bool = False) -> BorrowRecord:
        with self.repository.lock:
            record = self.get_record(record_id)
            if record.return_date is not None:
                raise AlreadyReturned(f"Record {record_id} was already returned on {record.return_date.isoformat()}.")
            returned_on = return_date or self.today()
            self._check_return_date(record, returned_on)
            fine = compute_fine(record.due_date, returned_on, self.fine_per_day)
            if fine > 0 and not confirm_fine:
                raise FineConfirmationRequired(fine, self.currency)
            item = self.get_item(record.item_id)

            record.mark_returned(returned_on, fine)
            item.increase_qty()

        logger.info(f"Record {record_id} returned on {returned_on.isoformat()} with fine {fine} {self.currency}.")
        self.notifier.notify(
            self._email_of(record.borrower_id),
            "Item Returned",
            f"{item.name} has been returned. Fine: {fine} {self.currency}.",
        )
        return record

    def send_reminder(self, record_id: int) -> int:
        """Email the borrower about the due date. Returns days left (negative when overdue)."""
        with self.repository.lock:
            record = self.get_record(record_id)
            if record.return_date is not None:
                raise AlreadyReturned(f"Record {record_id} was already returned.")
            item = self.get_item(record.item_id)
            days_left = (record.due_date - self.today()).days
            due_date = record.due_date
            recipient = self._email_of(record.borrower_id)
            borrower_name = self._name_of(record.borrower_id)

        subject = f"Reminder: Return {item.name}"
        if days_left < 0:
            body = f"WARNING: Your item '{item.name}' is OVERDUE. It was due on {due_date.isoformat()}."
        else:
            body = f"Hello {borrower_name},\n\nYou have {days_left} days left to return '{item.name}'."
        self.notifier.notify(recipient, subject, body)
        logger.info(f"Reminder for record {record_id} sent ({days_left} days left).")
        return days_left

    def send_due_reminders(self, lead_days: int = REMINDER_LEAD_DAYS) -> int:
        with self.repository.lock:
            cutoff = self.today() + timedelta(days=lead_days)
            due_ids = [r.record_id for r in self.repository.list_records(active_only=True) if r.due_date <= cutoff]
        sent = 0
        for record_id in due_ids:
            try:
                self.send_reminder(record_id)
            except AlreadyReturned:
                # returned after the list was taken
                continue
            sent += 1
        return sent

# app/db/database.py
import threading
from datetime import date, timedelta
from typing import Dict, List, Optional

from loguru import logger

from app.core.config import SEED_DEMO_DATA, ADMIN_ID, ADMIN_PASSWORD, ADMIN_PASSWORD_HASH, ADMIN_EMAIL, LOAN_PERIOD_DAYS
from app.core.security import get_password_hash
from app.models.enum import CardType, RequestStatus
from app.models.item import Item
from app.models.user import Account, AdminAccount, StudentAccount
from app.models.borrowing import BorrowRequest, BorrowRecord


class InMemoryRepository:
    """
    Owns the catalog, accounts, requests and records of one running app.

    Callers that read then write (the workflow) must hold `lock` for the whole
    operation; the repository itself does no locking.
    """

    def __init__(self):
        self.lock = threading.RLock()
        self.items: Dict[str, Item] = {}
        self.accounts: Dict[str, Account] = {}
        self.requests: Dict[int, BorrowRequest] = {}
        self.records: Dict[int, BorrowRecord] = {}
        self._sequences: Dict[str, int] = {}

    def next_sequence_value(self, sequence_name: str) -> int:
        value = self._sequences.get(sequence_name, 0) + 1
        self._sequences[sequence_name] = value
        logger.debug(f"Next sequence value for '{sequence_name}': {value}")
        return value

    # --- Accounts ---
    def get_account(self, user_id: str) -> Optional[Account]:
        return self.accounts.get(user_id)

    def add_account(self, account: Account) -> Account:
        self.accounts[account.user_id] = account
        return account

    # --- Catalog ---
    def get_item(self, item_id: str) -> Optional[Item]:
        return self.items.get(item_id)

    def list_items(self) -> List[Item]:
        return list(self.items.values())

    def add_item(self, item: Item) -> Item:
        self.items[item.item_id] = item
        return item

    # --- Requests ---
    def get_request(self, request_id: int) -> Optional[BorrowRequest]:
        return self.requests.get(request_id)

    def add_request(self, request: BorrowRequest) -> BorrowRequest:
        self.requests[request.request_id] = request
        return request

    def list_requests(
        self, requester_id: Optional[str] = None, status: Optional[RequestStatus] = None
    ) -> List[BorrowRequest]:
        return [
            r for r in self.requests.values()
            if (requester_id is None or r.requester_id == requester_id)
            and (status is None or r.status == status)
        ]

    def find_pending_request(self, requester_id: str, item_id: str) -> Optional[BorrowRequest]:
        for r in self.requests.values():
            if r.requester_id == requester_id and r.item_id == item_id and r.is_pending:
                return r
        return None

    # --- Records ---
    def get_record(self, record_id: int) -> Optional[BorrowRecord]:
        return self.records.get(record_id)

    def add_record(self, record: BorrowRecord) -> BorrowRecord:
        self.records[record.record_id] = record
        return record

    def list_records(self, borrower_id: Optional[str] = None, active_only: bool = False) -> List[BorrowRecord]:
        return [
            r for r in self.records.values()
            if (borrower_id is None or r.borrower_id == borrower_id)
            and (not active_only or r.is_active)
        ]

    def find_active_record(self, borrower_id: str, item_id: str) -> Optional[BorrowRecord]:
        for r in self.records.values():
            if r.borrower_id == borrower_id and r.item_id == item_id and r.is_active:
                return r
        return None


def seed_demo_data(repository: InMemoryRepository, today: Optional[date] = None) -> None:
    """Demo catalog, accounts and one overdue loan."""
    today = today or date.today()

    for item_id, name, category, qty in [
        ("I01", "Projector Sony", "AV", 5),
        ("I02", "MacBook Pro M2", "IT", 2),
        ("I03", "Canon Camera", "AV", 3),
        ("I04", "Microphone Shure", "Audio", 10),
    ]:
        repository.add_item(Item(item_id=item_id, name=name, category=category, total_qty=qty, current_qty=qty))

    student_hash = get_password_hash("1234")
    repository.add_account(StudentAccount(
        user_id="66001", name="Good Student", email="good.student@example.com", phone="081",
        hashed_password=student_hash, card_type=CardType.STUDENT_CARD, birth_year=2002,
    ))
    late_student = repository.add_account(StudentAccount(
        user_id="66999", name="Late Student", email="late.student@example.com", phone="089",
        hashed_password=student_hash, card_type=CardType.STUDENT_CARD, birth_year=2001,
    ))

    laptop = repository.get_item("I02")
    laptop.decrease_qty()
    due = today - timedelta(days=3)
    repository.add_record(BorrowRecord(
        record_id=repository.next_sequence_value("records"),
        borrower_id=late_student.user_id,
        item_id=laptop.item_id,
        borrow_date=due - timedelta(days=LOAN_PERIOD_DAYS),
        due_date=due,
    ))


def init_db(seed: bool = SEED_DEMO_DATA) -> InMemoryRepository:
    """Create the repository for the app and bootstrap the admin account."""
    repository = InMemoryRepository()
    repository.add_account(AdminAccount(
        user_id=ADMIN_ID,
        email=ADMIN_EMAIL,
        hashed_password=ADMIN_PASSWORD_HASH or get_password_hash(ADMIN_PASSWORD),
    ))
    logger.info(f"Admin account '{ADMIN_ID}' ready.")
    if seed:
        seed_demo_data(repository)
        logger.info(
            f"Demo data seeded: {len(repository.items)} items, "
            f"{len(repository.accounts)} accounts, {len(repository.records)} records."
        )
    return repository

"""
Smart Borrow - Test Configuration and Fixtures
"""
import os
from dataclasses import dataclass
from datetime import date
from typing import List, Optional

import pytest
from faker import Faker

# Set testing environment before the app modules read it
os.environ['SECRET_KEY'] = 'test-secret-key-for-testing-only'
os.environ['SEED_DEMO_DATA'] = 'false'
os.environ['RATE_LIMIT_ENABLED'] = 'false'
os.environ['LOG_TO_FILE'] = 'false'
os.environ['LOG_LEVEL'] = 'WARNING'
os.environ['SMTP_USER'] = ''
os.environ['SMTP_PASSWORD'] = ''
os.environ['ADMIN_ID'] = 'admin'
os.environ['ADMIN_PASSWORD'] = 'admin'

from fastapi.testclient import TestClient

from app.core.security import get_password_hash
from app.db.database import InMemoryRepository
from app.main import create_app
from app.models.enum import CardType
from app.models.item import Item
from app.models.user import AdminAccount, StudentAccount
from app.services.accounts import AccountService
from app.services.workflow import BorrowWorkflow

fake = Faker()

TODAY = date(2025, 3, 10)
PASSWORD = 'testpassword123'
PASSWORD_HASH = get_password_hash(PASSWORD)


@dataclass
class SentNotification:
    recipient: Optional[str]
    subject: str
    body: str
    attachment_path: Optional[str] = None


class RecordingNotifier:
    """Collects notifications instead of sending them."""

    def __init__(self):
        self.sent: List[SentNotification] = []

    def notify(self, recipient, subject, body, attachment_path=None):
        self.sent.append(SentNotification(recipient, subject, body, attachment_path))

    def subjects(self) -> List[str]:
        return [n.subject for n in self.sent]


def make_student(user_id: str) -> StudentAccount:
    return StudentAccount(
        user_id=user_id,
        name=fake.name(),
        email=f'{user_id}@students.example.com',
        phone='081',
        hashed_password=PASSWORD_HASH,
        card_type=CardType.STUDENT_CARD,
        birth_year=2004,
    )


@pytest.fixture
def repository() -> InMemoryRepository:
    """Isolated repository: one admin, two students, three items."""
    repo = InMemoryRepository()
    repo.add_account(AdminAccount(user_id='admin', email='admin@sys.com', hashed_password=PASSWORD_HASH))
    repo.add_account(make_student('66001'))
    repo.add_account(make_student('67002'))
    repo.add_item(Item(item_id='I01', name='Projector Sony', category='AV', total_qty=5, current_qty=5))
    repo.add_item(Item(item_id='I02', name='MacBook Pro M2', category='IT', total_qty=1, current_qty=1))
    repo.add_item(Item(item_id='I03', name='Canon Camera', category='AV', total_qty=3, current_qty=0))
    return repo


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
def clock():
    """Mutable 'today' for the workflow."""
    class Clock:
        current = TODAY
        def __call__(self):
            return self.current
    return Clock()


@pytest.fixture
def workflow(repository, notifier, clock) -> BorrowWorkflow:
    return BorrowWorkflow(repository, notifier, today=clock)


@pytest.fixture
def accounts(repository, notifier) -> AccountService:
    return AccountService(repository, notifier, attachment_path='borrow_term_req.pdf')


@pytest.fixture
def client(repository, notifier):
    app = create_app(repository=repository, notifier=notifier, enable_scheduler=False)
    with TestClient(app) as test_client:
        yield test_client


def login(client: TestClient, user_id: str, password: str = PASSWORD) -> dict:
    response = client.post('/api/v1/auth/token', data={'username': user_id, 'password': password})
    assert response.status_code == 200, response.text
    return {'Authorization': f"Bearer {response.json()['access_token']}"}


@pytest.fixture
def admin_headers(client) -> dict:
    return login(client, 'admin')


@pytest.fixture
def student_headers(client) -> dict:
    return login(client, '66001')


@pytest.fixture
def other_student_headers(client) -> dict:
    return login(client, '67002')

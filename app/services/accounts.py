# app/services/accounts.py
from typing import Optional

from loguru import logger

from app.core.config import REGISTRATION_ATTACHMENT_PATH
from app.core.exceptions import InvalidInput
from app.core.registration import passes_identity_policy
from app.core.security import get_password_hash, verify_password
from app.db.database import InMemoryRepository
from app.models.enum import CardType
from app.models.user import Account, StudentAccount, StudentRegister


class AccountService:
    def __init__(self, repository: InMemoryRepository, notifier, attachment_path: Optional[str] = REGISTRATION_ATTACHMENT_PATH):
        self.repository = repository
        self.notifier = notifier
        self.attachment_path = attachment_path

    def find_account(self, user_id: str, password: str) -> Optional[Account]:
        account = self.repository.get_account(user_id)
        if account is None or not verify_password(password, account.hashed_password):
            return None
        return account

    def authenticate(self, user_id: str, password: str) -> bool:
        return self.find_account(user_id, password) is not None

    def register_student(self, data: StudentRegister) -> StudentAccount:
        user_id = data.user_id.strip()
        name = data.name.strip()
        if not user_id or not name or not data.password:
            raise InvalidInput("Please fill all fields.")
        if not passes_identity_policy(data.card_type, user_id, data.birth_year):
            if data.card_type == CardType.STUDENT_CARD:
                raise InvalidInput("Student card is not within the current enrolment years.")
            raise InvalidInput("Age derived from birth year is outside the allowed range.")

        with self.repository.lock:
            if self.repository.get_account(user_id) is not None:
                raise InvalidInput(f"ID '{user_id}' is already registered.")
            student = StudentAccount(
                user_id=user_id,
                name=name,
                email=data.email,
                phone=data.phone,
                hashed_password=get_password_hash(data.password),
                card_type=data.card_type,
                birth_year=data.birth_year,
            )
            self.repository.add_account(student)

        logger.info(f"Student '{user_id}' registered with {data.card_type.value}.")
        self.notifier.notify(
            student.email,
            "Welcome to Smart Borrow System",
            "Registration successful!\n\nAttached is the User Manual / Rules for borrowing items.",
            self.attachment_path,
        )
        return student

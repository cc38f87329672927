# app/models/user.py
from typing import Optional, Union, Literal, Annotated
from pydantic import BaseModel, Field, EmailStr
from datetime import datetime

from .enum import UserRole, CardType


class StudentAccount(BaseModel):
    """A borrower. Students log in with their card / national ID number."""
    role: Literal[UserRole.STUDENT] = UserRole.STUDENT
    user_id: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1)
    email: Optional[EmailStr] = None
    phone: Optional[str] = None
    hashed_password: str
    card_type: CardType
    birth_year: int
    created_at: datetime = Field(default_factory=datetime.now)


class AdminAccount(BaseModel):
    """An approver. Resolves requests and processes returns."""
    role: Literal[UserRole.ADMIN] = UserRole.ADMIN
    user_id: str = Field(..., min_length=1)
    name: str = "Administrator"
    email: Optional[EmailStr] = None
    hashed_password: str
    created_at: datetime = Field(default_factory=datetime.now)


# Accounts are dispatched on the `role` tag
Account = Annotated[Union[StudentAccount, AdminAccount], Field(discriminator="role")]


# --- Pydantic Schemas ---
class StudentRegister(BaseModel):
    card_type: CardType
    user_id: str = Field(..., description="Student card number or national ID number")
    name: str
    birth_year: int = Field(..., description="Birth year (AD)")
    email: Optional[EmailStr] = None
    phone: Optional[str] = None
    password: str


class AccountResponse(BaseModel):
    user_id: str
    name: str
    role: UserRole
    email: Optional[EmailStr] = None
    phone: Optional[str] = None
    card_type: Optional[CardType] = None
    birth_year: Optional[int] = None
    created_at: datetime

    class Config:
        from_attributes = True
        use_enum_values = True

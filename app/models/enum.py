# app/models/enum.py
from enum import Enum

class UserRole(str, Enum):
    STUDENT = "student"
    ADMIN = "admin"

class CardType(str, Enum):
    STUDENT_CARD = "student_card"
    NATIONAL_ID = "national_id"

class RequestKind(str, Enum):
    NEW_BORROW = "new_borrow"
    RENEW = "renew"             # fixed RENEW_DAYS on top of the current due date
    EXTEND = "extend"           # extra_days chosen by the student

class RequestStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"

class Decision(str, Enum):
    APPROVE = "approve"
    REJECT = "reject"

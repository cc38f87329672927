# app/core/fines.py
from datetime import date

from app.core.config import FINE_PER_DAY


def days_late(due_date: date, return_date: date) -> int:
    """Whole days between due_date and return_date, 0 when not late."""
    if return_date > due_date:
        return (return_date - due_date).days
    return 0


def compute_fine(due_date: date, return_date: date, fine_per_day: int = FINE_PER_DAY) -> int:
    """Late fee for returning on return_date. Same day or early returns are free."""
    return days_late(due_date, return_date) * fine_per_day

# app/core/registration.py
from app.core.config import (
    STUDENT_CARD_CURRENT_YEAR,
    STUDENT_CARD_WINDOW_YEARS,
    REGISTRATION_CURRENT_YEAR,
    NATIONAL_ID_MIN_AGE,
    NATIONAL_ID_MAX_AGE,
)
from app.models.enum import CardType


def is_valid_student_card(
    card_id: str,
    current_year: int = STUDENT_CARD_CURRENT_YEAR,
    window_years: int = STUDENT_CARD_WINDOW_YEARS,
) -> bool:
    """The two-digit intake year prefix must fall in the last `window_years` years."""
    if not card_id or len(card_id) < 2:
        return False
    prefix = card_id[:2]
    if not prefix.isdigit():
        return False
    intake_year = int(prefix)
    return current_year - window_years < intake_year <= current_year


def is_valid_national_id_age(
    birth_year: int,
    current_year: int = REGISTRATION_CURRENT_YEAR,
    min_age: int = NATIONAL_ID_MIN_AGE,
    max_age: int = NATIONAL_ID_MAX_AGE,
) -> bool:
    age = current_year - birth_year
    return min_age <= age <= max_age


def passes_identity_policy(card_type: CardType, card_id: str, birth_year: int) -> bool:
    if card_type == CardType.STUDENT_CARD:
        return is_valid_student_card(card_id)
    if card_type == CardType.NATIONAL_ID:
        return is_valid_national_id_age(birth_year)
    return False

"""Field validation for registration and login forms."""

import re
from typing import Optional

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
CRM_PATTERN = re.compile(r"^\d{4,6}$")
PHONE_PATTERN = re.compile(r"^\(\d{2}\)\s\d{4,5}-\d{4}$")


def digits_only(value: Optional[str]) -> str:
    """Strip every non-digit character."""
    return re.sub(r"\D", "", value or "")


def is_valid_email(email: str) -> bool:
    return bool(email) and bool(EMAIL_PATTERN.match(email))


def is_valid_cpf(cpf: str) -> bool:
    """
    Validate a CPF by its two check digits.

    Punctuation is ignored. Sequences of one repeated digit pass the
    check-digit arithmetic but are not valid CPFs.
    """
    numbers = digits_only(cpf)
    if len(numbers) != 11:
        return False
    if numbers == numbers[0] * 11:
        return False

    for position in (9, 10):
        total = sum(int(numbers[i]) * (position + 1 - i) for i in range(position))
        remainder = (total * 10) % 11
        if remainder == 10:
            remainder = 0
        if remainder != int(numbers[position]):
            return False
    return True


def is_valid_crm(crm: str) -> bool:
    return bool(CRM_PATTERN.match(digits_only(crm)))


def is_valid_phone(phone: str) -> bool:
    """Accept the masked (11) 99999-9999 form or 10-11 bare digits."""
    if not phone:
        return False
    if PHONE_PATTERN.match(phone):
        return True
    return phone.isdigit() and len(phone) in (10, 11)

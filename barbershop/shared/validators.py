"""Shared validation utilities"""

import re
from typing import Optional

PHONE_ALLOWED_PATTERN = re.compile(r"^[\d\s()\-+]+$")
EMAIL_PATTERN = re.compile(r"^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$")


def validate_phone(phone: Optional[str]) -> Optional[str]:
    """
    Validate a phone number and normalize it to digits with an optional leading "+".

    Args:
        phone: Phone number string, e.g. "(11) 98765-4321" or "+55 11 98765 4321"

    Returns:
        Normalized phone number (e.g. "+5511987654321" or "11987654321")

    Raises:
        ValueError: If the phone number is invalid
    """
    if phone is None:
        raise ValueError("Phone number is required")

    phone = phone.strip()
    if not PHONE_ALLOWED_PATTERN.match(phone):
        raise ValueError("Invalid phone format")

    digits = re.sub(r"\D", "", phone)
    if not 8 <= len(digits) <= 15:
        raise ValueError("Phone number must have between 8 and 15 digits")

    return f"+{digits}" if phone.startswith("+") else digits


def validate_email(email: Optional[str]) -> Optional[str]:
    """
    Validate email format.

    Args:
        email: Email address string

    Returns:
        Lowercase email address

    Raises:
        ValueError: If email format is invalid
    """
    if not email:
        return email

    email = email.strip().lower()

    if not EMAIL_PATTERN.match(email):
        raise ValueError("Invalid email format")

    return email

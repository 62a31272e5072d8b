"""Contact classification: tell email addresses from phone numbers."""

import re

from crm_identity.schemas.otp import ContactType

EMAIL_PATTERN = re.compile(r"^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$")
PHONE_PATTERN = re.compile(r"^[+]?[0-9\s\-()]{7,15}$")
PHONE_DIGITS_PATTERN = re.compile(r"^[+]?[0-9]{7,15}$")
PHONE_SEPARATORS = re.compile(r"[\s\-()]")


def is_email(contact: str | None) -> bool:
    return contact is not None and EMAIL_PATTERN.match(contact.strip()) is not None


def is_phone(contact: str | None) -> bool:
    """Phone numbers: optional '+', 7-15 digits, separators (space, dash, parens) allowed."""
    if contact is None:
        return False
    digits = PHONE_SEPARATORS.sub("", contact)
    return (
        PHONE_PATTERN.match(contact.strip()) is not None
        and PHONE_DIGITS_PATTERN.match(digits) is not None
    )


def detect_contact_type(contact: str | None) -> ContactType | None:
    """Return EMAIL or PHONE, or None when the contact is neither."""
    if is_email(contact):
        return ContactType.EMAIL
    if is_phone(contact):
        return ContactType.PHONE
    return None

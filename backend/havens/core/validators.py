"""Field validation shared by checkout, registration and enquiry forms.

Each ``validate_*`` function collects every failing field before raising, so
the caller receives one ``ValidationFailed`` with a message per field.
"""

import re
from datetime import datetime, timezone
from typing import Annotated, Dict, Optional

from fastapi import Path

from havens.core.exceptions import ValidationFailed

# Positive integer path parameter, rejecting 0 and negatives with 422
PositiveIntId = Annotated[int, Path(gt=0, le=2147483647)]

PERSON_NAME_RE = re.compile(r"^[a-zA-Z\s]{2,50}$")
SHORT_NAME_RE = re.compile(r"^[a-zA-Z\s]{2,30}$")
# Indian mobile numbering: ten digits, leading 6-9
MOBILE_PHONE_RE = re.compile(r"^[6-9]\d{9}$")
EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")

MIN_ADDRESS_LENGTH = 10
MIN_PASSWORD_LENGTH = 6
MIN_MESSAGE_LENGTH = 10
MIN_PARTY_SIZE = 1
MAX_PARTY_SIZE = 50

TABLE_RESERVATION = "Table Reservation"
EVENT_ENQUIRY = "Event Enquiry"


def is_valid_name(name: Optional[str]) -> bool:
    return bool(name) and PERSON_NAME_RE.match(name.strip()) is not None


def is_valid_phone(phone: Optional[str]) -> bool:
    return bool(phone) and MOBILE_PHONE_RE.match(phone) is not None


def is_valid_address(address: Optional[str]) -> bool:
    return bool(address) and len(address.strip()) >= MIN_ADDRESS_LENGTH


def _raise_if_any(errors: Dict[str, str]) -> None:
    if errors:
        raise ValidationFailed(errors)


def validate_checkout_details(name: str, phone: str, address: str) -> None:
    """Recipient name, phone and delivery address for an order."""
    errors: Dict[str, str] = {}
    if not is_valid_name(name):
        errors["name"] = "Name must contain letters only"
    if not is_valid_phone(phone):
        errors["phone"] = "Invalid 10-digit number (starts with 6-9)"
    if not is_valid_address(address):
        errors["address"] = "Detailed address required (min 10 chars)"
    _raise_if_any(errors)


def validate_registration(
    name: str,
    phone: str,
    email: str,
    password: str,
    address: Optional[str],
) -> None:
    errors: Dict[str, str] = {}
    if not is_valid_name(name):
        errors["name"] = "Name must contain letters only (2-50 chars)"
    if not is_valid_phone(phone):
        errors["phone"] = "Invalid 10-digit mobile number starting with 6-9"
    if not email or not EMAIL_RE.match(email.strip()):
        errors["email"] = "Invalid email address"
    if not password or len(password) < MIN_PASSWORD_LENGTH:
        errors["password"] = f"Password must be at least {MIN_PASSWORD_LENGTH} characters"
    if not is_valid_address(address):
        errors["address"] = "Detailed address required (min 10 chars)"
    _raise_if_any(errors)


def validate_enquiry(
    first_name: str,
    last_name: str,
    phone: str,
    subject: str,
    message: str,
    party_size: Optional[int] = None,
    date_time: Optional[datetime] = None,
    outlet_id: Optional[int] = None,
    now: Optional[datetime] = None,
) -> None:
    """Contact form; reservations additionally need a party size, a future slot and an outlet."""
    errors: Dict[str, str] = {}
    if not first_name or not SHORT_NAME_RE.match(first_name.strip()):
        errors["first_name"] = "Letters only (2-30 chars)"
    if not last_name or not SHORT_NAME_RE.match(last_name.strip()):
        errors["last_name"] = "Letters only (2-30 chars)"
    if not is_valid_phone(phone):
        errors["phone"] = "Enter valid 10-digit number"

    if subject == TABLE_RESERVATION:
        if party_size is None or not MIN_PARTY_SIZE <= party_size <= MAX_PARTY_SIZE:
            errors["party_size"] = f"Select {MIN_PARTY_SIZE}-{MAX_PARTY_SIZE} members"
        if date_time is None:
            errors["date_time"] = "Select date & time"
        else:
            now = now or datetime.now(timezone.utc)
            slot = date_time if date_time.tzinfo else date_time.replace(tzinfo=timezone.utc)
            if slot <= now:
                errors["date_time"] = "Must be in the future"
        if outlet_id is None:
            errors["outlet_id"] = "Select a location"
    elif subject == EVENT_ENQUIRY and outlet_id is None:
        errors["outlet_id"] = "Select a location"

    if not message or len(message.strip()) < MIN_MESSAGE_LENGTH:
        errors["message"] = "Minimum 10 characters"
    _raise_if_any(errors)

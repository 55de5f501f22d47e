import re
from datetime import date, datetime
from decimal import Decimal, InvalidOperation

from touchclean.errors import AppError

EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
PHONE_RE = re.compile(r"^\+?[0-9 ()-]{8,20}$")


def clean_text(value, field_name, required=True, min_length=1, max_length=255):
    text = (value or "").strip() if isinstance(value, str) or value is None else str(value).strip()
    if not text:
        if required:
            raise AppError(f"{field_name} is required.", 400)
        return None
    if len(text) < min_length:
        raise AppError(f"{field_name} must be at least {min_length} characters.", 400)
    if len(text) > max_length:
        raise AppError(f"{field_name} must be less than {max_length} characters.", 400)
    return text


def clean_email(value, field_name="Email"):
    email = clean_text(value, field_name, max_length=255).lower()
    if not EMAIL_RE.match(email):
        raise AppError("Invalid email address.", 400)
    return email


def clean_phone(value, required=True):
    phone = clean_text(value, "Phone", required=required, max_length=20)
    if phone is None:
        return None
    if not PHONE_RE.match(phone):
        raise AppError("Invalid phone number.", 400)
    return phone


def clean_choice(value, choices, field_name, default=None):
    if value in (None, ""):
        value = default
    if value is not None and not isinstance(value, str):
        raise AppError(f"Invalid {field_name}: {value!r}.", 400)
    choice = (value or "").strip().lower()
    if choice not in choices:
        raise AppError(f"Invalid {field_name}: {value!r}.", 400)
    return choice


def parse_date(value, field_name, required=True):
    if value in (None, ""):
        if required:
            raise AppError(f"{field_name} is required.", 400)
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value)[:10])
    except ValueError as exc:
        raise AppError(f"{field_name} must be a date (YYYY-MM-DD).", 400) from exc


def parse_decimal(value, field_name, default=None, minimum=None):
    if value in (None, ""):
        return default
    if isinstance(value, bool):
        raise AppError(f"{field_name} must be a number.", 400)
    try:
        number = Decimal(str(value))
    except (InvalidOperation, ValueError) as exc:
        raise AppError(f"{field_name} must be a number.", 400) from exc
    if not number.is_finite():
        raise AppError(f"{field_name} must be a number.", 400)
    if minimum is not None and number < minimum:
        raise AppError(f"{field_name} must be at least {minimum}.", 400)
    return number


def parse_id(value, field_name):
    if isinstance(value, bool):
        raise AppError(f"Invalid {field_name}.", 400)
    try:
        return int(value)
    except (TypeError, ValueError) as exc:
        raise AppError(f"Invalid {field_name}.", 400) from exc

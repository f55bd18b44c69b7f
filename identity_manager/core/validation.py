"""Field validators for user profile data."""

import re

# Any Unicode letter, space, hyphen or apostrophe
NAME_PATTERN = re.compile(r"^(?:[^\W\d_]|[ \-'])+$")
PHONE_PATTERN = re.compile(r"^[+]?[0-9\s\-()]+$")

NAME_MIN_LENGTH = 2
NAME_MAX_LENGTH = 50
PHONE_MAX_LENGTH = 20
PASSWORD_MIN_LENGTH = 6
# bcrypt only accepts secrets up to 72 bytes
PASSWORD_MAX_BYTES = 72

NAME_MESSAGE = "Must contain only letters, spaces, hyphens or apostrophes"
PHONE_MESSAGE = "Phone number can only contain digits, spaces, +, -, ( and )"
PASSWORD_BYTES_MESSAGE = f"Password must be at most {PASSWORD_MAX_BYTES} bytes when UTF-8 encoded"


def is_valid_name(value: str | None) -> bool:
    """Check a person name against the allowed character set.

    Blank and missing values are accepted; whether the field is required is
    checked separately.

    Args:
        value: Name to check

    Returns:
        True if the value is blank or made only of allowed characters
    """
    if value is None or not value.strip():
        return True
    return NAME_PATTERN.fullmatch(value) is not None


def is_valid_phone(value: str | None) -> bool:
    """Check a phone number against the allowed character set.

    Args:
        value: Phone number to check

    Returns:
        True if the value is blank or a well-formed phone number
    """
    if value is None or not value.strip():
        return True
    return PHONE_PATTERN.fullmatch(value) is not None


def _name_error(label: str, value: str | None) -> str | None:
    if value is None or not value.strip():
        return f"{label} is required"
    if not NAME_MIN_LENGTH <= len(value) <= NAME_MAX_LENGTH:
        return f"{label} must be between {NAME_MIN_LENGTH} and {NAME_MAX_LENGTH} characters"
    if not is_valid_name(value):
        return NAME_MESSAGE
    return None


def validate_user_fields(first_name: str | None, last_name: str | None, phone: str | None) -> dict[str, str]:
    """Collect validation errors for the editable profile fields.

    Args:
        first_name: First name
        last_name: Last name
        phone: Optional phone number

    Returns:
        Mapping of field name to error message; empty when everything is valid
    """
    errors: dict[str, str] = {}

    first_name_error = _name_error("First name", first_name)
    if first_name_error:
        errors["first_name"] = first_name_error

    last_name_error = _name_error("Last name", last_name)
    if last_name_error:
        errors["last_name"] = last_name_error

    if phone is not None and len(phone) > PHONE_MAX_LENGTH:
        errors["phone"] = f"Phone must be at most {PHONE_MAX_LENGTH} characters"
    elif not is_valid_phone(phone):
        errors["phone"] = PHONE_MESSAGE

    return errors


def password_error(password: str | None) -> str | None:
    """Check a new password against the length rules.

    The minimum counts characters, the maximum counts UTF-8 bytes.

    Returns:
        The error message, or None when the password is acceptable
    """
    if password is None or len(password) < PASSWORD_MIN_LENGTH:
        return f"Password must be at least {PASSWORD_MIN_LENGTH} characters"
    if len(password.encode("utf-8")) > PASSWORD_MAX_BYTES:
        return PASSWORD_BYTES_MESSAGE
    return None

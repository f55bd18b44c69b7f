"""Tests for name, phone and password validators."""

import pytest

from identity_manager.core.validation import (
    NAME_MESSAGE,
    PASSWORD_BYTES_MESSAGE,
    PHONE_MESSAGE,
    is_valid_name,
    is_valid_phone,
    password_error,
    validate_user_fields,
)


@pytest.mark.parametrize("name", ["John", "O'Connor", "Jean-Pierre", "Müller", "Mary Ann", "Łukasz"])
def test_valid_names(name):
    assert is_valid_name(name) is True


@pytest.mark.parametrize("name", ["John123", "Name#1", "Ann_Marie", "Bob!"])
def test_invalid_names(name):
    assert is_valid_name(name) is False


@pytest.mark.parametrize("value", [None, "", "   "])
def test_blank_values_are_left_to_required_checks(value):
    assert is_valid_name(value) is True
    assert is_valid_phone(value) is True


@pytest.mark.parametrize("phone", ["+1 (555) 123-4567", "123456789", "+48 600 700 800"])
def test_valid_phones(phone):
    assert is_valid_phone(phone) is True


@pytest.mark.parametrize("phone", ["abc123", "123@456", "12+34"])
def test_invalid_phones(phone):
    assert is_valid_phone(phone) is False


def test_validate_user_fields_accepts_valid_profile():
    assert validate_user_fields("Anna", "Nowak", "+48 123 456 789") == {}
    assert validate_user_fields("Anna", "Nowak", None) == {}


def test_validate_user_fields_reports_every_broken_field():
    errors = validate_user_fields("J", "Doe1", "123@456")

    assert errors == {
        "first_name": "First name must be between 2 and 50 characters",
        "last_name": NAME_MESSAGE,
        "phone": PHONE_MESSAGE,
    }


def test_validate_user_fields_requires_names():
    errors = validate_user_fields("", None, None)

    assert errors["first_name"] == "First name is required"
    assert errors["last_name"] == "Last name is required"


def test_validate_user_fields_rejects_long_phone():
    errors = validate_user_fields("Anna", "Nowak", "1" * 21)

    assert errors == {"phone": "Phone must be at most 20 characters"}


@pytest.mark.parametrize("password", ["secret", "x" * 72, "é" * 36, "密码密码密码"])
def test_password_within_limits(password):
    assert password_error(password) is None


def test_password_too_short():
    assert password_error("12345") == "Password must be at least 6 characters"


@pytest.mark.parametrize("password", ["x" * 73, "é" * 37, "😀" * 19])
def test_password_limit_counts_utf8_bytes(password):
    assert password_error(password) == PASSWORD_BYTES_MESSAGE

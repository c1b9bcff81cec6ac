import pytest

from csvsync.phones import is_valid_phone, normalize_phone, only_digits


@pytest.mark.parametrize("raw,expected", [
    ("(11) 98765-4321", "5511987654321"),
    ("011987654321", "5511987654321"),
    ("5511987654321", "5511987654321"),
    ("+55 (11) 98765-4321", "5511987654321"),
    ("01133334444", "551133334444"),
    ("21 3333-4444", "552133334444"),
    ("12345", "12345"),
    ("", ""),
    (None, ""),
    ("abc", ""),
])
def test_normalize_phone(raw, expected):
    assert normalize_phone(raw) == expected


@pytest.mark.parametrize("raw", [
    "(11) 98765-4321", "011987654321", "0000000000", "5599", "00123456789012",
    "0 5512 3456 789", "1 212 555 0100",
    "00123456789", "001234567890", "01234567890", "012345678901", "05512345678",
])
def test_normalize_is_idempotent(raw):
    once = normalize_phone(raw)
    assert normalize_phone(once) == once


@pytest.mark.parametrize("raw,valid", [
    ("11987654321", True),
    ("1133334444", True),
    ("5511987654321", True),
    ("12125550100", True),
    ("441234567890", False),
    ("123456789", False),
    ("55119876543210", False),
    ("", False),
    (None, False),
])
def test_is_valid_phone(raw, valid):
    assert is_valid_phone(raw) is valid


def test_only_digits():
    assert only_digits("+55 (11) 9-8765") == "551198765"


@pytest.mark.parametrize("raw,expected", [
    ("00123456789", "550123456789"),
    ("001234567890", "5501234567890"),
])
def test_trunk_prefix_then_country_code(raw, expected):
    assert normalize_phone(raw) == expected

"""
Brazilian phone number heuristics.

Both functions are total: any input, including None, yields a result.
"""

from __future__ import annotations

import re
from typing import Optional

from .rules import ACCEPTED_COUNTRY_PREFIXES, COUNTRY_CODE, MAX_PHONE_DIGITS, MIN_PHONE_DIGITS

_NON_DIGIT = re.compile(r"\D")


def only_digits(raw: Optional[str]) -> str:
    return _NON_DIGIT.sub("", raw or "")


def normalize_phone(raw: Optional[str]) -> str:
    """
    Reduce a phone number to digits and prepend the Brazilian country code.

    A leading 0 in front of a 10 or 11 digit national number is a trunk
    prefix and is dropped first. Numbers of 10 or 11 digits not already
    starting with 55 get 55 prepended; any other length is returned as bare
    digits.
    """
    digits = only_digits(raw)

    if len(digits) in (11, 12) and digits.startswith("0"):
        digits = digits[1:]

    if len(digits) in (10, 11) and not digits.startswith(COUNTRY_CODE):
        digits = COUNTRY_CODE + digits

    return digits


def is_valid_phone(raw: Optional[str]) -> bool:
    digits = only_digits(raw)
    if not MIN_PHONE_DIGITS <= len(digits) <= MAX_PHONE_DIGITS:
        return False
    if len(digits) >= 12:
        return digits.startswith(ACCEPTED_COUNTRY_PREFIXES)
    return True

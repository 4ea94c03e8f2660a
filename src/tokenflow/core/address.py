from __future__ import annotations

import re
from typing import Any

from tokenflow.config.settings import MAX_TOKEN_DECIMALS


_ADDRESS_RE = re.compile(r"^0x[0-9a-fA-F]{40}$")
_DIGITS_RE = re.compile(r"[0-9]+")


def is_address(value: Any) -> bool:
    if not isinstance(value, str):
        return False
    return _ADDRESS_RE.fullmatch(value) is not None


def normalize(address: str) -> str:
    return address.lower()


def is_digits(value: Any) -> bool:
    """ASCII digits only; str.isdigit() also accepts superscripts and other scripts."""
    return isinstance(value, str) and _DIGITS_RE.fullmatch(value) is not None


def short_address(address: str) -> str:
    if len(address) <= 12:
        return address
    return f"{address[:6]}...{address[-4:]}"


def parse_decimals(value: Any) -> int:
    """
    Provider decimals field -> int. Missing or garbage values count as 0.
    """
    s = str(value or "").strip()
    if not is_digits(s):
        return 0
    return int(s)


def format_amount(raw: str, decimals: int) -> str:
    """
    Shift an unsigned integer string by `decimals` places.

    Works on the digits directly so amounts above 2**53 keep every digit:
        format_amount("1500000000000000000", 18) -> "1.5"
        format_amount("1", 2)                    -> "0.01"
    """
    decimals = max(0, min(MAX_TOKEN_DECIMALS, int(decimals)))

    digits = str(raw).strip().lstrip("0") or "0"
    if decimals == 0:
        return digits

    digits = digits.rjust(decimals + 1, "0")
    whole = digits[:-decimals]
    fraction = digits[-decimals:].rstrip("0")

    if not fraction:
        return whole
    return f"{whole}.{fraction}"

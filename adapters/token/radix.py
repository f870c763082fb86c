from __future__ import annotations

import re

DIGITS = "0123456789abcdefghijklmnopqrstuvwxyz"
RADIX = len(DIGITS)
_DIGITS_RE = re.compile(r"^[0-9a-z]+$", re.IGNORECASE)


def to_base36(value: int) -> str:
    if value < 0:
        msg = f"Cannot render negative value {value} in base {RADIX}"
        raise ValueError(msg)
    if value == 0:
        return "0"
    digits: list[str] = []
    while value:
        value, remainder = divmod(value, RADIX)
        digits.append(DIGITS[remainder])
    return "".join(reversed(digits))


def from_base36(raw: str) -> int | None:
    if not raw or not _DIGITS_RE.match(raw):
        return None
    return int(raw, RADIX)

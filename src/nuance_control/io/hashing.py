"""Hash helpers."""

from __future__ import annotations

import hashlib
import json
from typing import Any

_BASE36_DIGITS = "0123456789abcdefghijklmnopqrstuvwxyz"


def sha256_bytes(payload: bytes) -> str:
    return hashlib.sha256(payload).hexdigest()


def sha256_json(data: Any) -> str:
    canonical = json.dumps(data, sort_keys=True, ensure_ascii=True, separators=(",", ":"))
    return sha256_bytes(canonical.encode("utf-8"))


def string_hash32(text: str) -> int:
    """Signed 32-bit ``h * 31 + c`` rolling hash over UTF-16 code units."""
    encoded = text.encode("utf-16-le")
    value = 0
    for i in range(0, len(encoded), 2):
        unit = encoded[i] | (encoded[i + 1] << 8)
        value = (value * 31 + unit) & 0xFFFFFFFF
    if value >= 0x80000000:
        value -= 0x100000000
    return value


def to_base36(value: int) -> str:
    if value < 0:
        raise ValueError("to_base36 expects a non-negative integer.")
    if value == 0:
        return "0"
    digits: list[str] = []
    while value:
        value, rem = divmod(value, 36)
        digits.append(_BASE36_DIGITS[rem])
    return "".join(reversed(digits))

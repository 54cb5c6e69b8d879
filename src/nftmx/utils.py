from __future__ import annotations

import base64
import hashlib
import time
from decimal import Decimal, InvalidOperation
from typing import Optional


def sha256_digest(data: bytes) -> bytes:
    return hashlib.sha256(data).digest()


def b64encode(data: bytes) -> str:
    return base64.b64encode(data).decode("ascii")


def unix_now() -> int:
    return int(time.time())


def parse_decimal(value: object) -> Optional[Decimal]:
    """Parse a decimal string; returns None for anything that is not a finite number."""
    if not isinstance(value, str) or not value.strip():
        return None
    try:
        parsed = Decimal(value)
    except InvalidOperation:
        return None
    if not parsed.is_finite():
        return None
    return parsed


def to_nanos(seconds: int) -> int:
    return seconds * 1_000_000_000

from __future__ import annotations

import re
import time
from typing import Callable, Iterable

SALE_PREFIX = "INV"
PURCHASE_PREFIX = "PUR"
PAYMENT_PREFIX = "PAY"
CUSTOMER_PREFIX = "CUST"
PRODUCT_PREFIX = "PROD"

_TIME_DIGITS = 6


def next_sequential_id(prefix: str, existing: Iterable[str], width: int = 3) -> str:
    """CUST001, CUST002, ... one past the highest number already in use."""
    highest = 0
    pattern = re.compile(rf"^{re.escape(prefix)}(\d+)$")
    for ident in existing:
        m = pattern.match(str(ident))
        if m:
            highest = max(highest, int(m.group(1)))
    return f"{prefix}{highest + 1:0{width}d}"


def time_derived_id(prefix: str, existing: Iterable[str], clock: Callable[[], float] = time.time) -> str:
    """Prefix plus the last six digits of the epoch milliseconds.

    A suffix already taken is bumped until free, so rapid successive
    calls never hand out the same id.
    """
    taken = set(existing)
    modulus = 10 ** _TIME_DIGITS
    suffix = int(clock() * 1000) % modulus
    for _ in range(modulus):
        candidate = f"{prefix}{suffix:0{_TIME_DIGITS}d}"
        if candidate not in taken:
            return candidate
        suffix = (suffix + 1) % modulus
    raise RuntimeError(f"No free identifier left for prefix {prefix}")

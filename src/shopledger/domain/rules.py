from __future__ import annotations

import math
from collections import Counter
from dataclasses import replace
from datetime import date
from typing import Iterable, Mapping, Optional

from shopledger.domain.errors import ValidationError
from shopledger.domain.models import STATUS_DUE, STATUS_PAID, Product, SaleItem

# Tolerance for every monetary comparison.
EPSILON = 0.001


def finite_amount(value, label: str) -> float:
    """Coerce a money input to float; NaN and infinities are rejected."""
    try:
        amount = float(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{label} must be a number.") from None
    if not math.isfinite(amount):
        raise ValidationError(f"{label} must be a finite number.")
    return amount


def whole_quantity(value) -> int:
    try:
        qty = float(value)
    except (TypeError, ValueError):
        raise ValidationError("Quantity must be a whole number >= 1.") from None
    if not math.isfinite(qty) or qty != int(qty) or qty < 1:
        raise ValidationError("Quantity must be a whole number >= 1.")
    return int(qty)


def is_outstanding(amount: float, paid_amount: float) -> bool:
    return (amount - paid_amount) > EPSILON


def status_for(amount: float, paid_amount: float) -> str:
    return STATUS_DUE if is_outstanding(amount, paid_amount) else STATUS_PAID


def sale_amount(items: Iterable[SaleItem]) -> float:
    return sum(it.price * it.quantity for it in items)


def quantities_by_product(items: Iterable[SaleItem]) -> Counter[str]:
    qty: Counter[str] = Counter()
    for it in items:
        qty[it.product_id] += it.quantity
    return qty


def clamp_stock(stock: Optional[int], delta: int) -> Optional[int]:
    """Apply ``delta`` to a tracked stock level, floored at zero.

    Services (``stock is None``) are returned untouched.
    """
    if stock is None:
        return None
    return max(0, int(stock) + int(delta))


def apply_stock_deltas(products: Iterable[Product], deltas: Mapping[str, int]) -> list[Product]:
    """Return ``products`` with each tracked stock moved by its delta (clamped)."""
    out = []
    for p in products:
        delta = int(deltas.get(p.id, 0))
        if delta and not p.is_service:
            out.append(replace(p, stock=clamp_stock(p.stock, delta)))
        else:
            out.append(p)
    return out


def today_iso() -> str:
    return date.today().isoformat()

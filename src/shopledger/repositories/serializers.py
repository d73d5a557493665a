from __future__ import annotations

from dataclasses import asdict
from typing import Optional

from shopledger.domain.models import Customer, Payment, Product, Purchase, Sale, SaleItem, ShopInfo


def _opt_int(value) -> Optional[int]:
    return None if value is None else int(value)


def product_from_row(r: dict) -> Product:
    return Product(
        id=str(r["id"]),
        name=str(r["name"]),
        category=str(r.get("category") or ""),
        measurement=str(r.get("measurement") or ""),
        price=float(r.get("price") or 0),
        stock=_opt_int(r.get("stock")),
    )


def customer_from_row(r: dict) -> Customer:
    return Customer(
        id=str(r["id"]),
        name=str(r["name"]),
        phone=str(r.get("phone") or ""),
        address=str(r.get("address") or ""),
    )


def sale_from_row(r: dict) -> Sale:
    items = tuple(
        SaleItem(product_id=str(it["product_id"]), quantity=int(it["quantity"]), price=float(it["price"]))
        for it in r.get("items") or []
    )
    return Sale(
        id=str(r["id"]),
        customer_id=str(r["customer_id"]),
        date=str(r["date"]),
        items=items,
        amount=float(r["amount"]),
        paid_amount=float(r.get("paid_amount") or 0),
        status=str(r["status"]),
    )


def sale_to_row(s: Sale) -> dict:
    row = asdict(s)
    row["items"] = [asdict(it) for it in s.items]
    return row


def purchase_from_row(r: dict) -> Purchase:
    return Purchase(
        id=str(r["id"]),
        type=str(r["type"]),
        supplier=str(r.get("supplier") or ""),
        description=str(r.get("description") or ""),
        date=str(r["date"]),
        amount=float(r["amount"]),
        paid_amount=float(r.get("paid_amount") or 0),
        status=str(r["status"]),
        product_id=(str(r["product_id"]) if r.get("product_id") is not None else None),
        quantity=_opt_int(r.get("quantity")),
        measurement=r.get("measurement"),
    )


def payment_from_row(r: dict) -> Payment:
    return Payment(
        id=str(r["id"]),
        customer_id=str(r["customer_id"]),
        date=str(r["date"]),
        amount=float(r["amount"]),
        method=str(r.get("method") or "Cash"),
    )


def shop_info_from_row(r: dict) -> ShopInfo:
    return ShopInfo(
        name=str(r.get("name") or ""),
        address=str(r.get("address") or ""),
        contact=str(r.get("contact") or ""),
        logo=r.get("logo"),
    )


# collection key -> (decode, encode)
CODECS = {
    "customers": (customer_from_row, asdict),
    "inventory": (product_from_row, asdict),
    "sales": (sale_from_row, sale_to_row),
    "purchases": (purchase_from_row, asdict),
    "payments": (payment_from_row, asdict),
}

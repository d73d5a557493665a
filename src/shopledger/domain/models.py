from __future__ import annotations
from dataclasses import dataclass, field
from typing import Optional


STATUS_PAID = "Paid"
STATUS_DUE = "Due"

PURCHASE_INVENTORY = "Inventory"
PURCHASE_UTILITY = "Utility"

NOT_AVAILABLE = "N/A"


@dataclass(frozen=True)
class Product:
    id: str
    name: str
    category: str
    measurement: str
    price: float
    stock: Optional[int]

    @property
    def is_service(self) -> bool:
        return self.stock is None


@dataclass(frozen=True)
class Customer:
    id: str
    name: str
    phone: str
    address: str


@dataclass(frozen=True)
class SaleItem:
    product_id: str
    quantity: int
    price: float

    @property
    def line_total(self) -> float:
        return self.quantity * self.price


@dataclass(frozen=True)
class Sale:
    id: str
    customer_id: str
    date: str
    items: tuple[SaleItem, ...]
    amount: float
    paid_amount: float
    status: str

    @property
    def due(self) -> float:
        return self.amount - self.paid_amount


@dataclass(frozen=True)
class Purchase:
    id: str
    type: str
    supplier: str
    description: str
    date: str
    amount: float
    paid_amount: float
    status: str
    product_id: Optional[str] = None
    quantity: Optional[int] = None
    measurement: Optional[str] = None

    @property
    def is_inventory(self) -> bool:
        return self.type == PURCHASE_INVENTORY


@dataclass(frozen=True)
class Payment:
    id: str
    customer_id: str
    date: str
    amount: float
    method: str = "Cash"


@dataclass(frozen=True)
class ShopInfo:
    name: str
    address: str
    contact: str
    logo: Optional[str] = None


@dataclass(frozen=True)
class CustomerSummary:
    customer: Customer
    due_amount: float
    last_purchase: str
    due_since: str


@dataclass(frozen=True)
class PaymentResult:
    payment: Payment
    allocations: list[tuple[str, float]] = field(default_factory=list)
    unapplied: float = 0.0

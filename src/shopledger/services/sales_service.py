from __future__ import annotations

import logging
import time
from collections import Counter
from dataclasses import replace
from typing import Callable, Iterable, Optional

from shopledger.domain.errors import InsufficientStockError, NotFoundError, ValidationError
from shopledger.domain.identifiers import SALE_PREFIX, time_derived_id
from shopledger.domain.models import Sale, SaleItem
from shopledger.domain.rules import (
    apply_stock_deltas,
    finite_amount,
    quantities_by_product,
    sale_amount,
    status_for,
    today_iso,
    whole_quantity,
)
from shopledger.repositories.unit_of_work import StoreUnitOfWork, UnitOfWork

log = logging.getLogger("shopledger.sales")


class SalesService:
    def __init__(
        self,
        store,
        uow_factory: Callable[[], UnitOfWork] | None = None,
        today: Callable[[], str] = today_iso,
        clock: Callable[[], float] = time.time,
    ):
        self.store = store
        self.uow_factory = uow_factory or (lambda: StoreUnitOfWork(store))
        self.today = today
        self.clock = clock

    def _validate(
        self,
        customer_id: str,
        paid_amount: float,
        items: Iterable[dict],
        reserved: Counter[str] | None = None,
    ) -> tuple[list[SaleItem], float]:
        """
        items: [{product_id, quantity, price}]

        ``reserved`` holds the quantities already taken by the sale being
        edited; they count as available again, and its products may be
        kept even if they have since left the catalogue.
        """
        reserved = reserved or Counter()
        customer_id = (customer_id or "").strip()
        if not customer_id:
            raise ValidationError("Customer is required.")
        if not any(c.id == customer_id for c in self.store.customers):
            raise NotFoundError("Customer not found.")

        paid = finite_amount(paid_amount or 0, "Paid amount")
        if paid < 0:
            raise ValidationError("Paid amount cannot be negative.")

        items = list(items)
        if not items:
            raise ValidationError("Cart is empty.")

        products = {p.id: p for p in self.store.inventory}
        lines: list[SaleItem] = []
        for it in items:
            qty = whole_quantity(it["quantity"])
            price = finite_amount(it["price"], "Unit price")
            if price < 0:
                raise ValidationError("Unit price must be >= 0.")
            product_id = str(it["product_id"])
            if product_id not in products and product_id not in reserved:
                raise NotFoundError(f"Product not found: {product_id}")
            lines.append(SaleItem(product_id=product_id, quantity=qty, price=price))

        # Aggregate per product so repeated lines cannot oversell
        for product_id, qty in quantities_by_product(lines).items():
            prod = products.get(product_id)
            if prod is None or prod.is_service:
                continue
            available = int(prod.stock) + reserved[product_id]
            if qty > available:
                raise InsufficientStockError(f"Not enough stock for {prod.name}. Available: {available}")
        return lines, paid

    def create_sale(self, customer_id: str, paid_amount: float, items: Iterable[dict]) -> Sale:
        lines, paid = self._validate(customer_id, paid_amount, items)
        amount = sale_amount(lines)
        sale = Sale(
            id=time_derived_id(SALE_PREFIX, (s.id for s in self.store.sales), self.clock),
            customer_id=customer_id.strip(),
            date=self.today(),
            items=tuple(lines),
            amount=amount,
            paid_amount=paid,
            status=status_for(amount, paid),
        )
        deductions = {pid: -qty for pid, qty in quantities_by_product(lines).items()}

        with self.uow_factory() as uow:
            uow.stage("sales", [sale, *self.store.sales])
            uow.stage("inventory", apply_stock_deltas(self.store.inventory, deductions))
        log.info(
            "sale_created sale_id=%s customer=%s items=%s amount=%.2f paid=%.2f status=%s",
            sale.id, sale.customer_id, len(lines), sale.amount, sale.paid_amount, sale.status,
        )
        return sale

    def update_sale(self, sale_id: str, customer_id: str, paid_amount: float, items: Iterable[dict]) -> Sale:
        original = self.find_sale(sale_id)
        if not original:
            raise NotFoundError("Sale not found.")

        old_qty = quantities_by_product(original.items)
        lines, paid = self._validate(customer_id, paid_amount, items, reserved=old_qty)
        new_qty = quantities_by_product(lines)
        amount = sale_amount(lines)
        updated = replace(
            original,
            customer_id=customer_id.strip(),
            items=tuple(lines),
            amount=amount,
            paid_amount=paid,
            status=status_for(amount, paid),
        )
        # Net change per product: what the old lines held minus what the new lines take
        deltas = {pid: old_qty[pid] - new_qty[pid] for pid in set(old_qty) | set(new_qty)}

        with self.uow_factory() as uow:
            uow.stage("sales", [updated if s.id == sale_id else s for s in self.store.sales])
            uow.stage("inventory", apply_stock_deltas(self.store.inventory, deltas))
        log.info(
            "sale_updated sale_id=%s amount=%.2f paid=%.2f status=%s",
            updated.id, updated.amount, updated.paid_amount, updated.status,
        )
        return updated

    def delete_sale(self, sale_id: str) -> bool:
        sale = self.find_sale(sale_id)
        if not sale:
            log.warning("sale_delete_ignored sale_id=%s reason=not_found", sale_id)
            return False

        with self.uow_factory() as uow:
            uow.stage("sales", [s for s in self.store.sales if s.id != sale_id])
            uow.stage("inventory", apply_stock_deltas(self.store.inventory, quantities_by_product(sale.items)))
        log.info("sale_deleted sale_id=%s restored_items=%s", sale_id, len(sale.items))
        return True

    def list_sales(self) -> list[Sale]:
        return list(self.store.sales)

    def find_sale(self, sale_id: str) -> Optional[Sale]:
        for s in self.store.sales:
            if s.id == sale_id:
                return s
        return None

    def get_sale(self, sale_id: str) -> Sale:
        s = self.find_sale(sale_id)
        if not s:
            raise NotFoundError("Sale not found.")
        return s

    def sales_for_customer(self, customer_id: str) -> list[Sale]:
        return [s for s in self.store.sales if s.customer_id == customer_id]

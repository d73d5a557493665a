from __future__ import annotations

import logging
import time
from collections import Counter
from typing import Callable, Optional

from shopledger.domain.errors import NotFoundError, ValidationError
from shopledger.domain.identifiers import PURCHASE_PREFIX, time_derived_id
from shopledger.domain.models import PURCHASE_INVENTORY, PURCHASE_UTILITY, Purchase
from shopledger.domain.rules import apply_stock_deltas, finite_amount, status_for, today_iso, whole_quantity
from shopledger.repositories.unit_of_work import StoreUnitOfWork, UnitOfWork

log = logging.getLogger(__name__)

PURCHASE_TYPES = (PURCHASE_INVENTORY, PURCHASE_UTILITY)


def _stock_effect(purchase: Optional[Purchase]) -> Counter[str]:
    effect: Counter[str] = Counter()
    if purchase is not None and purchase.is_inventory and purchase.product_id:
        effect[purchase.product_id] += int(purchase.quantity or 0)
    return effect


class PurchaseService:
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

    def _build(
        self,
        purchase_id: str,
        date: str,
        type: str,
        supplier: str,
        amount: float,
        paid_amount: float,
        description: Optional[str],
        product_id: Optional[str],
        quantity: Optional[int],
    ) -> Purchase:
        if type not in PURCHASE_TYPES:
            raise ValidationError(f"Purchase type must be one of: {', '.join(PURCHASE_TYPES)}.")
        supplier = (supplier or "").strip()
        if not supplier:
            raise ValidationError("Supplier/Payee name is required.")
        amount = finite_amount(amount, "Total amount")
        paid = finite_amount(paid_amount or 0, "Paid amount")
        if amount <= 0:
            raise ValidationError("Total amount must be > 0.")
        if paid < 0:
            raise ValidationError("Paid amount cannot be negative.")
        if paid > amount:
            raise ValidationError("Paid amount cannot be greater than the total amount.")

        if type == PURCHASE_UTILITY:
            description = (description or "").strip()
            if not description:
                raise ValidationError("A brief description is required for utility expenses.")
            return Purchase(
                id=purchase_id,
                type=type,
                supplier=supplier,
                description=description,
                date=date,
                amount=amount,
                paid_amount=paid,
                status=status_for(amount, paid),
            )

        if not product_id:
            raise ValidationError("Please select a product for inventory purchases.")
        product = next((p for p in self.store.inventory if p.id == product_id), None)
        if not product:
            raise NotFoundError("Product not found.")
        if quantity is None:
            raise ValidationError("Quantity must be a whole number >= 1.")
        quantity = whole_quantity(quantity)
        return Purchase(
            id=purchase_id,
            type=type,
            supplier=supplier,
            description=product.name,
            date=date,
            amount=amount,
            paid_amount=paid,
            status=status_for(amount, paid),
            product_id=product.id,
            quantity=quantity,
            measurement=product.measurement,
        )

    def create_purchase(
        self,
        type: str,
        supplier: str,
        amount: float,
        paid_amount: float,
        description: Optional[str] = None,
        product_id: Optional[str] = None,
        quantity: Optional[int] = None,
    ) -> Purchase:
        """
        Inventory purchases restock ``product_id`` by ``quantity``;
        Utility purchases are plain expenses with a description.
        """
        purchase = self._build(
            time_derived_id(PURCHASE_PREFIX, (p.id for p in self.store.purchases), self.clock),
            self.today(),
            type, supplier, amount, paid_amount, description, product_id, quantity,
        )
        purchases = sorted([purchase, *self.store.purchases], key=lambda p: p.date, reverse=True)

        with self.uow_factory() as uow:
            uow.stage("purchases", purchases)
            if purchase.is_inventory:
                uow.stage("inventory", apply_stock_deltas(self.store.inventory, _stock_effect(purchase)))
        log.info(
            "purchase_created purchase_id=%s type=%s amount=%.2f paid=%.2f product=%s qty=%s",
            purchase.id, purchase.type, purchase.amount, purchase.paid_amount, purchase.product_id, purchase.quantity,
        )
        return purchase

    def update_purchase(
        self,
        purchase_id: str,
        type: str,
        supplier: str,
        amount: float,
        paid_amount: float,
        description: Optional[str] = None,
        product_id: Optional[str] = None,
        quantity: Optional[int] = None,
    ) -> Purchase:
        original = self.find_purchase(purchase_id)
        if not original:
            raise NotFoundError("Purchase not found.")

        updated = self._build(
            original.id, original.date,
            type, supplier, amount, paid_amount, description, product_id, quantity,
        )
        deltas = _stock_effect(updated)
        deltas.subtract(_stock_effect(original))

        with self.uow_factory() as uow:
            uow.stage("purchases", [updated if p.id == purchase_id else p for p in self.store.purchases])
            if any(deltas.values()):
                uow.stage("inventory", apply_stock_deltas(self.store.inventory, deltas))
        log.info("purchase_updated purchase_id=%s type=%s amount=%.2f", updated.id, updated.type, updated.amount)
        return updated

    def delete_purchase(self, purchase_id: str) -> bool:
        purchase = self.find_purchase(purchase_id)
        if not purchase:
            log.warning("purchase_delete_ignored purchase_id=%s reason=not_found", purchase_id)
            return False

        reversal = {pid: -qty for pid, qty in _stock_effect(purchase).items()}
        with self.uow_factory() as uow:
            uow.stage("purchases", [p for p in self.store.purchases if p.id != purchase_id])
            if reversal:
                uow.stage("inventory", apply_stock_deltas(self.store.inventory, reversal))
        log.info("purchase_deleted purchase_id=%s", purchase_id)
        return True

    def list_purchases(self) -> list[Purchase]:
        return list(self.store.purchases)

    def find_purchase(self, purchase_id: str) -> Optional[Purchase]:
        for p in self.store.purchases:
            if p.id == purchase_id:
                return p
        return None

    def get_purchase(self, purchase_id: str) -> Purchase:
        p = self.find_purchase(purchase_id)
        if not p:
            raise NotFoundError("Purchase not found.")
        return p

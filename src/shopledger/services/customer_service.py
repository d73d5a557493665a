from __future__ import annotations

import logging
from dataclasses import replace
from typing import Callable, Optional

from shopledger.domain.errors import DuplicateError, NotFoundError, ValidationError
from shopledger.domain.identifiers import CUSTOMER_PREFIX, next_sequential_id
from shopledger.domain.models import NOT_AVAILABLE, Customer, CustomerSummary
from shopledger.domain.rules import is_outstanding
from shopledger.repositories.unit_of_work import StoreUnitOfWork, UnitOfWork

log = logging.getLogger(__name__)


class CustomerService:
    def __init__(self, store, uow_factory: Callable[[], UnitOfWork] | None = None):
        self.store = store
        self.uow_factory = uow_factory or (lambda: StoreUnitOfWork(store))

    # ---------- Identity ----------
    def list_customers(self) -> list[Customer]:
        return list(self.store.customers)

    def find_customer(self, customer_id: str) -> Optional[Customer]:
        for c in self.store.customers:
            if c.id == customer_id:
                return c
        return None

    def get_customer(self, customer_id: str) -> Customer:
        c = self.find_customer(customer_id)
        if not c:
            raise NotFoundError("Customer not found.")
        return c

    def search(self, text: str) -> list[Customer]:
        needle = (text or "").strip().lower()
        return [c for c in self.store.customers if needle in c.name.lower() or needle in c.phone.lower()]

    def _validate(self, name: str, phone: str, address: str, exclude_id: str | None = None) -> tuple[str, str, str]:
        name = (name or "").strip()
        phone = (phone or "").strip()
        address = (address or "").strip()
        if not name or not phone or not address:
            raise ValidationError("Name, phone and address are required.")
        if any(c.phone == phone and c.id != exclude_id for c in self.store.customers):
            raise DuplicateError("This phone number is already registered to another customer.")
        return name, phone, address

    def add_customer(self, name: str, phone: str, address: str) -> Customer:
        name, phone, address = self._validate(name, phone, address)
        customer = Customer(
            id=next_sequential_id(CUSTOMER_PREFIX, (c.id for c in self.store.customers)),
            name=name,
            phone=phone,
            address=address,
        )
        with self.uow_factory() as uow:
            uow.stage("customers", [*self.store.customers, customer])
        log.info("customer_added customer_id=%s", customer.id)
        return customer

    def add_customers(self, rows: list[tuple[str, str, str]]) -> list[Customer]:
        """Add several customers in one commit; used by bulk import."""
        customers = list(self.store.customers)
        added = []
        for name, phone, address in rows:
            customer = Customer(
                id=next_sequential_id(CUSTOMER_PREFIX, (c.id for c in customers)),
                name=name.strip(),
                phone=phone.strip(),
                address=address.strip(),
            )
            customers.append(customer)
            added.append(customer)
        with self.uow_factory() as uow:
            uow.stage("customers", customers)
        log.info("customers_imported count=%s", len(added))
        return added

    def update_customer(self, customer_id: str, name: str, phone: str, address: str) -> Customer:
        self.get_customer(customer_id)
        name, phone, address = self._validate(name, phone, address, exclude_id=customer_id)
        updated = None
        customers = []
        for c in self.store.customers:
            if c.id == customer_id:
                updated = replace(c, name=name, phone=phone, address=address)
                customers.append(updated)
            else:
                customers.append(c)
        with self.uow_factory() as uow:
            uow.stage("customers", customers)
        return updated

    def delete_customer(self, customer_id: str) -> bool:
        """Remove the customer together with their sales and payments.

        Stock consumed by the removed sales is not restored.
        """
        if not self.find_customer(customer_id):
            return False
        with self.uow_factory() as uow:
            uow.stage("customers", [c for c in self.store.customers if c.id != customer_id])
            uow.stage("sales", [s for s in self.store.sales if s.customer_id != customer_id])
            uow.stage("payments", [p for p in self.store.payments if p.customer_id != customer_id])
        log.info("customer_deleted customer_id=%s", customer_id)
        return True

    # ---------- Aggregates ----------
    def summaries(self) -> list[CustomerSummary]:
        """Due amount, last purchase and due-since for every customer.

        Recomputed from the sales list on each call; nothing is cached.
        """
        stats = {c.id: [0.0, NOT_AVAILABLE, NOT_AVAILABLE] for c in self.store.customers}

        for sale in self.store.sales:
            entry = stats.get(sale.customer_id)
            if entry is None:
                continue
            if is_outstanding(sale.amount, sale.paid_amount):
                entry[0] += sale.amount - sale.paid_amount
                if entry[2] == NOT_AVAILABLE or sale.date < entry[2]:
                    entry[2] = sale.date
            if entry[1] == NOT_AVAILABLE or sale.date > entry[1]:
                entry[1] = sale.date

        out = []
        for c in self.store.customers:
            due, last_purchase, due_since = stats[c.id]
            out.append(
                CustomerSummary(
                    customer=c,
                    due_amount=due,
                    last_purchase=last_purchase,
                    due_since=due_since if due > 0 else NOT_AVAILABLE,
                )
            )
        return out

    def summary(self, customer_id: str) -> CustomerSummary:
        self.get_customer(customer_id)
        return next(s for s in self.summaries() if s.customer.id == customer_id)

    def total_due(self) -> float:
        return sum(s.due_amount for s in self.summaries())

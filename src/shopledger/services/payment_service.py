from __future__ import annotations

import logging
import time
from dataclasses import replace
from typing import Callable

from shopledger.domain.errors import NotFoundError, ValidationError
from shopledger.domain.identifiers import PAYMENT_PREFIX, time_derived_id
from shopledger.domain.models import STATUS_DUE, STATUS_PAID, Payment, PaymentResult
from shopledger.domain.rules import EPSILON, finite_amount, today_iso
from shopledger.repositories.unit_of_work import StoreUnitOfWork, UnitOfWork

log = logging.getLogger("shopledger.payments")


class PaymentService:
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

    def record_payment(self, customer_id: str, amount: float, method: str = "Cash") -> PaymentResult:
        """Record a customer payment and settle their Due sales oldest first.

        Each Due sale, ordered by date (ties keep their stored order),
        absorbs ``min(remaining, sale due)``. Whatever is left once every
        Due sale is settled stays on the payment record only; it is not
        carried forward as credit.
        """
        amount = finite_amount(amount, "Amount")
        if amount <= 0:
            raise ValidationError("Amount must be a positive number.")
        if not any(c.id == customer_id for c in self.store.customers):
            raise NotFoundError("Customer not found.")

        payment = Payment(
            id=time_derived_id(PAYMENT_PREFIX, (p.id for p in self.store.payments), self.clock),
            customer_id=customer_id,
            date=self.today(),
            amount=amount,
            method=(method or "Cash").strip() or "Cash",
        )

        open_sales = sorted(
            (s for s in self.store.sales if s.customer_id == customer_id and s.status == STATUS_DUE),
            key=lambda s: s.date,
        )
        remaining = amount
        settled = {}
        allocations: list[tuple[str, float]] = []
        for sale in open_sales:
            if remaining <= EPSILON:
                break
            applied = min(remaining, sale.amount - sale.paid_amount)
            paid = sale.paid_amount + applied
            status = STATUS_PAID if (sale.amount - paid) < EPSILON else sale.status
            settled[sale.id] = replace(sale, paid_amount=paid, status=status)
            allocations.append((sale.id, applied))
            remaining -= applied

        with self.uow_factory() as uow:
            uow.stage("payments", [*self.store.payments, payment])
            if settled:
                uow.stage("sales", [settled.get(s.id, s) for s in self.store.sales])

        unapplied = remaining if remaining > EPSILON else 0.0
        log.info(
            "payment_recorded payment_id=%s customer=%s amount=%.2f sales_touched=%s unapplied=%.2f",
            payment.id, customer_id, amount, len(allocations), unapplied,
        )
        return PaymentResult(payment=payment, allocations=allocations, unapplied=unapplied)

    def list_payments(self) -> list[Payment]:
        return list(self.store.payments)

    def payments_for_customer(self, customer_id: str) -> list[Payment]:
        return [p for p in self.store.payments if p.customer_id == customer_id]

from __future__ import annotations

import time
from dataclasses import dataclass
from pathlib import Path
from typing import Callable

from shopledger.domain.rules import today_iso
from shopledger.repositories.sqlite_repo import SqliteRepository
from shopledger.repositories.unit_of_work import LedgerStore
from shopledger.services.customer_service import CustomerService
from shopledger.services.excel_service import ExcelService
from shopledger.services.inventory_service import InventoryService
from shopledger.services.payment_service import PaymentService
from shopledger.services.purchase_service import PurchaseService
from shopledger.services.reporting_service import ReportingService
from shopledger.services.sales_service import SalesService
from shopledger.services.shop_service import ShopService


@dataclass(frozen=True)
class AppContainer:
    repo: SqliteRepository
    store: LedgerStore
    inventory: InventoryService
    customers: CustomerService
    sales: SalesService
    purchases: PurchaseService
    payments: PaymentService
    shop: ShopService
    reporting: ReportingService
    excel: ExcelService


def build_container(
    db_path: Path | str,
    today: Callable[[], str] = today_iso,
    clock: Callable[[], float] = time.time,
) -> AppContainer:
    repo = SqliteRepository(db_path)
    repo.init_db()
    store = LedgerStore(repo).load()

    inventory = InventoryService(store)
    customers = CustomerService(store)
    sales = SalesService(store, today=today, clock=clock)
    purchases = PurchaseService(store, today=today, clock=clock)
    payments = PaymentService(store, today=today, clock=clock)
    shop = ShopService(store)
    reporting = ReportingService(store)
    excel = ExcelService(store, customers)

    return AppContainer(
        repo=repo,
        store=store,
        inventory=inventory,
        customers=customers,
        sales=sales,
        purchases=purchases,
        payments=payments,
        shop=shop,
        reporting=reporting,
        excel=excel,
    )

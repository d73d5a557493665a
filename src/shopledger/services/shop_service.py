from __future__ import annotations

from typing import Callable, Optional

from shopledger.domain.errors import ValidationError
from shopledger.domain.models import ShopInfo
from shopledger.repositories.sqlite_repo import SHOP_INFO_KEY
from shopledger.repositories.unit_of_work import StoreUnitOfWork, UnitOfWork


class ShopService:
    def __init__(self, store, uow_factory: Callable[[], UnitOfWork] | None = None):
        self.store = store
        self.uow_factory = uow_factory or (lambda: StoreUnitOfWork(store))

    def get_shop_info(self) -> ShopInfo:
        return self.store.shop_info

    def update_shop_info(self, name: str, address: str, contact: str, logo: Optional[str] = None) -> ShopInfo:
        name = (name or "").strip()
        if not name:
            raise ValidationError("Shop name is required.")
        info = ShopInfo(name=name, address=(address or "").strip(), contact=(contact or "").strip(), logo=logo)
        with self.uow_factory() as uow:
            uow.stage(SHOP_INFO_KEY, info)
        return info

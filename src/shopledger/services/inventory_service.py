from __future__ import annotations

import logging
from dataclasses import replace
from typing import Callable, Optional

from shopledger.domain.errors import DuplicateError, NotFoundError, ValidationError
from shopledger.domain.identifiers import PRODUCT_PREFIX, next_sequential_id
from shopledger.domain.models import Product
from shopledger.domain.rules import finite_amount
from shopledger.repositories.unit_of_work import StoreUnitOfWork, UnitOfWork

log = logging.getLogger(__name__)


def _whole_stock(value) -> int:
    stock = finite_amount(value, "Stock")
    if stock != int(stock) or stock < 0:
        raise ValidationError("Stock must be a whole number >= 0.")
    return int(stock)


class InventoryService:
    def __init__(self, store, uow_factory: Callable[[], UnitOfWork] | None = None):
        self.store = store
        self.uow_factory = uow_factory or (lambda: StoreUnitOfWork(store))

    def list_products(self) -> list[Product]:
        return list(self.store.inventory)

    def find_product(self, product_id: str) -> Optional[Product]:
        for p in self.store.inventory:
            if p.id == product_id:
                return p
        return None

    def get_product(self, product_id: str) -> Product:
        p = self.find_product(product_id)
        if not p:
            raise NotFoundError("Product not found.")
        return p

    def _validate(self, name: str, category: str, measurement: str, price: float, stock: Optional[int], exclude_id: str | None = None):
        name = (name or "").strip()
        category = (category or "").strip()
        measurement = (measurement or "").strip()
        if len(name) < 2:
            raise ValidationError("Product name must be at least 2 characters.")
        if not category:
            raise ValidationError("Category is required.")
        if not measurement:
            raise ValidationError("Measurement unit is required (e.g., pcs, kg, L).")
        price = finite_amount(price, "Price")
        if price < 0:
            raise ValidationError("Price must be >= 0.")
        if stock is not None:
            stock = _whole_stock(stock)
        for p in self.store.inventory:
            if p.id != exclude_id and p.name.strip().lower() == name.lower():
                raise DuplicateError("A product with this name already exists.")
        return name, category, measurement, price, stock

    def add_product(self, name: str, category: str, measurement: str, price: float, stock: Optional[int]) -> Product:
        """``stock=None`` registers a service, which never carries inventory."""
        name, category, measurement, price, stock = self._validate(name, category, measurement, price, stock)
        product = Product(
            id=next_sequential_id(PRODUCT_PREFIX, (p.id for p in self.store.inventory)),
            name=name,
            category=category,
            measurement=measurement,
            price=price,
            stock=stock,
        )
        with self.uow_factory() as uow:
            uow.stage("inventory", [product, *self.store.inventory])
        log.info("product_added product_id=%s service=%s", product.id, product.is_service)
        return product

    def update_product(self, product_id: str, name: str, category: str, measurement: str, price: float, stock: Optional[int]) -> Product:
        self.get_product(product_id)
        name, category, measurement, price, stock = self._validate(
            name, category, measurement, price, stock, exclude_id=product_id
        )
        updated = None
        products = []
        for p in self.store.inventory:
            if p.id == product_id:
                updated = replace(p, name=name, category=category, measurement=measurement, price=price, stock=stock)
                products.append(updated)
            else:
                products.append(p)
        with self.uow_factory() as uow:
            uow.stage("inventory", products)
        return updated

    def delete_product(self, product_id: str) -> None:
        self.get_product(product_id)
        with self.uow_factory() as uow:
            uow.stage("inventory", [p for p in self.store.inventory if p.id != product_id])
        log.info("product_deleted product_id=%s", product_id)

    def set_stock(self, product_id: str, new_stock: int) -> Product:
        product = self.get_product(product_id)
        if product.is_service:
            raise ValidationError("Services do not track stock.")
        updated = replace(product, stock=_whole_stock(new_stock))
        with self.uow_factory() as uow:
            uow.stage("inventory", [updated if p.id == product_id else p for p in self.store.inventory])
        log.info("stock_adjusted product_id=%s old=%s new=%s", product_id, product.stock, updated.stock)
        return updated

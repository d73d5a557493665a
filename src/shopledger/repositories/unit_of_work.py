from __future__ import annotations

import logging
from dataclasses import asdict, dataclass, field
from typing import Any, Protocol

from shopledger.domain.models import ShopInfo
from shopledger.repositories.serializers import CODECS, shop_info_from_row
from shopledger.repositories.sqlite_repo import COLLECTION_KEYS, SHOP_INFO_KEY

log = logging.getLogger(__name__)

DEFAULT_SHOP_INFO = ShopInfo(name="My Shop", address="", contact="", logo=None)


class LedgerStore:
    """In-memory snapshot of every collection, owned by the application root.

    Services read the current lists straight from the attributes and write
    through a ``StoreUnitOfWork``; nothing else mutates them.
    """

    def __init__(self, repo):
        self.repo = repo
        self.customers: list = []
        self.inventory: list = []
        self.sales: list = []
        self.purchases: list = []
        self.payments: list = []
        self.shop_info: ShopInfo = DEFAULT_SHOP_INFO

    def load(self) -> "LedgerStore":
        for key in COLLECTION_KEYS:
            decode, _encode = CODECS[key]
            setattr(self, key, [decode(r) for r in self.repo.load_collection(key)])
        record = self.repo.load_record(SHOP_INFO_KEY)
        self.shop_info = shop_info_from_row(record) if record else DEFAULT_SHOP_INFO
        log.info(
            "store_loaded customers=%s products=%s sales=%s purchases=%s payments=%s",
            len(self.customers), len(self.inventory), len(self.sales), len(self.purchases), len(self.payments),
        )
        return self

    def _document(self, key: str, value: Any):
        if key == SHOP_INFO_KEY:
            return asdict(value)
        _decode, encode = CODECS[key]
        return [encode(x) for x in value]

    def commit(self, changes: dict[str, Any]) -> None:
        """Persist ``changes`` in one write, then swap them into memory.

        If encoding or the write fails, memory keeps the previous values.
        """
        self.repo.save_documents({key: self._document(key, value) for key, value in changes.items()})
        for key, value in changes.items():
            setattr(self, key, value)


class UnitOfWork(Protocol):
    def __enter__(self) -> "UnitOfWork": ...
    def __exit__(self, exc_type, exc, tb) -> None: ...
    def stage(self, key: str, value: Any) -> None: ...


@dataclass
class StoreUnitOfWork:
    """Stages replacement collections and commits them together.

    On a clean exit the staged values are saved and then replace the
    store's collections; if the block or the save raises, the store is
    left untouched.
    """

    store: LedgerStore
    staged: dict[str, Any] = field(default_factory=dict)

    def __enter__(self) -> "StoreUnitOfWork":
        self.staged = {}
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        staged, self.staged = self.staged, {}
        if exc_type is not None or not staged:
            return None
        self.store.commit(staged)
        return None

    def stage(self, key: str, value: Any) -> None:
        if key != SHOP_INFO_KEY and key not in COLLECTION_KEYS:
            raise KeyError(f"Unknown collection: {key}")
        self.staged[key] = value if key == SHOP_INFO_KEY else list(value)

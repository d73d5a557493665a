import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))


class FixedDate:
    """Stands in for ``today``; move ``value`` to date later records."""

    def __init__(self, value: str = "2024-03-01"):
        self.value = value

    def __call__(self) -> str:
        return self.value


def make_container(tmp_path: Path, today: str = "2024-03-01", name: str = "ledger.db"):
    from shopledger.application.container import build_container

    clock = FixedDate(today)
    return build_container(tmp_path / name, today=clock), clock


def seed_shop(container):
    """One customer, one stocked product (10 pcs) and one service."""
    customer = container.customers.add_customer("Rahim Uddin", "01711000001", "12 Station Road")
    product = container.inventory.add_product("Rice 5kg", "Grocery", "bag", 100.0, 10)
    service = container.inventory.add_product("Milling", "Service", "job", 50.0, None)
    return customer, product, service

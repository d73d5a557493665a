from .inventory_service import InventoryService
from .customer_service import CustomerService
from .sales_service import SalesService
from .purchase_service import PurchaseService
from .payment_service import PaymentService
from .shop_service import ShopService
from .reporting_service import ReportingService
from .excel_service import ExcelService

__all__ = [
    "InventoryService",
    "CustomerService",
    "SalesService",
    "PurchaseService",
    "PaymentService",
    "ShopService",
    "ReportingService",
    "ExcelService",
]

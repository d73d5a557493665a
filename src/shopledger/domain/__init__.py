from .models import Product, Customer, SaleItem, Sale, Purchase, Payment, ShopInfo, CustomerSummary, PaymentResult
from .errors import ValidationError, DuplicateError, NotFoundError, InsufficientStockError

__all__ = [
    "Product",
    "Customer",
    "SaleItem",
    "Sale",
    "Purchase",
    "Payment",
    "ShopInfo",
    "CustomerSummary",
    "PaymentResult",
    "ValidationError",
    "DuplicateError",
    "NotFoundError",
    "InsufficientStockError",
]

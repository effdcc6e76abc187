from pavilo.models.stored import StoredValue
from pavilo.models.records import (
    AppPreferencesData,
    BusinessSettings,
    Customer,
    CustomerSnapshot,
    Invoice,
    InvoiceStatus,
    LineItem,
    PaymentMethod,
    PaymentRecord,
    Product,
    SubscriptionRequest,
)

__all__ = [
    "StoredValue",
    "AppPreferencesData",
    "BusinessSettings",
    "Customer",
    "CustomerSnapshot",
    "Invoice",
    "InvoiceStatus",
    "LineItem",
    "PaymentMethod",
    "PaymentRecord",
    "Product",
    "SubscriptionRequest",
]

from .auth import User
from .catalog import Category, Product, City, Depot, DepotProductVariant, Location, AreaMaster
from .partners import Agency, Supervisor, Vendor
from .members import Member, DeliveryAddress, WalletTransaction, Lead
from .subscriptions import ProductOrder, Subscription, DeliveryScheduleEntry
from .inventory import (
    StockLedger,
    Transfer,
    TransferDetail,
    Purchase,
    PurchaseDetail,
    Wastage,
    WastageDetail,
    DocumentSequence,
)
from .procurement import VendorOrder, VendorOrderItem, PurchasePayment, PurchasePaymentDetail

__all__ = [
    'User',
    'Category', 'Product', 'City', 'Depot', 'DepotProductVariant', 'Location', 'AreaMaster',
    'Agency', 'Supervisor', 'Vendor',
    'Member', 'DeliveryAddress', 'WalletTransaction', 'Lead',
    'ProductOrder', 'Subscription', 'DeliveryScheduleEntry',
    'StockLedger', 'Transfer', 'TransferDetail', 'Purchase', 'PurchaseDetail',
    'Wastage', 'WastageDetail', 'DocumentSequence',
    'VendorOrder', 'VendorOrderItem', 'PurchasePayment', 'PurchasePaymentDetail',
]

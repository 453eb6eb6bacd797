# receipt_tracker/models/__init__.py
from receipt_tracker.models.store_models import Store
from receipt_tracker.models.supplier_models import Supplier, DiscountTier
from receipt_tracker.models.purchase_models import Purchase, PurchaseSupplier, PurchaseReceipt, PurchaseStatus
from receipt_tracker.models.payment_models import Payment
from receipt_tracker.models.recalculation_models import PendingRecalculation

from .setup import setup_observability
from .metrics import (
    storefront_orders_total,
    storefront_order_create_duration_seconds,
    storefront_order_cancellations_total,
    storefront_payment_verifications_total,
    storefront_refunds_total
)

from prometheus_client import Counter, Histogram

# Business Metrics
storefront_orders_total = Counter(
    "storefront_orders_total",
    "Order creation attempts",
    ["status"]  # Labels: 'created', 'failed'
)

storefront_order_create_duration_seconds = Histogram(
    "storefront_order_create_duration_seconds",
    "Order creation transaction duration in seconds"
)

storefront_order_cancellations_total = Counter(
    "storefront_order_cancellations_total",
    "Orders cancelled by customers"
)

storefront_payment_verifications_total = Counter(
    "storefront_payment_verifications_total",
    "Payment verification attempts",
    ["outcome"]  # Labels: 'paid', 'invalid_signature', 'already_paid', 'not_payable', 'not_captured', 'amount_mismatch', 'conflict'
)

storefront_refunds_total = Counter(
    "storefront_refunds_total",
    "Refunds processed",
    ["kind"]  # Labels: 'full', 'partial'
)

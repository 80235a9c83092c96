from prometheus_client import Counter, Histogram, Gauge

# Business Metrics
food_orders_created_total = Counter(
    "food_orders_created_total",
    "Total orders placed",
    ["payment_method"] # Labels: 'cash', 'card', 'upi'
)

food_order_transitions_total = Counter(
    "food_order_transitions_total",
    "Order status transitions applied",
    ["status", "source"] # source: 'scheduler' or 'user'
)

food_checkout_total = Counter(
    "food_checkout_total",
    "Cart checkouts processed",
    ["status"] # Labels: 'success', 'failed'
)

food_scheduler_tick_duration_seconds = Histogram(
    "food_scheduler_tick_duration_seconds",
    "Duration of one order status scheduler tick"
)

food_scheduler_failures_total = Counter(
    "food_scheduler_failures_total",
    "Orders the scheduler failed to persist during a tick"
)

food_active_carts = Gauge(
    "food_active_carts",
    "Number of cart sessions holding at least one line"
)

food_saga_compensation_total = Counter(
    "food_saga_compensation_total",
    "Total saga compensations triggered",
    ["step_name"] # Labels: 'create_order', 'clear_cart'
)

from .setup import setup_observability
from .metrics import (
    food_orders_created_total,
    food_order_transitions_total,
    food_checkout_total,
    food_scheduler_tick_duration_seconds,
    food_scheduler_failures_total,
    food_active_carts,
    food_saga_compensation_total
)

"""
Order lifecycle rules.

Two independent state machines live on an order:

* fulfilment status, moved forward only by the status scheduler, with a single
  user-initiated side branch (``pending -> cancelled``);
* payment status, moved by payment confirmation, the owner's payment updates
  and the scheduler on delivery.

Everything here is pure; persistence and authorization live in the service.
"""
from datetime import timedelta
from enum import Enum


class OrderStatus(str, Enum):
    PENDING = "pending"
    PREPARING = "preparing"
    READY = "ready"
    OUT_FOR_DELIVERY = "out_for_delivery"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


class PaymentStatus(str, Enum):
    PENDING = "pending"
    PAID = "paid"
    FAILED = "failed"
    REFUNDED = "refunded"


class PaymentMethod(str, Enum):
    CASH = "cash"
    CARD = "card"
    UPI = "upi"


VALID_STATUS_TRANSITIONS = {
    OrderStatus.PENDING: (OrderStatus.PREPARING, OrderStatus.CANCELLED),
    OrderStatus.PREPARING: (OrderStatus.READY,),
    OrderStatus.READY: (OrderStatus.OUT_FOR_DELIVERY,),
    OrderStatus.OUT_FOR_DELIVERY: (OrderStatus.DELIVERED,),
    OrderStatus.DELIVERED: (),
    OrderStatus.CANCELLED: (),
}

VALID_PAYMENT_TRANSITIONS = {
    PaymentStatus.PENDING: (PaymentStatus.PAID, PaymentStatus.FAILED),
    PaymentStatus.FAILED: (PaymentStatus.PENDING, PaymentStatus.PAID),
    PaymentStatus.PAID: (PaymentStatus.REFUNDED,),
    PaymentStatus.REFUNDED: (),
}

IN_FLIGHT_STATUSES = (
    OrderStatus.PENDING,
    OrderStatus.PREPARING,
    OrderStatus.READY,
    OrderStatus.OUT_FOR_DELIVERY,
)

# Forward step -> minimum time since creation (not since the previous step)
ADVANCE_THRESHOLDS = {
    OrderStatus.PENDING: (OrderStatus.PREPARING, timedelta(minutes=5)),
    OrderStatus.PREPARING: (OrderStatus.READY, timedelta(minutes=10)),
    OrderStatus.READY: (OrderStatus.OUT_FOR_DELIVERY, timedelta(minutes=15)),
    OrderStatus.OUT_FOR_DELIVERY: (OrderStatus.DELIVERED, timedelta(minutes=25)),
}


def can_transition(current: str, target: str) -> bool:
    try:
        return OrderStatus(target) in VALID_STATUS_TRANSITIONS[OrderStatus(current)]
    except ValueError:
        return False


def can_transition_payment(current: str, target: str) -> bool:
    try:
        return PaymentStatus(target) in VALID_PAYMENT_TRANSITIONS[PaymentStatus(current)]
    except ValueError:
        return False


def is_terminal(status: str) -> bool:
    return not VALID_STATUS_TRANSITIONS[OrderStatus(status)]


def next_status(current: str, elapsed: timedelta) -> OrderStatus | None:
    """The single forward step due after ``elapsed``, or None.

    At most one step is returned even if several thresholds have passed; a
    lagging order catches up one step per scheduler tick.
    """
    rule = ADVANCE_THRESHOLDS.get(OrderStatus(current))
    if rule is None:
        return None
    target, threshold = rule
    if elapsed >= threshold:
        return target
    return None


def payment_status_on_delivery(current: str) -> str:
    # Cash and unsettled payments are collected on delivery
    if current in (PaymentStatus.PENDING, PaymentStatus.FAILED):
        return PaymentStatus.PAID.value
    return current

# railfood/domain/status.py
"""
Order and COD payment state machines.

Both are pure functions of explicit inputs (current state, role) so the same
tables drive the actions a dashboard offers and the check done right before
the update request is sent.
"""
from enum import Enum
from typing import FrozenSet

from railfood.domain.errors import TransitionNotAllowed
from railfood.domain.schemas import OrderStatus, PaymentMethod, PaymentStatus, Role


class Bucket(str, Enum):
    ACTIVE = "active"
    HISTORICAL = "historical"


ACTIVE_STATUSES: FrozenSet[OrderStatus] = frozenset(
    {
        OrderStatus.PLACED,
        OrderStatus.PENDING,
        OrderStatus.PREPARING,
        OrderStatus.DISPATCHED,
    }
)
TERMINAL_STATUSES: FrozenSet[OrderStatus] = frozenset(
    {OrderStatus.DELIVERED, OrderStatus.CANCELLED}
)

#jedyny krok do przodu z kazdego aktywnego statusu
_FORWARD = {
    OrderStatus.PLACED: OrderStatus.PREPARING,
    OrderStatus.PENDING: OrderStatus.PREPARING,
    OrderStatus.PREPARING: OrderStatus.DISPATCHED,
    OrderStatus.DISPATCHED: OrderStatus.DELIVERED,
}

_NOTHING: FrozenSet = frozenset()


def bucket_for(status: OrderStatus) -> Bucket:
    status = OrderStatus(status)
    return Bucket.HISTORICAL if status in TERMINAL_STATUSES else Bucket.ACTIVE


def next_allowed_statuses(current: OrderStatus, role: Role) -> FrozenSet[OrderStatus]:
    """
    Admin moze anulowac na kazdym nieterminalnym etapie.
    Vendor tylko przesuwa zamowienie do przodu.
    Klient nie zmienia statusu.
    """
    current = OrderStatus(current)
    forward = _FORWARD.get(current)
    if forward is None:
        return _NOTHING

    if role is Role.ADMIN:
        return frozenset({forward, OrderStatus.CANCELLED})
    if role is Role.VENDOR:
        return frozenset({forward})
    return _NOTHING


def ensure_transition(current: OrderStatus, requested: OrderStatus, role: Role) -> None:
    requested = OrderStatus(requested)
    if requested not in next_allowed_statuses(current, role):
        raise TransitionNotAllowed(OrderStatus(current).value, requested.value, role.value)


def next_allowed_payment_statuses(
    order_status: OrderStatus,
    payment_method: str,
    payment_status: PaymentStatus,
    role: Role,
) -> FrozenSet[PaymentStatus]:
    """COD settlement only: PENDING -> COMPLETED / FAILED, then nothing."""
    if payment_method != PaymentMethod.COD.value:
        return _NOTHING
    if OrderStatus(order_status) is OrderStatus.CANCELLED:
        return _NOTHING
    if PaymentStatus(payment_status) is not PaymentStatus.PENDING:
        return _NOTHING

    if role is Role.ADMIN:
        return frozenset({PaymentStatus.COMPLETED, PaymentStatus.FAILED})
    if role is Role.VENDOR:
        # endpoint vendora umie tylko zakonczyc platnosc
        return frozenset({PaymentStatus.COMPLETED})
    return _NOTHING


def ensure_payment_transition(
    order_status: OrderStatus,
    payment_method: str,
    payment_status: PaymentStatus,
    requested: PaymentStatus,
    role: Role,
) -> None:
    requested = PaymentStatus(requested)
    allowed = next_allowed_payment_statuses(order_status, payment_method, payment_status, role)
    if requested not in allowed:
        raise TransitionNotAllowed(PaymentStatus(payment_status).value, requested.value, role.value)

# tests/test_status.py
import pytest

from railfood.domain.errors import TransitionNotAllowed
from railfood.domain.schemas import OrderStatus, PaymentStatus, Role
from railfood.domain.status import (
    ACTIVE_STATUSES,
    TERMINAL_STATUSES,
    Bucket,
    bucket_for,
    ensure_payment_transition,
    ensure_transition,
    next_allowed_payment_statuses,
    next_allowed_statuses,
)


def test_every_status_lands_in_exactly_one_bucket():
    assert ACTIVE_STATUSES | TERMINAL_STATUSES == set(OrderStatus)
    assert not ACTIVE_STATUSES & TERMINAL_STATUSES
    for status in OrderStatus:
        expected = Bucket.HISTORICAL if status in TERMINAL_STATUSES else Bucket.ACTIVE
        assert bucket_for(status) is expected


@pytest.mark.parametrize(
    "current, expected",
    [
        (OrderStatus.PLACED, {OrderStatus.PREPARING, OrderStatus.CANCELLED}),
        (OrderStatus.PENDING, {OrderStatus.PREPARING, OrderStatus.CANCELLED}),
        (OrderStatus.PREPARING, {OrderStatus.DISPATCHED, OrderStatus.CANCELLED}),
        (OrderStatus.DISPATCHED, {OrderStatus.DELIVERED, OrderStatus.CANCELLED}),
        (OrderStatus.DELIVERED, set()),
        (OrderStatus.CANCELLED, set()),
    ],
)
def test_admin_moves_forward_or_cancels(current, expected):
    assert next_allowed_statuses(current, Role.ADMIN) == expected


def test_vendor_only_moves_forward():
    assert next_allowed_statuses(OrderStatus.PLACED, Role.VENDOR) == {OrderStatus.PREPARING}
    assert next_allowed_statuses(OrderStatus.DISPATCHED, Role.VENDOR) == {OrderStatus.DELIVERED}
    for status in OrderStatus:
        assert OrderStatus.CANCELLED not in next_allowed_statuses(status, Role.VENDOR)


def test_customer_cannot_change_status():
    for status in OrderStatus:
        assert next_allowed_statuses(status, Role.CUSTOMER) == set()


def test_terminal_statuses_allow_nothing_for_any_role():
    for role in Role:
        for status in TERMINAL_STATUSES:
            assert next_allowed_statuses(status, role) == set()


def test_skipping_a_step_is_rejected():
    # DISPATCHED -> PLACED albo PLACED -> DELIVERED
    with pytest.raises(TransitionNotAllowed):
        ensure_transition(OrderStatus.DISPATCHED, OrderStatus.PLACED, Role.ADMIN)
    with pytest.raises(TransitionNotAllowed) as exc:
        ensure_transition(OrderStatus.PLACED, OrderStatus.DELIVERED, Role.ADMIN)
    assert exc.value.current == "PLACED"
    assert exc.value.requested == "DELIVERED"


def test_vendor_cancel_is_rejected():
    with pytest.raises(TransitionNotAllowed):
        ensure_transition(OrderStatus.PREPARING, OrderStatus.CANCELLED, Role.VENDOR)


def test_allowed_transition_passes():
    ensure_transition(OrderStatus.PREPARING, OrderStatus.DISPATCHED, Role.VENDOR)
    ensure_transition("PREPARING", "CANCELLED", Role.ADMIN)


def test_cod_payment_transitions_per_role():
    assert next_allowed_payment_statuses(
        OrderStatus.DELIVERED, "COD", PaymentStatus.PENDING, Role.ADMIN
    ) == {PaymentStatus.COMPLETED, PaymentStatus.FAILED}
    assert next_allowed_payment_statuses(
        OrderStatus.DISPATCHED, "COD", PaymentStatus.PENDING, Role.VENDOR
    ) == {PaymentStatus.COMPLETED}
    assert next_allowed_payment_statuses(
        OrderStatus.DELIVERED, "COD", PaymentStatus.PENDING, Role.CUSTOMER
    ) == set()


def test_payment_transitions_end_after_settlement():
    for settled in (PaymentStatus.COMPLETED, PaymentStatus.FAILED):
        assert next_allowed_payment_statuses(
            OrderStatus.DELIVERED, "COD", settled, Role.ADMIN
        ) == set()


def test_online_and_cancelled_orders_have_no_payment_actions():
    assert next_allowed_payment_statuses(
        OrderStatus.DELIVERED, "RAZORPAY", PaymentStatus.PENDING, Role.ADMIN
    ) == set()
    assert next_allowed_payment_statuses(
        OrderStatus.CANCELLED, "COD", PaymentStatus.PENDING, Role.ADMIN
    ) == set()


def test_vendor_cannot_fail_cod_payment():
    with pytest.raises(TransitionNotAllowed):
        ensure_payment_transition(
            OrderStatus.DELIVERED, "COD", PaymentStatus.PENDING, PaymentStatus.FAILED, Role.VENDOR
        )


def test_no_status_transitions_to_itself():
    for role in Role:
        for status in OrderStatus:
            assert status not in next_allowed_statuses(status, role)


def test_vendor_actions_are_subset_of_admin_actions():
    for status in OrderStatus:
        vendor_allowed = next_allowed_statuses(status, Role.VENDOR)
        admin_allowed = next_allowed_statuses(status, Role.ADMIN)
        assert vendor_allowed <= admin_allowed
        if status in ACTIVE_STATUSES:
            # dokladnie jeden krok do przodu, bez anulowania
            assert len(vendor_allowed) == 1
            assert admin_allowed - vendor_allowed == {OrderStatus.CANCELLED}

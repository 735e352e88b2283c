"""Tests for the order status transition table"""
import pytest

from marketplace.models.order import OrderStatus
from marketplace.models.user import UserRole
from marketplace.services.order_state import (
    ALLOWED_TRANSITIONS,
    IN_REVIEW_STATUSES,
    TRANSITION_ROLES,
    InvalidTransitionError,
    TransitionNotPermittedError,
    allowed_next,
    derive_note,
    is_terminal,
    is_valid_transition,
    validate_transition,
)

HAPPY_PATH = [
    OrderStatus.PENDING_VERIFICATION,
    OrderStatus.SELLER_CONTACTED,
    OrderStatus.SELLER_ACCEPTED,
    OrderStatus.BUYER_CONTACTED,
    OrderStatus.BUYER_CONFIRMED,
    OrderStatus.CONFIRMED,
    OrderStatus.OUT_FOR_DELIVERY,
    OrderStatus.DELIVERED,
    OrderStatus.COMPLETED,
]


def test_every_status_has_an_entry():
    assert set(ALLOWED_TRANSITIONS) == set(OrderStatus)


def test_every_reachable_status_has_roles():
    targets = set().union(*ALLOWED_TRANSITIONS.values())
    assert targets <= set(TRANSITION_ROLES)


def test_happy_path_is_valid():
    for current, requested in zip(HAPPY_PATH, HAPPY_PATH[1:]):
        assert is_valid_transition(current, requested), (current, requested)


def test_created_only_moves_to_pending_verification():
    assert allowed_next(OrderStatus.CREATED) == {OrderStatus.PENDING_VERIFICATION}


@pytest.mark.parametrize("status", [OrderStatus.SELLER_REJECTED, OrderStatus.BUYER_REJECTED])
def test_party_rejections_end_in_rejected(status):
    assert allowed_next(status) == {OrderStatus.REJECTED}


def test_terminal_statuses():
    terminal = {s for s in OrderStatus if is_terminal(s)}
    assert terminal == {OrderStatus.COMPLETED, OrderStatus.REJECTED}


def test_cannot_skip_steps():
    assert not is_valid_transition(OrderStatus.PENDING_VERIFICATION, OrderStatus.CONFIRMED)
    assert not is_valid_transition(OrderStatus.CONFIRMED, OrderStatus.DELIVERED)


def test_cannot_reject_after_confirmation():
    assert not is_valid_transition(OrderStatus.CONFIRMED, OrderStatus.REJECTED)


def test_invalid_transition_names_both_statuses():
    with pytest.raises(InvalidTransitionError) as excinfo:
        validate_transition(OrderStatus.COMPLETED, OrderStatus.PENDING_VERIFICATION, UserRole.ADMIN)

    message = str(excinfo.value)
    assert "completed" in message
    assert "pending_verification" in message
    assert excinfo.value.current == OrderStatus.COMPLETED


def test_customer_cannot_verify():
    with pytest.raises(TransitionNotPermittedError):
        validate_transition(
            OrderStatus.PENDING_VERIFICATION, OrderStatus.SELLER_CONTACTED, UserRole.CUSTOMER
        )


def test_seller_advances_logistics_only():
    validate_transition(OrderStatus.CONFIRMED, OrderStatus.OUT_FOR_DELIVERY, UserRole.SELLER)
    validate_transition(OrderStatus.OUT_FOR_DELIVERY, OrderStatus.DELIVERED, UserRole.SELLER)
    with pytest.raises(TransitionNotPermittedError):
        validate_transition(OrderStatus.SELLER_CONTACTED, OrderStatus.SELLER_ACCEPTED, UserRole.SELLER)


@pytest.mark.parametrize("role", list(UserRole))
def test_any_role_may_complete(role):
    validate_transition(OrderStatus.DELIVERED, OrderStatus.COMPLETED, role)


def test_graph_is_checked_before_role():
    with pytest.raises(InvalidTransitionError):
        validate_transition(OrderStatus.CREATED, OrderStatus.OUT_FOR_DELIVERY, UserRole.CUSTOMER)


def test_in_review_statuses():
    assert IN_REVIEW_STATUSES == (
        OrderStatus.PENDING_VERIFICATION,
        OrderStatus.SELLER_CONTACTED,
        OrderStatus.SELLER_ACCEPTED,
        OrderStatus.BUYER_CONTACTED,
    )


def test_derive_note_priority():
    assert derive_note("manual", "reason", "seller", "buyer") == "manual"
    assert derive_note(None, "reason", "seller", "buyer") == "reason"
    assert derive_note(None, None, "seller", "buyer") == "seller"
    assert derive_note(None, "", None, "buyer") == "buyer"
    assert derive_note() is None

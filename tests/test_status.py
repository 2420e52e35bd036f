import pytest

from gymhub.domain import (
    PAYABLE_STATES,
    IllegalTransition,
    PaymentStatus,
    parse_status,
    transition,
)


@pytest.mark.parametrize(
    "current,target",
    [
        ("pending", "paid"),
        ("pending", "cancelled"),
        ("pending", "overdue"),
        ("overdue", "paid"),
        ("overdue", "pending"),
        ("cancelled", "paid"),
    ],
)
def test_legal_transitions(current, target):
    assert transition(current, target) is PaymentStatus(target)


@pytest.mark.parametrize("target", ["pending", "overdue", "cancelled"])
def test_paid_is_terminal(target):
    with pytest.raises(IllegalTransition) as exc:
        transition(PaymentStatus.PAID, target)
    assert exc.value.status_code == 400


def test_same_state_is_a_no_op():
    assert transition("paid", "paid") is PaymentStatus.PAID


def test_payable_states():
    assert PAYABLE_STATES == {
        PaymentStatus.PENDING,
        PaymentStatus.OVERDUE,
        PaymentStatus.CANCELLED,
    }


def test_parse_status_rejects_unknown_values():
    assert parse_status("refunded") is None
    assert parse_status("paid") is PaymentStatus.PAID

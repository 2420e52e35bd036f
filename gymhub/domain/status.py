"""Payment status state machine.

A payment starts ``pending`` (or ``paid`` when an admin records it directly).
``paid`` is terminal; the other states can be relabelled by an admin.
"""
import enum

from ..errors import ConflictError


class PaymentStatus(str, enum.Enum):
    PENDING = "pending"
    PAID = "paid"
    OVERDUE = "overdue"
    CANCELLED = "cancelled"


class PaymentType(str, enum.Enum):
    MEMBERSHIP = "membership"
    PERSONAL_TRAINING = "personal_training"
    PRODUCT = "product"
    OTHER = "other"


_TRANSITIONS = {
    PaymentStatus.PENDING: frozenset(
        {PaymentStatus.PAID, PaymentStatus.OVERDUE, PaymentStatus.CANCELLED}
    ),
    PaymentStatus.OVERDUE: frozenset(
        {PaymentStatus.PAID, PaymentStatus.PENDING, PaymentStatus.CANCELLED}
    ),
    PaymentStatus.CANCELLED: frozenset(
        {PaymentStatus.PAID, PaymentStatus.PENDING, PaymentStatus.OVERDUE}
    ),
    PaymentStatus.PAID: frozenset(),
}

# States an admin may mark as paid.
PAYABLE_STATES = frozenset(
    status for status, targets in _TRANSITIONS.items() if PaymentStatus.PAID in targets
)


class IllegalTransition(ConflictError):
    def __init__(self, current, target):
        super().__init__(
            f"Cannot change payment status from '{current.value}' to '{target.value}'"
        )
        self.current = current
        self.target = target


def parse_status(value):
    """Return the PaymentStatus for ``value`` or None when it is not a status."""
    try:
        return PaymentStatus(value)
    except ValueError:
        return None


def parse_type(value):
    try:
        return PaymentType(value)
    except ValueError:
        return None


def transition(current, target):
    current = PaymentStatus(current)
    target = PaymentStatus(target)
    if current is target:
        return target
    if target not in _TRANSITIONS[current]:
        raise IllegalTransition(current, target)
    return target

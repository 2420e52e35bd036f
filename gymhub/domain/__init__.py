from .status import (
    PAYABLE_STATES,
    IllegalTransition,
    PaymentStatus,
    PaymentType,
    parse_status,
    parse_type,
    transition,
)

__all__ = [
    "PAYABLE_STATES",
    "IllegalTransition",
    "PaymentStatus",
    "PaymentType",
    "parse_status",
    "parse_type",
    "transition",
]

from .users import User
from .catalog import MembershipPlan, Product, GymSettings
from .payments import Payment
from .counters import Counter
from .notifications import Notification

__all__ = [
    "User",
    "MembershipPlan",
    "Product",
    "GymSettings",
    "Payment",
    "Counter",
    "Notification",
]

"""Side effects of a payment becoming paid.

``apply_payment_success`` runs once per pending -> paid transition. The
callers guarantee that by gating the transition on a conditional update.
"""
import logging
from datetime import datetime
from decimal import Decimal

from dateutil.relativedelta import relativedelta

from ..domain import PaymentType
from ..extensions import db
from ..models import MembershipPlan, User
from . import notifications

logger = logging.getLogger(__name__)

PAYMENT_TITLE = "Payment Received"


def format_amount(amount):
    amount = Decimal(amount)
    if amount == amount.to_integral_value():
        return str(int(amount))
    return f"{amount:.2f}"


def effective_plan(payment, member):
    """The plan a membership payment applies to: the requested one, else the current one."""
    plan = None
    if payment.membership_plan_id:
        plan = db.session.get(MembershipPlan, payment.membership_plan_id)
    if plan is None:
        plan = member.membership_plan
    return plan


def extend_expiry(current_expiry, months, now=None):
    """Add ``months`` to whichever is later, now or the still-valid expiry."""
    if now is None:
        now = datetime.utcnow()
    base = current_expiry if current_expiry and current_expiry > now else now
    return base + relativedelta(months=months)


def _apply_membership(payment, member):
    plan = effective_plan(payment, member)

    if plan is not None and plan.is_add_on:
        member.has_personal_training = True
        return

    duration = plan.duration if plan is not None and plan.duration is not None else 1
    member.membership_expiry = extend_expiry(member.membership_expiry, duration)
    if payment.membership_plan_id and plan is not None:
        member.membership_plan_id = plan.id
        member.membership_type = plan.name
    logger.info(
        "Membership of user %s extended to %s by %s",
        member.id,
        member.membership_expiry.isoformat(),
        payment.invoice_number,
    )


def apply_payment_success(payment):
    """Apply the member effects of a paid payment and announce it.

    When the member has been deleted, a membership payment has nothing to
    act on: it is stamped as applied and no notification goes out. Other
    payment types still notify admins, but not the missing member.
    """
    member = db.session.get(User, payment.member_id)
    payment_type = PaymentType(payment.type)

    if member is None:
        logger.warning(
            "Member %s of payment %s no longer exists; skipping membership effects",
            payment.member_id,
            payment.invoice_number,
        )
    else:
        if payment_type is PaymentType.MEMBERSHIP:
            _apply_membership(payment, member)
        if payment_type is PaymentType.PERSONAL_TRAINING or (
            payment_type is PaymentType.MEMBERSHIP and payment.add_personal_training
        ):
            member.has_personal_training = True

    # stamped even without a member so the reconciler does not retry it
    payment.effects_applied_at = datetime.utcnow()
    db.session.commit()

    if member is None and payment_type is PaymentType.MEMBERSHIP:
        return
    _notify_payment_received(payment, member_exists=member is not None)


def _notify_payment_received(payment, member_exists=True):
    amount = format_amount(payment.amount)
    notifications.dispatch(
        notifications.notify_admins,
        PAYMENT_TITLE,
        f"Payment of ₹{amount} from {payment.member_name} ({payment.invoice_number}).",
        type="success",
        kind="payment",
        metadata={"paymentId": str(payment.id), "memberId": str(payment.member_id)},
    )
    if not member_exists:
        return
    notifications.dispatch(
        notifications.notify_member,
        payment.member_id,
        PAYMENT_TITLE,
        f"Your payment of ₹{amount} has been received ({payment.invoice_number}). Thank you!",
        type="success",
        kind="payment",
        link="/member/payments",
        metadata={"paymentId": str(payment.id)},
    )

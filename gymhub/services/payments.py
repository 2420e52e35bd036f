"""Payment lifecycle: order creation, verification, cancellation and admin entry.

Every status change that matters for money goes through a single
conditional UPDATE keyed on the prior status. Whichever request wins that
write owns the transition; the loser gets a conflict.
"""
import logging
from datetime import datetime, timedelta
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

from dateutil.parser import isoparse
from flask import current_app
from sqlalchemy import update

from ..domain import (
    PAYABLE_STATES,
    PaymentStatus,
    PaymentType,
    parse_status,
    parse_type,
    transition,
)
from ..errors import ConflictError, ForbiddenError, NotFoundError, ValidationError
from ..extensions import db
from ..models import MembershipPlan, Payment, Product, User
from .counters import next_invoice_number
from .effects import apply_payment_success
from .gateway import get_gateway
from .settings import get_settings_provider

logger = logging.getLogger(__name__)

ALREADY_COMPLETED = "Payment already completed"

# Largest value the Numeric(10, 2) amount column holds.
MAX_AMOUNT = Decimal("99999999.99")


def parse_id(value):
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str) and value.strip().isdigit():
        return int(value.strip())
    return None


def positive_amount(value):
    """Return ``value`` as a positive Decimal, or None.

    Amounts the payments table cannot store raise ValidationError.
    """
    if value is None or isinstance(value, bool):
        return None
    try:
        amount = Decimal(str(value))
    except (InvalidOperation, ValueError):
        return None
    if not amount.is_finite() or amount <= 0:
        return None
    check_amount_limit(amount)
    return amount


def check_amount_limit(amount):
    if amount > MAX_AMOUNT:
        raise ValidationError(f"amount must not exceed {MAX_AMOUNT}")


def to_minor_units(amount):
    return int((Decimal(amount) * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def _get(model, raw_id):
    pk = parse_id(raw_id)
    if pk is None:
        return None
    return db.session.get(model, pk)


def _active_plan(raw_id):
    plan = _get(MembershipPlan, raw_id)
    if plan is None or not plan.is_active:
        raise ValidationError("Invalid or inactive membership plan")
    return plan


def _get_member(member_id):
    member = _get(User, member_id)
    if member is None or member.role != "member":
        raise ValidationError("Member not found")
    return member


def _invoice_series():
    return current_app.config.get("INVOICE_SERIES", "paymentInvoice")


def _find_by_order(order_id):
    return db.session.execute(
        db.select(Payment)
        .filter_by(order_id=order_id)
        .execution_options(populate_existing=True)
    ).scalar_one_or_none()


def create_order(
    member_id,
    payment_type,
    membership_plan_id=None,
    add_personal_training=False,
    product_id=None,
    client_amount=None,
    settings_provider=None,
    gateway=None,
):
    """Open a pending checkout order for a member paying for themselves.

    The charge is computed from plan, product or settings prices; only
    ``other`` payments take the client's amount. Nothing is written (not even
    the invoice counter) until every check has passed.
    """
    ptype = parse_type(payment_type)
    if ptype is None:
        raise ValidationError("Invalid type")
    member = _get_member(member_id)

    if settings_provider is None:
        settings_provider = get_settings_provider()
    if gateway is None:
        gateway = get_gateway()

    add_pt = ptype is PaymentType.MEMBERSHIP and add_personal_training is True
    plan = None
    product = None

    if ptype is PaymentType.MEMBERSHIP:
        if membership_plan_id:
            plan = _active_plan(membership_plan_id)
        else:
            plan = member.membership_plan
            if plan is None:
                raise ValidationError("No current membership plan to renew")
        amount = Decimal(plan.price)
        if add_pt:
            amount += Decimal(settings_provider.personal_training_price())
    elif ptype is PaymentType.PRODUCT:
        if product_id in (None, ""):
            raise ValidationError("productId is required")
        product = _get(Product, product_id)
        if product is None:
            raise ValidationError("Product not found")
        amount = Decimal(product.price)
    elif ptype is PaymentType.PERSONAL_TRAINING:
        amount = Decimal(settings_provider.personal_training_price())
    else:
        amount = positive_amount(client_amount)
        if amount is None:
            raise ValidationError("amount must be a positive number")

    if amount <= 0:
        raise ValidationError("Amount must be positive")
    check_amount_limit(amount)

    sequence, invoice_number = next_invoice_number(_invoice_series())
    amount_minor = to_minor_units(amount)
    order_id = gateway.create_remote_order(
        amount_minor, gateway.currency, invoice_number, sequence=sequence
    )

    payment = Payment(
        member_id=member.id,
        member_name=member.name,
        amount=amount,
        type=ptype.value,
        status=PaymentStatus.PENDING.value,
        invoice_number=invoice_number,
        order_id=order_id,
        # a membership order without a plan id is a renewal of the current plan
        membership_plan_id=plan.id if membership_plan_id and plan is not None else None,
        add_personal_training=add_pt,
        product_id=product.id if product is not None else None,
    )
    db.session.add(payment)
    db.session.commit()
    logger.info(
        "Order %s opened for member %s: %s %s (%s)",
        order_id,
        member.id,
        amount,
        gateway.currency,
        invoice_number,
    )

    return {
        "orderId": order_id,
        "paymentId": str(payment.id),
        "amount": amount_minor,
        "currency": gateway.currency,
        "key": gateway.public_key(),
    }


def mark_order_paid(order_id, gateway_payment_id=None, gateway_signature=None):
    """Move the order from pending to paid. Returns False if another caller got there first."""
    values = {"status": PaymentStatus.PAID.value, "date": datetime.utcnow()}
    if gateway_payment_id:
        values["razorpay_payment_id"] = gateway_payment_id
    if gateway_signature:
        values["razorpay_signature"] = gateway_signature

    result = db.session.execute(
        update(Payment)
        .where(
            Payment.order_id == order_id,
            Payment.status == PaymentStatus.PENDING.value,
        )
        .values(**values)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        db.session.rollback()
        return False
    db.session.commit()
    return True


def verify_order(
    order_id,
    member_id,
    gateway_payment_id=None,
    gateway_signature=None,
    gateway=None,
):
    if not order_id:
        raise ValidationError("orderId is required")

    payment = _find_by_order(order_id)
    if payment is None:
        raise NotFoundError("Order not found")
    if payment.state is PaymentStatus.PAID:
        raise ConflictError(ALREADY_COMPLETED)
    if payment.member_id != member_id:
        raise ForbiddenError("You can only verify your own orders")
    if payment.state is PaymentStatus.CANCELLED:
        raise ConflictError("Order has been cancelled")
    if payment.state is not PaymentStatus.PENDING:
        raise ConflictError("Order is no longer pending")

    if gateway is None:
        gateway = get_gateway()
    if gateway.configured() and not gateway.verify_signature(
        order_id, gateway_payment_id, gateway_signature
    ):
        logger.warning("Signature check failed for order %s", order_id)
        raise ValidationError("Payment verification failed")

    if not mark_order_paid(order_id, gateway_payment_id, gateway_signature):
        raise ConflictError(ALREADY_COMPLETED)

    db.session.refresh(payment)
    logger.info("Order %s paid (%s)", order_id, payment.invoice_number)
    apply_payment_success(payment)
    return payment


def cancel_order(member_id, order_id):
    if not order_id:
        raise ValidationError("orderId is required")

    result = db.session.execute(
        update(Payment)
        .where(
            Payment.order_id == order_id,
            Payment.status == PaymentStatus.PENDING.value,
            Payment.member_id == member_id,
        )
        .values(status=PaymentStatus.CANCELLED.value)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        db.session.rollback()
        raise NotFoundError("Order not found, already completed, or not yours")
    db.session.commit()

    payment = _find_by_order(order_id)
    logger.info("Order %s cancelled by member %s", order_id, member_id)
    return {"paymentId": str(payment.id), "status": payment.status}


def create_manual_payment(data):
    """Record a payment entered by an admin (cash desk, invoices sent by hand)."""
    member_id = parse_id(data.get("memberId"))
    if member_id is None or data.get("amount") is None or not data.get("type"):
        raise ValidationError("memberId, amount and type are required")

    ptype = parse_type(data.get("type"))
    if ptype is None:
        raise ValidationError("Invalid type")
    amount = positive_amount(data.get("amount"))
    if amount is None:
        raise ValidationError("amount must be a positive number")
    status = parse_status(data.get("status") or PaymentStatus.PENDING.value)
    if status is None:
        raise ValidationError("Invalid status")

    member = _get_member(member_id)

    plan = None
    if ptype is PaymentType.MEMBERSHIP and data.get("membershipPlanId"):
        plan = _active_plan(data.get("membershipPlanId"))

    product = None
    if ptype is PaymentType.PRODUCT and data.get("productId"):
        product = _get(Product, data.get("productId"))
        if product is None:
            raise ValidationError("Product not found")

    due_date = None
    if data.get("dueDate"):
        try:
            due_date = isoparse(str(data["dueDate"])).replace(tzinfo=None)
        except ValueError:
            raise ValidationError("dueDate must be an ISO-8601 date")

    member_name = data.get("memberName")
    if not isinstance(member_name, str) or not member_name.strip():
        member_name = member.name

    _, invoice_number = next_invoice_number(_invoice_series())
    payment = Payment(
        member_id=member.id,
        member_name=member_name.strip(),
        amount=amount,
        type=ptype.value,
        status=status.value,
        date=datetime.utcnow(),
        due_date=due_date,
        invoice_number=invoice_number,
        membership_plan_id=plan.id if plan is not None else None,
        add_personal_training=(
            ptype is PaymentType.MEMBERSHIP and data.get("addPersonalTraining") is True
        ),
        product_id=product.id if product is not None else None,
    )
    db.session.add(payment)
    db.session.commit()
    logger.info("Manual payment %s recorded as %s", invoice_number, status.value)

    if status is PaymentStatus.PAID:
        apply_payment_success(payment)
    return payment


def update_payment_status(payment_id, status):
    payment = _get(Payment, payment_id)
    if payment is None:
        raise NotFoundError("Payment not found")
    if status is None:
        return payment

    target = parse_status(status)
    if target is None:
        raise ValidationError("Invalid status")
    current = payment.state
    transition(current, target)
    if target is current:
        return payment

    if target is PaymentStatus.PAID:
        allowed = [s.value for s in PAYABLE_STATES]
        values = {"status": target.value, "date": datetime.utcnow()}
    else:
        allowed = [current.value]
        values = {"status": target.value}

    result = db.session.execute(
        update(Payment)
        .where(Payment.id == payment.id, Payment.status.in_(allowed))
        .values(**values)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        db.session.rollback()
        raise ConflictError(
            ALREADY_COMPLETED
            if target is PaymentStatus.PAID
            else "Payment status changed, reload and try again"
        )
    db.session.commit()
    db.session.refresh(payment)
    logger.info(
        "Payment %s moved from %s to %s", payment.invoice_number, current.value, target.value
    )

    if target is PaymentStatus.PAID:
        apply_payment_success(payment)
    return payment


def list_payments(user):
    query = db.select(Payment).order_by(Payment.created_at.desc(), Payment.id.desc())
    if user.role != "admin":
        query = query.filter_by(member_id=user.id)
    return list(db.session.execute(query).scalars())


def reconcile_paid_payments(older_than_minutes=10):
    """Apply success effects to paid payments that never got them.

    Covers a crash between marking a payment paid and updating the member.
    Only payments paid before the grace period are touched, so requests
    still in flight are left alone.
    """
    cutoff = datetime.utcnow() - timedelta(minutes=older_than_minutes)
    pending_effects = list(
        db.session.execute(
            db.select(Payment)
            .filter(
                Payment.status == PaymentStatus.PAID.value,
                Payment.effects_applied_at.is_(None),
                Payment.date <= cutoff,
            )
            .order_by(Payment.id)
        ).scalars()
    )

    applied = 0
    for payment in pending_effects:
        try:
            apply_payment_success(payment)
        except Exception:
            db.session.rollback()
            logger.exception("Could not apply effects for %s", payment.invoice_number)
            continue
        applied += 1
        logger.info("Reconciled %s", payment.invoice_number)
    return applied

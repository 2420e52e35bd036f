from datetime import datetime, timedelta

from dateutil.relativedelta import relativedelta

from gymhub.extensions import db
from gymhub.models import User
from gymhub.services import payments as payment_service
from gymhub.services.effects import extend_expiry, format_amount


def pay(member_id, payment_type, **kwargs):
    order = payment_service.create_order(member_id, payment_type, **kwargs)
    return payment_service.verify_order(order["orderId"], member_id)


def test_early_renewal_keeps_remaining_days(app, make_user, plans):
    expiry = datetime.utcnow() + timedelta(days=10)
    member = make_user(membership_plan_id=plans["pro"].id, membership_expiry=expiry)

    pay(member.id, "membership")

    member = db.session.get(User, member.id)
    assert member.membership_expiry == expiry + relativedelta(months=1)


def test_lapsed_membership_restarts_from_now(app, make_user, plans):
    member = make_user(
        membership_plan_id=plans["pro"].id,
        membership_expiry=datetime.utcnow() - timedelta(days=40),
    )
    before = datetime.utcnow()

    pay(member.id, "membership")

    expiry = db.session.get(User, member.id).membership_expiry
    assert before + relativedelta(months=1) <= expiry
    assert expiry <= datetime.utcnow() + relativedelta(months=1)


def test_plan_switch_updates_plan_and_uses_its_duration(app, member, plans):
    old_expiry = member.membership_expiry

    pay(member.id, "membership", membership_plan_id=plans["elite"].id)

    member = db.session.get(User, member.id)
    assert member.membership_plan_id == plans["elite"].id
    assert member.membership_type == "Elite"
    assert member.membership_expiry == old_expiry + relativedelta(months=3)


def test_add_on_plan_leaves_membership_alone(app, member, plans):
    old_expiry = member.membership_expiry

    pay(member.id, "membership", membership_plan_id=plans["pt"].id)

    member = db.session.get(User, member.id)
    assert member.membership_expiry == old_expiry
    assert member.membership_plan_id == plans["pro"].id
    assert member.membership_type == "Pro"
    assert member.has_personal_training is True


def test_personal_training_payment_only_enables_training(app, member):
    old_expiry = member.membership_expiry

    pay(member.id, "personal_training")

    member = db.session.get(User, member.id)
    assert member.has_personal_training is True
    assert member.membership_expiry == old_expiry


def test_product_payment_does_not_touch_member(app, member, product):
    old_expiry = member.membership_expiry

    pay(member.id, "product", product_id=product.id)

    member = db.session.get(User, member.id)
    assert member.membership_expiry == old_expiry
    assert member.has_personal_training is False


def test_extend_expiry_handles_month_ends():
    now = datetime(2026, 1, 1)
    assert extend_expiry(datetime(2026, 1, 31), 1, now=now) == datetime(2026, 2, 28)
    assert extend_expiry(None, 2, now=now) == datetime(2026, 3, 1)


def test_format_amount():
    assert format_amount("1500.00") == "1500"
    assert format_amount("249.50") == "249.50"


def orphan_payment(payment_type):
    from gymhub.models import Payment

    payment = Payment(
        member_id=999,
        member_name="Gone",
        amount=1000,
        type=payment_type,
        status="paid",
        invoice_number=f"INV-2026-{len(payment_type):05d}",
    )
    db.session.add(payment)
    db.session.commit()
    return payment


def test_membership_payment_of_deleted_member_is_silent(app, admin):
    from gymhub.models import Notification
    from gymhub.services.effects import apply_payment_success

    payment = orphan_payment("membership")
    apply_payment_success(payment)

    assert payment.effects_applied_at is not None
    assert Notification.query.count() == 0


def test_other_payment_of_deleted_member_notifies_admins_only(app, admin):
    from gymhub.models import Notification
    from gymhub.services.effects import apply_payment_success

    apply_payment_success(orphan_payment("product"))

    notes = Notification.query.all()
    assert [n.user_id for n in notes] == [admin.id]

from datetime import datetime, timedelta

from dateutil.relativedelta import relativedelta

from gymhub.extensions import db
from gymhub.models import Payment, User
from gymhub.services.payments import reconcile_paid_payments


def paid_without_effects(member, minutes_ago=30):
    payment = Payment(
        member_id=member.id,
        member_name=member.name,
        amount=1000,
        type="membership",
        status="paid",
        date=datetime.utcnow() - timedelta(minutes=minutes_ago),
        invoice_number=f"INV-2026-9{minutes_ago:04d}",
    )
    db.session.add(payment)
    db.session.commit()
    return payment


def test_reconcile_applies_missing_effects_once(app, member):
    old_expiry = member.membership_expiry
    payment = paid_without_effects(member)

    assert reconcile_paid_payments(older_than_minutes=10) == 1
    assert reconcile_paid_payments(older_than_minutes=10) == 0

    assert db.session.get(Payment, payment.id).effects_applied_at is not None
    assert db.session.get(User, member.id).membership_expiry == old_expiry + relativedelta(
        months=1
    )


def test_reconcile_skips_recent_payments(app, member):
    paid_without_effects(member, minutes_ago=1)
    assert reconcile_paid_payments(older_than_minutes=10) == 0


def test_reconcile_command(app, member):
    paid_without_effects(member)
    result = app.test_cli_runner().invoke(args=["payments", "reconcile", "--older-than", "5"])
    assert result.exit_code == 0
    assert "Reconciled 1 payment(s)." in result.output

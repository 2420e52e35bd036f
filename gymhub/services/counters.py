"""Monotonic named counters backing invoice numbers."""
from datetime import datetime

from sqlalchemy.dialects import postgresql, sqlite

from ..extensions import db
from ..models import Counter

_UPSERT_DIALECTS = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}


def next_value(name):
    """Increment the counter ``name`` and return its new value.

    A single ``INSERT ... ON CONFLICT DO UPDATE ... RETURNING`` statement, so
    concurrent callers never read the same value. A missing counter starts
    at 0 and therefore returns 1.
    """
    dialect = db.session.get_bind().dialect.name
    insert = _UPSERT_DIALECTS.get(dialect)
    if insert is None:
        raise RuntimeError(f"Counters are not supported on the '{dialect}' dialect")

    now = datetime.utcnow()
    stmt = (
        insert(Counter)
        .values(name=name, value=1, updated_at=now)
        .on_conflict_do_update(
            index_elements=[Counter.name],
            set_={"value": Counter.value + 1, "updated_at": now},
        )
        .returning(Counter.value)
    )
    value = db.session.execute(stmt).scalar_one()
    # Release the row right away; the caller may go on to call the gateway.
    db.session.commit()
    return value


def format_invoice_number(sequence, year=None):
    if year is None:
        year = datetime.utcnow().year
    return f"INV-{year}-{sequence:05d}"


def next_invoice_number(series="paymentInvoice"):
    sequence = next_value(series)
    return sequence, format_invoice_number(sequence)

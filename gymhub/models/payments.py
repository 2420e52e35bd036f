from datetime import datetime
from decimal import Decimal
from typing import Optional

from sqlalchemy import Boolean, DateTime, ForeignKey, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from ..domain import PaymentStatus
from ..extensions import db


class Payment(db.Model):
    __tablename__ = "payments"

    id: Mapped[int] = mapped_column(primary_key=True)
    member_id: Mapped[int] = mapped_column(ForeignKey("users.id"), nullable=False)
    member_name: Mapped[str] = mapped_column(String(120), nullable=False)
    amount: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    type: Mapped[str] = mapped_column(String(30), nullable=False)
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=PaymentStatus.PENDING.value
    )
    date: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    due_date: Mapped[Optional[datetime]] = mapped_column(DateTime)
    invoice_number: Mapped[str] = mapped_column(String(30), unique=True, nullable=False)
    # gateway-facing id; only set for member checkouts
    order_id: Mapped[Optional[str]] = mapped_column(String(100), unique=True)
    razorpay_payment_id: Mapped[Optional[str]] = mapped_column(String(100))
    razorpay_signature: Mapped[Optional[str]] = mapped_column(String(255))
    # set when a membership payment buys a specific plan; empty means renewal
    membership_plan_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("membership_plans.id")
    )
    add_personal_training: Mapped[bool] = mapped_column(Boolean, default=False)
    product_id: Mapped[Optional[int]] = mapped_column(ForeignKey("products.id"))
    effects_applied_at: Mapped[Optional[datetime]] = mapped_column(DateTime)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)

    membership_plan = relationship("MembershipPlan")
    product = relationship("Product")

    @property
    def state(self):
        return PaymentStatus(self.status)

    def to_dict(self):
        return {
            "id": str(self.id),
            "memberId": str(self.member_id),
            "memberName": self.member_name,
            "amount": float(self.amount),
            "type": self.type,
            "status": self.status,
            "date": self.date.isoformat() if self.date else None,
            "dueDate": self.due_date.isoformat() if self.due_date else None,
            "invoiceNumber": self.invoice_number,
            "orderId": self.order_id,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
            "addPersonalTraining": bool(self.add_personal_training),
            "planName": self.membership_plan.name if self.membership_plan else None,
            "productName": self.product.name if self.product else None,
        }

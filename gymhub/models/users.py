from datetime import datetime
from typing import Optional

from sqlalchemy import Boolean, DateTime, ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from ..extensions import db


class User(db.Model):
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(primary_key=True)
    name: Mapped[str] = mapped_column(String(120), nullable=False)
    phone: Mapped[str] = mapped_column(String(30), unique=True, nullable=False)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    role: Mapped[str] = mapped_column(String(20), nullable=False)  # admin | member | trainer
    status: Mapped[str] = mapped_column(String(20), default="active")

    # member-only fields
    membership_plan_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("membership_plans.id")
    )
    membership_type: Mapped[Optional[str]] = mapped_column(String(120))
    membership_expiry: Mapped[Optional[datetime]] = mapped_column(DateTime)
    has_personal_training: Mapped[bool] = mapped_column(Boolean, default=False)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)

    membership_plan = relationship("MembershipPlan")

    def to_dict(self):
        return {
            "id": str(self.id),
            "name": self.name,
            "phone": self.phone,
            "role": self.role,
            "status": self.status,
            "membershipPlanId": (
                str(self.membership_plan_id) if self.membership_plan_id else None
            ),
            "membershipType": self.membership_type,
            "membershipExpiry": (
                self.membership_expiry.isoformat() if self.membership_expiry else None
            ),
            "hasPersonalTraining": bool(self.has_personal_training),
        }

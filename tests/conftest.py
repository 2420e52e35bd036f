import itertools
from datetime import datetime, timedelta
from decimal import Decimal

import pytest
from flask_jwt_extended import create_access_token
from werkzeug.security import generate_password_hash

from gymhub import create_app
from gymhub.extensions import db
from gymhub.models import GymSettings, MembershipPlan, Product, User

PASSWORD = "password123"


@pytest.fixture
def app():
    app = create_app("gymhub.config.TestingConfig")
    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def make_user(app):
    phones = itertools.count(9000000001)

    def _make(role="member", **fields):
        fields.setdefault("name", f"{role.title()} {next(phones)}")
        user = User(
            phone=str(next(phones)),
            password_hash=generate_password_hash(PASSWORD),
            role=role,
            **fields,
        )
        db.session.add(user)
        db.session.commit()
        return user

    return _make


@pytest.fixture
def auth_headers(app):
    def _headers(user):
        token = create_access_token(
            identity=str(user.id), additional_claims={"role": user.role}
        )
        return {"Authorization": f"Bearer {token}"}

    return _headers


@pytest.fixture
def gym_settings(app):
    settings = GymSettings(name="KO Fitness", personal_training_price=Decimal("500"))
    db.session.add(settings)
    db.session.commit()
    return settings


@pytest.fixture
def plans(app):
    plans = {
        "pro": MembershipPlan(name="Pro", price=Decimal("1000"), duration=1),
        "elite": MembershipPlan(name="Elite", price=Decimal("2500"), duration=3),
        "pt": MembershipPlan(
            name="Personal Training", price=Decimal("4000"), duration=0, is_add_on=True
        ),
        "retired": MembershipPlan(
            name="Retired", price=Decimal("700"), duration=1, is_active=False
        ),
    }
    db.session.add_all(plans.values())
    db.session.commit()
    return plans


@pytest.fixture
def product(app):
    product = Product(name="Whey Protein", price=Decimal("799"), stock=10)
    db.session.add(product)
    db.session.commit()
    return product


@pytest.fixture
def admin(make_user):
    return make_user(role="admin", name="Admin User")


@pytest.fixture
def member(make_user, plans, gym_settings):
    return make_user(
        name="Meera",
        membership_plan_id=plans["pro"].id,
        membership_type="Pro",
        membership_expiry=datetime.utcnow() + timedelta(days=5),
    )


@pytest.fixture
def other_member(make_user, plans):
    return make_user(name="Ravi", membership_plan_id=plans["pro"].id)

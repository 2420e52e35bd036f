import os
import sys
from datetime import datetime

from dateutil.relativedelta import relativedelta
from dotenv import load_dotenv
from werkzeug.security import generate_password_hash

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from gymhub import create_app  # noqa: E402
from gymhub.extensions import db  # noqa: E402
from gymhub.models import GymSettings, MembershipPlan, Product, User  # noqa: E402

# ----------------------
# ENV SETUP
# ----------------------
load_dotenv()
DEFAULT_PASSWORD = os.getenv("SEED_PASSWORD", "password123")

PLANS = [
    {"name": "Monthly", "price": 1300, "duration": 1},
    {"name": "Quarterly", "price": 3400, "duration": 3},
    {"name": "Half Yearly", "price": 6300, "duration": 6},
    {"name": "Annually", "price": 9000, "duration": 12},
    {"name": "Personal Training", "price": 4000, "duration": 0, "is_add_on": True},
]

PRODUCTS = [
    {"name": "Whey Protein 1kg", "price": 2499, "stock": 20},
    {"name": "Lifting Gloves", "price": 599, "stock": 35},
]


def mask(url):
    parts = (url or "").split("@")
    return f"{parts[0].split('://')[0]}://*****@{parts[1]}" if len(parts) > 1 else url


app = create_app()

with app.app_context():
    print(f"\nDATABASE_URL: {mask(app.config['SQLALCHEMY_DATABASE_URI'])}")
    print("\n=== INITIALIZING DATABASE ===")
    db.create_all()
    print("✓ Tables created.")

    if db.session.execute(db.select(User).filter_by(role="admin")).first():
        print("✓ Admin already present, skipping seed data.")
        sys.exit(0)

    if not db.session.execute(db.select(GymSettings)).first():
        db.session.add(GymSettings(name="KO Fitness", personal_training_price=500))

    plans = [MembershipPlan(**p) for p in PLANS]
    db.session.add_all(plans)
    db.session.add_all(Product(**p) for p in PRODUCTS)

    password_hash = generate_password_hash(DEFAULT_PASSWORD)
    db.session.add(
        User(name="Admin User", phone="9876543210", password_hash=password_hash, role="admin")
    )
    db.session.flush()  # assign plan ids
    db.session.add(
        User(
            name="Demo Member",
            phone="9876543212",
            password_hash=password_hash,
            role="member",
            membership_plan_id=plans[1].id,
            membership_type=plans[1].name,
            membership_expiry=datetime.utcnow() + relativedelta(days=20),
        )
    )
    db.session.commit()
    print(f"✓ Seeded {len(plans)} plans, {len(PRODUCTS)} products, one admin and one member.")
    print("\n🎉 DATABASE INITIALIZED")

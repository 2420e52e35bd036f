from decimal import Decimal

from flask import current_app

from ..extensions import db
from ..models import GymSettings


class GymSettingsProvider:
    """Reads gym-wide pricing from the settings row on every call."""

    def __init__(self, default_personal_training_price=500):
        self.default_personal_training_price = Decimal(str(default_personal_training_price))

    def personal_training_price(self):
        settings = db.session.execute(db.select(GymSettings).limit(1)).scalar_one_or_none()
        if settings is None or settings.personal_training_price is None:
            return self.default_personal_training_price
        return Decimal(settings.personal_training_price)


def get_settings_provider():
    return GymSettingsProvider(
        current_app.config.get("DEFAULT_PERSONAL_TRAINING_PRICE", 500)
    )

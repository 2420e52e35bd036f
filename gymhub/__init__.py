import logging
import os

from flask import Flask


def create_app(config_object="gymhub.config.Config"):
    app = Flask(__name__, instance_relative_config=True)
    app.config.from_object(config_object)

    # Overrides from the environment, e.g. APP_RAZORPAY_KEY_ID
    # See https://flask.palletsprojects.com/ for from_prefixed_env
    app.config.from_prefixed_env(prefix="APP")

    from .config import database_uri

    app.config["SQLALCHEMY_DATABASE_URI"] = database_uri(
        app.config["SQLALCHEMY_DATABASE_URI"]
    )

    # Ensure instance folder exists
    try:
        os.makedirs(app.instance_path, exist_ok=True)
    except OSError:
        pass

    from .logging import init_logging

    init_logging(app)

    from .extensions import db, migrate, jwt, swagger

    db.init_app(app)
    migrate.init_app(app, db)
    jwt.init_app(app)
    app.config.setdefault("SWAGGER", {"title": "gymhub payments API", "uiversion": 3})
    swagger.init_app(app)

    from . import models  # noqa: F401  register tables with the metadata

    if app.config.get("AUTO_MIGRATE"):
        from flask_migrate import upgrade

        with app.app_context():
            try:
                upgrade()
            except Exception:
                logging.getLogger(__name__).exception("Automatic migration failed")

    from .errors import register_error_handlers
    from .services.notifications import init_notifications

    register_error_handlers(app)
    init_notifications(app)

    from .blueprints.auth import bp as auth_bp
    from .blueprints.payments import bp as payments_bp
    from .cli import bp as cli_bp

    app.register_blueprint(auth_bp, url_prefix="/auth")
    app.register_blueprint(payments_bp, url_prefix="/payments")
    app.register_blueprint(cli_bp)

    return app

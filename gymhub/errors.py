from flask import jsonify
from werkzeug.exceptions import HTTPException

from .extensions import db


class PaymentError(Exception):
    """Base for errors that are reported to the client as-is."""

    status_code = 400

    def __init__(self, message, status_code=None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class ValidationError(PaymentError):
    status_code = 400


class ConflictError(PaymentError):
    status_code = 400


class ForbiddenError(PaymentError):
    status_code = 403


class NotFoundError(PaymentError):
    status_code = 404


class GatewayError(PaymentError):
    status_code = 502


def register_error_handlers(app):
    @app.errorhandler(PaymentError)
    def handle_payment_error(err):
        db.session.rollback()
        return jsonify({"error": err.message}), err.status_code

    @app.errorhandler(Exception)
    def handle_unexpected(err):
        if isinstance(err, HTTPException):
            return jsonify({"error": err.description}), err.code
        db.session.rollback()
        app.logger.exception("Unhandled error")
        return jsonify({"error": "Internal server error"}), 500

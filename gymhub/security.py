from functools import wraps

from flask import g, jsonify
from flask_jwt_extended import get_jwt_identity, verify_jwt_in_request

from .extensions import db
from .models import User


def current_user():
    return g.current_user


def role_required(*roles):
    """Require a valid token whose user still exists and has one of ``roles``.

    With no roles any authenticated user is accepted. The user is reloaded
    from the database so role changes apply before the token expires.
    """

    def decorator(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            verify_jwt_in_request()
            try:
                user_id = int(get_jwt_identity())
            except (TypeError, ValueError):
                return jsonify({"error": "Invalid user ID in token"}), 401

            user = db.session.get(User, user_id)
            if user is None:
                return jsonify({"error": "User not found"}), 401
            if roles and user.role not in roles:
                return jsonify({"error": "Insufficient permissions"}), 403

            g.current_user = user
            return fn(*args, **kwargs)

        return wrapper

    return decorator

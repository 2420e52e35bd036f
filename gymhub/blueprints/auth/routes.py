from datetime import datetime

from flask import Blueprint, request, jsonify
from flask_jwt_extended import create_access_token
from werkzeug.security import check_password_hash

from ...extensions import db
from ...models import User
from ...security import current_user, role_required

bp = Blueprint("auth", __name__)


def issue_token(user):
    return create_access_token(
        identity=str(user.id), additional_claims={"role": user.role}
    )


@bp.route("/login", methods=["POST"])
def login():
    data = request.get_json(silent=True) or {}
    phone = (data.get("phone") or "").strip()
    password = data.get("password") or ""
    if not phone or not password:
        return jsonify({"error": "phone and password required"}), 400

    user = db.session.execute(
        db.select(User).filter_by(phone=phone)
    ).scalar_one_or_none()
    if not user or not check_password_hash(user.password_hash, password):
        return jsonify({"error": "Invalid credentials"}), 401
    if user.status != "active":
        return jsonify({"error": "Account is not active"}), 403

    return jsonify({"token": issue_token(user), "user": user.to_dict()}), 200


@bp.route("/me", methods=["GET"])
@role_required()
def me():
    return jsonify(current_user().to_dict()), 200

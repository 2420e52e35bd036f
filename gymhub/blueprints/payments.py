from flask import Blueprint, request, jsonify

from ..security import current_user, role_required
from ..services import payments as payment_service

bp = Blueprint("payments", __name__)


def _json_body():
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else None


@bp.route("", methods=["GET"])
@role_required()
def list_payments():
    payments = payment_service.list_payments(current_user())
    return jsonify([p.to_dict() for p in payments]), 200


@bp.route("", methods=["POST"])
@role_required("admin")
def create_payment():
    data = _json_body()
    if data is None:
        return jsonify({"error": "Invalid JSON payload"}), 400

    payment = payment_service.create_manual_payment(data)
    return jsonify(payment.to_dict()), 201


@bp.route("/<int:payment_id>", methods=["PUT"])
@role_required("admin")
def update_payment(payment_id):
    data = _json_body()
    if data is None:
        return jsonify({"error": "Invalid JSON payload"}), 400

    payment = payment_service.update_payment_status(payment_id, data.get("status"))
    return jsonify(payment.to_dict()), 200


@bp.route("/create-order", methods=["POST"])
@role_required("member")
def create_order():
    data = _json_body()
    if data is None:
        return jsonify({"error": "Invalid JSON payload"}), 400

    order = payment_service.create_order(
        current_user().id,
        data.get("type"),
        membership_plan_id=data.get("membershipPlanId"),
        add_personal_training=data.get("addPersonalTraining") is True,
        product_id=data.get("productId"),
        client_amount=data.get("amount"),
    )
    return jsonify(order), 201


@bp.route("/verify", methods=["POST"])
@role_required("member")
def verify_payment():
    data = _json_body()
    if data is None:
        return jsonify({"error": "Invalid JSON payload"}), 400

    payment = payment_service.verify_order(
        data.get("orderId"),
        current_user().id,
        gateway_payment_id=data.get("razorpayPaymentId"),
        gateway_signature=data.get("razorpaySignature"),
    )
    return jsonify({"success": True, "payment": payment.to_dict()}), 200


@bp.route("/cancel-order", methods=["POST"])
@role_required("member")
def cancel_order():
    data = _json_body()
    if data is None:
        return jsonify({"error": "Invalid JSON payload"}), 400

    result = payment_service.cancel_order(current_user().id, data.get("orderId"))
    return jsonify({"success": True, **result}), 200

from gymhub.models import Payment


def open_order(client, headers):
    r = client.post(
        "/payments/create-order", json={"type": "other", "amount": 100}, headers=headers
    )
    return r.get_json()["orderId"]


def cancel(client, headers, order_id):
    return client.post("/payments/cancel-order", json={"orderId": order_id}, headers=headers)


NOT_FOUND = "Order not found, already completed, or not yours"


def test_owner_cancels_pending_order_once(client, member, auth_headers):
    headers = auth_headers(member)
    order_id = open_order(client, headers)

    r = cancel(client, headers, order_id)
    assert r.status_code == 200
    body = r.get_json()
    assert body["success"] is True
    assert body["status"] == "cancelled"
    assert body["paymentId"] == str(Payment.query.filter_by(order_id=order_id).one().id)

    r = cancel(client, headers, order_id)
    assert r.status_code == 404
    assert r.get_json()["error"] == NOT_FOUND


def test_cannot_cancel_someone_elses_order(client, member, other_member, auth_headers):
    order_id = open_order(client, auth_headers(member))
    r = cancel(client, auth_headers(other_member), order_id)
    assert r.status_code == 404
    assert r.get_json()["error"] == NOT_FOUND
    assert Payment.query.filter_by(order_id=order_id).one().status == "pending"


def test_cannot_cancel_paid_order(client, member, auth_headers):
    headers = auth_headers(member)
    order_id = open_order(client, headers)
    client.post("/payments/verify", json={"orderId": order_id}, headers=headers)

    r = cancel(client, headers, order_id)
    assert r.status_code == 404
    assert r.get_json()["error"] == NOT_FOUND
    assert Payment.query.filter_by(order_id=order_id).one().status == "paid"


def test_unknown_order_looks_the_same(client, member, auth_headers):
    r = cancel(client, auth_headers(member), "ord_0_0")
    assert r.status_code == 404
    assert r.get_json()["error"] == NOT_FOUND


def test_cancelled_order_cannot_be_verified(client, member, auth_headers):
    headers = auth_headers(member)
    order_id = open_order(client, headers)
    cancel(client, headers, order_id)

    r = client.post("/payments/verify", json={"orderId": order_id}, headers=headers)
    assert r.status_code == 400
    assert r.get_json()["error"] == "Order has been cancelled"

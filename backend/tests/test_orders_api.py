from models.order import OrderStatus, PaymentMethod


def test_history_is_grouped_by_status(client, auth, user, other_user, make_product, make_order):
    watch = make_product()
    processing = make_order(user, [(watch, 1)], status=OrderStatus.PENDING, method=PaymentMethod.BANK_TRANSFER)
    completed = make_order(user, [(watch, 2)], status=OrderStatus.COMPLETED)
    cancelled = make_order(user, [(watch, 1)], status=OrderStatus.CANCELLED)
    make_order(other_user, [(watch, 1)])

    all_ids = [o["id"] for o in client.get("/orders", headers=auth).json()]
    assert sorted(all_ids) == sorted([processing.id, completed.id, cancelled.id])

    def ids(group):
        return [o["id"] for o in client.get("/orders", params={"status": group}, headers=auth).json()]

    assert ids("processing") == [processing.id]
    assert ids("completed") == [completed.id]
    assert ids("cancelled") == [cancelled.id]


def test_order_detail(client, auth, user, make_product, make_order):
    watch = make_product(price=3_500_000)
    order = make_order(user, [(watch, 2)], status=OrderStatus.PENDING, method=PaymentMethod.BANK_TRANSFER)

    body = client.get(f"/orders/{order.id}", headers=auth).json()
    assert body["code"] == f"#RW{order.id}"
    assert body["status_label"] == "Confirmed"
    assert body["payment_status"] == "Awaiting payment"
    assert body["subtotal"] == 7_000_000
    assert body["items"][0]["product_name"] == "Seamaster Diver 300M"


def test_foreign_order_is_not_found(client, auth, other_user, make_product, make_order):
    order = make_order(other_user, [(make_product(), 1)])
    assert client.get(f"/orders/{order.id}", headers=auth).status_code == 404

    r = client.post("/order/cancel", json={"order_id": order.id}, headers=auth)
    assert r.status_code == 404
    assert r.json()["success"] is False


def test_cancel_approved_order(client, auth, user, make_product, make_order):
    order = make_order(user, [(make_product(), 1)], status=OrderStatus.APPROVED)

    r = client.post("/order/cancel", json={"order_id": order.id}, headers=auth)
    assert r.json() == {
        "success": True,
        "message": "Your order has been cancelled",
        "order_id": order.id,
        "status": "Cancelled",
    }
    assert client.get(f"/orders/{order.id}", headers=auth).json()["status"] == "Cancelled"


def test_completed_order_cannot_be_cancelled(client, auth, user, make_product, make_order):
    order = make_order(user, [(make_product(), 1)], status=OrderStatus.COMPLETED)

    r = client.post("/order/cancel", json={"order_id": order.id}, headers=auth)
    assert r.status_code == 409
    assert r.json()["success"] is False
    assert client.get(f"/orders/{order.id}", headers=auth).json()["status"] == "Completed"

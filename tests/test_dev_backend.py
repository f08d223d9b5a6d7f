# tests/test_dev_backend.py
import pytest
from fastapi.testclient import TestClient

from railfood.dev_backend import main as backend


@pytest.fixture
def client():
    backend.CARTS.clear()
    backend.INSTRUCTIONS.clear()
    backend.ORDERS.clear()
    return TestClient(backend.app)


def _add(client, item_id, quantity, vendor_id=6):
    return client.post(
        "/cart/add-item",
        json={"itemId": item_id, "vendorId": vendor_id, "quantity": quantity},
    )


def _order_body(payment_method="COD"):
    return {
        "vendorId": 6,
        "paymentMethod": payment_method,
        "deliveryTime": "2024-03-01T12:30:00Z",
        "pnrNumber": "1234567890",
        "trainId": 12951,
        "coachNumber": "B2",
        "seatNumber": "34",
        "deliveryStationId": 3,
        "items": [{"itemId": 1, "quantity": 2, "unitPrice": "200.00"}],
    }


def test_add_item_applies_delta(client):
    assert _add(client, 1, 2).status_code == 204
    _add(client, 1, 1)
    _add(client, 1, -1)

    summary = client.get("/cart/summary", params={"vendorId": 6}).json()
    assert summary["items"][0]["quantity"] == 2
    assert summary["subtotal"] == "400.00"
    assert summary["finalAmount"] == "440.00"


def test_quantity_never_goes_negative(client):
    _add(client, 1, -3)
    assert client.get("/cart/summary", params={"vendorId": 6}).json()["items"] == []


def test_unknown_item_error_uses_message_field(client):
    resp = _add(client, 999, 1)
    assert resp.status_code == 404
    assert resp.json() == {"message": "Item not found"}


def test_remove_and_clear(client):
    _add(client, 1, 1)
    _add(client, 2, 1)
    client.delete("/cart/items/1", params={"vendorId": 6})
    items = client.get("/cart/summary", params={"vendorId": 6}).json()["items"]
    assert [i["itemId"] for i in items] == [2]

    client.delete("/cart", params={"vendorId": 6})
    assert client.get("/cart/summary", params={"vendorId": 6}).json()["items"] == []


def test_cod_order_lifecycle(client):
    _add(client, 1, 2)
    order = client.post("/orders", json=_order_body()).json()

    assert order["orderStatus"] == "PLACED"
    assert order["razorpayOrderID"] is None
    assert client.get("/cart/summary", params={"vendorId": 6}).json()["items"] == []

    order_id = order["orderId"]
    active = client.get("/admin/orders/active").json()
    assert [o["orderId"] for o in active["content"]] == [order_id]

    client.put(f"/admin/orders/{order_id}/status", json={"status": "DELIVERED", "remarks": ""})
    assert client.get("/admin/orders/active").json()["content"] == []
    assert client.get("/orders/vendor/historical", params={"vendorId": 6}).json()["totalElements"] == 1

    client.post(f"/orders/{order_id}/cod/complete", params={"updatedById": 42})
    assert client.get(f"/orders/{order_id}").json()["paymentStatus"] == "COMPLETED"


def test_online_order_payment_verification(client):
    _add(client, 1, 1)
    order = client.post("/orders", json=_order_body("RAZORPAY")).json()
    handle = order["razorpayOrderID"]

    forged = client.post(
        f"/payments/verify-payment/{order['orderId']}",
        json={"razorpay_payment_id": "pay_1", "razorpay_order_id": "other", "razorpay_signature": "x"},
    )
    assert forged.status_code == 400

    ok = client.post(
        f"/payments/verify-payment/{order['orderId']}",
        json={"razorpay_payment_id": "pay_1", "razorpay_order_id": handle, "razorpay_signature": "x"},
    )
    assert ok.status_code == 204
    assert client.get(f"/orders/{order['orderId']}").json()["paymentStatus"] == "CAPTURED"


def test_listing_pages(client):
    for _ in range(3):
        _add(client, 1, 1)
        client.post("/orders", json=_order_body())

    page = client.get("/admin/orders/active", params={"page": 1, "size": 2}).json()
    assert page["numberOfElements"] == 1
    assert page["totalElements"] == 3
    assert page["totalPages"] == 2
    assert page["pageable"]["offset"] == 2


def test_lookups(client):
    assert client.get("/vendors/6").json()["preparationTime"] == 25
    assert client.get("/vendors/7").status_code == 404
    assert client.get("/menu/items/1").json()["itemName"] == "Veg Biryani"
    assert {s["stationId"] for s in client.get("/stations/all").json()} == {3, 4}
    assert client.get("/stations/3").json()["stationCode"] == "NGP"
    vendors = client.get("/vendors/stations/3", params={"page": 0, "size": 100}).json()
    assert [v["vendorId"] for v in vendors["content"]] == [6]


def test_unpaid_online_order_keeps_cart(client):
    _add(client, 1, 2)
    order = client.post("/orders", json=_order_body("RAZORPAY")).json()

    assert order["paymentStatus"] == "PROCESSING"
    items = client.get("/cart/summary", params={"vendorId": 6}).json()["items"]
    assert [(i["itemId"], i["quantity"]) for i in items] == [(1, 2)]

    client.post(
        f"/payments/verify-payment/{order['orderId']}",
        json={
            "razorpay_payment_id": "pay_1",
            "razorpay_order_id": order["razorpayOrderID"],
            "razorpay_signature": "sig",
        },
    )
    assert client.get("/cart/summary", params={"vendorId": 6}).json()["items"] == []


def test_listing_filters_by_created_date(client):
    _add(client, 1, 1)
    client.post("/orders", json=_order_body())

    past = client.get(
        "/admin/orders/active",
        params={"startDate": "2000-01-01T00:00:00", "endDate": "2000-01-01T23:59:59"},
    ).json()
    assert past["totalElements"] == 0

    recent = client.get(
        "/admin/orders/active",
        params={"startDate": "2000-01-01T00:00:00", "endDate": "2999-12-31T23:59:59"},
    ).json()
    assert recent["totalElements"] == 1


def test_vendor_listing_requires_vendor_id(client):
    resp = client.get("/orders/vendor/active")
    assert resp.status_code == 400
    assert resp.json() == {"message": "vendorId is required"}
    assert client.get("/orders/vendor/active", params={"vendorId": 7}).json()["content"] == []

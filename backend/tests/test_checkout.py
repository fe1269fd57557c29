import pytest

from models.order import Order, OrderStatus, PaymentMethod
from services import cart as cart_service
from services import checkout as checkout_service
from services.errors import EmptyCart, InvalidPaymentMethod, NotFound, ValidationError
from utils.payment_qr import bank_transfer_qr_url

SHIPPING = {
    "full_name": "Nguyen Van A",
    "phone_number": "0901234567",
    "province": "Ha Noi",
    "ward": "Phuong Hang Bac",
    "address": "12 Hang Bac",
}


def shipping(**overrides):
    return checkout_service.ShippingInfo(**{**SHIPPING, **overrides})


@pytest.fixture
def filled_cart(db, user, make_product):
    """A x2 at 5,000,000 and B x1 at 3,000,000: 13,000,000 in total."""
    a = make_product(name="A", price=5_000_000)
    b = make_product(name="B", price=3_000_000)
    cart_service.add_item(db, user.id, a.id)
    cart_service.add_item(db, user.id, a.id)
    cart_service.add_item(db, user.id, b.id)
    return a, b


def test_cod_order_is_approved_and_empties_cart(db, store, user, filled_cart):
    a, b = filled_cart
    result = checkout_service.process(db, store, user.id, shipping(), "COD")

    order = result.order
    assert order.status == OrderStatus.APPROVED
    assert order.payment_method == PaymentMethod.COD
    assert order.total_amount == 13_000_000
    assert order.shipping_fee == 0
    assert sorted((i.product_id, i.quantity, i.price) for i in order.items) == [
        (a.id, 2, 5_000_000), (b.id, 1, 3_000_000),
    ]
    assert result.payment_instructions is None
    assert result.redirect_url == f"/checkout/success/{order.id}"
    assert cart_service.item_count(db, user.id) == 0


def test_in_store_order_is_approved(db, store, user, filled_cart):
    result = checkout_service.process(db, store, user.id, shipping(), "InStore")
    assert result.order.status == OrderStatus.APPROVED


def test_order_keeps_price_paid_after_catalog_change(db, store, user, filled_cart):
    a, _ = filled_cart
    order = checkout_service.process(db, store, user.id, shipping(), "COD").order

    a.price = 9_999_999
    db.commit()

    db.expire_all()
    prices = {i.product_id: i.price for i in order.items}
    assert prices[a.id] == 5_000_000
    assert order.total_amount == 13_000_000


def test_bank_transfer_keeps_cart_until_confirmed(db, store, user, filled_cart):
    result = checkout_service.process(db, store, user.id, shipping(), "BankTransfer")
    order = result.order

    assert order.status == OrderStatus.UNCONFIRMED
    assert cart_service.item_count(db, user.id) == 3

    qr = result.payment_instructions["qr_code_url"]
    assert qr.startswith("https://qr.sepay.vn/img?acc=62688888888686&bank=MB&amount=13000000&des=")
    assert qr.endswith(f"%20RW{order.id}")
    assert result.payment_instructions["account_number"] == "626 8888 8888 686"
    assert result.payment_instructions["account_holder"] == "VU CHI THANH"

    confirmed = checkout_service.confirm_payment(db, store, user.id, order.id)
    assert confirmed.status == OrderStatus.PENDING
    assert cart_service.item_count(db, user.id) == 0

    # Repeating the confirmation changes nothing
    again = checkout_service.confirm_payment(db, store, user.id, order.id)
    assert again.status == OrderStatus.PENDING


def test_confirm_payment_of_foreign_order(db, store, user, other_user, filled_cart):
    order = checkout_service.process(db, store, user.id, shipping(), "BankTransfer").order
    with pytest.raises(NotFound):
        checkout_service.confirm_payment(db, store, other_user.id, order.id)
    db.expire_all()
    assert db.get(Order, order.id).status == OrderStatus.UNCONFIRMED


def test_confirm_payment_does_not_touch_cod_status(db, store, user, filled_cart):
    order = checkout_service.process(db, store, user.id, shipping(), "COD").order
    assert checkout_service.confirm_payment(db, store, user.id, order.id).status == OrderStatus.APPROVED


def test_empty_cart_creates_no_order(db, store, user):
    with pytest.raises(EmptyCart):
        checkout_service.process(db, store, user.id, shipping(), "COD")
    assert db.query(Order).count() == 0


@pytest.mark.parametrize("method", ["Crypto", "cod", ""])
def test_unknown_payment_method(db, store, user, filled_cart, method):
    with pytest.raises(InvalidPaymentMethod):
        checkout_service.process(db, store, user.id, shipping(), method)
    assert db.query(Order).count() == 0
    assert cart_service.item_count(db, user.id) == 3


@pytest.mark.parametrize("field", list(SHIPPING))
def test_blank_shipping_field(db, store, user, filled_cart, field):
    with pytest.raises(ValidationError):
        checkout_service.process(db, store, user.id, shipping(**{field: "   "}), "COD")
    assert db.query(Order).count() == 0


def test_shipping_details_are_trimmed(db, store, user, filled_cart):
    order = checkout_service.process(db, store, user.id, shipping(full_name="  Tran Thi B "), "COD").order
    assert order.full_name == "Tran Thi B"


def test_cod_checkout_drops_saved_cart(db, store, user, make_product):
    a, b = make_product(name="A"), make_product(name="B")
    cart_service.add_item(db, user.id, a.id)
    cart_service.buy_now(db, store, user.id, b.id)

    checkout_service.process(db, store, user.id, shipping(), "COD")
    assert store.get(user.id) is None


def test_qr_url_escapes_description():
    url = bank_transfer_qr_url(1_500_000.4, "thanh toan RW5")
    assert url == "https://qr.sepay.vn/img?acc=62688888888686&bank=MB&amount=1500000&des=thanh%20toan%20RW5"


# --- API ---

def test_checkout_over_http(client, auth, make_product):
    watch = make_product(price=13_000_000)
    client.post("/cart/add", json={"product_id": watch.id}, headers=auth)

    summary = client.get("/checkout", headers=auth)
    assert summary.status_code == 200
    assert summary.json()["total"] == 13_000_000

    r = client.post("/checkout/process", json={**SHIPPING, "payment_method": "COD"}, headers=auth)
    body = r.json()
    assert body["success"] is True
    assert body["status"] == "Approved"
    assert body["redirect_url"] == f"/checkout/success/{body['order_id']}"
    assert "payment_instructions" not in body

    page = client.get(body["redirect_url"], headers=auth).json()
    assert page["code"] == f"#RW{body['order_id']}"
    assert page["total_amount"] == 13_000_000


def test_bank_transfer_over_http(client, auth, make_product):
    watch = make_product(price=2_500_000)
    client.post("/cart/add", json={"product_id": watch.id}, headers=auth)

    body = client.post("/checkout/process", json={**SHIPPING, "payment_method": "BankTransfer"}, headers=auth).json()
    assert body["status"] == "Unconfirmed"
    assert "amount=2500000" in body["payment_instructions"]["qr_code_url"]
    assert client.get("/cart/count", headers=auth).json() == {"count": 1}

    r = client.post("/checkout/confirm-payment", json={"order_id": body["order_id"]}, headers=auth)
    assert r.json()["status"] == "Pending"
    assert client.get("/cart/count", headers=auth).json() == {"count": 0}


def test_checkout_page_with_empty_cart(client, auth):
    r = client.get("/checkout", headers=auth)
    assert r.status_code == 400
    assert r.json() == {"success": False, "message": "Cart is empty"}


def test_checkout_page_brings_back_saved_cart(client, auth, store, user, make_product):
    a, b = make_product(name="A"), make_product(name="B")
    client.post("/cart/add", json={"product_id": a.id}, headers=auth)
    client.post("/cart/buy-now", json={"product_id": b.id}, headers=auth)
    item_id = client.get("/cart", headers=auth).json()["items"][0]["id"]
    client.post("/cart/remove", json={"cart_item_id": item_id}, headers=auth)

    page = client.get("/checkout", headers=auth).json()
    assert [i["product_id"] for i in page["items"]] == [a.id]
    assert store.get(user.id) is None


def test_invalid_payment_method_over_http(client, auth, make_product):
    watch = make_product()
    client.post("/cart/add", json={"product_id": watch.id}, headers=auth)
    r = client.post("/checkout/process", json={**SHIPPING, "payment_method": "PayPal"}, headers=auth)
    assert r.status_code == 400
    assert r.json() == {"success": False, "message": "Invalid payment method"}

import pytest

from models.cart import Cart, CartItem
from services import cart as cart_service
from services.errors import NothingToRestore, NotFound, ValidationError
from services.snapshots import SavedCartItem
from utils.tokenJWT import create_access_token


def lines(db, user_id):
    db.expire_all()
    rows = (
        db.query(CartItem.product_id, CartItem.quantity)
        .join(Cart, Cart.id == CartItem.cart_id)
        .filter(Cart.user_id == user_id)
        .all()
    )
    return {pid: qty for pid, qty in rows}


def line_id(db, user_id, product_id):
    return (
        db.query(CartItem.id)
        .join(Cart, Cart.id == CartItem.cart_id)
        .filter(Cart.user_id == user_id, CartItem.product_id == product_id)
        .scalar()
    )


# --- service ---

def test_adding_same_product_twice_increments_one_line(db, user, make_product):
    watch = make_product()
    assert cart_service.add_item(db, user.id, watch.id) == 1
    assert cart_service.add_item(db, user.id, watch.id) == 2
    assert lines(db, user.id) == {watch.id: 2}
    assert cart_service.cart_total(db, user.id) == 7_000_000


def test_add_unknown_product_creates_nothing(db, user):
    with pytest.raises(NotFound):
        cart_service.add_item(db, user.id, 999)
    assert lines(db, user.id) == {}


def test_update_quantity_below_one_is_rejected(db, user, make_product):
    watch = make_product()
    cart_service.add_item(db, user.id, watch.id)
    item_id = line_id(db, user.id, watch.id)

    for bad in (0, -3):
        with pytest.raises(ValidationError):
            cart_service.update_quantity(db, user.id, item_id, bad)
    assert lines(db, user.id) == {watch.id: 1}


def test_update_quantity_returns_line_and_cart_totals(db, user, make_product):
    a = make_product(price=5_000_000)
    b = make_product(name="Submariner Date", brand="Rolex", price=3_000_000)
    cart_service.add_item(db, user.id, a.id)
    cart_service.add_item(db, user.id, b.id)

    subtotal, total = cart_service.update_quantity(db, user.id, line_id(db, user.id, a.id), 2)
    assert subtotal == 10_000_000
    assert total == 13_000_000


def test_other_users_lines_look_missing(db, user, other_user, make_product):
    watch = make_product()
    cart_service.add_item(db, other_user.id, watch.id)
    foreign_id = line_id(db, other_user.id, watch.id)

    with pytest.raises(NotFound):
        cart_service.update_quantity(db, user.id, foreign_id, 5)
    with pytest.raises(NotFound):
        cart_service.remove_item(db, user.id, foreign_id)
    assert lines(db, other_user.id) == {watch.id: 1}


def test_remove_item_keeps_cart(db, user, make_product):
    a = make_product(price=5_000_000)
    b = make_product(name="Santos de Cartier", brand="Cartier", price=15_500_000)
    cart_service.add_item(db, user.id, a.id)
    cart_service.add_item(db, user.id, b.id)

    total, count = cart_service.remove_item(db, user.id, line_id(db, user.id, b.id))
    assert (total, count) == (5_000_000, 1)

    total, count = cart_service.remove_item(db, user.id, line_id(db, user.id, a.id))
    assert (total, count) == (0, 0)
    assert cart_service.get_cart(db, user.id) is not None


def test_buy_now_sets_cart_aside_and_restore_brings_it_back(db, store, user, make_product):
    a = make_product(name="A", price=1_000_000)
    b = make_product(name="B", price=2_000_000)
    c = make_product(name="C", price=3_000_000)
    cart_service.add_item(db, user.id, a.id)
    cart_service.add_item(db, user.id, a.id)
    cart_service.add_item(db, user.id, b.id)

    assert cart_service.buy_now(db, store, user.id, c.id) == 1
    assert lines(db, user.id) == {c.id: 1}
    snapshot = store.get(user.id)
    assert set(snapshot.items) == {SavedCartItem(a.id, 2), SavedCartItem(b.id, 1)}

    assert cart_service.restore(db, store, user.id) == 3
    assert lines(db, user.id) == {a.id: 2, b.id: 1}
    assert store.get(user.id) is None


def test_buy_now_of_product_already_in_cart(db, store, user, make_product):
    a = make_product(name="A")
    b = make_product(name="B")
    cart_service.add_item(db, user.id, a.id)
    cart_service.add_item(db, user.id, a.id)
    cart_service.add_item(db, user.id, b.id)

    cart_service.buy_now(db, store, user.id, a.id)
    assert lines(db, user.id) == {a.id: 1}

    cart_service.restore(db, store, user.id)
    assert lines(db, user.id) == {a.id: 2, b.id: 1}


def test_buy_now_with_empty_cart_saves_nothing(db, store, user, make_product):
    watch = make_product()
    cart_service.buy_now(db, store, user.id, watch.id)
    assert lines(db, user.id) == {watch.id: 1}
    assert store.get(user.id) is None


def test_repeated_buy_now_keeps_first_saved_cart(db, store, user, make_product):
    a, b, c = make_product(name="A"), make_product(name="B"), make_product(name="C")
    cart_service.add_item(db, user.id, a.id)

    cart_service.buy_now(db, store, user.id, b.id)
    cart_service.buy_now(db, store, user.id, c.id)

    assert lines(db, user.id) == {c.id: 1}
    assert store.get(user.id).items == (SavedCartItem(a.id, 1),)


def test_restore_without_saved_cart(db, store, user):
    with pytest.raises(NothingToRestore):
        cart_service.restore(db, store, user.id)


def test_restore_refuses_to_overwrite_new_cart_contents(db, store, user, make_product):
    a, b, c = make_product(name="A"), make_product(name="B"), make_product(name="C")
    cart_service.add_item(db, user.id, a.id)
    cart_service.buy_now(db, store, user.id, b.id)
    cart_service.add_item(db, user.id, c.id)

    with pytest.raises(ValidationError):
        cart_service.restore(db, store, user.id)
    assert lines(db, user.id) == {b.id: 1, c.id: 1}
    assert store.get(user.id) is not None


def test_restore_skips_products_removed_from_catalog(db, store, user, make_product):
    a, b, c = make_product(name="A"), make_product(name="B"), make_product(name="C")
    cart_service.add_item(db, user.id, a.id)
    cart_service.add_item(db, user.id, b.id)
    cart_service.buy_now(db, store, user.id, c.id)

    db.delete(b)
    db.commit()

    assert cart_service.restore(db, store, user.id) == 1
    assert lines(db, user.id) == {a.id: 1}


def test_clear_empties_cart_and_drops_saved_cart(db, store, user, make_product):
    a, b = make_product(name="A"), make_product(name="B")
    cart_service.add_item(db, user.id, a.id)
    cart_service.buy_now(db, store, user.id, b.id)

    cart_service.clear(db, store, user.id)
    assert lines(db, user.id) == {}
    assert store.get(user.id) is None


# --- API ---

def test_anonymous_visitor_sees_empty_cart(client):
    assert client.get("/cart/count").json() == {"count": 0}
    body = client.get("/cart").json()
    assert body["items"] == [] and body["count"] == 0


def test_invalid_token_is_rejected_instead_of_treated_as_anonymous(client, user):
    bad = {"Authorization": "Bearer not-a-token"}
    assert client.get("/cart", headers=bad).status_code == 401
    assert client.get("/cart/count", headers=bad).status_code == 401

    # Token for an account that no longer exists
    ghost = {"Authorization": f"Bearer {create_access_token({'sub': 'deleted@romawatches.vn'})}"}
    assert client.get("/cart", headers=ghost).status_code == 401


def test_add_requires_login(client, make_product):
    watch = make_product()
    r = client.post("/cart/add", json={"product_id": watch.id})
    assert r.status_code in (401, 403)


def test_add_update_remove_over_http(client, auth, make_product):
    watch = make_product(price=5_000_000)

    r = client.post("/cart/add", json={"product_id": watch.id}, headers=auth)
    assert r.json() == {"success": True, "message": "Product added to cart", "cart_count": 1}

    cart = client.get("/cart", headers=auth).json()
    item_id = cart["items"][0]["id"]
    assert cart["total"] == 5_000_000

    r = client.post("/cart/update", json={"cart_item_id": item_id, "quantity": 3}, headers=auth)
    assert r.json()["success"] is True
    assert r.json()["subtotal"] == 15_000_000
    assert r.json()["total"] == 15_000_000

    r = client.post("/cart/update", json={"cart_item_id": item_id, "quantity": 0}, headers=auth)
    assert r.status_code == 400
    assert r.json()["success"] is False

    r = client.post("/cart/remove", json={"cart_item_id": item_id}, headers=auth)
    assert r.json()["cart_count"] == 0
    assert client.get("/cart/count", headers=auth).json() == {"count": 0}


def test_add_missing_product_over_http(client, auth):
    r = client.post("/cart/add", json={"product_id": 404}, headers=auth)
    assert r.status_code == 404
    assert r.json() == {"success": False, "message": "Product not found"}


def test_buy_now_and_restore_over_http(client, auth, make_product):
    a, b = make_product(name="A"), make_product(name="B")
    client.post("/cart/add", json={"product_id": a.id}, headers=auth)

    r = client.post("/cart/buy-now", json={"product_id": b.id}, headers=auth)
    assert r.json()["redirect_url"] == "/checkout"
    assert client.get("/cart", headers=auth).json()["has_saved_cart"] is True

    r = client.post("/cart/restore", headers=auth)
    assert r.json()["success"] is True
    cart = client.get("/cart", headers=auth).json()
    assert [i["product_id"] for i in cart["items"]] == [a.id]
    assert cart["has_saved_cart"] is False

    r = client.post("/cart/restore", headers=auth)
    assert r.status_code == 404
    assert r.json()["success"] is False

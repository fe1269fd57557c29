# backend/services/cart.py
import logging
from datetime import datetime, timezone
from typing import Optional, Tuple

from sqlalchemy import func
from sqlalchemy.orm import Session

from models.cart import Cart, CartItem
from models.product import Product
from services.errors import NotFound, NothingToRestore, ValidationError
from services.snapshots import SavedCartItem, SavedCartStore, default_ttl

logger = logging.getLogger(__name__)


def _now():
    return datetime.now(timezone.utc)


def get_cart(db: Session, user_id: int) -> Optional[Cart]:
    return db.query(Cart).filter(Cart.user_id == user_id).first()


def get_or_create_cart(db: Session, user_id: int) -> Cart:
    # Retrieve the user's cart or create an empty one (flushed, not committed)
    cart = get_cart(db, user_id)
    if not cart:
        cart = Cart(user_id=user_id, created_at=_now())
        db.add(cart)
        db.flush()
    return cart


def _owned_item(db: Session, user_id: int, cart_item_id: int) -> CartItem:
    # Items of other users are reported exactly like missing ones
    item = (
        db.query(CartItem)
        .join(Cart, Cart.id == CartItem.cart_id)
        .filter(CartItem.id == cart_item_id, Cart.user_id == user_id)
        .first()
    )
    if not item:
        raise NotFound("Item is not in your cart")
    return item


def item_count(db: Session, user_id: int) -> int:
    count = (
        db.query(func.coalesce(func.sum(CartItem.quantity), 0))
        .join(Cart, Cart.id == CartItem.cart_id)
        .filter(Cart.user_id == user_id)
        .scalar()
    )
    return int(count or 0)


def cart_total(db: Session, user_id: int) -> float:
    # Priced live from the product table
    total = (
        db.query(func.coalesce(func.sum(CartItem.quantity * Product.price), 0))
        .join(Cart, Cart.id == CartItem.cart_id)
        .join(Product, Product.id == CartItem.product_id)
        .filter(Cart.user_id == user_id)
        .scalar()
    )
    return float(total or 0)


def add_item(db: Session, user_id: int, product_id: int) -> int:
    """Add one unit of a product; returns the new number of items in the cart."""
    product = db.query(Product).filter(Product.id == product_id).first()
    if not product:
        raise NotFound("Product not found")

    cart = get_or_create_cart(db, user_id)

    # Increment in SQL so two concurrent adds do not overwrite each other
    updated = (
        db.query(CartItem)
        .filter(CartItem.cart_id == cart.id, CartItem.product_id == product.id)
        .update(
            {CartItem.quantity: CartItem.quantity + 1, CartItem.updated_at: _now()},
            synchronize_session=False,
        )
    )
    if not updated:
        db.add(CartItem(cart_id=cart.id, product_id=product.id, quantity=1, created_at=_now()))

    cart.updated_at = _now()
    db.commit()
    return item_count(db, user_id)


def update_quantity(db: Session, user_id: int, cart_item_id: int, quantity: int) -> Tuple[float, float]:
    """Set a line quantity; returns (line subtotal, cart total)."""
    if quantity is None or quantity < 1:
        raise ValidationError("Quantity must be greater than 0")

    item = _owned_item(db, user_id, cart_item_id)
    item.quantity = quantity
    item.updated_at = _now()
    item.cart.updated_at = _now()
    db.commit()

    subtotal = float(item.quantity * item.product.price)
    return subtotal, cart_total(db, user_id)


def remove_item(db: Session, user_id: int, cart_item_id: int) -> Tuple[float, int]:
    """Delete a line; returns (cart total, item count). The cart itself stays."""
    item = _owned_item(db, user_id, cart_item_id)
    cart = item.cart
    db.delete(item)
    cart.updated_at = _now()
    db.commit()
    return cart_total(db, user_id), item_count(db, user_id)


def drain(db: Session, cart: Optional[Cart]) -> int:
    """Delete every line of the cart without committing; returns the number of lines removed."""
    if not cart or not cart.items:
        return 0
    removed = len(cart.items)
    cart.items.clear()
    cart.updated_at = _now()
    db.flush()
    return removed


def clear(db: Session, store: SavedCartStore, user_id: int) -> None:
    drain(db, get_cart(db, user_id))
    store.discard(user_id)
    db.commit()


def _holds_only(cart: Cart, product_id: Optional[int]) -> bool:
    return product_id is not None and len(cart.items) == 1 and cart.items[0].product_id == product_id


def buy_now(db: Session, store: SavedCartStore, user_id: int, product_id: int) -> int:
    """Set the current cart aside and leave only the requested product in it.

    The previous lines are kept in the saved cart store so restore() can
    bring them back later. Repeating "buy now" while the cart still holds the
    previous buy-now line keeps the originally saved lines.
    """
    product = db.query(Product).filter(Product.id == product_id).first()
    if not product:
        raise NotFound("Product not found")

    cart = get_or_create_cart(db, user_id)
    previous = store.get(user_id)
    if previous is not None and (not cart.items or _holds_only(cart, previous.buy_now_product_id)):
        store.save(user_id, list(previous.items), default_ttl(), buy_now_product_id=product.id)
    elif cart.items:
        saved = [SavedCartItem(product_id=it.product_id, quantity=it.quantity) for it in cart.items]
        store.save(user_id, saved, default_ttl(), buy_now_product_id=product.id)
        logger.info("Saved %d cart lines for user %s before buy-now", len(saved), user_id)

    # Flush the deletes first: the same product may already be in the cart
    drain(db, cart)
    cart.items.append(CartItem(product_id=product.id, quantity=1, created_at=_now()))
    db.commit()
    return item_count(db, user_id)


def restore(db: Session, store: SavedCartStore, user_id: int) -> int:
    """Bring back the cart saved by buy_now(); returns the new item count.

    Only an empty cart, or one still holding just the buy-now line, is
    replaced. Anything else is refused and the saved cart is kept.
    """
    snapshot = store.get(user_id)
    if snapshot is None:
        raise NothingToRestore()

    cart = get_or_create_cart(db, user_id)
    if cart.items and not _holds_only(cart, snapshot.buy_now_product_id):
        raise ValidationError("Cart is not empty, the saved cart was kept")
    drain(db, cart)

    existing = {
        pid for (pid,) in db.query(Product.id).filter(
            Product.id.in_([it.product_id for it in snapshot.items])
        )
    }
    for saved in snapshot.items:
        if saved.product_id not in existing:
            logger.info("Skipping product %s from saved cart: no longer in catalog", saved.product_id)
            continue
        cart.items.append(CartItem(product_id=saved.product_id, quantity=saved.quantity, created_at=_now()))

    cart.updated_at = _now()
    db.commit()
    store.discard(user_id)
    return item_count(db, user_id)

# backend/routes/cart.py
import logging
from typing import Optional
from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session, joinedload

from database import get_db
from utils.tokenJWT import get_current_user, get_optional_user
from utils.audit import write_log, client_ip
from utils.responses import success, failure
from models.users import User
from models.cart import Cart, CartItem
from schemas.cart import CartAddItem, CartUpdateItem, CartRemoveItem, CartOut, CartItemOut
from services import cart as cart_service
from services.errors import ShopError
from services.snapshots import SavedCartStore, get_saved_cart_store

router = APIRouter(prefix="/cart", tags=["Cart"])
logger = logging.getLogger(__name__)


def cart_to_out(db: Session, store: SavedCartStore, user_id: Optional[int]) -> CartOut:
    cart = None
    if user_id is not None:
        cart = (
            db.query(Cart)
            .options(joinedload(Cart.items).joinedload(CartItem.product))
            .filter(Cart.user_id == user_id)
            .first()
        )

    items_out = []
    subtotal = 0.0
    count = 0
    lines = sorted(cart.items, key=lambda i: i.id) if cart else []
    for it in lines:
        price = it.product.price
        line_total = it.quantity * price
        subtotal += line_total
        count += it.quantity
        items_out.append(CartItemOut(
            id=it.id,
            product_id=it.product_id,
            name=it.product.name,
            brand=it.product.brand,
            image_url=it.product.image_url,
            quantity=it.quantity,
            unit_price=price,
            line_total=line_total,
        ))

    has_saved = user_id is not None and store.get(user_id) is not None
    return CartOut(items=items_out, count=count, subtotal=subtotal, total=subtotal, has_saved_cart=has_saved)


@router.get("", response_model=CartOut)
def get_cart(
    db: Session = Depends(get_db),
    store: SavedCartStore = Depends(get_saved_cart_store),
    current_user: Optional[User] = Depends(get_optional_user),
):
    # Anonymous visitors see an empty cart
    return cart_to_out(db, store, current_user.id if current_user else None)


@router.get("/count")
def get_cart_count(
    db: Session = Depends(get_db),
    current_user: Optional[User] = Depends(get_optional_user),
):
    if not current_user:
        return {"count": 0}
    try:
        return {"count": cart_service.item_count(db, current_user.id)}
    except Exception:
        logger.exception("Error getting cart count")
        return {"count": 0}


@router.post("/add")
def add_to_cart(
    payload: CartAddItem,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    try:
        count = cart_service.add_item(db, current_user.id, payload.product_id)
    except ShopError:
        raise
    except Exception:
        db.rollback()
        logger.exception("Error adding product %s to cart", payload.product_id)
        return failure("Something went wrong while adding the product to the cart")

    write_log(
        db, user_id=current_user.id, action="CART_ADD", resource="cart", status="SUCCESS",
        ip=client_ip(request), meta={"product_id": payload.product_id, "cart_count": count},
    )
    return success("Product added to cart", cart_count=count)


@router.post("/update")
def update_cart_item(
    payload: CartUpdateItem,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    try:
        subtotal, total = cart_service.update_quantity(db, current_user.id, payload.cart_item_id, payload.quantity)
    except ShopError:
        raise
    except Exception:
        db.rollback()
        logger.exception("Error updating cart item %s", payload.cart_item_id)
        return failure("Something went wrong while updating the quantity")

    write_log(
        db, user_id=current_user.id, action="CART_UPDATE", resource="cart", status="SUCCESS",
        ip=client_ip(request), meta={"item_id": payload.cart_item_id, "quantity": payload.quantity, "total": total},
    )
    return success("Quantity updated", subtotal=subtotal, total=total)


@router.post("/remove")
def remove_cart_item(
    payload: CartRemoveItem,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    try:
        total, count = cart_service.remove_item(db, current_user.id, payload.cart_item_id)
    except ShopError:
        raise
    except Exception:
        db.rollback()
        logger.exception("Error removing cart item %s", payload.cart_item_id)
        return failure("Something went wrong while removing the product")

    write_log(
        db, user_id=current_user.id, action="CART_DELETE", resource="cart", status="SUCCESS",
        ip=client_ip(request), meta={"item_id": payload.cart_item_id, "cart_count": count, "total": total},
    )
    return success("Product removed from cart", total=total, cart_count=count)


@router.post("/buy-now")
def buy_now(
    payload: CartAddItem,
    request: Request,
    db: Session = Depends(get_db),
    store: SavedCartStore = Depends(get_saved_cart_store),
    current_user: User = Depends(get_current_user),
):
    try:
        count = cart_service.buy_now(db, store, current_user.id, payload.product_id)
    except ShopError:
        raise
    except Exception:
        db.rollback()
        logger.exception("Error in buy-now for product %s", payload.product_id)
        return failure("Something went wrong, please try again")

    write_log(
        db, user_id=current_user.id, action="CART_BUY_NOW", resource="cart", status="SUCCESS",
        ip=client_ip(request), meta={"product_id": payload.product_id},
    )
    return success("Proceeding to checkout", cart_count=count, redirect_url="/checkout")


@router.post("/restore")
def restore_cart(
    request: Request,
    db: Session = Depends(get_db),
    store: SavedCartStore = Depends(get_saved_cart_store),
    current_user: User = Depends(get_current_user),
):
    try:
        count = cart_service.restore(db, store, current_user.id)
    except ShopError:
        raise
    except Exception:
        db.rollback()
        logger.exception("Error restoring saved cart for user %s", current_user.id)
        return failure("Something went wrong while restoring your cart")

    write_log(
        db, user_id=current_user.id, action="CART_RESTORE", resource="cart", status="SUCCESS",
        ip=client_ip(request), meta={"cart_count": count},
    )
    return success("Your previous cart has been restored", cart_count=count)

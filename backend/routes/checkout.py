# backend/routes/checkout.py
import logging
from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from database import get_db
from utils.tokenJWT import get_current_user
from utils.audit import write_log, client_ip
from utils.responses import success, failure
from models.users import User
from schemas.cart import CartOut
from schemas.order import CheckoutRequest, OrderIdRequest, OrderOut
from services import cart as cart_service
from services import checkout as checkout_service
from services.errors import EmptyCart, NothingToRestore, ShopError
from services.snapshots import SavedCartStore, get_saved_cart_store
from routes.cart import cart_to_out
from routes.orders import order_to_out

router = APIRouter(prefix="/checkout", tags=["Checkout"])
logger = logging.getLogger(__name__)


# Cart summary for the checkout page; an empty cart gets its saved "buy now" lines back first
@router.get("", response_model=CartOut)
def checkout_page(
    db: Session = Depends(get_db),
    store: SavedCartStore = Depends(get_saved_cart_store),
    current_user: User = Depends(get_current_user),
):
    if cart_service.item_count(db, current_user.id) == 0:
        try:
            cart_service.restore(db, store, current_user.id)
        except NothingToRestore:
            pass
    out = cart_to_out(db, store, current_user.id)
    if not out.items:
        raise EmptyCart()
    return out


@router.post("/process")
def process_checkout(
    payload: CheckoutRequest,
    request: Request,
    db: Session = Depends(get_db),
    store: SavedCartStore = Depends(get_saved_cart_store),
    current_user: User = Depends(get_current_user),
):
    shipping = checkout_service.ShippingInfo(
        full_name=payload.full_name,
        phone_number=payload.phone_number,
        province=payload.province,
        ward=payload.ward,
        address=payload.address,
    )
    try:
        result = checkout_service.process(db, store, current_user.id, shipping, payload.payment_method)
    except ShopError as e:
        write_log(
            db, user_id=current_user.id, action="CHECKOUT", resource="orders", status="FAIL",
            ip=client_ip(request), meta={"reason": e.message, "payment_method": payload.payment_method},
        )
        raise
    except Exception:
        db.rollback()
        logger.exception("Error processing checkout for user %s", current_user.id)
        return failure("Something went wrong while placing your order. Please try again.")

    order = result.order
    write_log(
        db, user_id=current_user.id, action="CHECKOUT", resource="orders", status="SUCCESS",
        ip=client_ip(request),
        meta={"order_id": order.id, "status": order.status.value, "payment_method": order.payment_method.value,
              "total": order.total_amount},
    )

    extra = {}
    if result.payment_instructions:
        extra["payment_instructions"] = result.payment_instructions
    return success(
        result.message,
        order_id=order.id,
        status=order.status.value,
        payment_method=order.payment_method.value,
        total_amount=order.total_amount,
        redirect_url=result.redirect_url,
        **extra,
    )


@router.post("/confirm-payment")
def confirm_payment(
    payload: OrderIdRequest,
    request: Request,
    db: Session = Depends(get_db),
    store: SavedCartStore = Depends(get_saved_cart_store),
    current_user: User = Depends(get_current_user),
):
    try:
        order = checkout_service.confirm_payment(db, store, current_user.id, payload.order_id)
    except ShopError:
        raise
    except Exception:
        db.rollback()
        logger.exception("Error confirming payment for order %s", payload.order_id)
        return failure("Something went wrong while confirming the payment. Please try again.")

    write_log(
        db, user_id=current_user.id, action="PAYMENT_CONFIRM", resource="orders", status="SUCCESS",
        ip=client_ip(request), meta={"order_id": order.id, "status": order.status.value},
    )
    return success(
        "Payment confirmation received",
        order_id=order.id,
        status=order.status.value,
        redirect_url=f"/checkout/success/{order.id}",
    )


@router.get("/success/{order_id}", response_model=OrderOut)
def checkout_success(
    order_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return order_to_out(checkout_service.get_owned_order(db, current_user.id, order_id))

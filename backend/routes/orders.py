# backend/routes/orders.py
import logging
from typing import List, Optional
from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.orm import Session, joinedload

from database import get_db
from utils.tokenJWT import get_current_user
from utils.audit import write_log, client_ip
from utils.responses import success, failure
from models.users import User
from models.order import Order, OrderItem, OrderStatus
from schemas.order import OrderOut, OrderItemOut, OrderIdRequest
from services.checkout import get_owned_order
from services.errors import ShopError
from services.order_status import cancel_by_user

router = APIRouter(tags=["Orders"])
logger = logging.getLogger(__name__)

# History tabs: "processing" covers every status that is still moving
STATUS_GROUPS = {
    "processing": (OrderStatus.UNCONFIRMED, OrderStatus.PENDING, OrderStatus.APPROVED),
    "completed": (OrderStatus.COMPLETED,),
    "cancelled": (OrderStatus.CANCELLED,),
}


# Map Order model to the response schema
def order_to_out(order: Order, schema=OrderOut, **extra):
    items: List[OrderItemOut] = []
    subtotal = 0.0
    for it in order.items:
        line_total = it.quantity * it.price
        subtotal += line_total
        items.append(OrderItemOut(
            product_id=it.product_id,
            product_name=it.product.name if it.product else "Deleted product",
            image_url=it.product.image_url if it.product else None,
            quantity=it.quantity,
            price=it.price,
            line_total=line_total,
        ))
    status = OrderStatus(order.status)
    return schema(
        id=order.id,
        code=order.code,
        status=status.value,
        status_label=status.label,
        payment_method=order.payment_method.value,
        payment_status=order.payment_status,
        full_name=order.full_name,
        phone_number=order.phone_number,
        province=order.province,
        ward=order.ward,
        address=order.address,
        subtotal=subtotal,
        shipping_fee=order.shipping_fee or 0,
        total_amount=order.total_amount,
        created_at=order.created_at,
        updated_at=order.updated_at,
        items=items,
        **extra,
    )


# Order history of the current user, newest first
@router.get("/orders", response_model=List[OrderOut])
def list_my_orders(
    status: Optional[str] = Query(None, description="processing | completed | cancelled"),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    q = db.query(Order).options(
        joinedload(Order.items).joinedload(OrderItem.product)
    ).filter(Order.user_id == current_user.id)

    group = STATUS_GROUPS.get((status or "").lower())
    if group:
        q = q.filter(Order.status.in_(group))

    orders = q.order_by(Order.created_at.desc(), Order.id.desc()).all()
    return [order_to_out(o) for o in orders]


@router.get("/orders/{order_id}", response_model=OrderOut)
def get_order_detail(
    order_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return order_to_out(get_owned_order(db, current_user.id, order_id))


# Customer cancellation; allowed until the order is completed
@router.post("/order/cancel")
def cancel_order(
    payload: OrderIdRequest,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    try:
        order = get_owned_order(db, current_user.id, payload.order_id)
        old_status = cancel_by_user(order)
        db.commit()
    except ShopError:
        db.rollback()
        raise
    except Exception:
        db.rollback()
        logger.exception("Error cancelling order %s", payload.order_id)
        return failure("Something went wrong while cancelling the order, please try again")

    logger.info("Order %s cancelled by user %s (was %s)", order.id, current_user.id, old_status.value)
    write_log(
        db, user_id=current_user.id, action="ORDER_CANCEL", resource="orders", status="SUCCESS",
        ip=client_ip(request), meta={"order_id": payload.order_id, "old": old_status.value},
    )
    return success("Your order has been cancelled", order_id=payload.order_id, status=OrderStatus.CANCELLED.value)

# backend/services/checkout.py
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy.orm import Session, joinedload

from config import settings
from models.cart import Cart, CartItem
from models.order import Order, OrderItem, OrderStatus, PaymentMethod
from services import cart as cart_service
from services.errors import EmptyCart, InvalidPaymentMethod, NotFound, ValidationError
from services.snapshots import SavedCartStore
from utils.payment_qr import bank_transfer_instructions

logger = logging.getLogger(__name__)

SHIPPING_FIELDS = ("full_name", "phone_number", "province", "ward", "address")


@dataclass
class ShippingInfo:
    full_name: str
    phone_number: str
    province: str
    ward: str
    address: str


@dataclass
class CheckoutResult:
    order: Order
    message: str
    payment_instructions: Optional[dict] = None

    @property
    def redirect_url(self) -> str:
        return f"/checkout/success/{self.order.id}"


def parse_payment_method(value: str) -> PaymentMethod:
    # Exact names only: "COD", "InStore", "BankTransfer"
    try:
        return PaymentMethod(value)
    except ValueError:
        raise InvalidPaymentMethod()


def initial_status(method: PaymentMethod) -> OrderStatus:
    # Bank transfers wait for the customer to confirm the transfer
    if method == PaymentMethod.BANK_TRANSFER:
        return OrderStatus.UNCONFIRMED
    return OrderStatus.APPROVED


def calculate_shipping_fee(cart: Cart, shipping: ShippingInfo) -> float:
    # Free shipping everywhere for now
    return 0.0


def _validate_shipping(shipping: ShippingInfo) -> ShippingInfo:
    values = {}
    for field in SHIPPING_FIELDS:
        value = getattr(shipping, field)
        if value is None or not str(value).strip():
            raise ValidationError("Please fill in all shipping details")
        values[field] = str(value).strip()
    return ShippingInfo(**values)


def _load_cart(db: Session, user_id: int) -> Optional[Cart]:
    return (
        db.query(Cart)
        .options(joinedload(Cart.items).joinedload(CartItem.product))
        .filter(Cart.user_id == user_id)
        .first()
    )


def process(
    db: Session,
    store: SavedCartStore,
    user_id: int,
    shipping: ShippingInfo,
    payment_method: str,
) -> CheckoutResult:
    """Turn the user's cart into an order.

    COD and in-store orders are approved right away and empty the cart. Bank
    transfer orders start Unconfirmed and keep the cart until the customer
    confirms the transfer (confirm_payment), so an abandoned transfer does not
    lose the cart.
    """
    shipping = _validate_shipping(shipping)
    method = parse_payment_method(payment_method)

    cart = _load_cart(db, user_id)
    if not cart or not cart.items:
        raise EmptyCart()

    subtotal = sum(ci.quantity * ci.product.price for ci in cart.items)
    shipping_fee = calculate_shipping_fee(cart, shipping)
    total = subtotal + shipping_fee

    now = datetime.now(timezone.utc)
    order = Order(
        user_id=user_id,
        full_name=shipping.full_name,
        phone_number=shipping.phone_number,
        province=shipping.province,
        ward=shipping.ward,
        address=shipping.address,
        payment_method=method,
        status=initial_status(method),
        total_amount=total,
        shipping_fee=shipping_fee,
        created_at=now,
    )
    db.add(order)

    # Prices are copied now so later catalog changes do not alter the order
    order.items = [
        OrderItem(product_id=ci.product_id, quantity=ci.quantity, price=ci.product.price, created_at=now)
        for ci in cart.items
    ]

    if method != PaymentMethod.BANK_TRANSFER:
        cart_service.drain(db, cart)

    try:
        db.commit()
    except Exception:
        db.rollback()
        raise
    db.refresh(order)

    if method != PaymentMethod.BANK_TRANSFER:
        store.discard(user_id)

    logger.info(
        "Order %s created for user %s: %s, %s, total=%.0f",
        order.id, user_id, method.value, order.status.value, total,
    )

    if order.status == OrderStatus.UNCONFIRMED:
        message = "Your order is waiting for payment confirmation. We will check and confirm it shortly."
        instructions = bank_transfer_instructions(
            total, f"{settings.BANK_TRANSFER_DESCRIPTION} {order.code.lstrip('#')}"
        )
        return CheckoutResult(order=order, message=message, payment_instructions=instructions)

    return CheckoutResult(order=order, message="Order placed successfully! Thank you for shopping at Roma Watches.")


def get_owned_order(db: Session, user_id: int, order_id: int) -> Order:
    order = (
        db.query(Order)
        .options(joinedload(Order.items).joinedload(OrderItem.product))
        .filter(Order.id == order_id, Order.user_id == user_id)
        .first()
    )
    if not order:
        raise NotFound("Order not found")
    return order


def confirm_payment(db: Session, store: SavedCartStore, user_id: int, order_id: int) -> Order:
    """Customer reports the bank transfer as done.

    Moves an Unconfirmed bank-transfer order to Pending and empties the cart.
    Safe to repeat: later calls leave the status alone and clear an already
    empty cart.
    """
    order = get_owned_order(db, user_id, order_id)

    if order.payment_method == PaymentMethod.BANK_TRANSFER and order.status == OrderStatus.UNCONFIRMED:
        order.status = OrderStatus.PENDING
        order.updated_at = datetime.now(timezone.utc)
        logger.info("Payment confirmed by user %s for order %s", user_id, order.id)

    cart_service.drain(db, cart_service.get_cart(db, user_id))
    db.commit()
    store.discard(user_id)
    db.refresh(order)
    return order

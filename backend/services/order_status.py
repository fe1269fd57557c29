# backend/services/order_status.py
import logging
from datetime import datetime, timezone

from models.order import Order, OrderStatus
from services.errors import InvalidStateTransition, ValidationError

logger = logging.getLogger(__name__)


def parse_status(value: str) -> OrderStatus:
    """Case-insensitive lookup by value ("Pending") or member name ("PENDING")."""
    raw = (value or "").strip().lower()
    for status in OrderStatus:
        if raw in (status.value.lower(), status.name.lower()):
            return status
    raise ValidationError(f"Invalid order status: {value}")


def is_valid_transition(current: OrderStatus, new: OrderStatus) -> bool:
    # Completed and Cancelled are final
    if current.is_terminal:
        return False
    if new == current:
        return False
    # Cancellation is allowed from every non-final status
    if new == OrderStatus.CANCELLED:
        return True
    # An unconfirmed order has to be confirmed or approved before completion
    if current == OrderStatus.UNCONFIRMED and new == OrderStatus.COMPLETED:
        return False
    return True


def transition(order: Order, new: OrderStatus) -> OrderStatus:
    """Apply an admin status change. Returns the previous status; the caller commits."""
    old = OrderStatus(order.status)
    if not is_valid_transition(old, new):
        logger.warning("Rejected status change for order %s: %s -> %s", order.id, old.value, new.value)
        raise InvalidStateTransition(f'Cannot change status from "{old.label}" to "{new.label}"')
    order.status = new
    order.updated_at = datetime.now(timezone.utc)
    return old


def cancel_by_user(order: Order) -> OrderStatus:
    # Customers may cancel anything that has not been delivered yet
    old = OrderStatus(order.status)
    if old == OrderStatus.COMPLETED:
        raise InvalidStateTransition("Completed orders cannot be cancelled")
    order.status = OrderStatus.CANCELLED
    order.updated_at = datetime.now(timezone.utc)
    return old

# backend/services/errors.py

# Business errors raised by the cart/checkout/order services. main.py turns them
# into {"success": false, "message": ...} responses with the status code below.
class ShopError(Exception):
    status_code = 400
    default_message = "Request could not be processed"

    def __init__(self, message: str = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(ShopError):
    default_message = "Invalid data"


# Also used when the resource exists but belongs to another user
class NotFound(ShopError):
    status_code = 404
    default_message = "Not found"


class InvalidStateTransition(ShopError):
    status_code = 409
    default_message = "Invalid order status transition"


class EmptyCart(ShopError):
    default_message = "Cart is empty"


class InvalidPaymentMethod(ShopError):
    default_message = "Invalid payment method"


class NothingToRestore(ShopError):
    status_code = 404
    default_message = "No saved cart to restore"

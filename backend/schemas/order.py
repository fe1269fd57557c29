from pydantic import BaseModel, Field
from typing import List, Optional
from datetime import datetime


# Checkout form. Blank values are accepted here and rejected by the checkout service
class CheckoutRequest(BaseModel):
    full_name: str = ""
    phone_number: str = ""
    province: str = ""
    ward: str = ""
    address: str = ""
    payment_method: str = ""


class OrderIdRequest(BaseModel):
    order_id: int = Field(gt=0)


# Admin status change; new_status accepts "Approved" or "APPROVED"
class UpdateOrderStatusRequest(OrderIdRequest):
    new_status: str


# Output schema for an individual order line item
class OrderItemOut(BaseModel):
    product_id: int
    product_name: str
    image_url: Optional[str] = None
    quantity: int
    price: float
    line_total: float


# Output schema representing the full order details
class OrderOut(BaseModel):
    id: int
    code: str
    status: str
    status_label: str
    payment_method: str
    payment_status: str
    full_name: str
    phone_number: str
    province: str
    ward: str
    address: str
    subtotal: float
    shipping_fee: float
    total_amount: float
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    items: List[OrderItemOut]


# Admin view adds the account that placed the order
class AdminOrderOut(OrderOut):
    user_id: int
    user_email: Optional[str] = None

from pydantic import BaseModel, Field
from typing import List, Optional

# Request schema for adding a product to the cart (one unit per call)
class CartAddItem(BaseModel):
    product_id: int = Field(gt=0)

# Request schema for changing a line quantity; values below 1 are rejected by the cart service
class CartUpdateItem(BaseModel):
    cart_item_id: int = Field(gt=0)
    quantity: int

class CartRemoveItem(BaseModel):
    cart_item_id: int = Field(gt=0)

# Response schema for a single cart line item
class CartItemOut(BaseModel):
    id: int
    product_id: int
    name: str
    brand: str
    image_url: Optional[str] = None
    quantity: int
    unit_price: float
    line_total: float

# Response schema for the entire cart summary
class CartOut(BaseModel):
    items: List[CartItemOut]
    count: int
    subtotal: float
    shipping_fee: float = 0
    total: float
    has_saved_cart: bool = False

# backend/models/order.py
import enum
from sqlalchemy import Column, Integer, String, Float, ForeignKey, DateTime, Enum, CheckConstraint, func
from sqlalchemy.orm import relationship
from database import Base

# Order lifecycle: Unconfirmed -> Pending/Approved -> Completed, Cancelled as a side branch
class OrderStatus(str, enum.Enum):
    UNCONFIRMED = "Unconfirmed"  # bank transfer not yet confirmed by the customer
    PENDING = "Pending"          # bank transfer confirmed, waiting for approval
    APPROVED = "Approved"        # approved, out for delivery
    COMPLETED = "Completed"
    CANCELLED = "Cancelled"

    @property
    def label(self) -> str:
        return ORDER_STATUS_LABELS[self]

    @property
    def is_terminal(self) -> bool:
        return self in (OrderStatus.COMPLETED, OrderStatus.CANCELLED)


ORDER_STATUS_LABELS = {
    OrderStatus.UNCONFIRMED: "Awaiting confirmation",
    OrderStatus.PENDING: "Confirmed",
    OrderStatus.APPROVED: "Shipping",
    OrderStatus.COMPLETED: "Delivered",
    OrderStatus.CANCELLED: "Cancelled",
}


class PaymentMethod(str, enum.Enum):
    COD = "COD"                      # cash on delivery
    IN_STORE = "InStore"             # paid at the shop counter
    BANK_TRANSFER = "BankTransfer"


class Order(Base):
    __tablename__ = "orders"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), index=True, nullable=False)

    # Shipping details
    full_name = Column(String(200), nullable=False)
    phone_number = Column(String(20), nullable=False)
    province = Column(String(100), nullable=False)
    ward = Column(String(100), nullable=False)
    address = Column(String(500), nullable=False)

    payment_method = Column(Enum(PaymentMethod, values_callable=lambda e: [m.value for m in e]), nullable=False)
    status = Column(
        Enum(OrderStatus, values_callable=lambda e: [m.value for m in e]),
        nullable=False,
        default=OrderStatus.PENDING,
        index=True,
    )

    # Captured at checkout, never recomputed
    total_amount = Column(Float, nullable=False)
    shipping_fee = Column(Float, nullable=False, default=0)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), index=True)
    updated_at = Column(DateTime(timezone=True), nullable=True)

    items = relationship("OrderItem", back_populates="order", cascade="all, delete-orphan")
    user = relationship("User")

    @property
    def code(self) -> str:
        return f"#RW{self.id}"

    @property
    def payment_status(self) -> str:
        if self.status == OrderStatus.CANCELLED:
            return "Cancelled"
        if self.payment_method == PaymentMethod.BANK_TRANSFER:
            if self.status in (OrderStatus.UNCONFIRMED, OrderStatus.PENDING):
                return "Awaiting payment"
            return "Paid"
        if self.status in (OrderStatus.APPROVED, OrderStatus.COMPLETED):
            return "Paid"
        return "Awaiting payment"


class OrderItem(Base):
    __tablename__ = "order_items"
    id = Column(Integer, primary_key=True, index=True)
    order_id = Column(Integer, ForeignKey("orders.id"), index=True, nullable=False)
    product_id = Column(Integer, ForeignKey("products.id"), nullable=False)
    quantity = Column(Integer, CheckConstraint("quantity >= 1"), nullable=False)
    price = Column(Float, nullable=False)  # unit price at the time of the order
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    order = relationship("Order", back_populates="items")
    product = relationship("Product")

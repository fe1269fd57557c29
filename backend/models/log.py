# backend/models/log.py
from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, JSON, func
from sqlalchemy.orm import relationship
from database import Base

# Audit trail of customer and admin actions (cart, checkout, order status changes, logins)
class Log(Base):
    __tablename__ = "logs"

    id = Column(Integer, primary_key=True, index=True)

    ts = Column(DateTime(timezone=True), server_default=func.now(), index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=True, index=True)
    action = Column(String(50), index=True)     # e.g. CART_ADD, CHECKOUT, ORDER_STATUS_CHANGE
    resource = Column(String(50), index=True)   # cart, orders, auth, ...
    status = Column(String(20), index=True)     # SUCCESS / FAIL
    ip = Column(String(64), nullable=True)

    # Free-form context (order id, old/new status, totals)
    meta = Column(JSON, nullable=True)

    user = relationship("User", lazy="joined", uselist=False)

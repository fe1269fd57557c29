# backend/models/product.py
from sqlalchemy import Column, Integer, String, Float, Text, DateTime, CheckConstraint, func
from database import Base

# Model Product
# A single watch in the catalog. Besides name, brand and price it carries the
# technical attributes used by the catalog filters (movement, strap type,
# water resistance in ATM, gender).
class Product(Base):
    __tablename__ = "products"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(200), nullable=False, index=True)
    brand = Column(String(100), nullable=False, index=True)

    price = Column(Float, CheckConstraint("price >= 0"), nullable=False, index=True)

    # Technical sheet
    case_material = Column(String(100))
    case_diameter = Column(String(50))
    dial = Column(String(100))
    movement = Column(String(100))
    power_reserve = Column(String(50))
    water_resistance = Column(String(50))
    crystal = Column(String(100))

    # Filterable attributes
    gender = Column(String(50), index=True)
    strap_type = Column(String(100), index=True)
    water_resistance_atm = Column(Integer, nullable=True, index=True)

    description = Column(Text)
    image_url = Column(String(500), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), index=True)
    updated_at = Column(DateTime(timezone=True), nullable=True, onupdate=func.now())

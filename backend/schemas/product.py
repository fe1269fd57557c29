# backend/schemas/product.py
from pydantic import BaseModel, ConfigDict
from typing import Optional, List
from datetime import datetime


# Base configuration for ORM compatibility
class ORMBase(BaseModel):
    model_config = ConfigDict(from_attributes=True)


# Short form used in listings, cart and order lines
class ProductSummary(ORMBase):
    id: int
    name: str
    brand: str
    price: float
    image_url: Optional[str] = None


# Full product sheet
class ProductOut(ProductSummary):
    case_material: Optional[str] = None
    case_diameter: Optional[str] = None
    dial: Optional[str] = None
    movement: Optional[str] = None
    power_reserve: Optional[str] = None
    water_resistance: Optional[str] = None
    crystal: Optional[str] = None
    gender: Optional[str] = None
    strap_type: Optional[str] = None
    water_resistance_atm: Optional[int] = None
    description: Optional[str] = None
    created_at: Optional[datetime] = None


class ProductListOut(BaseModel):
    items: List[ProductOut]
    total: int
    sort_by: str


# Distinct values for the filter sidebar
class ProductFacets(BaseModel):
    brands: List[str]
    genders: List[str]
    movements: List[str]
    strap_types: List[str]
    water_resistance_atms: List[int]
    price_ranges: List[str]

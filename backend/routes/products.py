# backend/routes/products.py
from typing import Optional, List
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from database import get_db
from models.product import Product
from schemas.product import ProductOut, ProductListOut, ProductFacets
from services import catalog
from services.errors import NotFound

router = APIRouter(prefix="/products", tags=["Products"])


# =========================
# CATALOG LISTING
# =========================
@router.get("", response_model=ProductListOut)
def list_products(
    brands: Optional[str] = Query(None, description="Comma separated brands"),
    genders: Optional[str] = Query(None, description="Comma separated genders"),
    movements: Optional[str] = Query(None, description="Comma separated movement types"),
    strap_types: Optional[str] = Query(None, description="Comma separated strap types"),
    water_resistance_atms: Optional[str] = Query(None, description="Comma separated ATM values, e.g. 5,10"),
    price_ranges: Optional[str] = Query(None, description="Any of 2-5, 5-10, 10-20, 20-50, 50+ (millions)"),
    q: Optional[str] = Query(None, description="Search by name or brand"),
    sort_by: str = Query(catalog.DEFAULT_SORT, description="price-asc | price-desc | name | newest"),
    db: Session = Depends(get_db),
):
    flt = catalog.CatalogFilter.from_query_params(
        brands=brands,
        genders=genders,
        movements=movements,
        strap_types=strap_types,
        water_resistance_atms=water_resistance_atms,
        price_ranges=price_ranges,
        q=q,
        sort_by=sort_by,
    )
    items = catalog.search_products(db, flt)
    return {"items": items, "total": len(items), "sort_by": flt.sort_by}


# =========================
# HELPER ENDPOINTS
# =========================
@router.get("/latest", response_model=List[ProductOut])
def latest_products(limit: int = Query(4, ge=1, le=24), db: Session = Depends(get_db)):
    return catalog.latest_products(db, limit)


@router.get("/facets", response_model=ProductFacets)
def product_facets(db: Session = Depends(get_db)):
    return catalog.facets(db)


# =========================
# SINGLE PRODUCT
# =========================
@router.get("/{product_id}", response_model=ProductOut)
def get_product(product_id: int, db: Session = Depends(get_db)):
    product = db.query(Product).filter(Product.id == product_id).first()
    if not product:
        raise NotFound("Product not found")
    return product

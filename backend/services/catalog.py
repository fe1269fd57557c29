# backend/services/catalog.py
from dataclasses import dataclass, field
from typing import List, Optional

from sqlalchemy import and_, func, or_
from sqlalchemy.orm import Query, Session

from models.product import Product
from services.errors import ValidationError

MILLION = 1_000_000

# Price buckets offered by the shop filter: [low, high) in dong, high=None means open-ended
PRICE_RANGES = {
    "2-5": (2 * MILLION, 5 * MILLION),
    "5-10": (5 * MILLION, 10 * MILLION),
    "10-20": (10 * MILLION, 20 * MILLION),
    "20-50": (20 * MILLION, 50 * MILLION),
    "50+": (50 * MILLION, None),
}

# An unencoded "50+" in a query string decodes to "50 "
PRICE_RANGE_ALIASES = {"50": "50+"}

SORTS = {
    "price-asc": (Product.price.asc(), Product.id.asc()),
    "price-desc": (Product.price.desc(), Product.id.asc()),
    "name": (Product.name.asc(), Product.id.asc()),
    "newest": (Product.created_at.desc(), Product.id.desc()),
}
DEFAULT_SORT = "newest"


def split_csv(raw: Optional[str]) -> List[str]:
    if not raw:
        return []
    return [part.strip().lower() for part in raw.split(",") if part.strip()]


@dataclass
class CatalogFilter:
    brands: List[str] = field(default_factory=list)
    genders: List[str] = field(default_factory=list)
    movements: List[str] = field(default_factory=list)
    strap_types: List[str] = field(default_factory=list)
    water_resistance_atms: List[int] = field(default_factory=list)
    price_ranges: List[str] = field(default_factory=list)
    search: Optional[str] = None
    sort_by: str = DEFAULT_SORT

    @classmethod
    def from_query_params(
        cls,
        brands: Optional[str] = None,
        genders: Optional[str] = None,
        movements: Optional[str] = None,
        strap_types: Optional[str] = None,
        water_resistance_atms: Optional[str] = None,
        price_ranges: Optional[str] = None,
        q: Optional[str] = None,
        sort_by: Optional[str] = None,
    ) -> "CatalogFilter":
        try:
            atms = [int(a) for a in split_csv(water_resistance_atms)]
        except ValueError:
            raise ValidationError("Water resistance must be a list of whole ATM values")
        return cls(
            brands=split_csv(brands),
            genders=split_csv(genders),
            movements=split_csv(movements),
            strap_types=split_csv(strap_types),
            water_resistance_atms=atms,
            price_ranges=split_csv(price_ranges),
            search=(q or "").strip().lower() or None,
            sort_by=sort_by or DEFAULT_SORT,
        )


def _contains_any(column, needles: List[str]):
    return or_(*[column.ilike(f"%{n}%") for n in needles])


def price_condition(ranges: List[str]):
    """OR of the selected price buckets as one SQL expression, or None."""
    conditions = []
    for key in ranges:
        bounds = PRICE_RANGES.get(PRICE_RANGE_ALIASES.get(key, key))
        if bounds is None:
            continue
        low, high = bounds
        if high is None:
            conditions.append(Product.price >= low)
        else:
            conditions.append(and_(Product.price >= low, Product.price < high))
    if not conditions:
        return None
    return or_(*conditions)


def apply_filters(query: Query, flt: CatalogFilter) -> Query:
    # Values inside one field are OR'd, fields are AND'd
    if flt.search:
        query = query.filter(
            or_(
                Product.name.ilike(f"%{flt.search}%"),
                Product.brand.ilike(f"%{flt.search}%"),
            )
        )
    if flt.brands:
        query = query.filter(func.lower(Product.brand).in_(flt.brands))
    if flt.genders:
        query = query.filter(Product.gender.isnot(None), func.lower(Product.gender).in_(flt.genders))
    if flt.movements:
        query = query.filter(Product.movement.isnot(None), _contains_any(Product.movement, flt.movements))
    if flt.strap_types:
        query = query.filter(Product.strap_type.isnot(None), _contains_any(Product.strap_type, flt.strap_types))
    if flt.water_resistance_atms:
        query = query.filter(Product.water_resistance_atm.in_(flt.water_resistance_atms))

    price = price_condition(flt.price_ranges)
    if price is not None:
        query = query.filter(price)
    return query


def apply_sorting(query: Query, sort_by: str) -> Query:
    return query.order_by(*SORTS.get(sort_by, SORTS[DEFAULT_SORT]))


def search_products(db: Session, flt: CatalogFilter) -> List[Product]:
    query = apply_filters(db.query(Product), flt)
    return apply_sorting(query, flt.sort_by).all()


def latest_products(db: Session, limit: int = 4) -> List[Product]:
    return db.query(Product).order_by(Product.id.desc()).limit(limit).all()


def _distinct(db: Session, column) -> list:
    rows = db.query(column).distinct().filter(column.isnot(None)).order_by(column).all()
    return [r[0] for r in rows if r[0] != ""]


def facets(db: Session) -> dict:
    return {
        "brands": _distinct(db, Product.brand),
        "genders": _distinct(db, Product.gender),
        "movements": _distinct(db, Product.movement),
        "strap_types": _distinct(db, Product.strap_type),
        "water_resistance_atms": _distinct(db, Product.water_resistance_atm),
        "price_ranges": list(PRICE_RANGES),
    }

# backend/routes/admin.py
import logging
from datetime import datetime, timedelta, timezone
from typing import List, Optional, Literal
from fastapi import APIRouter, Depends, Query, Request
from pydantic import BaseModel
from sqlalchemy import String, cast, func, literal, or_
from sqlalchemy.orm import Session, joinedload

from database import get_db
from models.users import User
from models.product import Product
from models.order import Order, OrderItem, OrderStatus
from schemas.order import AdminOrderOut, UpdateOrderStatusRequest
from schemas.user import UserResponse
from services.errors import NotFound, ShopError
from services.order_status import parse_status, transition
from utils.tokenJWT import admin_required
from utils.audit import write_log, client_ip
from utils.responses import success, failure
from routes.orders import order_to_out

router = APIRouter(prefix="/admin", tags=["Admin"])
logger = logging.getLogger(__name__)

# Statuses that count as sales on the dashboard
REVENUE_STATUSES = (OrderStatus.APPROVED, OrderStatus.COMPLETED)
DASHBOARD_DAYS = 30

# === Pydantic Response Schemas ===

class RecentOrder(BaseModel):
    id: int
    code: str
    full_name: str
    user_email: Optional[str] = None
    total_amount: float
    status: str
    status_label: str
    created_at: Optional[datetime] = None

class TopProduct(BaseModel):
    product_id: int
    product_name: str
    image_url: Optional[str] = None
    price: float
    total_sold: int

class DashboardOut(BaseModel):
    total_revenue: float
    new_orders_count: int
    total_products_sold: int
    recent_orders: List[RecentOrder]
    top_products: List[TopProduct]

# Schema for paginated user list response
class PaginatedUsersResponse(BaseModel):
    items: List[UserResponse]
    total: int
    page: int
    page_size: int


def _admin_order_out(order: Order) -> AdminOrderOut:
    return order_to_out(order, AdminOrderOut, user_id=order.user_id, user_email=order.user.email if order.user else None)


# === Dashboard ===

@router.get("/dashboard", response_model=DashboardOut)
def dashboard(
    db: Session = Depends(get_db),
    current_user: User = Depends(admin_required),
):
    since = datetime.now(timezone.utc) - timedelta(days=DASHBOARD_DAYS)

    # Revenue of approved/completed orders placed in the last 30 days
    total_revenue = db.query(func.sum(Order.total_amount)).filter(
        Order.created_at >= since, Order.status.in_(REVENUE_STATUSES)
    ).scalar() or 0.0

    # New orders, ignoring bank transfers nobody confirmed
    new_orders_count = db.query(Order).filter(
        Order.created_at >= since, Order.status != OrderStatus.UNCONFIRMED
    ).count()

    total_products_sold = db.query(func.sum(OrderItem.quantity)).join(
        Order, Order.id == OrderItem.order_id
    ).filter(
        Order.created_at >= since, Order.status.in_(REVENUE_STATUSES)
    ).scalar() or 0

    recent = db.query(Order).options(joinedload(Order.user)).filter(
        Order.status != OrderStatus.UNCONFIRMED
    ).order_by(Order.created_at.desc(), Order.id.desc()).limit(5).all()

    # Best sellers of all time, top 5
    top_rows = (
        db.query(
            Product.id.label("product_id"),
            Product.name.label("product_name"),
            Product.image_url.label("image_url"),
            Product.price.label("price"),
            func.sum(OrderItem.quantity).label("total_sold"),
        )
        .join(OrderItem, OrderItem.product_id == Product.id)
        .join(Order, Order.id == OrderItem.order_id)
        .filter(Order.status.in_(REVENUE_STATUSES))
        .group_by(Product.id, Product.name, Product.image_url, Product.price)
        .order_by(func.sum(OrderItem.quantity).desc())
        .limit(5)
        .all()
    )

    return DashboardOut(
        total_revenue=total_revenue,
        new_orders_count=new_orders_count,
        total_products_sold=total_products_sold,
        recent_orders=[
            RecentOrder(
                id=o.id, code=o.code, full_name=o.full_name,
                user_email=o.user.email if o.user else None,
                total_amount=o.total_amount, status=o.status.value, status_label=o.status.label,
                created_at=o.created_at,
            )
            for o in recent
        ],
        top_products=[TopProduct(**row._mapping) for row in top_rows],
    )


# === Orders ===

@router.get("/orders", response_model=List[AdminOrderOut])
def list_orders(
    search: Optional[str] = Query(None, description="Customer name or order code (#RW12)"),
    db: Session = Depends(get_db),
    current_user: User = Depends(admin_required),
):
    q = db.query(Order).options(
        joinedload(Order.items).joinedload(OrderItem.product),
        joinedload(Order.user),
    )
    if search and search.strip():
        like = f"%{search.strip().lower()}%"
        order_code = literal("#rw") + cast(Order.id, String)
        q = q.filter(or_(Order.full_name.ilike(like), order_code.ilike(like)))

    orders = q.order_by(Order.created_at.desc(), Order.id.desc()).all()
    return [_admin_order_out(o) for o in orders]


@router.get("/orders/{order_id}", response_model=AdminOrderOut)
def get_order(
    order_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(admin_required),
):
    order = db.query(Order).options(
        joinedload(Order.items).joinedload(OrderItem.product),
        joinedload(Order.user),
    ).filter(Order.id == order_id).first()
    if not order:
        raise NotFound("Order not found")
    return _admin_order_out(order)


@router.post("/order/update-status")
def update_order_status(
    payload: UpdateOrderStatusRequest,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(admin_required),
):
    logger.info("Status update requested by admin %s: order=%s new=%s",
                current_user.id, payload.order_id, payload.new_status)
    try:
        new_status = parse_status(payload.new_status)
        order = db.query(Order).filter(Order.id == payload.order_id).first()
        if not order:
            raise NotFound("Order not found")
        old_status = transition(order, new_status)
        db.commit()
    except ShopError as e:
        db.rollback()
        write_log(
            db, user_id=current_user.id, action="ORDER_STATUS_CHANGE", resource="orders", status="FAIL",
            ip=client_ip(request), meta={"order_id": payload.order_id, "new": payload.new_status, "reason": e.message},
        )
        raise
    except Exception:
        db.rollback()
        logger.exception("Error updating status of order %s", payload.order_id)
        return failure("Something went wrong while updating the order status")

    logger.info("Order %s status changed %s -> %s", order.id, old_status.value, new_status.value)
    write_log(
        db, user_id=current_user.id, action="ORDER_STATUS_CHANGE", resource="orders", status="SUCCESS",
        ip=client_ip(request), meta={"order_id": payload.order_id, "old": old_status.value, "new": new_status.value},
    )
    return success(f"Status updated: {new_status.label}", new_status=new_status.value)


# === Users ===

# Retrieve a list of users with filtering, sorting, and pagination
@router.get("/users", response_model=PaginatedUsersResponse)
def get_all_users(
    q: Optional[str] = Query(None, description="Search by e-mail"),
    role: Optional[str] = Query(None, description="Filter by role"),
    page: int = Query(1, ge=1),
    page_size: int = Query(10, ge=1, le=100),
    sort_by: Literal["id", "email", "role", "first_name", "last_name"] = "id",
    order: Literal["asc", "desc"] = "asc",
    db: Session = Depends(get_db),
    current_user: User = Depends(admin_required),
):
    query = db.query(User)

    if q:
        query = query.filter(User.email.ilike(f"%{q.lower()}%"))
    if role:
        query = query.filter(User.role.ilike(role))

    sort_map = {
        "id": User.id,
        "email": User.email,
        "role": User.role,
        "first_name": User.first_name,
        "last_name": User.last_name,
    }
    col = sort_map.get(sort_by, User.id)
    query = query.order_by(col.asc() if order == "asc" else col.desc())

    total = query.count()
    users = query.offset((page - 1) * page_size).limit(page_size).all()

    return {
        "items": users,
        "total": total,
        "page": page,
        "page_size": page_size,
    }

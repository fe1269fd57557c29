import os

# Must be set before config/database are imported
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["SECRET_KEY"] = "test-secret"
os.environ["GOOGLE_CLIENT_ID"] = "test-client"

from datetime import datetime, timezone

import pytest
from fastapi.testclient import TestClient

from database import Base, SessionLocal, engine
from main import app
from models.order import Order, OrderItem, OrderStatus, PaymentMethod
from models.product import Product
from models.users import User
from services.snapshots import SavedCartStore, get_saved_cart_store
from utils.hashing import get_password_hash
from utils.tokenJWT import create_access_token

PASSWORD = "Secret123"


@pytest.fixture(autouse=True)
def reset_db():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield


@pytest.fixture
def db():
    session = SessionLocal()
    yield session
    session.close()


@pytest.fixture
def store():
    return SavedCartStore()


@pytest.fixture
def client(store):
    app.dependency_overrides[get_saved_cart_store] = lambda: store
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


def _create_user(db, email, role="user", first_name="Test", last_name="User"):
    user = User(
        email=email,
        password_hash=get_password_hash(PASSWORD),
        role=role,
        first_name=first_name,
        last_name=last_name,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def headers_for(user):
    return {"Authorization": f"Bearer {create_access_token({'sub': user.email})}"}


@pytest.fixture
def user(db):
    return _create_user(db, "customer@romawatches.vn")


@pytest.fixture
def other_user(db):
    return _create_user(db, "other@romawatches.vn", first_name="Other")


@pytest.fixture
def admin(db):
    return _create_user(db, "admin@romawatches.vn", role="admin", first_name="Admin", last_name="Account")


@pytest.fixture
def auth(user):
    return headers_for(user)


@pytest.fixture
def admin_auth(admin):
    return headers_for(admin)


@pytest.fixture
def make_product(db):
    def _make(name="Seamaster Diver 300M", brand="Omega", price=3_500_000, **fields):
        product = Product(name=name, brand=brand, price=price, **fields)
        db.add(product)
        db.commit()
        db.refresh(product)
        return product
    return _make


@pytest.fixture
def make_order(db):
    """Insert an order directly, bypassing checkout."""
    def _make(user, lines, status=OrderStatus.APPROVED, method=PaymentMethod.COD,
              full_name="Nguyen Van A", created_at=None):
        created_at = created_at or datetime.now(timezone.utc)
        order = Order(
            user_id=user.id,
            full_name=full_name,
            phone_number="0901234567",
            province="Ha Noi",
            ward="Phuong Hang Bac",
            address="12 Hang Bac",
            payment_method=method,
            status=status,
            total_amount=sum(p.price * q for p, q in lines),
            shipping_fee=0,
            created_at=created_at,
        )
        order.items = [OrderItem(product_id=p.id, quantity=q, price=p.price) for p, q in lines]
        db.add(order)
        db.commit()
        db.refresh(order)
        return order
    return _make

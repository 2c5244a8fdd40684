"""Pytest configuration and fixtures."""

import os

# Settings are read once at import time
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("DEBUG", "true")
os.environ.setdefault("RATE_LIMIT_ENABLED", "false")
os.environ.setdefault("SECRET_KEY", "test-secret-key-that-is-at-least-32-characters")

from decimal import Decimal
from typing import Generator

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, event
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from havens.core.cache import cache
from havens.core.rbac import UserRole, default_permissions
from havens.core.security import create_access_token, get_password_hash
from havens.db.base import Base
from havens.db.session import get_db
from havens.main import app
# Import all models to ensure they're registered with Base.metadata
from havens.models import *  # noqa: F401,F403
from havens.models.inventory import InventoryItem
from havens.models.menu import MenuItem, MenuItemInventoryLink
from havens.models.outlet import Outlet
from havens.models.settings import GLOBAL_SETTINGS_ID, DeliveryTier, GlobalSettings
from havens.models.user import User
from havens.services.store import DataStore

# Use in-memory SQLite for tests
TEST_DATABASE_URL = "sqlite:///:memory:"

API = "/api/v1"
TEST_PASSWORD = "testpass123"
VALID_ADDRESS = "12 Lodhi Road, New Delhi"


@pytest.fixture(scope="function")
def db_engine():
    """Create a test database engine."""
    engine = create_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    @event.listens_for(engine, "connect")
    def set_sqlite_pragma(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def db_session(db_engine) -> Generator[Session, None, None]:
    """Create a test database session."""
    SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=db_engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def store(db_session: Session) -> DataStore:
    return DataStore(db_session)


@pytest.fixture(autouse=True)
def clear_query_cache():
    """Cached listings must not leak between per-test databases."""
    cache.clear()
    yield
    cache.clear()


@pytest.fixture(scope="function")
def client(db_session: Session) -> Generator[TestClient, None, None]:
    """Create a test client with database override."""
    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    # Disable rate limiters during tests to avoid flaky failures
    from havens.core.rate_limit import limiter, user_limiter
    limiter.enabled = False
    user_limiter.enabled = False
    # Don't raise server exceptions so we can test error status codes
    with TestClient(app, raise_server_exceptions=False) as test_client:
        yield test_client
    app.dependency_overrides.clear()


# ---------------------------------------------------------------------------
# Catalogue
# ---------------------------------------------------------------------------

@pytest.fixture
def pricing_settings(db_session: Session) -> GlobalSettings:
    """GST 5%, base 40, 10/km, tiers up to 3 km -> 30 and up to 5 km -> 50."""
    record = GlobalSettings(
        id=GLOBAL_SETTINGS_ID,
        gst_percentage=Decimal("5"),
        delivery_base_charge=Decimal("40"),
        delivery_charge_per_km=Decimal("10"),
        free_delivery_threshold=Decimal("500"),
        free_delivery_distance_limit=Decimal("5"),
        brand_name="HAVENS KITCHEN",
        tagline="Culinary sanctuary",
        brand_address="South Delhi",
        brand_contact="9899466466",
        show_tagline=True,
        show_notice=True,
        primary_color="#C0392B",
    )
    record.delivery_tiers = [
        DeliveryTier(up_to_km=Decimal("3"), charge=Decimal("30")),
        DeliveryTier(up_to_km=Decimal("5"), charge=Decimal("50")),
    ]
    db_session.add(record)
    db_session.commit()
    return record


@pytest.fixture
def outlet(db_session: Session) -> Outlet:
    """Outlet without coordinates, so distances come from the address heuristic."""
    outlet = Outlet(
        name="Havens Connaught Place",
        address="Block A, Connaught Place, New Delhi",
        contact="9811111111",
        is_active=True,
    )
    db_session.add(outlet)
    db_session.commit()
    db_session.refresh(outlet)
    return outlet


@pytest.fixture
def other_outlet(db_session: Session) -> Outlet:
    outlet = Outlet(
        name="Havens Saket",
        address="Select Citywalk, Saket, New Delhi",
        latitude=28.5286,
        longitude=77.2190,
        is_active=True,
    )
    db_session.add(outlet)
    db_session.commit()
    db_session.refresh(outlet)
    return outlet


@pytest.fixture
def paneer_stock(db_session: Session, outlet: Outlet) -> InventoryItem:
    item = InventoryItem(
        outlet_id=outlet.id,
        name="Paneer",
        stock=Decimal("10"),
        min_stock=Decimal("2"),
        unit="kg",
    )
    db_session.add(item)
    db_session.commit()
    db_session.refresh(item)
    return item


@pytest.fixture
def menu_item(db_session: Session, outlet: Outlet, paneer_stock: InventoryItem) -> MenuItem:
    """Paneer Tikka: 349 full, 199 half, uses 0.2 kg paneer per full portion."""
    item = MenuItem(
        outlet_id=outlet.id,
        name="Paneer Tikka",
        category="Starters",
        price_full=Decimal("349"),
        price_half=Decimal("199"),
        is_available=True,
    )
    item.inventory_links = [
        MenuItemInventoryLink(inventory_item_id=paneer_stock.id, qty=Decimal("0.2")),
    ]
    db_session.add(item)
    db_session.commit()
    db_session.refresh(item)
    return item


@pytest.fixture
def discounted_item(db_session: Session, outlet: Outlet) -> MenuItem:
    item = MenuItem(
        outlet_id=outlet.id,
        name="Butter Naan",
        category="Breads",
        price_full=Decimal("99"),
        discount_percentage=Decimal("15"),
        is_available=True,
    )
    db_session.add(item)
    db_session.commit()
    db_session.refresh(item)
    return item


# ---------------------------------------------------------------------------
# Accounts
# ---------------------------------------------------------------------------

def _create_user(db_session: Session, email: str, role: UserRole, outlet_id=None, **fields) -> User:
    user = User(
        email=email,
        password_hash=get_password_hash(TEST_PASSWORD),
        role=role,
        name=fields.pop("name", "Test User"),
        outlet_id=outlet_id,
        is_active=True,
        **fields,
    )
    user.set_permissions(default_permissions(role))
    db_session.add(user)
    db_session.commit()
    db_session.refresh(user)
    return user


def _headers_for(user: User) -> dict:
    token = create_access_token(
        data={"sub": str(user.id), "email": user.email, "role": user.role.value}
    )
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def make_user(db_session: Session):
    """Factory: ``make_user(email, role, outlet_id=None, **fields)``."""
    def factory(email: str, role: UserRole, outlet_id=None, **fields) -> User:
        return _create_user(db_session, email, role, outlet_id=outlet_id, **fields)
    return factory


@pytest.fixture
def auth_headers_for():
    """Bearer headers for any user."""
    return _headers_for


@pytest.fixture
def super_admin(db_session: Session) -> User:
    return _create_user(db_session, "admin@havens.test", UserRole.SUPER_ADMIN, name="Super Admin")


@pytest.fixture
def owner(db_session: Session, outlet: Outlet) -> User:
    return _create_user(db_session, "owner@havens.test", UserRole.OUTLET_OWNER, outlet_id=outlet.id)


@pytest.fixture
def manager(db_session: Session, outlet: Outlet) -> User:
    return _create_user(db_session, "manager@havens.test", UserRole.MANAGER, outlet_id=outlet.id)


@pytest.fixture
def rider(db_session: Session, outlet: Outlet) -> User:
    return _create_user(db_session, "rider@havens.test", UserRole.DELIVERY, outlet_id=outlet.id)


@pytest.fixture
def customer(db_session: Session) -> User:
    return _create_user(
        db_session,
        "priya@example.com",
        UserRole.CUSTOMER,
        name="Priya Sharma",
        phone="9876543210",
        address=VALID_ADDRESS,
    )


@pytest.fixture
def admin_headers(super_admin: User) -> dict:
    return _headers_for(super_admin)


@pytest.fixture
def owner_headers(owner: User) -> dict:
    return _headers_for(owner)


@pytest.fixture
def manager_headers(manager: User) -> dict:
    return _headers_for(manager)


@pytest.fixture
def customer_headers(customer: User) -> dict:
    return _headers_for(customer)


# ---------------------------------------------------------------------------
# Flows
# ---------------------------------------------------------------------------

@pytest.fixture
def open_cart(client: TestClient):
    """Factory: create a cart holding ``(menu_item_id, variant)`` pairs and return its id."""
    def factory(*items) -> str:
        cart_id = client.post(f"{API}/cart/").json()["id"]
        for menu_item_id, variant in items:
            resp = client.post(
                f"{API}/cart/{cart_id}/items",
                json={"menu_item_id": menu_item_id, "variant": variant},
            )
            assert resp.status_code == 200, resp.text
        return cart_id
    return factory


@pytest.fixture
def checkout_payload():
    """Factory for a valid checkout body."""
    def factory(cart_id: str, **overrides) -> dict:
        payload = {
            "cart_id": cart_id,
            "name": "Priya Sharma",
            "phone": "9876543210",
            "address": VALID_ADDRESS,
            "payment_method": "UPI",
        }
        payload.update(overrides)
        return payload
    return factory


@pytest.fixture
def advance(client: TestClient):
    """Factory: move an order through ``statuses`` in order, asserting each step succeeds."""
    def factory(order_id: int, headers: dict, *statuses: str) -> dict:
        body = None
        for status in statuses:
            resp = client.post(f"{API}/orders/{order_id}/status", json={"status": status}, headers=headers)
            assert resp.status_code == 200, resp.text
            body = resp.json()
        return body
    return factory


@pytest.fixture
def placed_order(client, pricing_settings, menu_item, customer_headers, open_cart, checkout_payload) -> dict:
    """A PENDING order for two full Paneer Tikka placed by the customer.

    Subtotal 698, GST 34.90 and a 30 delivery charge (address heuristic
    gives 1 km, inside the first tier).
    """
    cart_id = open_cart((menu_item.id, "full"), (menu_item.id, "full"))
    resp = client.post(f"{API}/orders/checkout", json=checkout_payload(cart_id), headers=customer_headers)
    assert resp.status_code == 201, resp.text
    return resp.json()


@pytest.fixture
def delivered_order(placed_order, manager_headers, advance) -> dict:
    advance(
        placed_order["id"],
        manager_headers,
        "ACCEPTED", "PREPARING", "READY", "OUT_FOR_DELIVERY", "DELIVERED",
    )
    return placed_order

import pytest
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool
from unittest.mock import patch

from resolution_hub.core.auth import create_access_token, hash_password
from resolution_hub.ladder.state import ResolutionSession
from resolution_hub.main import app
from resolution_hub.models.order import CustomerIdentity, LineItem, OrderSnapshot
from resolution_hub.storage import db_connection
from resolution_hub.storage.case_store import create_admin_user
from resolution_hub.storage.db_models import Base
from resolution_hub.storage.memory import _FINISHED, _LOCKS, _STORE

# --- FIXTURES ---

@pytest.fixture
def client():
    """FastAPI Test Client"""
    return TestClient(app)


@pytest.fixture(autouse=True)
def test_db():
    """Fresh in-memory SQLite database per test"""
    engine = db_connection.configure_engine("sqlite://", poolclass=StaticPool)
    db_connection.init_db()
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture(autouse=True)
def mock_http():
    """Block real outbound HTTP (Shopify and ParcelPanel both go through requests.post)"""
    with patch("requests.post") as mock_post:
        yield mock_post


@pytest.fixture(autouse=True)
def clear_memory():
    """Clear in-memory session storage before each test"""
    _STORE.clear()
    _LOCKS.clear()
    _FINISHED.clear()
    yield


@pytest.fixture
def customer():
    return CustomerIdentity(email="jane@example.com", first_name="Jane", phone="5551234567")


@pytest.fixture
def sample_order():
    """Recent order: two selectable items ($30 + $20) and one digital add-on"""
    return OrderSnapshot(
        id="gid://shopify/Order/1001",
        order_number="1001",
        display_name="#1001",
        total_price=Decimal("55.00"),
        items=(
            LineItem(id="li-1", title="Dog Bed", quantity=1, unit_price=Decimal("30.00")),
            LineItem(id="li-2", title="Chew Toy", quantity=2, unit_price=Decimal("10.00")),
            LineItem(id="li-3", title="Training eBook", quantity=1, unit_price=Decimal("5.00"),
                     is_digital=True, is_selectable=False),
        ),
        created_at=datetime.now(timezone.utc) - timedelta(days=5),
        fulfillment_status="fulfilled",
        email="jane@example.com",
        customer_first_name="Jane",
    )


@pytest.fixture
def old_order():
    """Order placed outside the 90-day guarantee window"""
    return OrderSnapshot(
        id="gid://shopify/Order/900",
        order_number="900",
        total_price=Decimal("40.00"),
        items=(LineItem(id="li-9", title="Leash", quantity=1, unit_price=Decimal("40.00")),),
        created_at=datetime.now(timezone.utc) - timedelta(days=120),
        fulfillment_status="fulfilled",
        email="jane@example.com",
    )


@pytest.fixture
def ready_session(customer, sample_order):
    """Session with order and both selectable items chosen, waiting for an intent"""
    session = ResolutionSession(customer=customer, orders=[sample_order])
    session.select_order(sample_order.id)
    session.set_selected_items(["li-1", "li-2"])
    return session


@pytest.fixture
def hub_user():
    return create_admin_user("admin", hash_password("s3cret"), name="Hub Admin", role="admin")


@pytest.fixture
def auth_headers(hub_user):
    token = create_access_token(hub_user.id, hub_user.username)
    return {"Authorization": f"Bearer {token}"}


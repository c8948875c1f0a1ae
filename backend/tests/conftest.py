"""
Pytest fixtures for IronPress backend tests.

Provides an in-memory database, two approved tenant stores with catalog,
users and auth headers, and a spy messaging provider that records every
outbound message instead of calling Twilio or SMTP.
"""

from decimal import Decimal

import pytest

from ironpress import create_app
from ironpress.extensions import db
from ironpress.models import Category, Store
from ironpress.models.auth import ROLE_ADMIN, ROLE_EMPLOYEE, ROLE_SUPER_ADMIN
from ironpress.services import auth_service, messaging, session_service, settings_service


PASSWORD = "Password123!"

TEST_CONFIG = {
    'TESTING': True,
    'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
    'SQLALCHEMY_TRACK_MODIFICATIONS': False,
    'NOTIFICATION_DISPATCH_MODE': 'inline',
    'BCRYPT_ROUNDS': 4,
    'APP_NAME': 'IronPress',
    'APP_URL': 'https://ironpress.test',
    'APP_TIMEZONE': 'Asia/Kolkata',
}


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app(TEST_CONFIG)

    with app.app_context():
        db.create_all()
        yield app
        db.drop_all()


@pytest.fixture(scope='function')
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture(scope='function')
def db_session(app):
    """Create fresh database for each test."""
    with app.app_context():
        # Clear all data but keep schema
        meta = db.metadata
        for table in reversed(meta.sorted_tables):
            db.session.execute(table.delete())
        db.session.commit()

        yield db.session

        # Cleanup after test
        db.session.rollback()


# =============================================================================
# MESSAGING SPY
# =============================================================================


class SentMessages(list):
    """Recorded outbound messages. Channels in failing_channels report failure."""

    def __init__(self):
        super().__init__()
        self.failing_channels = set()

    def for_channel(self, channel):
        return [m for m in self if m["channel"] == channel]


class SpyProvider:
    def __init__(self, outbox, channel):
        self.outbox = outbox
        self.channel = channel

    def send(self, to, body, subject=None):
        self.outbox.append({"channel": self.channel, "to": to, "body": body, "subject": subject})
        return self.channel not in self.outbox.failing_channels


@pytest.fixture(scope='function')
def sent_messages(monkeypatch):
    """Replace provider resolution with spies and return the recorded messages."""
    outbox = SentMessages()
    monkeypatch.setattr(messaging, "resolve_provider", lambda channel, settings: SpyProvider(outbox, channel))
    return outbox


# =============================================================================
# TENANTS
# =============================================================================


def _make_store(db_session, name, email):
    store = Store(name=name, email=email, city="Pune", is_approved=True, is_active=True)
    db_session.add(store)
    db_session.commit()
    settings_service.seed_default_settings(store.id)
    return store


def _make_category(db_session, store, name, price):
    category = Category(store_id=store.id, name=name, price=Decimal(price), is_active=True)
    db_session.add(category)
    db_session.commit()
    return category


@pytest.fixture(scope='function')
def store_a(db_session):
    """Approved Store A (first tenant) with default settings."""
    return _make_store(db_session, "Store A - Sparkle Laundry", "a@sparkle.test")


@pytest.fixture(scope='function')
def store_b(db_session):
    """Approved Store B (second tenant) with default settings."""
    return _make_store(db_session, "Store B - Fresh Press", "b@freshpress.test")


@pytest.fixture(scope='function')
def shirt_a(db_session, store_a):
    return _make_category(db_session, store_a, "Shirt", "15.00")


@pytest.fixture(scope='function')
def pants_a(db_session, store_a):
    return _make_category(db_session, store_a, "Pants", "20.00")


@pytest.fixture(scope='function')
def shirt_b(db_session, store_b):
    return _make_category(db_session, store_b, "Shirt", "18.00")


# =============================================================================
# USERS AND AUTH HEADERS
# =============================================================================


@pytest.fixture(scope='function')
def admin_a(db_session, store_a):
    return auth_service.create_user(
        name="Admin A", email="admin@sparkle.test", password=PASSWORD, role=ROLE_ADMIN, store_id=store_a.id
    )


@pytest.fixture(scope='function')
def employee_a(db_session, store_a):
    return auth_service.create_user(
        name="Counter A", email="counter@sparkle.test", password=PASSWORD, role=ROLE_EMPLOYEE, store_id=store_a.id
    )


@pytest.fixture(scope='function')
def admin_b(db_session, store_b):
    return auth_service.create_user(
        name="Admin B", email="admin@freshpress.test", password=PASSWORD, role=ROLE_ADMIN, store_id=store_b.id
    )


@pytest.fixture(scope='function')
def super_admin(db_session):
    return auth_service.create_user(
        name="Platform", email="root@ironpress.test", password=PASSWORD, role=ROLE_SUPER_ADMIN
    )


def auth_headers(user) -> dict:
    """Authorization headers for a fresh session of `user`."""
    _, token = session_service.create_session(user.id)
    return {'Authorization': f'Bearer {token}'}


@pytest.fixture(scope='function')
def admin_a_headers(admin_a):
    return auth_headers(admin_a)


@pytest.fixture(scope='function')
def employee_a_headers(employee_a):
    return auth_headers(employee_a)


@pytest.fixture(scope='function')
def admin_b_headers(admin_b):
    return auth_headers(admin_b)


@pytest.fixture(scope='function')
def super_admin_headers(super_admin):
    return auth_headers(super_admin)


@pytest.fixture(scope='function')
def bill_payload():
    """Builder for bill creation bodies from (category, quantity) pairs."""
    def build(*items, phone="9876543210", name="Ravi Kumar", email=None, **extra):
        data = {
            "customer_name": name,
            "customer_phone": phone,
            "items": [{"category_id": c.id, "quantity": q} for c, q in items],
        }
        if email:
            data["customer_email"] = email
        data.update(extra)
        return data
    return build

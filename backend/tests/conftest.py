"""
Pytest fixtures for the warehouse backend tests.

Provides test database setup, identity/tenant fixtures, a deterministic
embedder and the test client.
"""

import pytest
from wms import create_app
from wms.extensions import db
from wms.models import Product, Store, User
from wms.services import warehouse_service


class FakeEmbedder:
    """
    Deterministic bag-of-words embedder.

    Every lowercase word hashes to one of `dimensions` buckets, so texts that
    share words have a positive cosine similarity.
    """

    def __init__(self, dimensions: int = 16):
        self.dimensions = dimensions
        self.calls = []

    def embed(self, text: str) -> list[float]:
        self.calls.append(text)
        vector = [0.0] * self.dimensions
        for word in text.lower().replace(".", " ").split():
            vector[sum(ord(c) for c in word) % self.dimensions] += 1.0
        return vector


@pytest.fixture(scope='session')
def app(tmp_path_factory):
    """Create application for testing."""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'SQLALCHEMY_TRACK_MODIFICATIONS': False,
        'TASKS_EAGER': True,
        'OPENAI_API_KEY': None,
        'OBJECT_STORAGE_DIR': str(tmp_path_factory.mktemp("uploads")),
    })

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


@pytest.fixture(scope='function')
def embedder(app, db_session):
    """Install the deterministic embedder for the duration of one test."""
    fake = FakeEmbedder()
    app.extensions["wms.embedder"] = fake
    yield fake
    app.extensions["wms.embedder"] = None


def make_user(db_session, key: str) -> User:
    user = User(external_auth_id=f"ext_{key}", name=key.capitalize(), email=f"{key}@example.com")
    db_session.add(user)
    db_session.commit()
    return user


@pytest.fixture(scope='function')
def owner(db_session):
    """Owner of warehouse A."""
    return make_user(db_session, "owner")


@pytest.fixture(scope='function')
def manager_user(db_session):
    return make_user(db_session, "manager")


@pytest.fixture(scope='function')
def staff_user(db_session):
    return make_user(db_session, "staff")


@pytest.fixture(scope='function')
def outsider(db_session):
    """Identified user with no memberships at all."""
    return make_user(db_session, "outsider")


@pytest.fixture(scope='function')
def warehouse_a(db_session, owner):
    return warehouse_service.create_warehouse(owner.id, "Warehouse A", "North site")


@pytest.fixture(scope='function')
def warehouse_b(db_session, outsider):
    """Warehouse owned by the outsider; owner of A has no access."""
    return warehouse_service.create_warehouse(outsider.id, "Warehouse B", "South site")


@pytest.fixture(scope='function')
def store_a(db_session, warehouse_a):
    store = Store(warehouse_id=warehouse_a.id, name="Plumbing A", store_type="plumbing")
    db_session.add(store)
    db_session.commit()
    return store


@pytest.fixture(scope='function')
def store_b(db_session, warehouse_b):
    store = Store(warehouse_id=warehouse_b.id, name="Electric B", store_type="electric")
    db_session.add(store)
    db_session.commit()
    return store


@pytest.fixture(scope='function')
def product_a(db_session, store_a):
    product = Product(store_id=store_a.id, sku="PIPE-001", name="Copper pipe", description="15mm copper pipe", quantity=40)
    db_session.add(product)
    db_session.commit()
    return product


@pytest.fixture(scope='function')
def product_b(db_session, store_b):
    product = Product(store_id=store_b.id, sku="CABLE-001", name="Copper cable", description="2.5mm copper cable", quantity=7)
    db_session.add(product)
    db_session.commit()
    return product


def add_member(db_session, warehouse, user, role: str):
    """Insert a membership directly (bypasses the invitation flow)."""
    from wms.models import Membership
    membership = Membership(warehouse_id=warehouse.id, user_id=user.id, role=role)
    db_session.add(membership)
    db_session.commit()
    return membership


def auth_headers(user: User) -> dict:
    """Helper to create identity headers for a user."""
    return {'X-Auth-User': user.external_auth_id}

"""
Pytest fixtures for ShopFlow backend tests.

Provides test database setup, two tenant shops, catalog/customer fixtures
and a test client.
"""

import pytest
from shopflow import create_app
from shopflow.extensions import db
from shopflow.models import Shop, Product, Customer


TEST_CONFIG = {
    'TESTING': True,
    'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
    'SQLALCHEMY_TRACK_MODIFICATIONS': False,
    'LOG_LEVEL': 'DEBUG',
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


@pytest.fixture(scope='function')
def shop(db_session):
    """Shop A (first tenant), 8% tax."""
    shop = Shop(name="Shop A - Corner Store", code="SHOPA", tax_rate_bps=800, is_active=True)
    db_session.add(shop)
    db_session.commit()
    return shop


@pytest.fixture(scope='function')
def other_shop(db_session):
    """Shop B (second tenant)."""
    shop = Shop(name="Shop B - Beta Mart", code="SHOPB", tax_rate_bps=0, is_active=True)
    db_session.add(shop)
    db_session.commit()
    return shop


def _insert_product(db_session, shop, *, name="Widget", price_cents=1000, quantity=10, code=None, variants=None):
    """Helper to insert a product directly."""
    product = Product(
        shop_id=shop.id,
        name=name,
        code=code,
        sales_price_cents=price_cents,
        quantity=quantity,
        initial_quantity=quantity,
        variants=variants,
    )
    db_session.add(product)
    db_session.commit()
    return product


@pytest.fixture(scope='function')
def product(db_session, shop):
    """10.00 product with 10 units in Shop A."""
    return _insert_product(db_session, shop, name="Espresso Beans", price_cents=1000, quantity=10, code="BEAN")


@pytest.fixture(scope='function')
def other_product(db_session, other_shop):
    """Product in Shop B."""
    return _insert_product(db_session, other_shop, name="Beta Tea", price_cents=500, quantity=5, code="TEA")


@pytest.fixture(scope='function')
def customer(db_session, shop):
    customer = Customer(shop_id=shop.id, name="Grace Customer", email="grace@example.com")
    db_session.add(customer)
    db_session.commit()
    return customer


@pytest.fixture(scope='function')
def make_product(db_session):
    """Factory for extra products: make_product(shop, name=..., quantity=...)."""
    def _make(shop, **kwargs):
        return _insert_product(db_session, shop, **kwargs)
    return _make


@pytest.fixture(scope='function')
def stock_of(db_session):
    """Fresh read of a product's quantity, bypassing the identity map."""
    def _read(product_id: int) -> int:
        db_session.expire_all()
        return db_session.get(Product, product_id).quantity
    return _read


@pytest.fixture(scope='function')
def seller_headers():
    return {'X-Seller-Id': 'seller-1', 'X-Seller-Name': 'Ada Seller'}

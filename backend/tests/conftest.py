"""
Pytest fixtures for closeout backend tests.

Provides test database setup, a store open 17:00-26:00 in Asia/Tokyo with
table 5 and a small menu, and helpers for pinning the clock to store-local
wall time.
"""

from datetime import datetime

import pytest
import pytz

from closeout import create_app
from closeout.extensions import db
from closeout.models import DiningTable, MenuItem, MenuOption, MenuTopping, Store
from closeout.services import business_hours_service
from closeout.time_utils import FixedClock

TOKYO = pytz.timezone("Asia/Tokyo")


def tokyo(year, month, day, hour=0, minute=0):
    """Aware UTC instant for a wall-clock time in Tokyo."""
    return TOKYO.localize(datetime(year, month, day, hour, minute)).astimezone(pytz.utc)


def tokyo_clock(year, month, day, hour=0, minute=0) -> FixedClock:
    return FixedClock(tokyo(year, month, day, hour, minute))


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app({
        'TESTING': True,
        'SECRET_KEY': 'test',
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'SQLALCHEMY_TRACK_MODIFICATIONS': False,
        'CLOSEOUT_DEFAULT_TIMEZONE': 'Asia/Tokyo',
        'CLOSEOUT_COUNT_DELIVERED_UNBILLED': True,
        'CLOSEOUT_DEFAULT_TAX_RATE_BPS': 1000,
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
        db.session.expunge_all()

        yield db.session

        # Cleanup after test
        db.session.rollback()


@pytest.fixture(scope='function')
def store(db_session):
    """Store S: Asia/Tokyo, open 17:00-26:00."""
    store = Store(name="Store S", code="S", timezone="Asia/Tokyo")
    db_session.add(store)
    db_session.commit()
    business_hours_service.set_business_hours(store.id, "17:00", "26:00")
    return store


@pytest.fixture(scope='function')
def other_store(db_session):
    """A second tenant with no business hours configured."""
    store = Store(name="Store T", code="T", timezone="Asia/Tokyo")
    db_session.add(store)
    db_session.commit()
    return store


@pytest.fixture(scope='function')
def table(db_session, store):
    """Table 5 of Store S."""
    table = DiningTable(store_id=store.id, number=5, capacity=4)
    db_session.add(table)
    db_session.commit()
    return table


@pytest.fixture(scope='function')
def menu(db_session, store):
    """Two dishes (1000, 1500), one option (100) and one topping (200)."""
    items = {
        "set": MenuItem(store_id=store.id, name="Yakitori Set", price=1000),
        "ramen": MenuItem(store_id=store.id, name="Ramen", price=1500),
        "large": MenuOption(store_id=store.id, name="Large", price=100),
        "egg": MenuTopping(store_id=store.id, name="Egg", price=200),
    }
    db_session.add_all(items.values())
    db_session.commit()
    return items

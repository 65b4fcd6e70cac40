"""
Pytest fixtures for possync backend tests.

Provides an app wired to two in-memory SQLite stores (reporting store on the
default bind, POS store on the ``source`` bind), per-test data wipes, and
helpers to seed source rows.
"""

import pytest

from possync import create_app
from possync.config import SOURCE_BIND_KEY
from possync.extensions import db
from possync.services.sync_context import SyncContext

from factories import NOW


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'SQLALCHEMY_BINDS': {SOURCE_BIND_KEY: 'sqlite:///:memory:'},
        'SQLALCHEMY_TRACK_MODIFICATIONS': False,
        'SYNC_INTERVAL_SECONDS': 0,
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
    """Empty both stores before each test, keeping the schema."""
    db.session.remove()
    for bind_key, metadata in db.metadatas.items():
        with db.engines[bind_key].begin() as conn:
            for table in reversed(metadata.sorted_tables):
                conn.execute(table.delete())

    yield db.session

    db.session.rollback()
    db.session.remove()


@pytest.fixture(scope='function')
def ctx(db_session):
    """Sync context pinned to NOW."""
    return SyncContext(batch_id="test-batch", now=NOW)


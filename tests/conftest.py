import pytest
from fastapi.testclient import TestClient

from storefront.catalog import DEFAULT_PRODUCTS, seed_if_empty
from storefront.config import Settings
from storefront.database import Database
from storefront.main import create_app


@pytest.fixture()
def settings(tmp_path):
    return Settings(database_url=f"sqlite:///{tmp_path / 'store.db'}")


@pytest.fixture()
def database(settings):
    db = Database(settings)
    db.initialize()
    db.create_schema()
    yield db
    db.dispose()


@pytest.fixture()
def session(database):
    s = database.session()
    yield s
    s.close()


@pytest.fixture()
def seeded_session(session):
    seed_if_empty(session, DEFAULT_PRODUCTS)
    return session


@pytest.fixture()
def app(settings):
    return create_app(settings)


@pytest.fixture()
def client(app):
    """TestClient with the startup sequence run (connected and seeded)."""
    with TestClient(app) as c:
        yield c

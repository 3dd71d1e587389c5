"""
Pytest configuration and fixtures for the category tree tests.
"""

import pytest
from typing import Generator
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import StaticPool
from fastapi.testclient import TestClient

from app.config import Settings
from app.database import Base, get_db
from app.main import app
from app.models.category import Category
from app.models.product import Product
from app.schemas.admin_category import AdminCategoryCreate
from app.services.category_service import CategoryService


# Use in-memory SQLite database for tests
TEST_DATABASE_URL = "sqlite:///:memory:"


@pytest.fixture(scope="function")
def db_engine():
    """Create a test database engine."""
    engine = create_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture(scope="function")
def db_session(db_engine) -> Generator[Session, None, None]:
    """Create a test database session."""
    TestingSessionLocal = sessionmaker(
        autocommit=False, autoflush=False, bind=db_engine
    )
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture(scope="function")
def test_settings() -> Settings:
    return Settings(CATEGORY_TREE_DEPTH=2, CATEGORY_STATS_TOP_N=10)


@pytest.fixture(scope="function")
def service(db_session, test_settings) -> CategoryService:
    return CategoryService(db_session, settings=test_settings)


@pytest.fixture(scope="function")
def client(db_session) -> Generator[TestClient, None, None]:
    """Create a test client bound to the test session."""
    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app, raise_server_exceptions=False)
    app.dependency_overrides.clear()


@pytest.fixture(scope="function")
def make_category(service):
    """Factory creating categories through the service."""
    def _make(name, parent=None, **kwargs):
        return service.create(
            AdminCategoryCreate(
                name=name,
                parent_id=parent.id if parent is not None else None,
                **kwargs,
            )
        )
    return _make


@pytest.fixture(scope="function")
def make_product(db_session):
    """Factory creating product rows referencing a category."""
    def _make(category, is_active=True, name="Test Product"):
        product = Product(
            name=name,
            category_id=category.id if category is not None else None,
            is_active=is_active,
        )
        db_session.add(product)
        db_session.commit()
        db_session.refresh(product)
        return product
    return _make


@pytest.fixture(scope="function")
def chain(make_category):
    """A -> B -> C -> D, where A is the root and D the deepest node."""
    a = make_category("Alpha")
    b = make_category("Bravo", parent=a)
    c = make_category("Charlie", parent=b)
    d = make_category("Delta", parent=c)
    return a, b, c, d


@pytest.fixture(scope="function")
def get_row(db_session):
    """Fetch the current row for a category id straight from the database."""
    def _get(category_id):
        db_session.expire_all()
        return db_session.get(Category, category_id)
    return _get

import os
import sys

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import StaticPool

# Keep the app's import-time engine off the developer's database file
os.environ.setdefault("DATABASE_URL", "sqlite://")

# Add the project root to the sys.path
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from app.main import app
from app.database import Base, get_db
from app import crud, schemas


# --- Test Database Setup ---
# Use an in-memory SQLite database for testing
SQLALCHEMY_DATABASE_URL = "sqlite:///:memory:"

engine = create_engine(
    SQLALCHEMY_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool, # Use StaticPool for in-memory SQLite to persist connections
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

DEVICE_ID = "device-test-1"
PHILLY = {"latitude": 39.9526, "longitude": -75.1652}


@pytest.fixture(name="db_session")
def override_get_db():
    Base.metadata.create_all(bind=engine) # Create tables in the test database
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine) # Drop tables after tests to ensure clean state


@pytest.fixture(name="client")
def get_client(db_session: Session):
    app.dependency_overrides[get_db] = lambda: db_session
    with TestClient(app, headers={"X-Device-Id": DEVICE_ID}) as client:
        yield client
    app.dependency_overrides = {} # Clear overrides after the test


@pytest.fixture(name="make_listing")
def get_listing_factory(db_session: Session):
    def make_listing(posted_by=DEVICE_ID, **overrides):
        fields = {"title": "Free Pizza", "description": "Cheese and pepperoni", "category": "food", **PHILLY}
        fields.update(overrides)
        return crud.create_listing(db_session, schemas.ListingCreate(**fields), posted_by=posted_by)
    return make_listing

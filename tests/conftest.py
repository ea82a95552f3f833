"""
Shared fixtures for the registration import tests.

Every test gets a fresh in-memory SQLite database with the full schema, a
published event with three distances and a small shirt catalog.  Workbooks
are built in memory with openpyxl.
"""

import os
import tempfile

# Settings are cached on first use, so the environment must be ready before
# anything under ``app`` is imported.
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("UPLOADS_DIR", tempfile.mkdtemp(prefix="race-uploads-"))

import pytest
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

import app.models  # noqa: F401
from app.database import Base, build_engine
from app.models.distance import Distance
from app.models.event import Event
from app.models.event_shirt import EventShirt
from app.models.user import User
from app.utils.security import hash_password


# =======================
# DATABASE FIXTURES
# =======================


@pytest.fixture()
def engine():
    engine = build_engine("sqlite://", poolclass=StaticPool)
    Base.metadata.create_all(engine)
    yield engine
    Base.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture()
def session_factory(engine):
    return sessionmaker(bind=engine, autoflush=False)


@pytest.fixture()
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


# =======================
# CATALOG FIXTURES
# =======================


@pytest.fixture()
def event(db) -> Event:
    event = Event(name="Hà Nội Marathon 2026", slug="ha-noi-marathon-2026", is_published=True)
    db.add(event)
    db.commit()
    return event


@pytest.fixture()
def distances(db, event) -> dict[str, Distance]:
    rows = {
        "5KM": Distance(event_id=event.id, name="5KM", price=100000),
        "10KM": Distance(event_id=event.id, name="10KM", price=150000),
        "21KM": Distance(event_id=event.id, name="21KM", price=300000, max_participants=2),
    }
    db.add_all(rows.values())
    db.commit()
    return rows


@pytest.fixture()
def shirts(db, event) -> dict[str, EventShirt]:
    rows = {
        "male_m": EventShirt(
            event_id=event.id, category="MALE", type="SHORT_SLEEVE", size="M",
            price=120000, standalone_price=180000, stock_quantity=5, sold_quantity=0,
        ),
        "female_s_sold_out": EventShirt(
            event_id=event.id, category="FEMALE", type="TANK_TOP", size="S",
            price=110000, standalone_price=160000, stock_quantity=5, sold_quantity=5,
        ),
        "kid_xs_last": EventShirt(
            event_id=event.id, category="KID", type="SHORT_SLEEVE", size="XS",
            price=90000, standalone_price=130000, stock_quantity=1, sold_quantity=0,
        ),
        "male_l_hidden": EventShirt(
            event_id=event.id, category="MALE", type="SHORT_SLEEVE", size="L",
            price=120000, standalone_price=180000, stock_quantity=5, sold_quantity=0,
            is_available=False,
        ),
    }
    db.add_all(rows.values())
    db.commit()
    return rows


@pytest.fixture()
def catalog(distances, shirts):
    return {"distances": distances, "shirts": shirts}


@pytest.fixture()
def admin_user(db) -> User:
    user = User(
        username="admin",
        email="admin@example.com",
        password_hash=hash_password("Admin123!"),
        full_name="Administrator",
        role="ADMIN",
        is_active=True,
    )
    db.add(user)
    db.commit()
    return user


@pytest.fixture()
def staff_user(db) -> User:
    user = User(
        username="staff",
        email="staff@example.com",
        password_hash=hash_password("Staff123!"),
        role="STAFF",
        is_active=True,
    )
    db.add(user)
    db.commit()
    return user

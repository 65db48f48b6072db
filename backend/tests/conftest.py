"""Shared fixtures: SQLite-backed sessions, actors and a posted load."""

import os
import sys

# Keep the app's default engine off disk while tests import it
os.environ.setdefault("DATABASE_URL", "sqlite://")

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

import dockdirect.models  # noqa: F401
from dockdirect.actors import AdminActor, DriverActor, ShipperActor
from dockdirect.database import Base
from dockdirect.services.matching import MatchingFacade


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def file_engine(tmp_path):
    """File-backed database so separate sessions get separate connections."""
    engine = create_engine(
        f"sqlite:///{tmp_path / 'dockdirect_test.db'}",
        connect_args={"check_same_thread": False, "timeout": 30},
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def facade(db):
    return MatchingFacade(db)


@pytest.fixture
def shipper():
    return ShipperActor("shipper-1")


@pytest.fixture
def other_shipper():
    return ShipperActor("shipper-2")


@pytest.fixture
def driver1():
    return DriverActor("driver-1")


@pytest.fixture
def driver2():
    return DriverActor("driver-2")


@pytest.fixture
def driver3():
    return DriverActor("driver-3")


@pytest.fixture
def admin():
    return AdminActor("admin-1")


def load_fields(**overrides) -> dict:
    fields = {
        "title": "Electronics — Chicago to Detroit",
        "origin_address": "1200 W Fulton Market, Chicago, IL",
        "destination_address": "2800 Woodward Ave, Detroit, MI",
        "pallet_count": 22,
        "weight": "38,000 lbs",
        "load_type": "dry",
        "rate_cents": 240000,
        "is_urgent": False,
    }
    fields.update(overrides)
    return fields


@pytest.fixture
def load(facade, shipper):
    return facade.post_load(shipper, **load_fields())

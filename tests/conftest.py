from __future__ import annotations

from datetime import datetime, timezone

import pytest
from sqlalchemy.pool import StaticPool
from sqlmodel import create_engine

from agrigenius.core.context import SessionContext
from agrigenius.db.session import init_db
from agrigenius.services.auth import AuthService
from agrigenius.services.gateway import ProfileGateway

FIXED_NOW = datetime(2024, 6, 3, 6, 45, 15, tzinfo=timezone.utc)


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    init_db(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def gateway(engine, tmp_path):
    return ProfileGateway(bind=engine, data_root=tmp_path / "media", media_url_prefix="/media")


@pytest.fixture
def auth(engine):
    return AuthService(bind=engine)


@pytest.fixture
def identity(auth):
    return auth.sign_up("farmer@example.com", "Asha", "secret123")


@pytest.fixture
def context(identity):
    return SessionContext(identity=identity, language="en")


@pytest.fixture
def clock():
    return lambda: FIXED_NOW

"""
Shared fixtures. Settings are read at import time, so the environment is set
before anything under app/ is imported.
"""
import os

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key")
os.environ.setdefault("CB_STORAGE", "memory")

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker


@pytest.fixture
def engine(tmp_path):
    import app.models  # noqa: F401  registers mappers
    from app.db.base import Base

    engine = create_engine(
        f"sqlite:///{tmp_path / 'test.db'}",
        connect_args={"check_same_thread": False},
    )
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autocommit=False, autoflush=False)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture(autouse=True)
def fresh_circuit_breakers():
    from app.services import circuit_breaker

    circuit_breaker._breakers.clear()
    yield
    circuit_breaker._breakers.clear()


@pytest.fixture
def auth_header():
    from app.services.auth.jwt import create_access_token

    def _make(user_id: str, role: str) -> dict:
        token = create_access_token({"sub": user_id, "role": role})
        return {"Authorization": f"Bearer {token}"}

    return _make

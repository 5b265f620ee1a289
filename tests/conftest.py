import os

# settings are read at import time
os.environ.setdefault("ENV", "test")
os.environ.setdefault("DATABASE_URL", "sqlite+pysqlite:///:memory:")
os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ.setdefault("SEED_DEMO_DATA", "0")
os.environ.setdefault("RATE_LIMIT_ENABLED", "0")

import pytest  # noqa: E402
from fastapi import FastAPI  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from notes_saas.core.database import Base, get_db  # noqa: E402
from notes_saas.core.errors import register_exception_handlers  # noqa: E402
from notes_saas.middleware.session import SessionMiddleware  # noqa: E402
from notes_saas.models.tenant import Tenant  # noqa: E402
from notes_saas.routers.auth import router as auth_router  # noqa: E402
from notes_saas.routers.health import router as health_router  # noqa: E402
from notes_saas.routers.internal_metrics import router as internal_metrics_router  # noqa: E402
from notes_saas.routers.notes import router as notes_router  # noqa: E402
from notes_saas.routers.tenants import router as tenants_router  # noqa: E402
from notes_saas.services.seed import DEMO_PASSWORD, seed_demo_data  # noqa: E402


def build_app(session_factory, *, middleware=()) -> FastAPI:
    app = FastAPI()
    for middleware_class, options in middleware:
        app.add_middleware(middleware_class, **options)
    app.add_middleware(SessionMiddleware)
    register_exception_handlers(app)

    app.include_router(health_router)
    app.include_router(auth_router)
    app.include_router(notes_router)
    app.include_router(tenants_router)
    app.include_router(internal_metrics_router)

    def _override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = _override_get_db
    return app


@pytest.fixture
def session_factory():
    engine = create_engine(
        "sqlite+pysqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    factory = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    yield factory
    engine.dispose()


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def tenants(db):
    seed_demo_data(db)
    return {tenant.slug: tenant for tenant in db.query(Tenant).all()}


@pytest.fixture
def app(session_factory, tenants):
    return build_app(session_factory)


@pytest.fixture
def login(app):
    """Returns a fresh TestClient logged in as ``email``; one client per user keeps cookie jars apart."""

    def _login(email: str, password: str = DEMO_PASSWORD) -> TestClient:
        client = TestClient(app)
        response = client.post("/auth/login", json={"email": email, "password": password})
        assert response.status_code == 200, response.text
        return client

    return _login

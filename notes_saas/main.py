import logging
import os
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from notes_saas.core.config import (
    APP_VERSION,
    CORS_ALLOW_HEADERS,
    CORS_ORIGINS,
    DATABASE_URL,
    ENV,
    RATE_LIMIT_ENABLED,
    SEED_DEMO_DATA,
)
from notes_saas.core.database import Base, SessionLocal, engine
from notes_saas.core.errors import register_exception_handlers
from notes_saas.core.logging_setup import configure_logging
from notes_saas.core.startup_checks import (
    apply_migrations,
    ensure_migrations_applied,
    validate_database_environment,
)
from notes_saas.middleware.observability import ObservabilityMiddleware
from notes_saas.middleware.rate_limit import ClientRateLimitMiddleware
from notes_saas.middleware.security_headers import SecurityHeadersMiddleware
from notes_saas.middleware.session import SessionMiddleware
import notes_saas.models  # noqa: F401  models must be imported before create_all

from notes_saas.routers.auth import router as auth_router
from notes_saas.routers.health import router as health_router
from notes_saas.routers.internal_metrics import router as internal_metrics_router
from notes_saas.routers.notes import router as notes_router
from notes_saas.routers.tenants import router as tenants_router
from notes_saas.services.seed import seed_demo_data
from notes_saas.services.tokens import purge_expired_refresh_tokens

configure_logging()

logger = logging.getLogger(__name__)
STARTUP_PREFIX = "[STARTUP]"
REPO_ROOT = Path(__file__).resolve().parents[1]
ALEMBIC_CONFIG_PATH = Path(os.getenv("ALEMBIC_CONFIG", str(REPO_ROOT / "alembic.ini")))


def _startup_tasks() -> None:
    validate_database_environment()

    if DATABASE_URL.startswith("sqlite"):
        Base.metadata.create_all(bind=engine)
        logger.info("%s sqlite schema ensured via create_all", STARTUP_PREFIX)
    else:
        apply_migrations(alembic_config_path=ALEMBIC_CONFIG_PATH)
        ensure_migrations_applied(engine=engine, alembic_config_path=ALEMBIC_CONFIG_PATH)

    db = SessionLocal()
    try:
        if SEED_DEMO_DATA:
            seed_demo_data(db)
        purge_expired_refresh_tokens(db)
    finally:
        db.close()

    logger.info("%s ready env=%s version=%s", STARTUP_PREFIX, ENV, APP_VERSION)


@asynccontextmanager
async def lifespan(_: FastAPI):
    _startup_tasks()
    yield


app = FastAPI(
    title="Notes SaaS API",
    version=APP_VERSION,
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
)

# added last runs first: CORS -> observability -> rate limit -> security headers -> session
app.add_middleware(SessionMiddleware)
app.add_middleware(SecurityHeadersMiddleware)
if RATE_LIMIT_ENABLED:
    app.add_middleware(ClientRateLimitMiddleware)
app.add_middleware(ObservabilityMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=CORS_ALLOW_HEADERS,
)

register_exception_handlers(app)

app.include_router(health_router)
app.include_router(auth_router)
app.include_router(notes_router)
app.include_router(tenants_router)
app.include_router(internal_metrics_router)


@app.get("/")
def root():
    return {"status": "ok"}

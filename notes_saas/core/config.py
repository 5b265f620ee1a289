import os
from dotenv import load_dotenv

# Loads .env from the project root
load_dotenv()


def _env_flag(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in {"1", "true", "yes", "on"}


DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./notes_saas.db")
ENV = os.getenv("ENV", "dev")
ENV_NORMALIZED = ENV.strip().lower()
IS_DEV = ENV_NORMALIZED in {"dev", "development", "local"}
IS_TEST = ENV_NORMALIZED == "test"
IS_PROD = ENV_NORMALIZED in {"prod", "production"}
APP_VERSION = os.getenv("APP_VERSION", "0.1.0")

# CORS
_cors_env = os.getenv("CORS_ORIGINS", os.getenv("CLIENT_URL", ""))
CORS_ORIGINS = [origin.strip() for origin in _cors_env.split(",") if origin.strip() and origin.strip() != "*"]

if not CORS_ORIGINS and not IS_PROD:
    CORS_ORIGINS = [
        "http://localhost:3000",
        "http://127.0.0.1:3000",
    ]
CORS_ALLOW_HEADERS = ["Content-Type", "Authorization", "X-Request-ID"]

# Auth (JWT)
_DEV_ACCESS_SECRET = "dev-access-secret-change-me"
_DEV_REFRESH_SECRET = "dev-refresh-secret-change-me"
JWT_SECRET = os.getenv("JWT_SECRET", "" if IS_PROD else _DEV_ACCESS_SECRET)
JWT_REFRESH_SECRET = os.getenv("JWT_REFRESH_SECRET", "" if IS_PROD else _DEV_REFRESH_SECRET)
JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")
JWT_ACCESS_EXPIRES_MINUTES = int(os.getenv("JWT_ACCESS_EXPIRES_MINUTES", "15"))
JWT_REFRESH_EXPIRES_DAYS = int(os.getenv("JWT_REFRESH_EXPIRES_DAYS", "7"))

BCRYPT_ROUNDS = int(os.getenv("BCRYPT_ROUNDS", "12"))

# Session cookies
ACCESS_TOKEN_COOKIE = "accessToken"
REFRESH_TOKEN_COOKIE = "refreshToken"
SESSION_COOKIE_SECURE = _env_flag("SESSION_COOKIE_SECURE", "1" if IS_PROD else "0")
SESSION_COOKIE_SAMESITE = os.getenv(
    "SESSION_COOKIE_SAMESITE",
    "strict" if IS_PROD else "lax",
).strip().lower()
if SESSION_COOKIE_SAMESITE not in {"lax", "strict", "none"}:
    SESSION_COOKIE_SAMESITE = "strict" if IS_PROD else "lax"
SESSION_COOKIE_DOMAIN = os.getenv("SESSION_COOKIE_DOMAIN", "").strip() or None

# Plans
FREE_PLAN_MAX_NOTES = int(os.getenv("FREE_PLAN_MAX_NOTES", "3"))
PLAN_CHANGE_MODE = os.getenv("PLAN_CHANGE_MODE", "upgrade").strip().lower()
if PLAN_CHANGE_MODE not in {"upgrade", "toggle"}:
    PLAN_CHANGE_MODE = "upgrade"

# Rate limit (per client IP)
RATE_LIMIT_ENABLED = _env_flag("RATE_LIMIT_ENABLED", "1")
RATE_LIMIT_MAX_REQUESTS = int(os.getenv("RATE_LIMIT_MAX_REQUESTS", "100"))
RATE_LIMIT_WINDOW_SECONDS = int(os.getenv("RATE_LIMIT_WINDOW_SECONDS", str(15 * 60)))
RATE_LIMIT_TRUST_PROXY = _env_flag("RATE_LIMIT_TRUST_PROXY", "0")
RATE_LIMIT_PRUNE_EVERY = int(os.getenv("RATE_LIMIT_PRUNE_EVERY", "1000"))

SEED_DEMO_DATA = _env_flag("SEED_DEMO_DATA", "1" if IS_DEV else "0")

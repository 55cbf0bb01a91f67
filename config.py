import os
import sys
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from dotenv import load_dotenv

from enums.runtime_environment import RuntimeEnvironment

# Load .env but don't override existing environment variables
# This allows test scripts to set RUNTIME_ENVIRONMENT=TEST before import
load_dotenv(".env", override=False)

# Parse RUNTIME_ENVIRONMENT with clear error message on misconfiguration
try:
    _runtime_env_str = os.environ.get("RUNTIME_ENVIRONMENT")
    if not _runtime_env_str:
        raise ValueError("RUNTIME_ENVIRONMENT environment variable is not set")
    RUNTIME_ENVIRONMENT = RuntimeEnvironment(_runtime_env_str)
except ValueError as e:
    valid_values = [env.value for env in RuntimeEnvironment]
    print(f"\n ERROR: Invalid RUNTIME_ENVIRONMENT configuration\n", file=sys.stderr)
    print(f"Reason: {e}", file=sys.stderr)
    print(f"Valid values: {', '.join(valid_values)}", file=sys.stderr)
    print(f"Current value: {os.environ.get('RUNTIME_ENVIRONMENT', '(not set)')}", file=sys.stderr)
    print(f"\nAdd to .env: RUNTIME_ENVIRONMENT={valid_values[0]}\n", file=sys.stderr)
    sys.exit(1)

APP_NAME = os.environ.get("APP_NAME", "ExpressKart API")
API_VERSION = os.environ.get("API_VERSION", "1")
WEBAPP_HOST = os.environ.get("WEBAPP_HOST", "0.0.0.0")
WEBAPP_PORT = int(os.environ.get("WEBAPP_PORT")) if os.environ.get("WEBAPP_PORT") else 5000

# Database
# Any SQLAlchemy async URL works; SQLite (aiosqlite) is the default backend
DB_URL = os.environ.get("DB_URL", "sqlite+aiosqlite:///data/expresskart.db")
DB_ECHO = os.environ.get("DB_ECHO", "false") == "true"

# Token verification (tokens are issued by the auth service)
try:
    JWT_SECRET = os.environ.get("JWT_SECRET")
    if not JWT_SECRET:
        raise ValueError("JWT_SECRET environment variable is not set")
    if RUNTIME_ENVIRONMENT == RuntimeEnvironment.PROD and len(JWT_SECRET) < 32:
        raise ValueError(f"JWT_SECRET must be at least 32 characters in PROD (got: {len(JWT_SECRET)})")
except ValueError as e:
    print(f"\n ERROR: Invalid JWT_SECRET configuration\n", file=sys.stderr)
    print(f"Reason: {e}", file=sys.stderr)
    print(f"Expected: shared secret used by the auth service to sign access tokens", file=sys.stderr)
    print(f"\nAdd to .env: JWT_SECRET=<random string>\n", file=sys.stderr)
    sys.exit(1)
JWT_ALGORITHM = os.environ.get("JWT_ALGORITHM", "HS256")
ACCESS_TOKEN_EXPIRE_MINUTES = int(os.environ.get("ACCESS_TOKEN_EXPIRE_MINUTES", str(60 * 24 * 7)))

# Pagination
try:
    PAGE_SIZE_DEFAULT = int(os.environ.get("PAGE_SIZE_DEFAULT", "20"))
    PAGE_SIZE_MAX = int(os.environ.get("PAGE_SIZE_MAX", "100"))
    if PAGE_SIZE_DEFAULT <= 0 or PAGE_SIZE_MAX <= 0:
        raise ValueError(f"page sizes must be positive (got: {PAGE_SIZE_DEFAULT}, {PAGE_SIZE_MAX})")
    if PAGE_SIZE_DEFAULT > PAGE_SIZE_MAX:
        raise ValueError(f"PAGE_SIZE_DEFAULT ({PAGE_SIZE_DEFAULT}) exceeds PAGE_SIZE_MAX ({PAGE_SIZE_MAX})")
except ValueError as e:
    print(f"\n ERROR: Invalid pagination configuration\n", file=sys.stderr)
    print(f"Reason: {e}", file=sys.stderr)
    print(f"Expected: Positive integers (e.g., PAGE_SIZE_DEFAULT=20, PAGE_SIZE_MAX=100)\n", file=sys.stderr)
    sys.exit(1)

# Order Configuration
ORDER_NUMBER_PREFIX = os.environ.get("ORDER_NUMBER_PREFIX", "EK")
# Calendar day the daily order sequence is counted in; server local time when unset
try:
    _order_tz_str = os.environ.get("ORDER_NUMBER_TIMEZONE")
    ORDER_NUMBER_TIMEZONE = ZoneInfo(_order_tz_str) if _order_tz_str else None
except (ZoneInfoNotFoundError, ValueError) as e:
    print(f"\n ERROR: Invalid ORDER_NUMBER_TIMEZONE configuration\n", file=sys.stderr)
    print(f"Reason: {e}", file=sys.stderr)
    print(f"Expected: IANA time zone name (e.g., ORDER_NUMBER_TIMEZONE=Asia/Kolkata)\n", file=sys.stderr)
    sys.exit(1)
SHIPPING_FEE_STANDARD = float(os.environ.get("SHIPPING_FEE_STANDARD", "50"))
SHIPPING_FEE_EXPRESS = float(os.environ.get("SHIPPING_FEE_EXPRESS", "100"))
DEFAULT_COUNTRY = os.environ.get("DEFAULT_COUNTRY", "India")
ORDER_CREATE_MAX_RETRIES = int(os.environ.get("ORDER_CREATE_MAX_RETRIES", "3"))  # Order-number collisions
OPTIMISTIC_LOCK_MAX_RETRIES = int(os.environ.get("OPTIMISTIC_LOCK_MAX_RETRIES", "3"))  # Stale cart/vendor version

# Error responses
# Raw exception messages in 500 responses help while developing but leak internals in production
EXPOSE_ERROR_DETAILS = os.environ.get(
    "EXPOSE_ERROR_DETAILS",
    "true" if RUNTIME_ENVIRONMENT == RuntimeEnvironment.DEV else "false"
) == "true"

# Logging Configuration
LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")  # DEBUG, INFO, WARNING, ERROR, CRITICAL
LOG_MASK_SECRETS = os.environ.get("LOG_MASK_SECRETS", "true") == "true"  # Mask sensitive data in logs
LOG_DIR = os.environ.get("LOG_DIR", "logs")

# Log Retention: Environment-specific defaults
# Dev: keep a month for debugging
# Prod: Use 5 days default to save disk space
if RUNTIME_ENVIRONMENT == RuntimeEnvironment.DEV:
    LOG_RETENTION_DAYS = int(os.environ.get("LOG_RETENTION_DAYS", "30"))
else:
    LOG_RETENTION_DAYS = int(os.environ.get("LOG_RETENTION_DAYS", "5"))

# Rate Limiting Configuration
REDIS_HOST = os.environ.get("REDIS_HOST", "localhost")
REDIS_PORT = int(os.environ.get("REDIS_PORT", "6379"))
REDIS_PASSWORD = os.environ.get("REDIS_PASSWORD") or None
RATE_LIMIT_ENABLED = os.environ.get("RATE_LIMIT_ENABLED", "true") == "true"
RATE_LIMIT_WINDOW_SECONDS = int(os.environ.get("RATE_LIMIT_WINDOW_SECONDS", str(15 * 60)))  # 15 minutes
RATE_LIMIT_MAX_REQUESTS = int(os.environ.get("RATE_LIMIT_MAX_REQUESTS", "500"))  # Per client per window

# HTTP Security Configuration
SECURITY_HEADERS_ENABLED = os.environ.get("SECURITY_HEADERS_ENABLED", "true") == "true"
HSTS_ENABLED = os.environ.get("HSTS_ENABLED", "false") == "true"  # Enable HSTS (only for HTTPS)
CORS_ALLOWED_ORIGINS = os.environ.get("CORS_ALLOWED_ORIGINS", "").split(",") if os.environ.get("CORS_ALLOWED_ORIGINS") else ["http://localhost:3000"]

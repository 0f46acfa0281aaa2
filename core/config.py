# config.py
import os
from pathlib import Path


def _env_or(key: str, default: str) -> str:
    value = os.getenv(key)
    return value if value is not None else default


def _env_bool(key: str, default: bool = False) -> bool:
    value = os.getenv(key)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "y", "on")


# ---------------- Database ----------------
DB_USER = _env_or("DB_USER", "postgres")
DB_PASSWORD = _env_or("DB_PASSWORD", "postgres")
DB_HOST = _env_or("DB_HOST", "localhost")
DB_PORT = _env_or("DB_PORT", "5432")
DB_NAME = _env_or("DB_NAME", "swasthya")

DATABASE_URL = _env_or(
    "DATABASE_URL",
    f"postgresql+psycopg2://{DB_USER}:{DB_PASSWORD}@{DB_HOST}:{DB_PORT}/{DB_NAME}",
)
DB_ECHO = _env_bool("DB_ECHO", False)

# ---------------- JWT / passwords ----------------
JWT_SECRET = _env_or("JWT_SECRET", "change-me-in-production")
JWT_ALGORITHM = _env_or("JWT_ALGORITHM", "HS256")
JWT_EXPIRES_MINUTES = int(_env_or("JWT_EXPIRES_MINUTES", "60"))
BCRYPT_ROUNDS = int(_env_or("BCRYPT_ROUNDS", "12"))
MAX_BCRYPT_BYTES = 72
MIN_PASSWORD_LENGTH = 8

# Cookie names checked after the Authorization header, in order
TOKEN_COOKIES = ("token", "auth_token")

# ---------------- Scheduling ----------------
# Day-of-week and HH:MM for availability are derived in this zone
CLINIC_TIMEZONE = _env_or("CLINIC_TIMEZONE", "UTC")

# ---------------- External services ----------------
ML_SERVICE_URL = _env_or("ML_SERVICE_URL", "http://localhost:4000")
ML_TIMEOUT_SECONDS = float(_env_or("ML_TIMEOUT_SECONDS", "30"))
ML_PROBE_TIMEOUT_SECONDS = float(_env_or("ML_PROBE_TIMEOUT_SECONDS", "5"))

HOSPITAL_SEARCH_URL = _env_or("HOSPITAL_SEARCH_URL", "https://nominatim.openstreetmap.org/search")
HOSPITAL_TIMEOUT_SECONDS = float(_env_or("HOSPITAL_TIMEOUT_SECONDS", "5"))
HOSPITAL_USER_AGENT = "Swasthya-HealthApp/1.0"

# ---------------- Uploads ----------------
UPLOAD_DIR = Path(_env_or("UPLOAD_DIR", "uploads"))
MAX_REPORT_BYTES = int(_env_or("MAX_REPORT_BYTES", str(10 * 1024 * 1024)))
MAX_IMAGE_BYTES = int(_env_or("MAX_IMAGE_BYTES", str(5 * 1024 * 1024)))

# ---------------- Mail ----------------
MAIL_ENABLED = _env_bool("MAIL_ENABLED", False)
MAIL_USERNAME = _env_or("MAIL_USERNAME", "")
MAIL_PASSWORD = _env_or("MAIL_PASSWORD", "")
MAIL_FROM = _env_or("MAIL_FROM", "noreply@swasthya.local")
MAIL_PORT = int(_env_or("MAIL_PORT", "587"))
MAIL_SERVER = _env_or("MAIL_SERVER", "smtp.gmail.com")
MAIL_STARTTLS = _env_bool("MAIL_STARTTLS", True)
MAIL_SSL_TLS = _env_bool("MAIL_SSL_TLS", False)

# ---------------- App ----------------
LOG_LEVEL = _env_or("LOG_LEVEL", "INFO")
ALLOWED_ORIGINS = [o.strip() for o in _env_or("ALLOWED_ORIGINS", "*").split(",") if o.strip()]

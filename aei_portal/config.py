import logging
import os
import secrets
from pathlib import Path

from dotenv import load_dotenv

logger = logging.getLogger(__name__)

# Override=True so edits to .env take effect on process reload.
#
# For automated tests (SQLite), .env must not override the test DATABASE_URL.
# Set DISABLE_DOTENV=1 to skip loading .env.
if os.getenv("DISABLE_DOTENV") != "1":
    load_dotenv(override=True)


def _env_bool(name: str, default: str = "0") -> bool:
    v = (os.getenv(name, default) or default).strip().lower()
    return v in {"1", "true", "yes", "y", "on"}


ENVIRONMENT = (os.getenv("ENVIRONMENT") or "development").strip().lower()
LOG_LEVEL = (os.getenv("LOG_LEVEL") or "INFO").strip().upper()

_raw_database_url = (os.getenv("DATABASE_URL") or "").strip()
# Default to a local SQLite DB so the portal can start out-of-the-box.
_default_sqlite_path = (Path(__file__).resolve().parent.parent / "dev.db").as_posix()
DATABASE_URL = _raw_database_url or f"sqlite:///{_default_sqlite_path}"

# -------------------- Sessions --------------------
# No baked-in secret. Production refuses to boot without one; dev gets a random
# per-process secret (sessions do not survive a restart).
SECRET_KEY = (os.getenv("SECRET_KEY") or "").strip()
if not SECRET_KEY:
    if ENVIRONMENT == "production":
        raise RuntimeError("SECRET_KEY must be set when ENVIRONMENT=production")
    SECRET_KEY = secrets.token_urlsafe(48)
    logger.warning("SECRET_KEY not set; using a random per-process session secret")

SESSION_COOKIE_NAME = os.getenv("SESSION_COOKIE_NAME", "aei_session")
SESSION_MAX_AGE_MINUTES = int(os.getenv("SESSION_MAX_AGE_MINUTES", "480") or "480")
SESSION_COOKIE_SECURE = _env_bool("SESSION_COOKIE_SECURE", "1" if ENVIRONMENT == "production" else "0")

# First admin account, created on startup when both are set.
ADMIN_EMAIL = (os.getenv("ADMIN_EMAIL") or "").strip().lower()
ADMIN_PASSWORD = os.getenv("ADMIN_PASSWORD") or ""

# -------------------- Document vault --------------------
# Absolute path; override with UPLOAD_DIR in env (useful for tests).
UPLOAD_DIR = os.getenv("UPLOAD_DIR") or (Path(__file__).resolve().parent.parent / "uploads").as_posix()
MAX_UPLOAD_BYTES = int(os.getenv("MAX_UPLOAD_BYTES", str(25 * 1024 * 1024)) or str(25 * 1024 * 1024))

# -------------------- Status lifecycle --------------------
# "Completed Level" bumps the level and parks the student in "Pending Re-Enrollment".
LEVEL_AUTO_ADVANCE = _env_bool("LEVEL_AUTO_ADVANCE", "0")

# -------------------- Mail --------------------
SMTP_HOST = (os.getenv("SMTP_HOST") or "").strip()
SMTP_PORT = int((os.getenv("SMTP_PORT") or "587").strip())
SMTP_USER = (os.getenv("SMTP_USER") or "").strip()
SMTP_PASS = (os.getenv("SMTP_PASS") or "").strip()
SMTP_FROM = (os.getenv("SMTP_FROM") or SMTP_USER).strip()
SMTP_TLS = _env_bool("SMTP_TLS", "1")
ADMIN_NOTIFY_EMAIL = (os.getenv("ADMIN_NOTIFY_EMAIL") or ADMIN_EMAIL).strip()

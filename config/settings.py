import os
from pathlib import Path
from dotenv import load_dotenv

# Load .env from project root
PROJECT_ROOT = Path(__file__).parent.parent
load_dotenv(PROJECT_ROOT / ".env")


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name, str(default))
    try:
        return int(str(raw).strip() or str(default))
    except ValueError:
        return default


def _env_flag(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


# --- Paths ---
DATA_ROOT = Path(os.getenv("DATA_ROOT", "") or PROJECT_ROOT)
ASSETS_DIR = PROJECT_ROOT / "assets"
FONTS_DIR = ASSETS_DIR / "fonts"
UPLOADS_DIR = DATA_ROOT / "uploads"
OUTPUT_DIR = DATA_ROOT / "output"
DATA_DIR = DATA_ROOT / "data"
LOGS_DIR = DATA_ROOT / "logs"
DEFAULT_DB_PATH = DATA_DIR / "members.db"

# Ensure directories exist
for d in [UPLOADS_DIR, OUTPUT_DIR, DATA_DIR, LOGS_DIR]:
    d.mkdir(parents=True, exist_ok=True)

DATABASE_URL = os.getenv("DATABASE_URL", f"sqlite:///{DEFAULT_DB_PATH}")

# --- Branding ---
BRAND_NAME = os.getenv("BRAND_NAME", "WealthPlus").strip() or "WealthPlus"
LOGO_PATH = Path(os.getenv("LOGO_PATH", "") or ASSETS_DIR / "logo.png")

# --- Poster generation ---
MAX_TEMPLATE_WIDTH = max(400, _env_int("MAX_TEMPLATE_WIDTH", 2400))
POSTER_WORKERS = max(1, min(_env_int("POSTER_WORKERS", 2), 16))

# --- Email (SMTP) ---
SMTP_HOST = os.getenv("SMTP_HOST", "smtp.gmail.com")
SMTP_PORT = _env_int("SMTP_PORT", 587)
SMTP_USER = os.getenv("SMTP_USER", os.getenv("EMAIL", ""))
SMTP_PASSWORD = os.getenv("SMTP_PASSWORD", os.getenv("APP_PASSWORD", ""))
EMAIL_FROM = os.getenv("EMAIL_FROM", SMTP_USER)
EMAIL_FROM_NAME = os.getenv("EMAIL_FROM_NAME", f"{BRAND_NAME} Team")

# --- Admin panel ---
ADMIN_USERNAME = os.getenv("ADMIN_USERNAME", "")
ADMIN_PASSWORD = os.getenv("ADMIN_PASSWORD", "")
ADMIN_TOKEN_SECRET = os.getenv("ADMIN_TOKEN_SECRET", "change-me")
DASHBOARD_API_TOKEN = os.getenv("DASHBOARD_API_TOKEN", "").strip()
SESSION_COOKIE_SECURE = _env_flag("SESSION_COOKIE_SECURE", True)
MAX_UPLOAD_MB = max(1, _env_int("MAX_UPLOAD_MB", 5))
CORS_ORIGINS = [o.strip().rstrip("/") for o in os.getenv("CORS_ORIGINS", "http://localhost:5173").split(",") if o.strip()]

# --- Logging ---
LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

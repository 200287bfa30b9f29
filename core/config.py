import os

from dotenv import load_dotenv

# --------------------------------------------------------
# .env laden
# --------------------------------------------------------
load_dotenv()

IS_RENDER = bool(
    os.environ.get("RENDER")
    or os.environ.get("RENDER_SERVICE_ID")
    or os.environ.get("RENDER_EXTERNAL_URL")
)


def _cfg(name: str, default: str | None = None) -> str:
    val = os.environ.get(name, default)
    if val is None:
        raise RuntimeError(f"Missing required setting: {name}")
    return val


def _flag(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes")


# --------------------------------------------------------
# Core
# --------------------------------------------------------
SECRET = os.environ.get("SECRET_KEY", "dev")
DB_URL = _cfg("DATABASE_URL", "sqlite:///blog.db")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
PORT = int(os.environ.get("PORT", 5000))

# PostgreSQL URL für SQLAlchemy (psycopg v3) normalisieren
if DB_URL.startswith("postgres://"):
    DB_URL = DB_URL.replace("postgres://", "postgresql+psycopg://", 1)
elif DB_URL.startswith("postgresql://"):
    DB_URL = DB_URL.replace("postgresql://", "postgresql+psycopg://", 1)

# --------------------------------------------------------
# Sessions
# --------------------------------------------------------
SESSION_COOKIE_NAME = os.getenv("SESSION_COOKIE_NAME", "auth_session")
SESSION_TTL_DAYS = int(os.environ.get("SESSION_TTL_DAYS", "30"))
COOKIE_SECURE = IS_RENDER or _flag("COOKIE_SECURE")

# --------------------------------------------------------
# Signup / Verifizierung
# --------------------------------------------------------
MIN_PASSWORD_LENGTH = 6
MIN_USERNAME_LENGTH = 3
VALIDATION_CODE_TTL_MINUTES = int(os.environ.get("VALIDATION_CODE_TTL_MINUTES", "60"))
DEFAULT_PROFILE_PICTURE = os.getenv(
    "DEFAULT_PROFILE_PICTURE", "https://picsum.photos/200/300"
)

# --- MAIL Konfiguration (console standard; Resend/SMTP optional) ---
MAIL_PROVIDER = os.getenv("MAIL_PROVIDER", "console")  # resend | smtp | console
MAIL_FROM = os.getenv("MAIL_FROM", "Blog <no-reply@example.com>")
MAIL_REPLY_TO = os.getenv("MAIL_REPLY_TO", MAIL_FROM)
EMAILS_ENABLED = _flag("EMAILS_ENABLED", "true")

# RESEND (HTTPS)
RESEND_API_KEY = os.getenv("RESEND_API_KEY")

# SMTP - für lokale Tests
SMTP_HOST = os.getenv("SMTP_HOST")
SMTP_PORT = int(os.getenv("SMTP_PORT", "587"))
SMTP_USER = os.getenv("SMTP_USER")
SMTP_PASS = os.getenv("SMTP_PASS")
SMTP_USE_TLS = _flag("SMTP_USE_TLS", "true")

# --- CORS -------------------------------------------------
if os.getenv("ALLOWED_ORIGINS"):
    ALLOWED_ORIGINS = [
        o.strip() for o in os.environ["ALLOWED_ORIGINS"].split(",") if o.strip()
    ]
else:
    ALLOWED_ORIGINS = [
        "http://localhost:5173",
        "http://127.0.0.1:5173",
    ]

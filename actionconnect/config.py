# Import the standard library module used for environment variables and filesystem paths
import os

# Import timedelta to compute durations in seconds for token expiry
from datetime import timedelta

# Import helper to load environment variables from a .env file
from dotenv import load_dotenv


# Load variables from a .env file into process environment if present
load_dotenv()


def _env_flag(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


# Define a configuration holder class for the Flask application
class Config:
    # Secret key used by Flask and extensions (sessions, cookies); falls back to a dev value
    SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret-change-me")

    APP_NAME = os.getenv("APP_NAME", "ActionConnect")

    # JWT signing secret; defaults to SECRET_KEY if not explicitly provided
    JWT_SECRET = os.getenv("JWT_SECRET", SECRET_KEY)
    # Prefer absolute DB path under instance/ directory at repo root for SQLite
    _ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), os.pardir))
    # Default SQLAlchemy URI pointing to a sqlite database stored in instance/APP_NAME.db
    _DB_DEFAULT = f"sqlite:///{os.path.join(_ROOT, 'instance', f'{APP_NAME}.db')}"

    # Database URL taken from env when present, otherwise fallback to default
    SQLALCHEMY_DATABASE_URI = os.getenv("DATABASE_URL", _DB_DEFAULT)
    # When true, echo SQL statements to logs for debugging
    SQLALCHEMY_ECHO = _env_flag("SQLALCHEMY_ECHO", "false")

    # Public base URL where this backend is reachable (used for OAuth redirects)
    BACKEND_BASE_URL = os.getenv("BACKEND_BASE_URL", "http://localhost:3000")
    # Frontend base URL that receives the token after a Google sign-in
    FRONTEND_URL = os.getenv("FRONTEND_URL", "http://localhost:5173")

    # Google OAuth client identifier (optional; required for Google login)
    GOOGLE_CLIENT_ID = os.getenv("GOOGLE_CLIENT_ID", "")
    # Google OAuth client secret (optional; required for Google login)
    GOOGLE_CLIENT_SECRET = os.getenv("GOOGLE_CLIENT_SECRET", "")

    # Access token expiry in seconds; defaults to 14 days if not overridden
    ACCESS_TOKEN_EXPIRES = int(
        os.getenv(
            "ACCESS_TOKEN_EXPIRES_SECONDS", str(int(timedelta(days=14).total_seconds()))
        )
    )

    # Comma-separated list of CORS origins; '*' means allow all
    CORS_ORIGINS = os.getenv("CORS_ORIGINS", "*")

    # Socket.IO message queue DSN (e.g., Redis) for multi-process broadcast support (optional)
    SOCKETIO_MESSAGE_QUEUE = os.getenv("SOCKETIO_MESSAGE_QUEUE", "")
    # Socket.IO async mode override (e.g., 'gevent', 'threading'); empty means gevent
    SOCKETIO_ASYNC_MODE = os.getenv("SOCKETIO_ASYNC_MODE", "")

    # Quiet period after the last typing signal before "stopped typing" is broadcast
    TYPING_TIMEOUT_MS = int(os.getenv("TYPING_TIMEOUT_MS", "2000"))
    # One typing timer per (connection, channel); false keeps a single timer per connection
    TYPING_TIMER_PER_ROOM = _env_flag("TYPING_TIMER_PER_ROOM", "true")

    # Development toggle controlling Flask debug behavior
    DEBUG = _env_flag("DEBUG", "false")

    # Global logging level
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

# cvreview/config.py
from __future__ import annotations
import os
from dotenv import load_dotenv

load_dotenv()


def _flag(name: str, default: str = "0") -> bool:
    return (os.environ.get(name, default) or "").strip().lower() in ("1", "true", "yes", "on")


class Config:
    # Flask
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-key")
    SESSION_COOKIE_SECURE = True
    SESSION_COOKIE_SAMESITE = "Lax"
    REMEMBER_COOKIE_DAYS = int(os.environ.get("REMEMBER_COOKIE_DAYS", "7"))

    # Supabase
    SUPABASE_URL = os.environ.get("SUPABASE_URL", "")
    SUPABASE_KEY = os.environ.get("SUPABASE_KEY", "")

    # OpenAI
    OPENAI_API_KEY = os.environ.get("OPENAI_API_KEY", "")
    ANALYZER_MODEL = os.environ.get("ANALYZER_MODEL", "gpt-4o-mini")
    ANALYZER_MAX_CHARS = int(os.environ.get("ANALYZER_MAX_CHARS", "12000"))

    # Uploads
    MAX_UPLOAD_BYTES = int(os.environ.get("MAX_UPLOAD_BYTES", str(10 * 1024 * 1024)))
    # Hard request cap with room for the multipart envelope
    MAX_CONTENT_LENGTH = MAX_UPLOAD_BYTES + 1024 * 1024

    # Keep a copy of each analysis in the `analyses` table
    STORE_ANALYSES = _flag("STORE_ANALYSES")

    # CORS origins if you need them (comma-separated)
    CORS_ORIGINS = [s.strip() for s in os.environ.get("CORS_ORIGINS", "").split(",") if s.strip()]

    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO").upper()
    ENV_NAME = "production"


class DevConfig(Config):
    DEBUG = True
    SESSION_COOKIE_SECURE = False
    ENV_NAME = "development"


class ProdConfig(Config):
    DEBUG = False


class TestConfig(Config):
    TESTING = True
    DEBUG = True
    SECRET_KEY = "test-key"
    SESSION_COOKIE_SECURE = False
    STORE_ANALYSES = False
    ENV_NAME = "test"


def get_config(env: str | None = None):
    """Resolve config by env string or environment variables."""
    env = (env or os.environ.get("CVREVIEW_ENV") or os.environ.get("FLASK_ENV") or "production").lower()
    if env in ("dev", "development"):
        return DevConfig
    if env in ("test", "testing"):
        return TestConfig
    return ProdConfig

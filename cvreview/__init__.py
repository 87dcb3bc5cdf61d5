# cvreview/__init__.py
from __future__ import annotations
import atexit, logging, weakref
from datetime import datetime, timedelta, timezone
from flask import Flask
from flask_cors import CORS

from .config import get_config
from .extensions import Database, init_openai, login_manager
from .services.analyzer import OpenAIAnalyzer
from .routes import register_routes

# Handles opened by create_app; one shutdown hook closes whatever is still alive.
_open_handles: "weakref.WeakSet[Database]" = weakref.WeakSet()


@atexit.register
def close_open_handles() -> None:
    for handle in list(_open_handles):
        handle.close()


def create_app(env: str | None = None, *, database=None, analyzer=None) -> Flask:
    """
    Application factory. `database` (a Database handle or a raw Supabase client)
    and `analyzer` can be injected; otherwise they are built from config.
    """
    app = Flask(__name__)
    app.config.from_object(get_config(env))
    app.config["REMEMBER_COOKIE_DURATION"] = timedelta(days=app.config["REMEMBER_COOKIE_DAYS"])

    # CORS & logging
    CORS(app, origins=app.config["CORS_ORIGINS"] or "*", supports_credentials=True)
    logging.basicConfig(level=app.config["LOG_LEVEL"])

    # Database handle: opened here, closed at interpreter shutdown
    if database is None:
        database = Database(url=app.config["SUPABASE_URL"], key=app.config["SUPABASE_KEY"])
    elif not isinstance(database, Database):
        database = Database(client=database)
    app.config["DATABASE"] = database.open()
    _open_handles.add(database)

    # Analyzer
    if analyzer is None:
        api_key = app.config["OPENAI_API_KEY"]
        if api_key:
            client = init_openai(api_key)
        else:
            app.logger.warning("OPENAI_API_KEY not configured; CV analysis is disabled")
            client = None
        analyzer = OpenAIAnalyzer(
            client,
            model=app.config["ANALYZER_MODEL"],
            max_chars=app.config["ANALYZER_MAX_CHARS"],
        )
    app.config["ANALYZER"] = analyzer

    # ---------- Flask-Login ----------
    login_manager.init_app(app)

    # ---------- Blueprints ----------
    register_routes(app)

    @app.get("/healthz")
    def health():
        return {"ok": True, "ts": datetime.now(timezone.utc).isoformat()}

    return app

import logging
from flask import current_app
from flask_login import LoginManager, UserMixin
from supabase import Client, create_client
from openai import OpenAI

from cvreview.services.users import fetch_user_row

logger = logging.getLogger(__name__)

# 1) A single LoginManager instance you can init on the app
login_manager = LoginManager()


# 2) Small factory to build a Supabase client
def init_supabase(url: str | None, key: str | None) -> Client:
    if not url or not key:
        raise RuntimeError("Missing SUPABASE_URL or SUPABASE_KEY")
    return create_client(url, key)


# 3) Small factory to build an OpenAI client. Failed calls are not retried:
#    the user resubmits instead.
def init_openai(api_key: str | None) -> OpenAI:
    if not api_key:
        raise RuntimeError("Missing OPENAI_API_KEY")
    return OpenAI(api_key=api_key, max_retries=0)


# 4) The app's database handle: opened once in create_app, closed at shutdown.
#    Password sign-in runs on its own client so the session it starts never
#    replaces the key used for table queries.
class Database:
    def __init__(self, client: Client | None = None, url: str | None = None, key: str | None = None,
                 auth_client: Client | None = None):
        self._client = client
        self._auth_client = auth_client
        self._url = url
        self._key = key

    def open(self) -> "Database":
        if self._client is None:
            self._client = init_supabase(self._url, self._key)
            logger.info("Connected to Supabase at %s", (self._url or "")[:30])
        if self._auth_client is None and self._url and self._key:
            self._auth_client = init_supabase(self._url, self._key)
        return self

    @property
    def is_open(self) -> bool:
        return self._client is not None

    @property
    def client(self) -> Client:
        if self._client is None:
            raise RuntimeError("Database handle is closed")
        return self._client

    @property
    def auth(self):
        if self._client is None:
            raise RuntimeError("Database handle is closed")
        return (self._auth_client or self._client).auth

    def table(self, name: str):
        return self.client.table(name)

    def close(self) -> None:
        clients = [c for c in (self._client, self._auth_client) if c is not None]
        self._client = self._auth_client = None
        if not clients:
            return
        for client in clients:
            session = getattr(getattr(client, "postgrest", None), "session", None)
            if session is not None:
                session.close()
        logger.info("Database handle closed")


# 5) Minimal user object Flask-Login can store in the session
class User(UserMixin):
    def __init__(self, auth_id, email=None, name=None, created_at=None, **_):
        self.id = auth_id
        self.email = email
        self.name = name
        self.created_at = created_at


# 6) Bring the user back on each request
@login_manager.user_loader
def load_user(auth_id: str):
    db = current_app.config.get("DATABASE")
    if not auth_id or db is None:
        return None
    try:
        row = fetch_user_row(db, auth_id)
    except Exception:
        logger.exception("load_user failed")
        return None
    return User(**row) if row else None

# tests/conftest.py
import json
from types import SimpleNamespace

import pytest
from supabase_auth.errors import AuthApiError

from cvreview import create_app
from cvreview.services.analyzer import OpenAIAnalyzer


# ---------- Supabase fake ----------
class InvalidCredentials(AuthApiError):
    def __init__(self, message="Invalid login credentials"):
        Exception.__init__(self, message)


class FakeQuery:
    def __init__(self, store, table):
        self.store = store
        self.table = table
        self.filters = []
        self.order_by = None
        self.max_rows = None
        self.pending_insert = None

    def select(self, *_):
        return self

    def eq(self, col, val):
        self.filters.append((col, val))
        return self

    def order(self, col, desc=False):
        self.order_by = (col, desc)
        return self

    def limit(self, n):
        self.max_rows = n
        return self

    def insert(self, row):
        self.pending_insert = dict(row)
        return self

    def execute(self):
        rows = self.store.tables.setdefault(self.table, [])
        if self.pending_insert is not None:
            if self.table in self.store.failing_tables:
                raise RuntimeError(f"insert into {self.table} failed")
            row = dict(self.pending_insert)
            row.setdefault("created_at", f"2026-01-01T00:00:{len(rows):02d}+00:00")
            rows.append(row)
            return SimpleNamespace(data=[row])
        out = [r for r in rows if all(r.get(c) == v for c, v in self.filters)]
        if self.order_by:
            col, desc = self.order_by
            out.sort(key=lambda r: r.get(col) or "", reverse=desc)
        if self.max_rows is not None:
            out = out[: self.max_rows]
        return SimpleNamespace(data=[dict(r) for r in out])


class FakeAuth:
    def __init__(self):
        self.accounts = {}

    def sign_up(self, creds):
        email = creds["email"]
        if len(creds["password"]) < 6:
            raise InvalidCredentials("Password should be at least 6 characters")
        auth_id = f"uid-{len(self.accounts) + 1}"
        self.accounts[email] = {"id": auth_id, "email": email, "password": creds["password"]}
        return SimpleNamespace(user={"id": auth_id, "email": email})

    def sign_in_with_password(self, creds):
        acct = self.accounts.get(creds["email"])
        if not acct or acct["password"] != creds["password"]:
            raise InvalidCredentials()
        return SimpleNamespace(user={"id": acct["id"], "email": acct["email"]})


class FakeSupabase:
    def __init__(self):
        self.tables = {}
        self.failing_tables = set()
        self.auth = FakeAuth()

    def table(self, name):
        return FakeQuery(self, name)


# ---------- OpenAI fake ----------
def analyzer_payload(**overrides):
    payload = {
        "overallScore": 71,
        "sections": {
            "contactInfo": {"score": 85, "found": ["email", "phone"], "missing": ["linkedin"], "suggestions": []},
            "summary": {"score": 78, "hasObjective": True, "isRelevant": True, "suggestions": ["Mention the role"]},
            "experience": {"score": 92, "yearsOfExperience": 6, "hasQuantifiableAchievements": True,
                           "relevantRoles": 3, "suggestions": []},
            "skills": {"score": 88, "technicalSkills": ["Python", "SQL"], "softSkills": ["Leadership"],
                       "missingKeySkills": ["Kubernetes"], "suggestions": []},
            "education": {"score": 82, "degrees": ["BSc Computer Science"], "isRelevant": True, "suggestions": []},
            "formatting": {"score": 75, "isATSFriendly": True, "issues": [], "suggestions": []},
        },
        "keywords": {"found": ["python"], "missing": ["kubernetes"], "density": 75},
        "recommendations": {"immediate": ["Add LinkedIn"], "longTerm": [], "atsOptimization": []},
        "matchScore": 85,
    }
    payload.update(overrides)
    return payload


class FakeCompletions:
    def __init__(self, content=None, error=None):
        self.content = content if content is not None else json.dumps(analyzer_payload())
        self.error = error
        self.calls = []

    def create(self, **kwargs):
        self.calls.append(kwargs)
        if self.error is not None:
            raise self.error
        message = SimpleNamespace(content=self.content)
        return SimpleNamespace(choices=[SimpleNamespace(message=message)])


class FakeOpenAI:
    def __init__(self, content=None, error=None):
        self.chat = SimpleNamespace(completions=FakeCompletions(content, error))


# ---------- fixtures ----------
@pytest.fixture
def supabase():
    return FakeSupabase()


@pytest.fixture
def openai_client():
    return FakeOpenAI()


@pytest.fixture
def app(supabase, openai_client):
    return create_app("test", database=supabase, analyzer=OpenAIAnalyzer(openai_client))


@pytest.fixture
def client(app):
    with app.test_client() as c:
        yield c


@pytest.fixture
def logged_in(client):
    client.post("/api/auth/signup", json={"name": "Ada", "email": "ada@example.com", "password": "s3cret!"})
    r = client.post("/api/auth/login", json={"email": "ada@example.com", "password": "s3cret!"})
    assert r.status_code == 200
    return client


@pytest.fixture
def pdf_bytes():
    # Not parseable by PyPDF2; text is recovered from the literal strings.
    return (
        b"%PDF-1.4\n"
        b"BT /F1 12 Tf (Jane Doe Senior Software Engineer) Tj ET\n"
        b"BT (Python, SQL, AWS) Tj (x) Tj ET\n"
    )

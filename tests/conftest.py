"""Pytest configuration and fixtures."""

import json
import os
import re
import sys
import uuid
from datetime import UTC, datetime
from urllib.parse import unquote

import httpx
import pytest

# Add the project root to the Python path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

# Set test environment variables before importing internconnect modules
os.environ["BACKEND_URL"] = "http://backend.test"
os.environ["BACKEND_ANON_KEY"] = "anon-key"
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///./test.db")
os.environ["COOKIE_SECURE"] = "false"
os.environ.setdefault("LOG_LEVEL", "WARNING")

BACKEND_URL = "http://backend.test"
SINGLE_OBJECT_ACCEPT = "application/vnd.pgrst.object+json"

_EMBED = re.compile(r"^(?:(\w+):)?(\w+)(!inner)?\((.*)\)$")


def _now() -> str:
    return datetime.now(UTC).isoformat()


def _as_text(value) -> str:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def _matches(value, expression: str) -> bool:
    operator, _, operand = expression.partition(".")
    if operator == "is":
        return _as_text(value) == operand
    if operator == "eq":
        return _as_text(value) == operand
    raise AssertionError(f"Unsupported filter operator {operator}")


def _split_select(select: str) -> list[str]:
    items, depth, current = [], 0, ""
    for char in select:
        if char == "(":
            depth += 1
        elif char == ")":
            depth -= 1
        if char == "," and depth == 0:
            items.append(current)
            current = ""
        else:
            current += char
    if current:
        items.append(current)
    return items


class FakeBackend:
    """In-memory hosted backend (auth, tables, storage) behind httpx.MockTransport.

    Row-level security is not modelled: every filter the client sends is
    applied as-is.
    """

    RELATIONS = {
        ("internships", "profiles"): "company_id",
        ("applications", "profiles"): "student_id",
        ("applications", "internships"): "internship_id",
    }
    UNIQUE = {"applications": ("student_id", "internship_id")}

    def __init__(self):
        self.tables = {"profiles": [], "internships": [], "applications": []}
        self.accounts: dict[str, dict] = {}
        self.users: dict[str, dict] = {}
        self.tokens: dict[str, str] = {}
        self.refresh_tokens: dict[str, str] = {}
        self.objects: dict[tuple[str, str], bytes] = {}
        self.requests: list[tuple[str, str]] = []
        self.failures: list[tuple[str, str, int, dict]] = []
        self.auto_confirm = True

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handle)

    # Seeding helpers

    def add_user(self, email, password="password1", role="student", completed=True, **profile):
        user_id = f"{role}-{len(self.users) + 1}"
        user = {"id": user_id, "email": email, "user_metadata": {"role": role}}
        self.users[user_id] = user
        self.accounts[email] = {"password": password, "user_id": user_id}
        row = {
            "id": user_id,
            "role": role,
            "profile_completed": completed,
            "created_at": _now(),
            "updated_at": _now(),
        }
        if role == "student":
            row.update(
                full_name="Test Student",
                university="State University",
                major="Computer Science",
                graduation_year=2026,
                skills=[],
                education=[],
                experience=[],
                documents=[],
            )
        else:
            row.update(
                company_name="Acme Corp",
                industry="Software",
                founded_year=2010,
                location="Berlin",
                long_description="We build things.",
            )
        row.update(profile)
        self.tables["profiles"].append(row)
        return user_id

    def add_internship(self, company_id, **fields):
        row = {
            "id": f"internship-{len(self.tables['internships']) + 1}",
            "company_id": company_id,
            "title": "Backend Intern",
            "location": "Remote",
            "type": "Full-time",
            "category": "Engineering",
            "description": "Work on our Python services with the platform team.",
            "skills": ["Python"],
            "requirements": "Python and SQL",
            "created_at": _now(),
        }
        row.update(fields)
        self.tables["internships"].append(row)
        return row["id"]

    def add_application(self, student_id, internship_id, **fields):
        row = {
            "id": f"application-{len(self.tables['applications']) + 1}",
            "student_id": student_id,
            "internship_id": internship_id,
            "status": "submitted",
            "cover_letter": None,
            "resume_url": None,
            "company_notes": None,
            "submitted_at": _now(),
        }
        row.update(fields)
        self.tables["applications"].append(row)
        return row["id"]

    def row(self, table, row_id):
        return next((r for r in self.tables[table] if r["id"] == row_id), None)

    def fail(self, method, path_prefix, status=500, payload=None):
        """Answer the next matching request with an error."""
        self.failures.append(
            (method, path_prefix, status, payload or {"message": "Internal server error"})
        )

    def count(self, method, path_prefix):
        return sum(1 for m, p in self.requests if m == method and p.startswith(path_prefix))

    # Dispatch

    def handle(self, request: httpx.Request) -> httpx.Response:
        path = request.url.path
        self.requests.append((request.method, path))

        for failure in list(self.failures):
            method, prefix, status, payload = failure
            if request.method == method and path.startswith(prefix):
                self.failures.remove(failure)
                return httpx.Response(status, json=payload)

        if path.startswith("/auth/v1/"):
            return self._auth(request, path.removeprefix("/auth/v1/"))
        if path.startswith("/rest/v1/"):
            return self._rest(request, path.removeprefix("/rest/v1/"))
        if path.startswith("/storage/v1/object/"):
            return self._storage(request, unquote(path.removeprefix("/storage/v1/object/")))
        return httpx.Response(404, json={"message": "Unknown route"})

    # Auth

    def _session(self, user_id):
        access, refresh = f"access-{uuid.uuid4().hex}", f"refresh-{uuid.uuid4().hex}"
        self.tokens[access] = user_id
        self.refresh_tokens[refresh] = user_id
        return {
            "access_token": access,
            "refresh_token": refresh,
            "token_type": "bearer",
            "expires_in": 3600,
            "user": {**self.users[user_id], "identities": [{"id": user_id}]},
        }

    def _auth(self, request, route):
        body = json.loads(request.content or b"{}")
        if route == "token":
            grant = request.url.params.get("grant_type")
            if grant == "password":
                account = self.accounts.get(body.get("email"))
                if account is None or account["password"] != body.get("password"):
                    return httpx.Response(
                        400,
                        json={
                            "error": "invalid_grant",
                            "error_description": "Invalid login credentials",
                        },
                    )
                return httpx.Response(200, json=self._session(account["user_id"]))
            user_id = self.refresh_tokens.pop(body.get("refresh_token"), None)
            if user_id is None:
                return httpx.Response(
                    400,
                    json={"error": "invalid_grant", "error_description": "Invalid Refresh Token"},
                )
            return httpx.Response(200, json=self._session(user_id))

        if route == "signup":
            email = body["email"]
            if email in self.accounts:
                return httpx.Response(
                    422,
                    json={
                        "code": 422,
                        "error_code": "user_already_exists",
                        "msg": "User already registered",
                    },
                )
            data = body.get("data") or {}
            role = data.get("role", "student")
            user_id = f"{role}-{len(self.users) + 1}"
            self.users[user_id] = {"id": user_id, "email": email, "user_metadata": data}
            self.accounts[email] = {"password": body["password"], "user_id": user_id}
            profile = {"id": user_id, "role": role, "profile_completed": False}
            profile.update({k: v for k, v in data.items() if k in ("full_name", "company_name")})
            self.tables["profiles"].append(profile)
            if self.auto_confirm:
                return httpx.Response(200, json=self._session(user_id))
            return httpx.Response(200, json={**self.users[user_id], "identities": []})

        if route == "logout":
            return httpx.Response(204)
        return httpx.Response(404, json={"message": "Unknown auth route"})

    # Tables

    def _project(self, table, row, select, embed_filters):
        result = {}
        for item in _split_select(select):
            if item == "*":
                result.update(row)
                continue
            match = _EMBED.match(item)
            if match is None:
                result[item] = row.get(item)
                continue

            alias, relation, inner, columns = match.groups()
            name = alias or relation
            foreign_key = self.RELATIONS[(table, relation)]
            related = next(
                (r for r in self.tables[relation] if r["id"] == row.get(foreign_key)), None
            )
            conditions = embed_filters.get(name, [])
            if related is not None and all(
                _matches(related.get(column), expression) for column, expression in conditions
            ):
                if columns == "*":
                    embedded = dict(related)
                else:
                    embedded = {column: related.get(column) for column in columns.split(",")}
            else:
                embedded = None
            if inner and embedded is None:
                return None
            result[name] = embedded
        return result

    def _rest(self, request, table):
        rows = self.tables[table]
        select = "*"
        filters, embed_filters = [], {}
        for key, value in request.url.params.multi_items():
            if key == "select":
                select = value
            elif "." in key:
                relation, column = key.split(".", 1)
                embed_filters.setdefault(relation, []).append((column, value))
            else:
                filters.append((key, value))

        def selected():
            return [r for r in rows if all(_matches(r.get(k), v) for k, v in filters)]

        if request.method == "GET":
            result = [self._project(table, r, select, embed_filters) for r in selected()]
            result = [r for r in result if r is not None]
            if request.headers.get("accept") == SINGLE_OBJECT_ACCEPT:
                if len(result) != 1:
                    return httpx.Response(
                        406,
                        json={
                            "code": "PGRST116",
                            "message": "JSON object requested, multiple (or no) rows returned",
                            "details": f"The result contains {len(result)} rows",
                            "hint": None,
                        },
                    )
                return httpx.Response(200, json=result[0])
            return httpx.Response(200, json=result)

        if request.method == "POST":
            created = []
            for values in json.loads(request.content):
                unique = self.UNIQUE.get(table)
                if unique and any(all(r.get(c) == values.get(c) for c in unique) for r in rows):
                    return httpx.Response(
                        409,
                        json={
                            "code": "23505",
                            "message": "duplicate key value violates unique constraint",
                            "details": None,
                            "hint": None,
                        },
                    )
                row = {"id": f"{table}-{uuid.uuid4().hex[:8]}", "created_at": _now()}
                if table == "applications":
                    row.update(submitted_at=_now(), company_notes=None)
                row.update(values)
                rows.append(row)
                created.append(self._project(table, row, select, {}))
            return httpx.Response(201, json=created)

        if request.method == "PATCH":
            values = json.loads(request.content)
            updated = []
            for row in selected():
                row.update(values)
                updated.append(self._project(table, row, select, {}))
            return httpx.Response(200, json=updated)

        if request.method == "DELETE":
            doomed = selected()
            self.tables[table] = [r for r in rows if r not in doomed]
            return httpx.Response(
                200, json=[self._project(table, r, select, {}) for r in doomed]
            )

        return httpx.Response(405, json={"message": "Method not allowed"})

    # Storage

    def _storage(self, request, route):
        if route.startswith("list/"):
            bucket = route.removeprefix("list/")
            prefix = json.loads(request.content).get("prefix", "")
            names = [
                {"name": path} for (b, path) in self.objects if b == bucket and path.startswith(prefix)
            ]
            return httpx.Response(200, json=names)

        bucket, _, path = route.partition("/")
        if request.method == "DELETE" and not path:
            prefixes = json.loads(request.content)["prefixes"]
            removed = [p for p in prefixes if self.objects.pop((bucket, p), None) is not None]
            return httpx.Response(200, json=[{"name": p} for p in removed])

        if request.method == "POST":
            if (bucket, path) in self.objects and request.headers.get("x-upsert") != "true":
                return httpx.Response(
                    409, json={"statusCode": "409", "error": "Duplicate", "message": "The resource already exists"}
                )
            self.objects[(bucket, path)] = request.content
            return httpx.Response(200, json={"Key": f"{bucket}/{path}"})

        if request.method == "GET":
            if (bucket, path) not in self.objects:
                return httpx.Response(
                    404, json={"statusCode": "404", "error": "not_found", "message": "Object not found"}
                )
            return httpx.Response(200, content=self.objects[(bucket, path)])

        return httpx.Response(405, json={"message": "Method not allowed"})


@pytest.fixture
def backend():
    """Fresh in-memory backend."""
    return FakeBackend()


@pytest.fixture
def make_client(backend):
    """Factory for backend clients wired to the fake backend."""
    from internconnect.backend.client import BackendClient

    def _make(session_storage=None, storage_key="internconnect-auth-token"):
        return BackendClient(
            BACKEND_URL,
            "anon-key",
            session_storage=session_storage,
            storage_key=storage_key,
            transport=backend.transport(),
        )

    return _make


@pytest.fixture
def make_session(make_client):
    """Factory for user sessions against the fake backend."""
    from internconnect.services.user_session import UserSession

    def _make(session_id="test-session", session_storage=None):
        client = make_client(session_storage=session_storage, storage_key=f"auth:{session_id}")
        return UserSession(session_id, client)

    return _make


@pytest.fixture
def sign_in(make_session):
    """Start a session and sign in; returns the session."""

    async def _sign_in(email, password="password1", session_id="test-session"):
        session = make_session(session_id)
        await session.start()
        error = await session.auth.login(email, password)
        assert error is None
        return session

    return _sign_in


@pytest.fixture
def seeded(backend):
    """One company with two internships and one student."""
    company_id = backend.add_user("hr@acme.test", role="company")
    student_id = backend.add_user(
        "ada@uni.test", role="student", skills=["Python", "SQL"], major="Computer Science"
    )
    backend_id = backend.add_internship(company_id, title="Backend Intern")
    design_id = backend.add_internship(
        company_id,
        title="Design Intern",
        location="Berlin",
        category="Design",
        type="Part-time",
        description="Help our design team craft product visuals and prototypes.",
        requirements="Figma",
        skills=["Figma"],
    )
    return {
        "company_id": company_id,
        "student_id": student_id,
        "backend_internship": backend_id,
        "design_internship": design_id,
    }


@pytest.fixture
def app(backend):
    """FastAPI app whose sessions talk to the fake backend."""
    from internconnect.backend.client import BackendClient
    from internconnect.main import create_app
    from internconnect.services.user_session import UserSession

    def factory(session_id):
        client = BackendClient(BACKEND_URL, "anon-key", transport=backend.transport())
        return UserSession(session_id, client)

    return create_app(session_factory=factory, use_lifespan=False)


@pytest.fixture
def test_client(app):
    """Test client keeping cookies across requests."""
    from fastapi.testclient import TestClient

    with TestClient(app, follow_redirects=False) as client:
        yield client


@pytest.fixture
def other_client(app):
    """A second browser against the same app, with its own cookie jar."""
    from fastapi.testclient import TestClient

    with TestClient(app, follow_redirects=False) as client:
        yield client

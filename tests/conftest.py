# backend/tests/conftest.py

import os
import uuid
from collections import defaultdict
from copy import deepcopy
from datetime import datetime, timezone

import pytest

os.environ.setdefault("SUPABASE_URL", "http://localhost:54321")
os.environ.setdefault("SUPABASE_SERVICE_ROLE_KEY", "test-service-role-key")
os.environ.setdefault("JWT_SECRET", "test-jwt-secret")
os.environ.setdefault("DEFAULT_TIMEZONE", "America/Sao_Paulo")
os.environ.setdefault("FORM_ACTIVATION_MODE", "assignment")

from fastapi.testclient import TestClient  # noqa: E402
from jose import jwt  # noqa: E402

from app.api import deps  # noqa: E402
from app.core.config import settings  # noqa: E402
from app.core.errors import DuplicateKeyError  # noqa: E402
from app.db.session import get_store  # noqa: E402
from app.db.store import Between, Contains, DocumentStore, In, Not, live  # noqa: E402
from app.main import app  # noqa: E402
from app.services.response_service import ResponseService  # noqa: E402


# Mirrors the partial unique indexes in app/db/schema.sql
UNIQUE_INDEXES = {
    "users": [(("email",), lambda row: True)],
    "responses": [
        (("form_id", "user_id", "submission_slot"), lambda row: not row.get("is_draft") and not row.get("deleted")),
        (("form_id", "user_id"), lambda row: row.get("is_draft") and not row.get("deleted")),
    ],
}


def _matches(row, filters):
    for column, expected in filters.items():
        value = row.get(column)
        if isinstance(expected, In):
            if value not in expected.values:
                return False
        elif isinstance(expected, Not):
            if value == expected.value:
                return False
        elif isinstance(expected, Between):
            if value is None or not (expected.low <= value <= expected.high):
                return False
        elif isinstance(expected, Contains):
            if expected.value not in (value or []):
                return False
        elif value != expected:
            return False
    return True


class InMemoryStore(DocumentStore):
    """Store double with the same live-view and unique-index behaviour as Supabase."""

    def __init__(self):
        self.collections = defaultdict(list)

    def _check_unique(self, collection, candidate, ignore_ids=()):
        for columns, applies in UNIQUE_INDEXES.get(collection, []):
            if not applies(candidate):
                continue
            key = tuple(candidate.get(column) for column in columns)
            for row in self.collections[collection]:
                if row["id"] == candidate["id"] or row["id"] in ignore_ids or not applies(row):
                    continue
                if tuple(row.get(column) for column in columns) == key:
                    raise DuplicateKeyError(f"duplicate key on {collection} {columns}")

    def find(self, collection, filters=None, order_by=None, descending=False, include_deleted=False, limit=None):
        scoped = live(filters, include_deleted)
        rows = [deepcopy(row) for row in self.collections[collection] if _matches(row, scoped)]
        if order_by:
            rows.sort(key=lambda row: (row.get(order_by) is None, row.get(order_by) or ""), reverse=descending)
        if limit is not None:
            rows = rows[:limit]
        return rows

    def count(self, collection, filters=None, include_deleted=False):
        return len(self.find(collection, filters, include_deleted=include_deleted))

    def insert(self, collection, doc):
        doc = deepcopy(doc)
        doc.setdefault("id", str(uuid.uuid4()))
        doc.setdefault("deleted", False)
        self._check_unique(collection, doc)
        self.collections[collection].append(doc)
        return deepcopy(doc)

    def update(self, collection, filters, patch):
        updated = []
        for index, row in enumerate(self.collections[collection]):
            if not _matches(row, filters):
                continue
            candidate = {**row, **deepcopy(patch)}
            self._check_unique(collection, candidate)
            self.collections[collection][index] = candidate
            updated.append(deepcopy(candidate))
        return updated

    def activate_exclusive(self, collection, doc_id):
        for row in self.collections[collection]:
            row["is_active"] = row["id"] == doc_id

    def supersede_and_insert(self, collection, superseded_ids, doc):
        doc = deepcopy(doc)
        self._check_unique(collection, doc, ignore_ids=superseded_ids)
        for row in self.collections[collection]:
            if row["id"] in superseded_ids:
                row["deleted"] = True
        self.collections[collection].append(doc)
        return deepcopy(doc)


class FrozenClock:
    def __init__(self, now):
        self.now = now

    def __call__(self):
        return self.now

    def set(self, now):
        self.now = now


@pytest.fixture
def store():
    return InMemoryStore()


@pytest.fixture
def clock():
    # 10:00 in São Paulo
    return FrozenClock(datetime(2026, 3, 10, 13, 0, tzinfo=timezone.utc))


@pytest.fixture
def ledger(store, clock):
    return ResponseService(store, clock=clock)


@pytest.fixture
def client(store, clock):
    app.dependency_overrides[get_store] = lambda: store
    app.dependency_overrides[deps.get_response_service] = lambda: ResponseService(store, clock=clock)
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def single_active_mode(monkeypatch):
    monkeypatch.setattr(settings, "FORM_ACTIVATION_MODE", "single_active")


@pytest.fixture
def make_user(store):
    def _make_user(role="student", name="Maria Souza", anonymous=False, **extra):
        user_id = str(uuid.uuid4())
        return store.insert("users", {
            "id": user_id,
            "name": name,
            "email": f"{user_id[:8]}@ufpr.br",
            "role": role,
            "anonymous": anonymous,
            "city": "Curitiba",
            "state": "PR",
            "institution": "UFPR",
            "deleted": False,
            "created_at": "2026-01-01T00:00:00.000+00:00",
            **extra,
        })
    return _make_user


@pytest.fixture
def make_question(store):
    def _make_question(type="text", title=None, options=None):
        if options is None and type in ("multiple_choice", "checkbox", "dropdown", "scale"):
            options = [{"label": value.upper(), "value": value} for value in ("a", "b", "c")]
        return store.insert("questions", {
            "id": str(uuid.uuid4()),
            "title": title or f"{type} question",
            "type": type,
            "options": options or [],
            "validation": {"required": False},
            "deleted": False,
            "created_at": "2026-01-01T00:00:00.000+00:00",
        })
    return _make_question


@pytest.fixture
def make_form(store):
    def _make_form(questions, mode="form", assigned_users=(), is_active=True, title="Weekly check-in", required=()):
        return store.insert("forms", {
            "id": str(uuid.uuid4()),
            "title": title,
            "description": "",
            "mode": mode,
            "questions": [
                {"question_id": question["id"], "order": index, "required": question["id"] in required}
                for index, question in enumerate(questions)
            ],
            "assigned_users": [user["id"] for user in assigned_users],
            "is_active": is_active,
            "deleted": False,
            "created_at": "2026-01-01T00:00:00.000+00:00",
        })
    return _make_form


def auth_headers(user, **extra):
    token = jwt.encode({"sub": user["id"]}, settings.JWT_SECRET, algorithm=settings.ALGORITHM)
    return {"Authorization": f"Bearer {token}", **extra}

import copy

import pytest
from fastapi.testclient import TestClient

from main import app
from shared_ledger import authz_utils, services
from shared_ledger.models import Expense, Participant
from shared_ledger.utils import get_current_user


class FakeResult:
    def __init__(self, data):
        self.data = data


class FakeQuery:
    """Just enough of the postgrest builder for the service's queries."""

    def __init__(self, tables, name):
        self.tables = tables
        self.name = name
        self.filters = []
        self.action = "select"
        self.payload = None
        self.sort = None
        self.max_rows = None

    def select(self, *_args):
        self.action = "select"
        return self

    def update(self, data):
        self.action, self.payload = "update", data
        return self

    def delete(self):
        self.action = "delete"
        return self

    def insert(self, data):
        self.action, self.payload = "insert", data
        return self

    def _where(self, fn):
        self.filters.append(fn)
        return self

    def eq(self, col, val):
        return self._where(lambda r: r.get(col) == val)

    def neq(self, col, val):
        # SQL semantics: NULL never compares unequal
        return self._where(lambda r: r.get(col) is not None and r.get(col) != val)

    def gt(self, col, val):
        return self._where(lambda r: r.get(col) is not None and r.get(col) > val)

    def gte(self, col, val):
        return self._where(lambda r: r.get(col) is not None and r.get(col) >= val)

    def lt(self, col, val):
        return self._where(lambda r: r.get(col) is not None and r.get(col) < val)

    def lte(self, col, val):
        return self._where(lambda r: r.get(col) is not None and r.get(col) <= val)

    def in_(self, col, values):
        return self._where(lambda r: r.get(col) in values)

    def order(self, col, desc=False):
        self.sort = (col, desc)
        return self

    def limit(self, n):
        self.max_rows = n
        return self

    def execute(self):
        rows = self.tables.setdefault(self.name, [])
        if self.action == "insert":
            new = self.payload if isinstance(self.payload, list) else [self.payload]
            rows.extend(copy.deepcopy(new))
            return FakeResult(new)
        matched = [r for r in rows if all(f(r) for f in self.filters)]
        if self.action == "update":
            for r in matched:
                r.update(self.payload)
            return FakeResult(copy.deepcopy(matched))
        if self.action == "delete":
            self.tables[self.name] = [r for r in rows if r not in matched]
            return FakeResult(copy.deepcopy(matched))
        if self.sort:
            col, desc = self.sort
            matched.sort(key=lambda r: (r.get(col) is None, r.get(col) or ""), reverse=desc)
        if self.max_rows is not None:
            matched = matched[: self.max_rows]
        return FakeResult(copy.deepcopy(matched))


class FakeSupabase:
    def __init__(self, tables=None):
        self.tables = tables or {}

    def table(self, name):
        return FakeQuery(self.tables, name)


VIEWER = {"sub": "u1", "email": "andres@example.com", "user_metadata": {"name": "Andrés"}}


@pytest.fixture
def fake_db(monkeypatch):
    db = FakeSupabase({
        "user_subscriptions": [{"user_id": "u1", "status": "active"}],
        "family_members": [
            {"id": "fm1", "owner_id": "u1", "member_id": "u2", "member_name": "Pablo", "member_email": "pablo@example.com"},
        ],
        "expenses": [],
        "groups": [{"id": "g1", "user_id": "u1", "name": "Asado", "is_active": True}],
        "group_participants": [],
        "group_expenses": [],
    })
    monkeypatch.setattr(authz_utils, "get_supabase_client", lambda: db)
    monkeypatch.setattr(services, "get_supabase_client", lambda: db)
    return db


@pytest.fixture
def client(fake_db):
    app.dependency_overrides[get_current_user] = lambda: dict(VIEWER)
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def household():
    """Three family members; the viewer is shown as "Yo"."""
    return [
        Participant(name="Yo", real_name="Andrés", member_id="u1"),
        Participant(name="Pablo", member_id="u2"),
        Participant(name="Miriam", member_id="u3"),
    ]


def make_expense(**kwargs) -> Expense:
    fields = {"id": "e1", "total_amount": 100, "owner": "Andrés", "date": "2025-03-05"}
    fields.update(kwargs)
    return Expense(**fields)

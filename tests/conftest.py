import re
from types import SimpleNamespace

import pytest
from bson import ObjectId
from fastapi.testclient import TestClient

from isoko_api.database import get_db
from isoko_api.main import app
from isoko_api.security import hash_password
from isoko_ui.api_client import ApiError
from isoko_ui.session import SessionStore
from isoko_ui.storage import MemoryStorage


# ── Front end: stub auth API ──────────────────────────

class FakeAuthAPI:
    """Each response attribute is either an envelope dict or an exception to raise."""

    def __init__(self):
        self.login_response = {"success": False, "message": "Invalid credentials"}
        self.me_response = {"success": False}
        self.logout_response = {"success": True}
        self.change_password_response = {"success": True, "message": "Password updated"}
        self.calls = []

    def _reply(self, response):
        if isinstance(response, Exception):
            raise response
        return response

    def login(self, credentials):
        self.calls.append(("login", credentials))
        return self._reply(self.login_response)

    def me(self):
        self.calls.append(("me",))
        return self._reply(self.me_response)

    def logout(self, token=None):
        self.calls.append(("logout", token))
        return self._reply(self.logout_response)

    def change_password(self, current_password, new_password):
        self.calls.append(("change_password", current_password, new_password))
        return self._reply(self.change_password_response)


ADMIN_PAYLOAD = {
    "id": "u1",
    "email": "a@b.com",
    "role": "admin",
    "first_name": "Aline",
    "last_name": "Uwase",
    "branch": "Head Office",
}


def login_ok(token="t1", user=None):
    return {"success": True, "data": {"token": token, "user": user or dict(ADMIN_PAYLOAD)}}


@pytest.fixture
def fake_api():
    return SimpleNamespace(auth=FakeAuthAPI())


@pytest.fixture
def storage():
    return MemoryStorage()


@pytest.fixture
def navigations():
    return []


@pytest.fixture
def store(fake_api, storage, navigations):
    return SessionStore(fake_api, storage, navigate=navigations.append)


@pytest.fixture
def network_down():
    return ApiError("Cannot reach backend: connection refused")


# ── Back end: in-memory stand-in for a Motor database ─

def _matches(doc: dict, query: dict) -> bool:
    for key, cond in query.items():
        if key == "$or":
            if not any(_matches(doc, sub) for sub in cond):
                return False
            continue
        value = doc.get(key)
        if isinstance(cond, dict) and "$in" in cond:
            if value not in cond["$in"]:
                return False
        elif isinstance(cond, dict) and "$regex" in cond:
            flags = re.IGNORECASE if "i" in cond.get("$options", "") else 0
            if not isinstance(value, str) or not re.search(cond["$regex"], value, flags):
                return False
        elif isinstance(cond, dict) and ("$gte" in cond or "$lt" in cond):
            if value is None:
                return False
            if "$gte" in cond and not value >= cond["$gte"]:
                return False
            if "$lt" in cond and not value < cond["$lt"]:
                return False
        elif value != cond:
            return False
    return True


class FakeCursor:
    def __init__(self, docs):
        self._docs = docs

    def sort(self, field, direction=1):
        self._docs.sort(key=lambda d: (d.get(field) is None, 0 if d.get(field) is None else d.get(field)),
                        reverse=direction < 0)
        return self

    def skip(self, n):
        self._docs = self._docs[n:]
        return self

    def limit(self, n):
        self._docs = self._docs[:n]
        return self

    async def to_list(self, length=None):
        return [dict(d) for d in (self._docs if length is None else self._docs[:length])]


class FakeCollection:
    def __init__(self):
        self.docs: list[dict] = []

    async def find_one(self, query, projection=None):
        for doc in self.docs:
            if _matches(doc, query):
                return dict(doc)
        return None

    def find(self, query=None, projection=None):
        return FakeCursor([d for d in self.docs if _matches(d, query or {})])

    async def count_documents(self, query):
        return sum(1 for d in self.docs if _matches(d, query))

    async def insert_one(self, doc):
        doc = dict(doc)
        doc.setdefault("_id", ObjectId())
        self.docs.append(doc)
        return SimpleNamespace(inserted_id=doc["_id"])

    async def update_one(self, query, update):
        for doc in self.docs:
            if _matches(doc, query):
                doc.update(update.get("$set", {}))
                for field, value in update.get("$push", {}).items():
                    doc.setdefault(field, []).append(value)
                return SimpleNamespace(modified_count=1)
        return SimpleNamespace(modified_count=0)

    async def delete_one(self, query):
        for i, doc in enumerate(self.docs):
            if _matches(doc, query):
                del self.docs[i]
                return SimpleNamespace(deleted_count=1)
        return SimpleNamespace(deleted_count=0)


class FakeDB:
    def __init__(self):
        self._collections: dict[str, FakeCollection] = {}

    def __getitem__(self, name):
        return self._collections.setdefault(name, FakeCollection())

    def __getattr__(self, name):
        if name.startswith("_"):
            raise AttributeError(name)
        return self[name]


@pytest.fixture
def fake_db():
    return FakeDB()


# ── Back end: app wired to the fake database ──────────

DEMO_PASSWORD = "demo@1234"


@pytest.fixture
def api(fake_db):
    async def override_db():
        return fake_db

    app.dependency_overrides[get_db] = override_db
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def add_user(fake_db):
    hashed = hash_password(DEMO_PASSWORD)

    def factory(email, role, **extra):
        doc = {
            "_id": ObjectId(),
            "email": email,
            "role": role,
            "first_name": email.split("@")[0].title(),
            "last_name": "Test",
            "branch": "Kigali",
            "status": "active",
            "password_hash": hashed,
            **extra,
        }
        fake_db.users.docs.append(doc)
        return doc

    return factory


@pytest.fixture
def login(api):
    def factory(email, password=DEMO_PASSWORD):
        resp = api.post("/auth/login", json={"email": email, "password": password})
        assert resp.status_code == 200, resp.text
        return {"Authorization": f"Bearer {resp.json()['data']['token']}"}

    return factory


# ── Back end: lending desk staff and a pending application ──

CLIENT = {
    "first_name": "Jean",
    "last_name": "Mugisha",
    "phone": "0788123456",
    "national_id": "1199080012345678",
    "monthly_income": 150000,
}

LOAN_TYPE = {
    "name": "Business Working Capital",
    "code": "bwc",
    "interest_rate": 2.5,
    "min_amount": 50000,
    "max_amount": 2000000,
    "min_term_months": 3,
    "max_term_months": 24,
}


@pytest.fixture
def staff(add_user, login):
    officer = add_user("officer@isoko.rw", "loan-officer")
    add_user("admin@isoko.rw", "admin")
    add_user("cashier@isoko.rw", "cashier")
    add_user("other@isoko.rw", "loan-officer", branch="Huye")
    return {
        "officer_id": str(officer["_id"]),
        "officer": login("officer@isoko.rw"),
        "admin": login("admin@isoko.rw"),
        "cashier": login("cashier@isoko.rw"),
        "other": login("other@isoko.rw"),
    }


@pytest.fixture
def application(api, staff):
    client = api.post("/clients", headers=staff["officer"], json=CLIENT).json()["data"]
    loan_type = api.post("/loan-types", headers=staff["admin"], json=LOAN_TYPE).json()["data"]
    resp = api.post("/loans", headers=staff["officer"], json={
        "client_id": client["id"],
        "loan_type_id": loan_type["id"],
        "applied_amount": 600000,
        "term_months": 12,
        "purpose": "Stock",
    })
    assert resp.status_code == 201, resp.text
    return {"client": client, "loan_type": loan_type, "loan": resp.json()["data"]}

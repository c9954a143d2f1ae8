import os
import copy
import itertools
import threading
import uuid
from types import SimpleNamespace
from typing import Any, Callable, Dict, Generator, List, Optional

import pytest
from fastapi.testclient import TestClient

# Le lifespan lit ces variables au démarrage: à poser avant l'import de l'app
os.environ.setdefault("DISABLE_FASTAPI_LIMITER_INIT_FOR_TESTS", "1")

from petmarket.app import app as fastapi_app
from petmarket.utils.security import require_user
from petmarket.utils.dependencies import get_service_client, get_user_client

BUYER = {
    "id": "buyer-1",
    "email": "buyer@example.com",
    "role": "buyer",
    "metadata": {"full_name": "Test Buyer"},
    "first_name": "Test",
    "last_name": "Buyer",
    "token": "fake-token",
}

# Marquage automatique selon le dossier
def pytest_collection_modifyitems(config, items):
    for item in items:
        nodeid = item.nodeid.replace("\\", "/")
        if "tests/unit/" in nodeid:
            item.add_marker(pytest.mark.unit)
        elif "tests/integration/" in nodeid:
            item.add_marker(pytest.mark.integration)


class FakeSupabase:
    """
    Client Supabase en mémoire: sous-ensemble du query builder utilisé par les repositories
    (select/insert/update/upsert/delete + eq/in_/is_/order/limit) et la procédure
    decrement_listing_quantity. Chaque execute() est atomique (verrou global), comme une
    instruction SQL unique.
    """

    def __init__(self):
        self.tables: Dict[str, List[Dict[str, Any]]] = {}
        self.lock = threading.Lock()
        self.rpc_calls: List[Dict[str, Any]] = []
        self._failures: List[Callable[[str, str, Any], bool]] = []
        self._clock = itertools.count(1)

    # --- helpers de test ---
    def seed(self, table: str, rows: List[Dict[str, Any]]) -> None:
        for row in rows:
            self._store(table, dict(row))

    def rows(self, table: str) -> List[Dict[str, Any]]:
        return [dict(r) for r in self.tables.get(table, [])]

    def find(self, table: str, row_id: str) -> Optional[Dict[str, Any]]:
        for r in self.tables.get(table, []):
            if str(r.get("id")) == str(row_id):
                return dict(r)
        return None

    def fail(self, table: str, op: str, when: Optional[Callable[[Any], bool]] = None) -> None:
        """Fait échouer execute() pour (table, op); when(payload) restreint aux payloads ciblés."""
        self._failures.append(lambda t, o, p: t == table and o == op and (when is None or when(p)))

    def _maybe_fail(self, table: str, op: str, payload: Any) -> None:
        for check in self._failures:
            if check(table, op, payload):
                raise RuntimeError(f"simulated failure on {table}.{op}")

    def _timestamp(self) -> str:
        return f"2026-01-01T00:00:{next(self._clock):06d}+00:00"

    def _store(self, table: str, row: Dict[str, Any]) -> Dict[str, Any]:
        row.setdefault("id", str(uuid.uuid4()))
        row.setdefault("created_at", self._timestamp())
        self.tables.setdefault(table, []).append(row)
        return row

    # --- API supabase-py ---
    def table(self, name: str) -> "_Query":
        return _Query(self, name)

    def rpc(self, fn: str, params: Dict[str, Any]) -> "_Rpc":
        return _Rpc(self, fn, params)


class _Rpc:
    def __init__(self, db: FakeSupabase, fn: str, params: Dict[str, Any]):
        self.db, self.fn, self.params = db, fn, params

    def execute(self):
        with self.db.lock:
            self.db._maybe_fail("rpc", self.fn, self.params)
            if self.fn != "decrement_listing_quantity":
                raise RuntimeError(f"unknown function {self.fn}")
            qty = int(self.params["qty"])
            for row in self.db.tables.get("listings", []):
                if str(row.get("id")) == str(self.params["listing_id"]) and int(row.get("quantity_available") or 0) >= qty > 0:
                    row["quantity_available"] = int(row["quantity_available"]) - qty
                    if row["quantity_available"] == 0:
                        row["status"] = "sold"
                    self.db.rpc_calls.append(dict(self.params))
                    return SimpleNamespace(data=[{"id": row["id"], "quantity_available": row["quantity_available"], "status": row["status"]}])
            raise RuntimeError("insufficient quantity or unknown listing")


class _Query:
    def __init__(self, db: FakeSupabase, table: str):
        self.db = db
        self.name = table
        self.op = "select"
        self.payload: Any = None
        self.filters: List[Callable[[Dict[str, Any]], bool]] = []
        self._order: Optional[tuple] = None
        self._limit: Optional[int] = None
        self._on_conflict: Optional[str] = None

    def select(self, *_cols, **_kw):
        self.op = "select"
        return self

    def insert(self, payload):
        self.op, self.payload = "insert", payload
        return self

    def upsert(self, payload, on_conflict: str = "id", **_kw):
        self.op, self.payload, self._on_conflict = "upsert", payload, on_conflict
        return self

    def update(self, payload):
        self.op, self.payload = "update", payload
        return self

    def delete(self):
        self.op = "delete"
        return self

    def eq(self, col, value):
        self.filters.append(lambda r: str(r.get(col)) == str(value))
        return self

    def in_(self, col, values):
        allowed = {str(v) for v in values}
        self.filters.append(lambda r: str(r.get(col)) in allowed)
        return self

    def is_(self, col, value):
        if value in ("null", None):
            self.filters.append(lambda r: r.get(col) is None)
        else:
            self.filters.append(lambda r: r.get(col) == value)
        return self

    def order(self, col, desc: bool = False, **_kw):
        self._order = (col, desc)
        return self

    def limit(self, n: int):
        self._limit = n
        return self

    def _matching(self) -> List[Dict[str, Any]]:
        return [r for r in self.db.tables.get(self.name, []) if all(f(r) for f in self.filters)]

    def execute(self):
        with self.db.lock:
            self.db._maybe_fail(self.name, self.op, self.payload)
            if self.op == "insert":
                rows = self.payload if isinstance(self.payload, list) else [self.payload]
                data = [dict(self.db._store(self.name, copy.deepcopy(r))) for r in rows]
            elif self.op == "upsert":
                key = self._on_conflict
                data = []
                for r in (self.payload if isinstance(self.payload, list) else [self.payload]):
                    existing = next((x for x in self.db.tables.get(self.name, []) if x.get(key) == r.get(key)), None)
                    if existing is not None:
                        existing.update(copy.deepcopy(r))
                        data.append(dict(existing))
                    else:
                        data.append(dict(self.db._store(self.name, copy.deepcopy(r))))
            elif self.op == "update":
                data = []
                for r in self._matching():
                    r.update(copy.deepcopy(self.payload))
                    data.append(dict(r))
            elif self.op == "delete":
                doomed = self._matching()
                self.db.tables[self.name] = [r for r in self.db.tables.get(self.name, []) if r not in doomed]
                data = [dict(r) for r in doomed]
            else:
                data = [dict(r) for r in self._matching()]
                if self._order:
                    col, desc = self._order
                    data.sort(key=lambda r: str(r.get(col) or ""), reverse=desc)
                if self._limit is not None:
                    data = data[: self._limit]
            return SimpleNamespace(data=data)


@pytest.fixture(scope="session")
def app():
    return fastapi_app

@pytest.fixture()
def fake_db() -> FakeSupabase:
    return FakeSupabase()

@pytest.fixture()
def buyer() -> Dict[str, Any]:
    return dict(BUYER)

@pytest.fixture()
def client(app, fake_db) -> Generator[TestClient, None, None]:
    app.dependency_overrides[get_user_client] = lambda: fake_db
    app.dependency_overrides[get_service_client] = lambda: fake_db
    try:
        with TestClient(app) as c:
            yield c
    finally:
        app.dependency_overrides.pop(get_user_client, None)
        app.dependency_overrides.pop(get_service_client, None)

# Simuler un utilisateur authentifié pour les endpoints protégés
@pytest.fixture(autouse=True)
def _override_require_user(app):
    app.dependency_overrides[require_user] = lambda: dict(BUYER)
    try:
        yield
    finally:
        app.dependency_overrides.pop(require_user, None)

@pytest.fixture()
def marketplace(fake_db) -> FakeSupabase:
    """
    Jeu de données type: deux vendeurs, trois annonces, un panier acheteur à deux lignes
    (A 1 × 100.00, B 2 × 50.00).
    """
    fake_db.seed("profiles", [
        {"id": "seller-1", "first_name": "Alice", "last_name": "Martin", "role": "seller"},
        {"id": "seller-2", "first_name": "Bruno", "last_name": "Petit", "role": "seller"},
    ])
    fake_db.seed("listings", [
        {"id": "listing-a", "seller_id": "seller-1", "name": "Rex", "type": "dog", "breed": "Beagle",
         "price": 100.0, "quantity_available": 1, "status": "available"},
        {"id": "listing-b", "seller_id": "seller-2", "name": "Nemo", "type": "fish", "breed": "Clownfish",
         "price": 50.0, "quantity_available": 5, "status": "available"},
        {"id": "listing-c", "seller_id": "seller-2", "name": "Tweety", "type": "bird", "breed": "Canary",
         "price": 30.0, "quantity_available": 0, "status": "sold"},
    ])
    fake_db.seed("listing_photos", [
        {"listing_id": "listing-a", "photo_url": "https://cdn.example.test/a-2.jpg", "is_primary": False},
        {"listing_id": "listing-a", "photo_url": "https://cdn.example.test/a-1.jpg", "is_primary": True},
    ])
    fake_db.seed("cart", [
        {"id": "line-a", "buyer_id": BUYER["id"], "listing_id": "listing-a", "quantity": 1},
        {"id": "line-b", "buyer_id": BUYER["id"], "listing_id": "listing-b", "quantity": 2},
    ])
    return fake_db

@pytest.fixture()
def pending_orders(fake_db) -> List[Dict[str, Any]]:
    """Deux commandes 'pending' de l'acheteur (105.00 chacune) sur listing-a (qty 1) et listing-b (qty 2)."""
    fake_db.seed("listings", [
        {"id": "listing-a", "seller_id": "seller-1", "name": "Rex", "price": 100.0,
         "quantity_available": 1, "status": "available"},
        {"id": "listing-b", "seller_id": "seller-2", "name": "Nemo", "price": 50.0,
         "quantity_available": 5, "status": "available"},
    ])
    orders = [
        {"id": "order-1", "buyer_id": BUYER["id"], "seller_id": "seller-1", "listing_id": "listing-a",
         "quantity": 1, "unit_price": 100.0, "buyer_fee": 5.0, "seller_fee": 10.0,
         "total_amount": 105.0, "seller_payout": 90.0, "status": "pending",
         "stripe_payment_id": None, "inventory_settled_at": None},
        {"id": "order-2", "buyer_id": BUYER["id"], "seller_id": "seller-2", "listing_id": "listing-b",
         "quantity": 2, "unit_price": 50.0, "buyer_fee": 5.0, "seller_fee": 10.0,
         "total_amount": 105.0, "seller_payout": 90.0, "status": "pending",
         "stripe_payment_id": None, "inventory_settled_at": None},
    ]
    fake_db.seed("orders", orders)
    return orders

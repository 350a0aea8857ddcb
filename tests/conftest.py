import pytest
import os
from collections import defaultdict
from typing import Any, Dict, List, Optional

# Set env before importing app components
os.environ["APP_ENV"] = "testing"
os.environ["LOCAL_CACHE_URL"] = "sqlite:///:memory:"
os.environ["REMOTE_URL"] = ""
os.environ["REMOTE_API_KEY"] = ""
os.environ["ACCOUNT_LOOKUP_DELAY_SECONDS"] = "0"

from pydantic_core import to_jsonable_python
from fastapi.testclient import TestClient

from app.core.events import EventBus
from app.core.exceptions import RemoteUnavailableError, RemoteWriteError
from app.database import LocalCache
from app.dependencies import get_storage
from app.main import app
from app.services.storage import StorageSynchronizer


class FakeRemote:
    """
    In-memory stand-in for the remote backend.

    Rows are stored the way they come back over HTTP (JSON types), so
    datetimes round-trip as ISO strings. Flip `offline` to simulate an
    outage and `reject_writes` to simulate a 4xx on writes.
    """

    def __init__(self):
        self.tables: Dict[str, Dict[str, Dict[str, Any]]] = defaultdict(dict)
        self.offline = False
        self.reject_writes = False
        self.calls: List[tuple] = []

    def _check(self, op: str, table: str, write: bool = False) -> None:
        self.calls.append((op, table))
        if self.offline:
            raise RemoteUnavailableError(f"remote offline ({op} {table})")
        if write and self.reject_writes:
            raise RemoteWriteError(f"remote rejected {op} on {table}")

    def seed(self, table: str, rows: List[Dict[str, Any]], key: str = "id") -> None:
        for row in rows:
            data = to_jsonable_python(row)
            self.tables[table][str(data[key])] = data

    def rows(self, table: str) -> List[Dict[str, Any]]:
        return list(self.tables[table].values())

    def select(self, table: str, filters: Optional[Dict[str, Any]] = None) -> List[Dict[str, Any]]:
        self._check("select", table)
        rows = self.rows(table)
        for column, value in (filters or {}).items():
            rows = [r for r in rows if r.get(column) == value]
        return [dict(r) for r in rows]

    def select_one(self, table: str, column: str, value: Any) -> Optional[Dict[str, Any]]:
        rows = self.select(table, {column: value})
        return rows[0] if rows else None

    def select_ilike(self, table: str, column: str, value: str) -> List[Dict[str, Any]]:
        self._check("select_ilike", table)
        return [
            dict(r) for r in self.rows(table)
            if isinstance(r.get(column), str) and r[column].lower() == value.lower()
        ]

    def upsert(self, table: str, rows: List[Dict[str, Any]], on_conflict: str = "id") -> None:
        self._check("upsert", table, write=True)
        for row in rows:
            data = to_jsonable_python(row)
            key = str(data[on_conflict])
            merged = dict(self.tables[table].get(key, {}))
            merged.update(data)
            self.tables[table][key] = merged

    def update(self, table: str, key_column: str, key: Any, values: Dict[str, Any]) -> None:
        self._check("update", table, write=True)
        for row in self.tables[table].values():
            if row.get(key_column) == key:
                row.update(to_jsonable_python(values))

    def delete(self, table: str, column: str, value: Any) -> None:
        self._check("delete", table, write=True)
        doomed = [k for k, r in self.tables[table].items() if r.get(column) == value]
        for k in doomed:
            del self.tables[table][k]


@pytest.fixture(scope="function")
def cache():
    """Fresh in-memory local cache per test."""
    local = LocalCache("sqlite:///:memory:")
    local.init()
    yield local
    local.dispose()


@pytest.fixture(scope="function")
def bus():
    return EventBus()


@pytest.fixture(scope="function")
def remote():
    return FakeRemote()


@pytest.fixture(scope="function")
def local_storage(cache, bus):
    """Synchronizer without a remote backend."""
    return StorageSynchronizer(cache, None, bus)


@pytest.fixture(scope="function")
def storage(cache, remote, bus):
    """Synchronizer with the fake remote configured."""
    return StorageSynchronizer(cache, remote, bus)


@pytest.fixture(scope="function")
def client(local_storage):
    """TestClient whose storage dependency is the local-only synchronizer."""
    app.dependency_overrides[get_storage] = lambda: local_storage
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()

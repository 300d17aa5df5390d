"""Remote state store — log states and cabinet work sessions.

Two backends share one contract (``select`` / ``upsert`` / ``delete``):

* ``SupabaseStateStore`` talks to the Supabase REST (PostgREST) endpoint
  over ``httpx``.
* ``MemoryStateStore`` keeps rows in process, for local runs and tests.

``StateRepository`` layers the typed table operations on top of either.
"""

import copy
import logging
import threading
import uuid
from datetime import datetime, timezone
from typing import Protocol, runtime_checkable

import httpx

from triage.errors import RemoteStoreFailure
from triage.models import CabinetWorkSession, LogState

logger = logging.getLogger(__name__)

LOG_STATES = "log_states"
WORK_SESSIONS = "cabinet_work_sessions"


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


@runtime_checkable
class StateStore(Protocol):
    def select(self, table: str, order_by: str | None = None, descending: bool = True) -> list[dict]: ...

    def upsert(self, table: str, key_fields: tuple[str, ...], values: dict) -> dict: ...

    def delete(self, table: str, match: dict) -> int: ...


class MemoryStateStore:
    """In-process tables with the column defaults the remote schema applies."""

    DEFAULTS = {
        LOG_STATES: {"processed": False, "comment": None, "in_progress": False},
        WORK_SESSIONS: {},
    }
    # Column stamped once on insert, besides ``updated_at`` on every write.
    CREATED_COLUMN = {
        LOG_STATES: "created_at",
        WORK_SESSIONS: "started_at",
    }

    def __init__(self):
        self._tables: dict[str, list[dict]] = {}
        self._lock = threading.Lock()

    def select(self, table, order_by=None, descending=True):
        with self._lock:
            rows = [copy.deepcopy(row) for row in self._tables.get(table, [])]
        if order_by:
            rows.sort(key=lambda row: row.get(order_by) or "", reverse=descending)
        return rows

    def upsert(self, table, key_fields, values):
        missing = [key for key in key_fields if key not in values]
        if missing:
            raise RemoteStoreFailure("upsert", table, ValueError(f"missing key fields {missing}"))

        now = _now_iso()
        with self._lock:
            rows = self._tables.setdefault(table, [])
            for row in rows:
                if all(row.get(key) == values[key] for key in key_fields):
                    row.update(values)
                    row["updated_at"] = values.get("updated_at", now)
                    return copy.deepcopy(row)

            row = dict(self.DEFAULTS.get(table, {}))
            row.update(values)
            row.setdefault("id", str(uuid.uuid4()))
            row.setdefault(self.CREATED_COLUMN.get(table, "created_at"), now)
            row.setdefault("updated_at", now)
            rows.append(row)
            return copy.deepcopy(row)

    def delete(self, table, match):
        with self._lock:
            rows = self._tables.get(table, [])
            kept = [row for row in rows if not all(row.get(k) == v for k, v in match.items())]
            removed = len(rows) - len(kept)
            self._tables[table] = kept
        return removed


class SupabaseStateStore:
    """PostgREST client: ``{url}/rest/v1/{table}`` with the service key."""

    def __init__(self, url: str, key: str, timeout: float = 10.0, transport: httpx.BaseTransport | None = None):
        if not url or not key:
            raise ValueError("Supabase store requires both a URL and a key")
        self._client = httpx.Client(
            base_url=f"{url.rstrip('/')}/rest/v1",
            headers={
                "apikey": key,
                "Authorization": f"Bearer {key}",
                "Content-Type": "application/json",
            },
            limits=httpx.Limits(max_connections=10, max_keepalive_connections=5),
            timeout=timeout,
            transport=transport,
        )

    def _request(self, operation: str, table: str, method: str, **kwargs):
        try:
            resp = self._client.request(method, f"/{table}", **kwargs)
            resp.raise_for_status()
            if not resp.content:
                return []
            return resp.json()
        except httpx.HTTPStatusError as e:
            logger.error("Store %s %s returned %d: %s", operation, table, e.response.status_code, e.response.text)
            raise RemoteStoreFailure(operation, table, e) from e
        except httpx.HTTPError as e:
            logger.error("Network error during store %s %s: %s", operation, table, e)
            raise RemoteStoreFailure(operation, table, e) from e
        except ValueError as e:
            logger.error("Store %s %s returned an unreadable body: %s", operation, table, e)
            raise RemoteStoreFailure(operation, table, e) from e

    def select(self, table, order_by=None, descending=True):
        params = {"select": "*"}
        if order_by:
            params["order"] = f"{order_by}.{'desc' if descending else 'asc'}"
        rows = self._request("select", table, "GET", params=params)
        if not isinstance(rows, list):
            raise RemoteStoreFailure("select", table, ValueError("expected a list of rows"))
        return rows

    def upsert(self, table, key_fields, values):
        body = dict(values)
        body.setdefault("updated_at", _now_iso())
        rows = self._request(
            "upsert", table, "POST",
            params={"on_conflict": ",".join(key_fields)},
            headers={"Prefer": "resolution=merge-duplicates,return=representation"},
            json=[body],
        )
        if not isinstance(rows, list) or len(rows) != 1:
            raise RemoteStoreFailure("upsert", table, ValueError("expected exactly one row back"))
        return rows[0]

    def delete(self, table, match):
        params = {column: f"eq.{value}" for column, value in match.items()}
        rows = self._request(
            "delete", table, "DELETE",
            params=params,
            headers={"Prefer": "return=representation"},
        )
        return len(rows) if isinstance(rows, list) else 0

    def close(self):
        self._client.close()


def create_store(config) -> StateStore:
    """Build the backend named by ``config["store"]["backend"]``."""
    store_cfg = config["store"]
    backend = store_cfg["backend"]
    if backend == "memory":
        logger.info("Using in-memory state store")
        return MemoryStateStore()
    if backend == "supabase":
        logger.info("Using Supabase state store at %s", store_cfg["url"])
        return SupabaseStateStore(store_cfg["url"], store_cfg["key"], timeout=store_cfg["timeout"])
    raise ValueError(f"Unknown store backend: {backend!r}")


class StateRepository:
    """Typed access to the ``log_states`` and ``cabinet_work_sessions`` tables."""

    def __init__(self, store: StateStore, log_states_table: str = LOG_STATES, sessions_table: str = WORK_SESSIONS):
        self._store = store
        self.log_states_table = log_states_table
        self.sessions_table = sessions_table

    def load_log_states(self) -> list[LogState]:
        rows = self._store.select(self.log_states_table, order_by="updated_at")
        return [LogState.from_row(row) for row in rows]

    def save_log_state(self, log_id: str, cabinet_name: str, **fields) -> LogState:
        values = {"log_id": log_id, "cabinet_name": cabinet_name, **fields}
        row = self._store.upsert(self.log_states_table, ("log_id", "cabinet_name"), values)
        return LogState.from_row(row)

    def load_sessions(self) -> list[CabinetWorkSession]:
        rows = self._store.select(self.sessions_table, order_by="updated_at")
        return [CabinetWorkSession.from_row(row) for row in rows]

    def save_session(self, cabinet_name: str) -> CabinetWorkSession:
        values = {"cabinet_name": cabinet_name, "updated_at": _now_iso()}
        row = self._store.upsert(self.sessions_table, ("cabinet_name",), values)
        return CabinetWorkSession.from_row(row)

    def delete_sessions(self, cabinet_name: str) -> int:
        return self._store.delete(self.sessions_table, {"cabinet_name": cabinet_name})

"""Shared fixtures: an in-memory stand-in for the Supabase query builder."""

from __future__ import annotations

import copy
import uuid
from datetime import datetime, timezone
from types import SimpleNamespace
from typing import Any, Callable

import pytest
from postgrest.exceptions import APIError


def api_error(message: str, code: str = "XX000") -> APIError:
    return APIError({"message": message, "code": code, "hint": None, "details": None})


def _comparable(value: Any) -> Any:
    if isinstance(value, str):
        text = value[:-1] + "+00:00" if value.endswith("Z") else value
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            return value
        return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)
    return value


class FakeQuery:
    def __init__(self, db: "FakeSupabase", table: str) -> None:
        self.db = db
        self.table_name = table
        self.operation = "select"
        self.payload: Any = None
        self.filters: list[Callable[[dict], bool]] = []
        self.ordering: list[tuple[str, bool]] = []
        self.max_rows: int | None = None
        self._negate_next = False

    # query shape
    def select(self, *_columns: str, **_kwargs: Any) -> "FakeQuery":
        self.operation = "select"
        return self

    def insert(self, payload: Any) -> "FakeQuery":
        self.operation = "insert"
        self.payload = payload
        return self

    def update(self, values: dict) -> "FakeQuery":
        self.operation = "update"
        self.payload = values
        return self

    def delete(self) -> "FakeQuery":
        self.operation = "delete"
        return self

    # filters
    @property
    def not_(self) -> "FakeQuery":
        self._negate_next = True
        return self

    def _add(self, predicate: Callable[[dict], bool]) -> "FakeQuery":
        if self._negate_next:
            self._negate_next = False
            self.filters.append(lambda row: not predicate(row))
        else:
            self.filters.append(predicate)
        return self

    def eq(self, column: str, value: Any) -> "FakeQuery":
        return self._add(lambda row: row.get(column) is not None and _comparable(row.get(column)) == _comparable(value))

    def neq(self, column: str, value: Any) -> "FakeQuery":
        return self._add(lambda row: row.get(column) is not None and _comparable(row.get(column)) != _comparable(value))

    def is_(self, column: str, value: Any) -> "FakeQuery":
        if value in ("null", None):
            return self._add(lambda row: row.get(column) is None)
        return self._add(lambda row: row.get(column) is value)

    def in_(self, column: str, values: list) -> "FakeQuery":
        return self._add(lambda row: row.get(column) in values)

    def gte(self, column: str, value: Any) -> "FakeQuery":
        return self._add(lambda row: row.get(column) is not None and _comparable(row.get(column)) >= _comparable(value))

    def lte(self, column: str, value: Any) -> "FakeQuery":
        return self._add(lambda row: row.get(column) is not None and _comparable(row.get(column)) <= _comparable(value))

    def order(self, column: str, desc: bool = False, **_kwargs: Any) -> "FakeQuery":
        self.ordering.append((column, desc))
        return self

    def limit(self, count: int) -> "FakeQuery":
        self.max_rows = count
        return self

    def _matches(self, row: dict) -> bool:
        return all(predicate(row) for predicate in self.filters)

    def execute(self) -> SimpleNamespace:
        self.db.calls.append((self.table_name, self.operation, copy.deepcopy(self.payload)))
        failure = self.db.failures.get((self.table_name, self.operation))
        if failure is not None:
            raise failure

        rows = self.db.tables.setdefault(self.table_name, [])
        if self.operation == "insert":
            items = self.payload if isinstance(self.payload, list) else [self.payload]
            created = []
            for item in items:
                record = {"id": str(uuid.uuid4()), **copy.deepcopy(item)}
                rows.append(record)
                created.append(copy.deepcopy(record))
            return SimpleNamespace(data=created)

        matched = [row for row in rows if self._matches(row)]
        if self.operation == "update":
            for row in matched:
                row.update(copy.deepcopy(self.payload))
            return SimpleNamespace(data=copy.deepcopy(matched))
        if self.operation == "delete":
            self.db.tables[self.table_name] = [row for row in rows if row not in matched]
            return SimpleNamespace(data=copy.deepcopy(matched))

        for column, desc in reversed(self.ordering):
            present = [row for row in matched if row.get(column) is not None]
            missing = [row for row in matched if row.get(column) is None]
            present.sort(key=lambda row: _comparable(row[column]), reverse=desc)
            matched = present + missing
        if self.max_rows is not None:
            matched = matched[: self.max_rows]
        return SimpleNamespace(data=copy.deepcopy(matched))


class FakeRpc:
    def __init__(self, db: "FakeSupabase", name: str, params: dict) -> None:
        self.db = db
        self.name = name
        self.params = params

    def execute(self) -> SimpleNamespace:
        self.db.calls.append(("rpc", self.name, dict(self.params)))
        handler = self.db.rpc_handlers.get(self.name)
        if handler is None:
            raise api_error(f"Could not find the function public.{self.name}", code="PGRST202")
        return SimpleNamespace(data=handler(self.params))


class FakeAuth:
    def __init__(self) -> None:
        self.users: dict[str, str] = {}

    def get_user(self, token: str) -> SimpleNamespace:
        if token not in self.users:
            raise RuntimeError("invalid JWT")
        return SimpleNamespace(user=SimpleNamespace(id=self.users[token]))


class FakeSupabase:
    def __init__(self) -> None:
        self.tables: dict[str, list[dict]] = {}
        self.failures: dict[tuple[str, str], Exception] = {}
        self.rpc_handlers: dict[str, Callable[[dict], list[dict]]] = {}
        self.calls: list[tuple] = []
        self.auth = FakeAuth()

    def table(self, name: str) -> FakeQuery:
        return FakeQuery(self, name)

    def rpc(self, name: str, params: dict) -> FakeRpc:
        return FakeRpc(self, name, params)

    def rows(self, name: str) -> list[dict]:
        return self.tables.setdefault(name, [])

    def row(self, name: str, row_id: str) -> dict:
        return next(row for row in self.rows(name) if row.get("id") == row_id)

    def add(self, name: str, **row: Any) -> dict:
        self.rows(name).append(row)
        return row

    def fail(self, table: str, operation: str, message: str = "boom", code: str = "XX000") -> None:
        self.failures[(table, operation)] = api_error(message, code=code)

    def add_vehicle(self, vehicle_id: str = "motorcycle", **overrides: Any) -> dict:
        row = {
            "id": vehicle_id,
            "base_price": 50.0,
            "price_per_km": 10.0,
            "additional_stop_charge": 20.0,
            "is_active": True,
        }
        row.update(overrides)
        return self.add("vehicle_types", **row)

    def add_driver(
        self,
        driver_id: str,
        latitude: float | None,
        longitude: float | None,
        *,
        updated_at: str = "2026-10-17T08:00:00+00:00",
        **flags: Any,
    ) -> dict:
        row = {
            "id": driver_id,
            "is_online": True,
            "is_available": True,
            "is_verified": True,
            "current_latitude": latitude,
            "current_longitude": longitude,
            "location_updated_at": updated_at,
        }
        row.update(flags)
        return self.add("driver_profiles", **row)

    def add_delivery(self, delivery_id: str = "del-1", **overrides: Any) -> dict:
        # Pickup in Manila, dropoff roughly 1.1 km north.
        row = {
            "id": delivery_id,
            "status": "pending",
            "driver_id": None,
            "vehicle_type_id": "motorcycle",
            "pickup_latitude": 14.5995,
            "pickup_longitude": 120.9842,
            "delivery_latitude": 14.6095,
            "delivery_longitude": 120.9842,
            "is_multi_stop": False,
            "total_stops": 1,
            "is_scheduled": False,
            "scheduled_pickup_time": None,
        }
        row.update(overrides)
        return self.add("deliveries", **row)


@pytest.fixture
def fake_db(monkeypatch: pytest.MonkeyPatch) -> FakeSupabase:
    from src.dispatch.api.routes import health
    from src.dispatch.db import supabase as supabase_module

    db = FakeSupabase()
    monkeypatch.setattr(supabase_module, "get_supabase_client", lambda: db)
    monkeypatch.setattr(health, "get_supabase_client", lambda: db)
    return db



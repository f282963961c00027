"""
In-memory stand-in for the Supabase client used by the tests.

Implements the subset of the PostgREST query builder the repositories use
(select with resource embedding, insert, update, delete, eq, lte, order,
limit) over plain lists of dict rows, plus fault injection:

    db.fail_next("installments", "insert")   # next insert raises APIError
    db.before_execute = hook                 # called as hook(table, op) before each query
"""

from __future__ import annotations

import copy
import re
from typing import Any, Callable, Dict, List, Optional, Tuple

from postgrest.exceptions import APIError

_EMBED = re.compile(r"^(\w+)\(\*\)$")


class FakeResponse:
    def __init__(self, data: List[Dict[str, Any]]) -> None:
        self.data = data
        self.count = len(data)


class FakeQuery:
    def __init__(self, db: "FakeSupabase", table: str) -> None:
        self._db = db
        self._table = table
        self._op = "select"
        self._columns = "*"
        self._payload: Any = None
        self._filters: List[Callable[[Dict[str, Any]], bool]] = []
        self._order: Optional[Tuple[str, bool]] = None
        self._limit: Optional[int] = None

    def select(self, columns: str = "*", count: Optional[str] = None) -> "FakeQuery":
        self._op = "select"
        self._columns = columns
        return self

    def insert(self, payload: Any) -> "FakeQuery":
        self._op = "insert"
        self._payload = payload
        return self

    def update(self, payload: Dict[str, Any]) -> "FakeQuery":
        self._op = "update"
        self._payload = payload
        return self

    def delete(self) -> "FakeQuery":
        self._op = "delete"
        return self

    def eq(self, column: str, value: Any) -> "FakeQuery":
        self._filters.append(lambda row: row.get(column) == value)
        return self

    def lte(self, column: str, value: Any) -> "FakeQuery":
        self._filters.append(lambda row: row.get(column) is not None and row.get(column) <= value)
        return self

    def order(self, column: str, desc: bool = False) -> "FakeQuery":
        self._order = (column, desc)
        return self

    def limit(self, size: int) -> "FakeQuery":
        self._limit = size
        return self

    def _matches(self, row: Dict[str, Any]) -> bool:
        return all(check(row) for check in self._filters)

    def _embed(self, row: Dict[str, Any]) -> Dict[str, Any]:
        result = copy.deepcopy(row)
        for token in (part.strip() for part in self._columns.split(",")):
            match = _EMBED.match(token)
            if match:
                child = match.group(1)
                result[child] = [
                    copy.deepcopy(c) for c in self._db.tables.get(child, []) if c.get("sale_id") == row.get("id")
                ]
        return result

    def execute(self) -> FakeResponse:
        self._db.executed.append((self._table, self._op))
        if self._db.before_execute is not None:
            self._db.before_execute(self._table, self._op)
        self._db.raise_if_faulted(self._table, self._op)

        rows = self._db.tables.setdefault(self._table, [])

        if self._op == "insert":
            new_rows = self._payload if isinstance(self._payload, list) else [self._payload]
            stored = [copy.deepcopy(r) for r in new_rows]
            rows.extend(stored)
            return FakeResponse([copy.deepcopy(r) for r in stored])

        if self._op == "update":
            updated = []
            for row in rows:
                if self._matches(row):
                    row.update(copy.deepcopy(self._payload))
                    updated.append(copy.deepcopy(row))
            return FakeResponse(updated)

        if self._op == "delete":
            kept, deleted = [], []
            for row in rows:
                (deleted if self._matches(row) else kept).append(row)
            self._db.tables[self._table] = kept
            return FakeResponse([copy.deepcopy(r) for r in deleted])

        selected = [self._embed(row) for row in rows if self._matches(row)]
        if self._order is not None:
            column, desc = self._order
            selected.sort(key=lambda r: (r.get(column) is None, r.get(column)), reverse=desc)
        if self._limit is not None:
            selected = selected[: self._limit]
        return FakeResponse(selected)


class FakeSupabase:
    def __init__(self) -> None:
        self.tables: Dict[str, List[Dict[str, Any]]] = {
            "products": [],
            "sales": [],
            "sale_items": [],
            "installments": [],
        }
        self.executed: List[Tuple[str, str]] = []
        self.before_execute: Optional[Callable[[str, str], None]] = None
        self._faults: List[Dict[str, Any]] = []

    def table(self, name: str) -> FakeQuery:
        return FakeQuery(self, name)

    # Fault injection ---------------------------------------------------------

    def fail_next(self, table: str, op: str, *, times: int = 1, skip: int = 0,
                  message: str = "simulated storage fault") -> None:
        """Make the next `times` matching queries fail, after letting `skip` of them pass."""

        self._faults.append({"table": table, "op": op, "times": times, "skip": skip, "message": message})

    def raise_if_faulted(self, table: str, op: str) -> None:
        for fault in self._faults:
            if fault["table"] != table or fault["op"] != op or fault["times"] <= 0:
                continue
            if fault["skip"] > 0:
                fault["skip"] -= 1
                return
            fault["times"] -= 1
            raise APIError({"message": fault["message"], "code": "XX000", "hint": None, "details": None})

    # Seeding helpers ---------------------------------------------------------

    def add_product(self, product_id: str, stock: int, *, title: Optional[str] = None,
                    is_active: bool = True) -> None:
        self.tables["products"].append(
            {
                "id": product_id,
                "title": title or f"Product {product_id}",
                "stock_quantity": stock,
                "is_active": is_active,
            }
        )

    def stock_of(self, product_id: str) -> int:
        for row in self.tables["products"]:
            if row["id"] == product_id:
                return row["stock_quantity"]
        raise KeyError(product_id)

    def rows(self, table: str) -> List[Dict[str, Any]]:
        return self.tables.get(table, [])

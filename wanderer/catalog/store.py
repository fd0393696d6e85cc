from __future__ import annotations

import copy
import threading
import time
import uuid
from typing import Any

from pydantic import ValidationError

from .models import CATALOG_TABLES, TABLE_MODELS


class StorageError(Exception):
    """A read or write against the catalog failed."""


class CatalogStore:
    """In-process catalog tables.

    Rows are plain JSON-compatible dicts kept in insertion order. Every
    insert is all-or-nothing per call: one invalid row rejects the batch.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._tables: dict[str, list[dict[str, Any]]] = {t: [] for t in CATALOG_TABLES}

    def _table(self, table: str) -> list[dict[str, Any]]:
        try:
            return self._tables[table]
        except KeyError:
            raise StorageError(f"Unknown table: {table}") from None

    def _validate(self, table: str, row: dict[str, Any]) -> dict[str, Any]:
        payload_model, _ = TABLE_MODELS[table]
        try:
            return payload_model.model_validate(row).model_dump(mode="json")
        except ValidationError as exc:
            raise StorageError(f"Invalid {table} row: {exc.errors()[0]['msg']}") from exc

    def _check_references(self, table: str, row: dict[str, Any]) -> None:
        if table == "subcategories":
            category_ids = {c["id"] for c in self._tables["categories"]}
            if row["category_id"] not in category_ids:
                raise StorageError(
                    f"subcategories.category_id references unknown category {row['category_id']!r}"
                )

    def list(self, table: str) -> list[dict[str, Any]]:
        with self._lock:
            return copy.deepcopy(self._table(table))

    def get(self, table: str, row_id: str) -> dict[str, Any] | None:
        with self._lock:
            for row in self._table(table):
                if row["id"] == row_id:
                    return copy.deepcopy(row)
        return None

    def insert(self, table: str, rows: list[dict[str, Any]]) -> list[dict[str, Any]]:
        with self._lock:
            target = self._table(table)
            _, stored_model = TABLE_MODELS[table]
            prepared: list[dict[str, Any]] = []
            for row in rows:
                clean = self._validate(table, row)
                self._check_references(table, clean)
                clean["id"] = uuid.uuid4().hex
                clean["created_at"] = time.time()
                prepared.append(stored_model.model_validate(clean).model_dump(mode="json"))
            target.extend(prepared)
            return copy.deepcopy(prepared)

    def update(self, table: str, row_id: str, changes: dict[str, Any]) -> dict[str, Any] | None:
        with self._lock:
            target = self._table(table)
            for i, row in enumerate(target):
                if row["id"] != row_id:
                    continue
                merged = {**row, **changes}
                clean = self._validate(table, merged)
                self._check_references(table, clean)
                clean["id"] = row["id"]
                clean["created_at"] = row["created_at"]
                target[i] = clean
                return copy.deepcopy(clean)
        return None

    def delete(self, table: str, row_id: str) -> bool:
        with self._lock:
            target = self._table(table)
            for i, row in enumerate(target):
                if row["id"] == row_id:
                    del target[i]
                    return True
        return False

    def count(self, table: str) -> int:
        with self._lock:
            return len(self._table(table))

    def clear(self) -> None:
        with self._lock:
            for rows in self._tables.values():
                rows.clear()

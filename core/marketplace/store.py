"""
Record Store - Table-Oriented Storage for Marketplace Records

Provides insert/get/select/update/delete over named tables with equality
filters, the same shape as the hosted database client the pages talk to.
This is an in-memory implementation with optional JSON file persistence.
"""

from __future__ import annotations

import copy
import json
import logging
import threading
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable, Final, Iterable, Mapping, Optional, Union

from core.errors import StoreError


logger = logging.getLogger(__name__)


# =============================================================================
# Tables
# =============================================================================

PROPERTIES: Final[str] = "properties"
PROPERTY_IMAGES: Final[str] = "property_images"
MAINTENANCE_REQUESTS: Final[str] = "maintenance_requests"
TRANSACTIONS: Final[str] = "transactions"
PROFILES: Final[str] = "profiles"

TABLES: Final[tuple[str, ...]] = (
    PROPERTIES,
    PROPERTY_IMAGES,
    MAINTENANCE_REQUESTS,
    TRANSACTIONS,
    PROFILES,
)

Row = dict[str, Any]
RowPredicate = Callable[[Row], bool]


def utc_now_iso() -> str:
    """Current UTC time as an ISO-8601 string."""
    return datetime.now(timezone.utc).isoformat()


def _matches(row: Row, filters: Optional[Mapping[str, Any]]) -> bool:
    if not filters:
        return True
    return all(row.get(key) == value for key, value in filters.items())


def _sort_key(order_by: str) -> Callable[[tuple[int, Row]], tuple]:
    def key(item: tuple[int, Row]) -> tuple:
        position, row = item
        value = row.get(order_by)
        return (value is not None, value if value is not None else 0, position)

    return key


# =============================================================================
# Record Store
# =============================================================================


class RecordStore:
    """
    Record store keyed by table name and record id.

    Every inserted row gets an `id` (uuid4, unless supplied) and a
    `created_at` timestamp. Updates stamp `updated_at`. Rows are copied on
    the way in and out, so callers never share state with the store.
    """

    def __init__(self, persist_path: Optional[str] = None, tables: Iterable[str] = TABLES):
        """
        Initialise store.

        Args:
            persist_path: Optional path to persist data to JSON file
            tables: Table names this store accepts
        """
        self._tables: dict[str, dict[str, Row]] = {name: {} for name in tables}
        self._persist_path = Path(persist_path) if persist_path else None
        self._lock = threading.RLock()

        if self._persist_path and self._persist_path.exists():
            self._load_from_file()

    def _save_to_file(self, tables: Optional[Mapping[str, dict[str, Row]]] = None) -> None:
        """Persist data to file. tables defaults to the current contents."""
        if not self._persist_path:
            return

        data = {
            "tables": self._tables if tables is None else tables,
            "saved_at": utc_now_iso(),
        }

        try:
            self._persist_path.parent.mkdir(parents=True, exist_ok=True)
            self._persist_path.write_text(json.dumps(data, indent=2, default=str))
        except OSError as e:
            raise StoreError(f"Could not persist records: {e}") from e

    def _load_from_file(self) -> None:
        """Load data from file."""
        try:
            data = json.loads(self._persist_path.read_text())
            for name, rows in data.get("tables", {}).items():
                if name in self._tables:
                    self._tables[name] = dict(rows)
        except (json.JSONDecodeError, AttributeError, TypeError, ValueError) as e:
            # Start fresh rather than refusing to boot
            logger.warning("Could not load record store from %s: %s", self._persist_path, e)

    def _table(self, table: str) -> dict[str, Row]:
        try:
            return self._tables[table]
        except KeyError:
            raise StoreError(f"Unknown table: {table}", table=table) from None

    def _commit(self, table: str, staged: dict[str, Row]) -> None:
        """
        Persist a staged copy of one table, then swap it in.

        If persisting fails the in-memory table is left untouched.
        """
        self._save_to_file({**self._tables, table: staged})
        self._tables[table] = staged

    # =========================================================================
    # CRUD Operations
    # =========================================================================

    def insert(self, table: str, rows: Union[Mapping[str, Any], Iterable[Mapping[str, Any]]]) -> list[Row]:
        """
        Insert one row or a batch of rows.

        Args:
            table: Table name
            rows: A single mapping or an iterable of mappings

        Returns:
            Inserted rows, with id and created_at filled in

        Raises:
            StoreError: If the table is unknown or an id already exists
        """
        batch = [rows] if isinstance(rows, Mapping) else list(rows)
        with self._lock:
            records = self._table(table)
            inserted = []
            now = utc_now_iso()
            for row in batch:
                record = copy.deepcopy(dict(row))
                record.setdefault("id", str(uuid.uuid4()))
                record.setdefault("created_at", now)
                if record["id"] in records or any(r["id"] == record["id"] for r in inserted):
                    raise StoreError(
                        f"Duplicate key value violates unique constraint on {table}.id",
                        table=table,
                    )
                inserted.append(record)

            staged = dict(records)
            for record in inserted:
                staged[record["id"]] = record
            self._commit(table, staged)

        return copy.deepcopy(inserted)

    def get(self, table: str, record_id: str) -> Optional[Row]:
        """
        Get one row by id.

        Returns:
            Row if found, None otherwise
        """
        with self._lock:
            row = self._table(table).get(record_id)
            return copy.deepcopy(row) if row is not None else None

    def select(
        self,
        table: str,
        filters: Optional[Mapping[str, Any]] = None,
        where: Optional[RowPredicate] = None,
        order_by: Optional[str] = "created_at",
        descending: bool = True,
        limit: Optional[int] = None,
    ) -> list[Row]:
        """
        Select rows matching equality filters and an optional predicate.

        Args:
            table: Table name
            filters: Column -> value equality filters (all must match)
            where: Extra row predicate (e.g. case-insensitive search)
            order_by: Column to sort by, or None for insertion order
            descending: Sort direction (newest first by default)
            limit: Maximum rows to return
        """
        with self._lock:
            rows = [
                (position, row)
                for position, row in enumerate(self._table(table).values())
                if _matches(row, filters) and (where is None or where(row))
            ]
            if order_by:
                rows.sort(key=_sort_key(order_by), reverse=descending)
            result = [copy.deepcopy(row) for _, row in rows]

        return result[:limit] if limit is not None else result

    def count(self, table: str, filters: Optional[Mapping[str, Any]] = None) -> int:
        with self._lock:
            return sum(1 for row in self._table(table).values() if _matches(row, filters))

    def update(
        self,
        table: str,
        values: Mapping[str, Any],
        filters: Mapping[str, Any],
    ) -> list[Row]:
        """
        Update every row matching filters.

        Filters are required so an update can never touch a whole table.

        Returns:
            Updated rows (empty if nothing matched)
        """
        if not filters:
            raise StoreError("Update requires at least one filter", table=table)
        if "id" in values:
            raise StoreError("Record id cannot be updated", table=table)

        with self._lock:
            updated = []
            now = utc_now_iso()
            staged = dict(self._table(table))
            for rid, row in staged.items():
                if _matches(row, filters):
                    changed = {**row, **copy.deepcopy(dict(values)), "updated_at": now}
                    staged[rid] = changed
                    updated.append(copy.deepcopy(changed))
            if updated:
                self._commit(table, staged)

        return updated

    def delete(self, table: str, filters: Mapping[str, Any]) -> int:
        """
        Delete every row matching filters.

        Returns:
            Number of rows deleted
        """
        if not filters:
            raise StoreError("Delete requires at least one filter", table=table)

        with self._lock:
            records = self._table(table)
            doomed = [rid for rid, row in records.items() if _matches(row, filters)]
            if doomed:
                self._commit(
                    table,
                    {rid: row for rid, row in records.items() if rid not in doomed},
                )

        return len(doomed)


# =============================================================================
# Singleton Instance
# =============================================================================

_store_instance: Optional[RecordStore] = None


def get_record_store(persist_path: Optional[str] = None) -> RecordStore:
    """
    Get the record store singleton.

    Args:
        persist_path: Optional path for persistence (only used on first call)

    Returns:
        RecordStore instance
    """
    global _store_instance
    if _store_instance is None:
        _store_instance = RecordStore(persist_path or "data/records.json")
    return _store_instance


def reset_record_store() -> None:
    """Reset the singleton instance (for testing)."""
    global _store_instance
    _store_instance = None

"""Shared JSON-file storage with transactions.

Every collection (variants, carts, coupons, orders) lives in its own JSON
file under one data directory.  Repositories read and write whole
collections through the store; the store keeps them cached and only
touches disk on commit, so a rolled-back unit of work leaves the files
exactly as they were.

A single re-entrant lock serialises transactions and the conditional
stock writes within the process.  Nested units of work join the outer
one: if an inner block rolls back, the whole transaction is doomed and
the outer commit restores the snapshot and raises.
"""

from __future__ import annotations

import copy
import json
import threading
from pathlib import Path

from storefront.domain.repository.unit_of_work import UnitOfWork
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


class TransactionAbortedError(RuntimeError):
    """Raised by an outer commit after a nested unit of work rolled back."""


class JsonStore:

    def __init__(self, data_dir: Path) -> None:
        self._data_dir = data_dir
        self._lock = threading.RLock()
        self._collections: dict[str, list[dict]] = {}
        self._dirty: set[str] = set()
        self._snapshot: dict[str, list[dict]] | None = None
        self._depth = 0
        self._rollback_only = False

    @property
    def lock(self) -> threading.RLock:
        return self._lock

    @property
    def in_transaction(self) -> bool:
        return self._depth > 0

    # --- Collections ----------------------------------------------------------

    def load(self, name: str) -> list[dict]:
        """Return a shallow copy of a collection's records."""
        with self._lock:
            if name not in self._collections:
                self._collections[name] = self._read_file(name)
            return list(self._collections[name])

    def persist(self, name: str, records: list[dict]) -> None:
        """Replace a collection; written to disk now or at commit."""
        with self._lock:
            self._collections[name] = list(records)
            self._dirty.add(name)
            if not self.in_transaction:
                self._flush()

    def next_id(self, name: str) -> int:
        records = self.load(name)
        if not records:
            return 1
        return max(r["id"] for r in records) + 1

    # --- Transactions ---------------------------------------------------------

    def begin(self) -> None:
        self._lock.acquire()
        if self._depth == 0:
            self._snapshot = copy.deepcopy(self._collections)
            self._rollback_only = False
        self._depth += 1

    def commit(self) -> None:
        try:
            self._depth -= 1
            if self._depth > 0:
                return
            if self._rollback_only:
                self._restore_snapshot()
                raise TransactionAbortedError(
                    "A nested unit of work rolled back; nothing was written"
                )
            try:
                self._flush()
            except Exception:
                self._restore_snapshot()
                raise
            self._snapshot = None
        finally:
            self._lock.release()

    def rollback(self) -> None:
        try:
            self._depth -= 1
            if self._depth > 0:
                # The outer block may swallow the error; it must not commit.
                self._rollback_only = True
                return
            self._restore_snapshot()
        finally:
            self._lock.release()

    def _restore_snapshot(self) -> None:
        self._collections = self._snapshot or {}
        self._snapshot = None
        self._rollback_only = False
        if self._dirty:
            logger.info(f"Rolled back changes to {', '.join(sorted(self._dirty))}")
        self._dirty.clear()

    # --- File helpers ---------------------------------------------------------

    def _path(self, name: str) -> Path:
        return self._data_dir / f"{name}.json"

    def _read_file(self, name: str) -> list[dict]:
        path = self._path(name)
        if not path.exists():
            return []
        return json.loads(path.read_text(encoding="utf-8"))

    def _flush(self) -> None:
        for name in sorted(self._dirty):
            path = self._path(name)
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(
                json.dumps(self._collections[name], indent=2) + "\n", encoding="utf-8"
            )
        self._dirty.clear()


class JsonUnitOfWork(UnitOfWork):
    """Unit of work over a JsonStore; nested blocks join the outer one."""

    def __init__(self, store: JsonStore) -> None:
        self._store = store

    def begin(self) -> None:
        self._store.begin()

    def commit(self) -> None:
        self._store.commit()

    def rollback(self) -> None:
        self._store.rollback()

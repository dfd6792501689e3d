"""Transaction boundary for multi-aggregate writes.

Use as a context manager: the block commits when it exits normally and
rolls back when any exception escapes it, so a failed checkout or status
change leaves nothing half-written.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from types import TracebackType


class UnitOfWork(ABC):

    def __enter__(self) -> UnitOfWork:
        self.begin()
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        if exc_type is None:
            self.commit()
        else:
            self.rollback()

    @abstractmethod
    def begin(self) -> None:
        """Start a transaction."""

    @abstractmethod
    def commit(self) -> None:
        """Make every write since ``begin`` durable."""

    @abstractmethod
    def rollback(self) -> None:
        """Discard every write since ``begin``."""

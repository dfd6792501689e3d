"""Domain service: Order Reference generation.

References are human-readable monthly sequences: ``YYYY-MM-NNNNN``
(``2026-03-00042`` is the 42nd order of March 2026).
"""

from __future__ import annotations

from datetime import datetime

from storefront.domain.exceptions import ReferenceGenerationError
from storefront.domain.repository.order_repository import OrderRepository

MAX_REFERENCE_ATTEMPTS = 5


class OrderReferenceGenerator:

    def __init__(self, order_repo: OrderRepository) -> None:
        self._order_repo = order_repo

    def next_reference(self, now: datetime) -> str:
        """Return an unused reference for the month of ``now``.

        The sequence continues from the highest reference of the month;
        a candidate that is already taken is skipped, up to
        ``MAX_REFERENCE_ATTEMPTS`` times.
        """
        prefix = f"{now:%Y-%m}-"
        last = self._order_repo.last_reference_with_prefix(prefix)
        sequence = int(last[-5:]) + 1 if last else 1

        for _ in range(MAX_REFERENCE_ATTEMPTS):
            candidate = f"{prefix}{sequence:05d}"
            if self._order_repo.get_by_reference(candidate) is None:
                return candidate
            sequence += 1

        raise ReferenceGenerationError(
            f"Could not generate a unique order reference after "
            f"{MAX_REFERENCE_ATTEMPTS} attempts"
        )

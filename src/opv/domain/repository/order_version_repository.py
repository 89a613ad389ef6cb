"""Abstract repository for OrderVersion snapshots.

There is no update operation: a version is added once and
only ever removed together with every other version of its order.
Implementations must reject a second version with the same
``(order_id, version_number)`` by raising VersionConflictError; storage
that can allocate numbers under its own lock does so in ``add_next``.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from opv.domain.model.order_version import OrderVersion


class OrderVersionRepository(ABC):

    @abstractmethod
    def latest_version_number(self, order_id: int) -> int:
        """Highest stored version number for the order, 0 if none."""

    @abstractmethod
    def add(self, version: OrderVersion) -> None:
        """Store a numbered version; raise VersionConflictError on a duplicate."""

    def add_next(self, draft: OrderVersion) -> OrderVersion:
        """Number ``draft`` as the order's next version and store it.

        This default reads then inserts, so a concurrent writer can still
        win the number and VersionConflictError propagates.  Storage that
        can hold a lock across both steps overrides it.
        """
        version = draft.numbered(self.latest_version_number(draft.order_id) + 1)
        self.add(version)
        return version

    @abstractmethod
    def list_for_order(self, order_id: int) -> list[OrderVersion]:
        """All versions of the order, highest version number first."""

    @abstractmethod
    def get(self, order_id: int, version_number: int) -> OrderVersion | None:
        """One version, or None if it does not exist."""

    @abstractmethod
    def get_latest(self, order_id: int) -> OrderVersion | None:
        """The highest-numbered version, or None if the order has none."""

    @abstractmethod
    def delete_for_order(self, order_id: int) -> None:
        """Remove every version of the order."""

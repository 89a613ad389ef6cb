"""Application service: numbered, write-once version history per order.

``create_version`` is the only check-then-act sequence in the core: it
reads the highest version number and inserts the next one.  Three guards
keep numbering contiguous:

* an in-process lock per order ID serialises callers sharing this store;
* ``OrderVersionRepository.add_next`` allocates and inserts in one step;
  the JSON repository holds a file lock across both, which serialises
  writers in other processes sharing the same file;
* a repository that cannot do that rejects a duplicate
  ``(order_id, version_number)`` with VersionConflictError, upon which
  the number is re-read and the insert retried, up to ``max_attempts``
  times.
"""

from __future__ import annotations

import logging
import threading
import weakref

from opv.application.dto import SnapshotInput, VersionSummary
from opv.domain.exceptions import (
    ConsistencyError,
    EntityNotFoundError,
    ValidationError,
    VersionConflictError,
)
from opv.domain.model.order_version import OrderVersion
from opv.domain.repository.order_version_repository import OrderVersionRepository
from opv.domain.service.snapshot_builder import SnapshotBuilder

logger = logging.getLogger(__name__)

DEFAULT_MAX_ATTEMPTS = 3


class VersionStore:

    def __init__(
        self,
        version_repo: OrderVersionRepository,
        builder: SnapshotBuilder | None = None,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
    ) -> None:
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self._version_repo = version_repo
        self._builder = builder or SnapshotBuilder()
        self._max_attempts = max_attempts
        # Entries vanish once no caller holds the lock.
        self._locks: weakref.WeakValueDictionary[int, threading.Lock] = (
            weakref.WeakValueDictionary()
        )
        self._locks_guard = threading.Lock()

    # --- Commands -------------------------------------------------------------

    def create_version(
        self, order_id: int, snapshot_input: SnapshotInput, created_by: str
    ) -> OrderVersion:
        """Price ``snapshot_input`` and store it as the order's next version."""
        if order_id is None:
            raise ValidationError("Order ID is required to create a version")

        draft = self._builder.build(
            order_id=order_id,
            client=snapshot_input.client,
            project=snapshot_input.project,
            selected_service_ids=snapshot_input.selected_service_ids,
            service_details=snapshot_input.service_details,
            policies=snapshot_input.policies,
            created_by=created_by,
        )

        with self._lock_for(order_id):
            for attempt in range(1, self._max_attempts + 1):
                try:
                    version = self._version_repo.add_next(draft)
                except VersionConflictError as exc:
                    logger.warning(
                        "Version %d of order #%s taken by another writer "
                        "(attempt %d/%d)",
                        exc.version_number, order_id, attempt, self._max_attempts,
                    )
                    continue
                logger.info(
                    "Created version %d of order #%s: %s (%d items)",
                    version.version_number, order_id, version.total_amount,
                    version.calculation_summary.total_items,
                )
                return version

        raise ConsistencyError(
            f"Could not allocate a version number for order #{order_id} "
            f"after {self._max_attempts} attempts"
        )

    def delete_order_versions(self, order_id: int) -> None:
        """Irreversibly drop every version; only for deleting the order itself."""
        with self._lock_for(order_id):
            self._version_repo.delete_for_order(order_id)
        logger.info("Deleted all versions of order #%s", order_id)

    # --- Queries --------------------------------------------------------------

    def get_latest_version_number(self, order_id: int) -> int:
        return self._version_repo.latest_version_number(order_id)

    def get_order_versions(self, order_id: int) -> list[OrderVersion]:
        """All versions, highest version number first (empty if none)."""
        return self._version_repo.list_for_order(order_id)

    def get_order_version(self, order_id: int, version_number: int) -> OrderVersion:
        version = self._version_repo.get(order_id, version_number)
        if version is None:
            raise EntityNotFoundError(
                f"Version {version_number} of order #{order_id} not found"
            )
        return version

    def get_latest_order_version(self, order_id: int) -> OrderVersion:
        version = self.find_latest_order_version(order_id)
        if version is None:
            raise EntityNotFoundError(f"Order #{order_id} has no versions")
        return version

    def find_latest_order_version(self, order_id: int) -> OrderVersion | None:
        return self._version_repo.get_latest(order_id)

    def get_version_history(self, order_id: int) -> list[VersionSummary]:
        return [
            VersionSummary(
                version_number=v.version_number,  # type: ignore[arg-type]
                created_at=v.created_at,
                created_by=v.created_by,
                total_amount=v.total_amount,
                total_items=v.calculation_summary.total_items,
            )
            for v in self.get_order_versions(order_id)
        ]

    # --- Internal helpers -----------------------------------------------------

    def _lock_for(self, order_id: int) -> threading.Lock:
        with self._locks_guard:
            lock = self._locks.get(order_id)
            if lock is None:
                lock = self._locks[order_id] = threading.Lock()
            return lock

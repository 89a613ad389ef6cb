"""Application service: Delete Order use case.

Versions go first, then the order.  A failure while dropping versions
propagates and leaves the order in place, so history is never orphaned
from a still-visible order nor silently kept for a deleted one.
"""

from __future__ import annotations

import logging

from opv.application.version_store import VersionStore
from opv.domain.exceptions import EntityNotFoundError
from opv.domain.repository.order_repository import OrderRepository

logger = logging.getLogger(__name__)


class DeleteOrderHandler:

    def __init__(
        self,
        order_repo: OrderRepository,
        version_store: VersionStore,
    ) -> None:
        self._order_repo = order_repo
        self._version_store = version_store

    def handle(self, order_id: int) -> None:
        order = self._order_repo.get_by_id(order_id)
        if order is None:
            raise EntityNotFoundError(f"Order #{order_id} not found")

        self._version_store.delete_order_versions(order_id)
        self._order_repo.delete(order_id)
        logger.info("Deleted order #%s (%s)", order_id, order.order_no)

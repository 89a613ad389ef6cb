"""Application service: Create Order use case.

Creating an order and pricing its first version form one unit of work:
if the version cannot be created the freshly saved order is removed
again and the error propagates, so no caller ever sees an order that
looks created but has no price.
"""

from __future__ import annotations

import logging

from opv.application.dto import OrderView, SnapshotInput
from opv.application.order_aggregate import OrderAggregate
from opv.application.version_store import VersionStore
from opv.domain.model.order import Order, OrderStatus
from opv.domain.repository.order_repository import OrderRepository

logger = logging.getLogger(__name__)


class CreateOrderHandler:

    def __init__(
        self,
        order_repo: OrderRepository,
        version_store: VersionStore,
    ) -> None:
        self._order_repo = order_repo
        self._version_store = version_store

    def handle(
        self,
        snapshot_input: SnapshotInput,
        created_by: str,
        status: OrderStatus = OrderStatus.NORMAL,
    ) -> OrderView:
        """Create the order and its version 1.

        Steps:
        1. Let the Order aggregate validate identity fields and save it.
        2. Price the selected services into version 1.
        3. On any failure in step 2, delete the order and re-raise.
        """
        order = Order.create(
            client=snapshot_input.client,
            project=snapshot_input.project,
            created_by=created_by,
            status=status,
        )
        self._order_repo.save(order)

        try:
            self._version_store.create_version(order.id, snapshot_input, created_by)  # type: ignore[arg-type]
        except Exception:
            logger.error(
                "Pricing order #%s failed; rolling back order creation", order.id
            )
            self._order_repo.delete(order.id)  # type: ignore[arg-type]
            raise

        logger.info("Created order #%s (%s)", order.id, order.order_no)
        return OrderAggregate(self._order_repo, self._version_store).view_of(order)

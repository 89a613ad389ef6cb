"""Application service: Update Order use case.

Identity fields are updated in place.  When a new service selection is
supplied the order is re-priced into a new version; if that fails the
previous order record is restored and the error propagates.
"""

from __future__ import annotations

import copy
import logging
from dataclasses import replace

from opv.application.dto import OrderView, SnapshotInput
from opv.application.order_aggregate import OrderAggregate
from opv.application.version_store import VersionStore
from opv.domain.exceptions import EntityNotFoundError
from opv.domain.model.order_version import ClientInfo, ProjectInfo
from opv.domain.repository.order_repository import OrderRepository

logger = logging.getLogger(__name__)


class UpdateOrderHandler:

    def __init__(
        self,
        order_repo: OrderRepository,
        version_store: VersionStore,
    ) -> None:
        self._order_repo = order_repo
        self._version_store = version_store

    def handle(
        self,
        order_id: int,
        updated_by: str,
        client: ClientInfo | None = None,
        project: ProjectInfo | None = None,
        payment_method: str | None = None,
        address: str | None = None,
        remark: str | None = None,
        pricing: SnapshotInput | None = None,
    ) -> OrderView:
        """Update an order, re-pricing it when ``pricing`` is given.

        The new version always carries the order's client and project as
        they stand after this update, whatever ``pricing`` itself holds.
        """
        order = self._order_repo.get_by_id(order_id)
        if order is None:
            raise EntityNotFoundError(f"Order #{order_id} not found")
        previous = copy.deepcopy(order)

        order.update_details(
            updated_by=updated_by,
            client=client,
            project=project,
            payment_method=payment_method,
            address=address,
            remark=remark,
        )
        self._order_repo.save(order)

        if pricing is not None:
            snapshot_input = replace(pricing, client=order.client, project=order.project)
            try:
                self._version_store.create_version(order_id, snapshot_input, updated_by)
            except Exception:
                logger.error(
                    "Re-pricing order #%s failed; restoring previous details", order_id
                )
                self._order_repo.save(previous)
                raise

        return OrderAggregate(self._order_repo, self._version_store).view_of(order)

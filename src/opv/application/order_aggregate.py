"""Application service: the externally visible "current order".

Joins the Order identity record with its latest version.  This is the
only place a current total is presented, and it is re-derived from the
version store on every call; the Order record carries no amount that
could go stale.
"""

from __future__ import annotations

from dataclasses import replace

from opv.application.dto import LatestVersionInfo, OrderView
from opv.application.version_store import VersionStore
from opv.domain.exceptions import EntityNotFoundError
from opv.domain.model.order import Order
from opv.domain.repository.order_repository import OrderRepository


class OrderAggregate:

    def __init__(self, order_repo: OrderRepository, version_store: VersionStore) -> None:
        self._order_repo = order_repo
        self._version_store = version_store

    def get_current_view(self, order_id: int) -> OrderView:
        order = self._order_repo.get_by_id(order_id)
        if order is None:
            raise EntityNotFoundError(f"Order #{order_id} not found")
        return self.view_of(order)

    def view_of(self, order: Order) -> OrderView:
        view = OrderView(
            id=order.id,  # type: ignore[arg-type]
            order_no=order.order_no,
            client=order.client,
            project=order.project,
            status=order.status.value,
            created_by=order.created_by,
            updated_by=order.updated_by,
            created_at=order.created_at,
            updated_at=order.updated_at,
            payment_method=order.payment_method,
            address=order.address,
            remark=order.remark,
        )

        latest = self._version_store.find_latest_order_version(order.id)  # type: ignore[arg-type]
        if latest is None:
            return view

        return replace(
            view,
            current_version=latest.version_number,
            current_amount=latest.total_amount,
            current_amount_rmb=latest.total_amount_rmb,
            latest_version_info=LatestVersionInfo(
                version_number=latest.version_number,  # type: ignore[arg-type]
                total_amount=latest.total_amount,
                total_items=latest.calculation_summary.total_items,
            ),
            latest_version=latest,
        )

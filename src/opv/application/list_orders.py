"""Application service: List Orders use case (query)."""

from __future__ import annotations

from opv.application.dto import OrderPage
from opv.application.order_aggregate import OrderAggregate
from opv.application.version_store import VersionStore
from opv.domain.exceptions import ValidationError
from opv.domain.model.order import Order
from opv.domain.repository.order_repository import OrderRepository


class ListOrdersHandler:

    def __init__(
        self,
        order_repo: OrderRepository,
        version_store: VersionStore,
    ) -> None:
        self._order_repo = order_repo
        self._version_store = version_store

    def handle(
        self,
        page: int = 1,
        limit: int = 10,
        search: str = "",
        status: str = "",
        client_id: str = "",
    ) -> OrderPage:
        """Filter, paginate and enrich each order with its current version.

        ``search`` matches the order number, client name or project name,
        case-insensitively.
        """
        if page < 1 or limit < 1:
            raise ValidationError("Page and limit must be positive")

        orders = [
            o for o in self._order_repo.list_all()
            if _matches(o, search.strip().lower(), status, client_id)
        ]
        start = (page - 1) * limit
        aggregate = OrderAggregate(self._order_repo, self._version_store)

        return OrderPage(
            orders=[aggregate.view_of(o) for o in orders[start:start + limit]],
            total=len(orders),
            page=page,
            limit=limit,
        )


def _matches(order: Order, search: str, status: str, client_id: str) -> bool:
    if status and order.status.value != status:
        return False
    if client_id and order.client.client_id != client_id:
        return False
    if search:
        haystack = (
            order.order_no,
            order.client.client_name,
            order.project.project_name,
        )
        return any(search in field.lower() for field in haystack)
    return True

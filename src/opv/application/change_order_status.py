"""Application service: Change Order Status use case."""

from __future__ import annotations

from opv.domain.exceptions import EntityNotFoundError, ValidationError
from opv.domain.model.order import OrderStatus
from opv.domain.repository.order_repository import OrderRepository


class ChangeOrderStatusHandler:

    def __init__(self, order_repo: OrderRepository) -> None:
        self._order_repo = order_repo

    def handle(self, order_id: int, status: str, updated_by: str) -> None:
        """Move an order to ``normal``, ``cancelled`` or ``draft``.

        Status never touches versions: a cancelled order keeps its price
        history.
        """
        try:
            new_status = OrderStatus(status)
        except ValueError as exc:
            allowed = ", ".join(s.value for s in OrderStatus)
            raise ValidationError(
                f"Unknown order status '{status}' (expected one of: {allowed})"
            ) from exc

        order = self._order_repo.get_by_id(order_id)
        if order is None:
            raise EntityNotFoundError(f"Order #{order_id} not found")

        order.change_status(new_status, updated_by)
        self._order_repo.save(order)

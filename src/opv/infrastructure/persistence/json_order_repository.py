"""JSON-file-backed implementation of OrderRepository."""

from __future__ import annotations

from datetime import datetime
from pathlib import Path

from opv.domain.model.order import Order, OrderStatus
from opv.domain.model.order_version import ClientInfo, ProjectInfo
from opv.domain.repository.order_repository import OrderRepository
from opv.infrastructure.persistence.json_file import JsonArrayFile


class JsonOrderRepository(OrderRepository):

    def __init__(self, file_path: Path) -> None:
        self._file = JsonArrayFile(file_path)

    # --- OrderRepository interface --------------------------------------------

    def next_id(self) -> int:
        return _next_id(self._file.read())

    def get_by_id(self, order_id: int) -> Order | None:
        for raw in self._file.read():
            if raw["id"] == order_id:
                return self._to_domain(raw)
        return None

    def list_all(self) -> list[Order]:
        orders = [self._to_domain(raw) for raw in self._file.read()]
        orders.sort(key=lambda o: (o.created_at, o.id), reverse=True)
        return orders

    def save(self, order: Order) -> None:
        with self._file.locked():
            orders = self._file.read()

            if order.id is None:
                order.id = _next_id(orders)

            # Upsert: replace if exists, otherwise append
            for i, raw in enumerate(orders):
                if raw["id"] == order.id:
                    orders[i] = self._to_raw(order)
                    break
            else:
                orders.append(self._to_raw(order))

            self._file.write(orders)

    def delete(self, order_id: int) -> None:
        with self._file.locked():
            orders = self._file.read()
            kept = [raw for raw in orders if raw["id"] != order_id]
            if len(kept) != len(orders):
                self._file.write(kept)

    # --- Serialization --------------------------------------------------------

    @staticmethod
    def _to_raw(order: Order) -> dict:
        return {
            "id": order.id,
            "orderNo": order.order_no,
            "clientId": order.client.client_id,
            "clientName": order.client.client_name,
            "contactIds": list(order.client.contact_ids),
            "contactNames": list(order.client.contact_names),
            "contactPhones": list(order.client.contact_phones),
            "projectName": order.project.project_name,
            "quotationId": order.project.quotation_id,
            "status": order.status.value,
            "paymentMethod": order.payment_method,
            "address": order.address,
            "remark": order.remark,
            "createdBy": order.created_by,
            "updatedBy": order.updated_by,
            "createdAt": order.created_at.isoformat(),
            "updatedAt": order.updated_at.isoformat(),
        }

    @staticmethod
    def _to_domain(raw: dict) -> Order:
        return Order(
            id=raw["id"],
            order_no=raw["orderNo"],
            client=ClientInfo(
                client_id=raw["clientId"],
                client_name=raw["clientName"],
                contact_ids=tuple(raw.get("contactIds", [])),
                contact_names=tuple(raw.get("contactNames", [])),
                contact_phones=tuple(raw.get("contactPhones", [])),
            ),
            project=ProjectInfo(
                project_name=raw["projectName"],
                quotation_id=raw.get("quotationId"),
            ),
            status=OrderStatus(raw["status"]),
            payment_method=raw.get("paymentMethod"),
            address=raw.get("address"),
            remark=raw.get("remark"),
            created_by=raw["createdBy"],
            updated_by=raw["updatedBy"],
            created_at=datetime.fromisoformat(raw["createdAt"]),
            updated_at=datetime.fromisoformat(raw["updatedAt"]),
        )


def _next_id(orders: list[dict]) -> int:
    return max((o["id"] for o in orders), default=0) + 1

"""Order aggregate: the identity and status shell of a client engagement.

An Order owns no line items and no totals.  Everything priced lives in
its OrderVersions; the "current amount" of an order is always projected
from the latest version by the OrderAggregate.
"""

from __future__ import annotations

import random
import string
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum

from opv.domain.exceptions import ValidationError
from opv.domain.model.order_version import ClientInfo, ProjectInfo


class OrderStatus(Enum):
    NORMAL = "normal"
    CANCELLED = "cancelled"
    DRAFT = "draft"


def _now() -> datetime:
    return datetime.now(timezone.utc)


def generate_order_no() -> str:
    """``ORD`` + epoch milliseconds + five random upper-case characters."""
    suffix = "".join(random.choices(string.ascii_uppercase + string.digits, k=5))
    return f"ORD{int(time.time() * 1000)}{suffix}"


@dataclass
class Order:
    """Aggregate root for orders.

    Use ``Order.create()`` for new orders; ``__init__`` stays simple so the
    repository can reconstitute persisted orders without re-validating.
    """

    id: int | None
    order_no: str
    client: ClientInfo
    project: ProjectInfo
    created_by: str
    updated_by: str
    status: OrderStatus = OrderStatus.NORMAL
    payment_method: str | None = None
    address: str | None = None
    remark: str | None = None
    created_at: datetime = field(default_factory=_now)
    updated_at: datetime = field(default_factory=_now)

    # --- Factory (used for NEW orders only) -----------------------------------

    @staticmethod
    def create(
        client: ClientInfo,
        project: ProjectInfo,
        created_by: str,
        status: OrderStatus = OrderStatus.NORMAL,
    ) -> Order:
        _require(client.client_id, "Client ID")
        _require(client.client_name, "Client name")
        _require(project.project_name, "Project name")
        _require(created_by, "Creator")

        return Order(
            id=None,
            order_no=generate_order_no(),
            client=client,
            project=project,
            created_by=created_by,
            updated_by=created_by,
            status=status,
        )

    # --- Mutations ------------------------------------------------------------

    def update_details(
        self,
        updated_by: str,
        client: ClientInfo | None = None,
        project: ProjectInfo | None = None,
        payment_method: str | None = None,
        address: str | None = None,
        remark: str | None = None,
    ) -> None:
        """Replace whichever identity fields are given."""
        _require(updated_by, "Updater")
        if client is not None:
            _require(client.client_id, "Client ID")
            _require(client.client_name, "Client name")
            self.client = client
        if project is not None:
            _require(project.project_name, "Project name")
            self.project = project
        if payment_method is not None:
            self.payment_method = payment_method
        if address is not None:
            self.address = address
        if remark is not None:
            self.remark = remark
        self._touch(updated_by)

    def change_status(self, status: OrderStatus, updated_by: str) -> None:
        _require(updated_by, "Updater")
        if self.status == status:
            raise ValidationError(f"Order is already {status.value}")
        self.status = status
        self._touch(updated_by)

    def _touch(self, updated_by: str) -> None:
        self.updated_by = updated_by
        self.updated_at = _now()


def _require(value: str | None, label: str) -> None:
    if not value or not str(value).strip():
        raise ValidationError(f"{label} is required")

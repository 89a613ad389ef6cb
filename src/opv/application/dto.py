"""Data Transfer Objects: plain containers that cross layer boundaries."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime

from opv.domain.model.order_version import ClientInfo, OrderVersion, ProjectInfo
from opv.domain.model.pricing_policy import PricingPolicy
from opv.domain.model.service import ServiceDetail
from opv.domain.model.value_objects import Money


@dataclass(frozen=True)
class SnapshotInput:
    """Input: everything needed to price one version of an order."""

    client: ClientInfo
    project: ProjectInfo
    selected_service_ids: tuple[str, ...]
    service_details: tuple[ServiceDetail, ...]
    policies: tuple[PricingPolicy, ...] = ()


@dataclass(frozen=True)
class LatestVersionInfo:
    version_number: int
    total_amount: Money
    total_items: int


@dataclass(frozen=True)
class OrderView:
    """Output: an order merged with its latest version.

    The ``current_*`` fields and ``latest_version`` are None while the
    order has no priced version.
    """

    id: int
    order_no: str
    client: ClientInfo
    project: ProjectInfo
    status: str
    created_by: str
    updated_by: str
    created_at: datetime
    updated_at: datetime
    payment_method: str | None = None
    address: str | None = None
    remark: str | None = None
    current_version: int | None = None
    current_amount: Money | None = None
    current_amount_rmb: str | None = None
    latest_version_info: LatestVersionInfo | None = None
    latest_version: OrderVersion | None = None

    @property
    def is_priced(self) -> bool:
        return self.current_version is not None


@dataclass(frozen=True)
class VersionSummary:
    """Output: one row of an order's version history."""

    version_number: int
    created_at: datetime
    created_by: str
    total_amount: Money
    total_items: int


@dataclass(frozen=True)
class OrderPage:
    orders: list[OrderView] = field(default_factory=list)
    total: int = 0
    page: int = 1
    limit: int = 10


@dataclass(frozen=True)
class ServiceSelection:
    """Input: one catalog service picked for an order."""

    service_id: str
    quantity: int
    policy_id: str | None = None

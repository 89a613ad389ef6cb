"""OrderVersion: the immutable, fully priced snapshot of an order.

Every class here is a frozen dataclass.  A version is built once by the
SnapshotBuilder, numbered once by the VersionStore, written once by the
repository and never touched again; the only destructive operation is
deleting all versions of an order together with the order itself.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from decimal import Decimal

from opv.domain.exceptions import ConsistencyError
from opv.domain.model.pricing_policy import PolicyType
from opv.domain.model.value_objects import Money


@dataclass(frozen=True)
class PricingPolicySnapshot:
    """Frozen copy of the policy that priced one line."""

    policy_id: str
    policy_name: str
    policy_type: PolicyType
    discount_ratio: Decimal  # billing ratio in percent
    calculation_details: str


@dataclass(frozen=True)
class OrderItemSnapshot:
    service_id: str
    service_name: str
    category_name: str
    unit_price: Money
    unit: str
    quantity: int
    original_price: Money
    discounted_price: Money
    discount_amount: Money
    price_description: str
    pricing_policies: tuple[PricingPolicySnapshot, ...] = ()

    @property
    def subtotal(self) -> Money:
        return self.discounted_price


@dataclass(frozen=True)
class ClientInfo:
    client_id: str
    client_name: str
    contact_ids: tuple[str, ...] = ()
    contact_names: tuple[str, ...] = ()
    contact_phones: tuple[str, ...] = ()


@dataclass(frozen=True)
class ProjectInfo:
    project_name: str
    quotation_id: str | None = None


@dataclass(frozen=True)
class CalculationSummary:
    total_items: int
    total_quantity: int
    applied_policy_ids: tuple[str, ...]


@dataclass(frozen=True)
class OrderVersion:
    """One priced iteration of an order.

    ``version_number`` is None until the VersionStore assigns it; a version
    without a number must never reach the repository.
    """

    order_id: int
    client: ClientInfo
    project: ProjectInfo
    items: tuple[OrderItemSnapshot, ...]
    total_amount: Money
    total_amount_rmb: str
    calculation_summary: CalculationSummary
    created_by: str
    version_number: int | None = None
    iteration_time: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def is_numbered(self) -> bool:
        return self.version_number is not None

    def numbered(self, version_number: int) -> OrderVersion:
        """Return a copy carrying ``version_number``.

        Only an unnumbered snapshot can be numbered; re-numbering a stored
        version would rewrite history.
        """
        if self.version_number is not None:
            raise ConsistencyError(
                f"Version {self.version_number} of order #{self.order_id} "
                f"is already numbered"
            )
        if version_number < 1:
            raise ConsistencyError(
                f"Version numbers start at 1, got {version_number}"
            )
        return replace(self, version_number=version_number)

"""Pricing policies as read from the catalog.

Policies are authored elsewhere; this module only describes their shape
and which services a policy is scoped to.  Orders never keep a reference
to a live policy: whatever was applied is frozen into a
``PricingPolicySnapshot`` at version-creation time.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Union

from opv.domain.exceptions import PolicyConfigurationError, ValidationError

FULL_PRICE_RATIO = Decimal("100")


class PolicyType(Enum):
    UNIFORM_DISCOUNT = "uniform_discount"
    TIERED_DISCOUNT = "tiered_discount"


class PolicyStatus(Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"


# ---------------------------------------------------------------------------
# Scope: which services a policy may be applied to
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class SingleService:
    service_id: str


@dataclass(frozen=True)
class MultiService:
    service_ids: tuple[str, ...]


@dataclass(frozen=True)
class ExplicitSelection:
    """The policy was picked by hand for these services."""

    service_ids: tuple[str, ...]


PolicyScope = Union[SingleService, MultiService, ExplicitSelection]


def scope_covers(scope: PolicyScope | None, service_id: str) -> bool:
    """True if a policy with ``scope`` is a candidate for ``service_id``."""
    if scope is None:
        return False
    if isinstance(scope, SingleService):
        return scope.service_id == service_id
    if isinstance(scope, MultiService):
        return service_id in scope.service_ids
    if isinstance(scope, ExplicitSelection):
        return service_id in scope.service_ids
    raise TypeError(f"Unknown policy scope: {scope!r}")


def policy_scope_from_raw(raw: dict) -> PolicyScope | None:
    """Read the scope of a catalog policy record.

    ``serviceId`` may be a single id or a list of ids; ``selectedPolicies``
    lists the services a user attached the policy to.  A record carrying
    neither is not bound to any service.
    """
    service_id = raw.get("serviceId")
    if isinstance(service_id, (list, tuple)):
        return MultiService(tuple(str(s) for s in service_id))
    if service_id not in (None, ""):
        return SingleService(str(service_id))

    selected = raw.get("selectedPolicies")
    if selected is None:
        return None
    if not isinstance(selected, (list, tuple)):
        raise ValidationError(
            f"selectedPolicies must be a list, got {type(selected).__name__}"
        )
    return ExplicitSelection(tuple(str(s) for s in selected))


# ---------------------------------------------------------------------------
# Policy
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class TierSetting:
    """A quantity range priced at ``discount_ratio`` percent.

    ``end_quantity`` of None means the tier is open-ended.
    """

    start_quantity: int
    end_quantity: int | None
    discount_ratio: Decimal

    @property
    def capacity(self) -> int | None:
        if self.end_quantity is None:
            return None
        return self.end_quantity - self.start_quantity + 1

    @property
    def is_open_ended(self) -> bool:
        return self.end_quantity is None


@dataclass(frozen=True)
class PricingPolicy:
    id: str
    name: str
    type: PolicyType
    status: PolicyStatus = PolicyStatus.ACTIVE
    discount_ratio: Decimal = FULL_PRICE_RATIO
    tier_settings: tuple[TierSetting, ...] = field(default_factory=tuple)
    scope: PolicyScope | None = None
    alias: str = ""

    @property
    def is_active(self) -> bool:
        return self.status == PolicyStatus.ACTIVE

    def applies_to(self, service_id: str) -> bool:
        return scope_covers(self.scope, service_id)

    def sorted_tiers(self) -> list[TierSetting]:
        return sorted(self.tier_settings, key=lambda t: t.start_quantity)

    def check_configuration(self) -> None:
        """Reject settings that cannot be priced.

        Overlaps and gaps between tiers are accepted; the resolver walks the
        tiers in ascending start order and prices whatever that walk yields.
        """
        if self.type == PolicyType.UNIFORM_DISCOUNT:
            _check_ratio(self.discount_ratio, f"policy '{self.name}'")
            return

        if not self.tier_settings:
            raise PolicyConfigurationError(
                f"Tiered policy '{self.name}' has no tier settings"
            )
        for tier in self.tier_settings:
            where = f"tier {tier.start_quantity}-{tier.end_quantity or '∞'} of '{self.name}'"
            if tier.start_quantity < 0:
                raise PolicyConfigurationError(f"Negative start quantity in {where}")
            if tier.end_quantity is not None and tier.end_quantity < tier.start_quantity:
                raise PolicyConfigurationError(f"End precedes start in {where}")
            _check_ratio(tier.discount_ratio, where)


def _check_ratio(ratio: Decimal, where: str) -> None:
    if ratio < 0 or ratio > FULL_PRICE_RATIO:
        raise PolicyConfigurationError(
            f"Discount ratio {ratio} of {where} must be between 0 and 100"
        )

"""Domain service: price one line item under at most one pricing policy.

``resolve_price`` is a pure function.  It takes the single policy the
caller chose for the line (the SnapshotBuilder does the choosing) and
returns the discounted price together with a narrative of the arithmetic
for audit display.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal

from opv.domain.exceptions import ValidationError
from opv.domain.model.pricing_policy import (
    FULL_PRICE_RATIO,
    PolicyType,
    PricingPolicy,
    TierSetting,
)
from opv.domain.model.value_objects import Money, Quantity

DEFAULT_UNIT = "件"
NO_POLICY_DETAILS = "未应用价格政策"


@dataclass(frozen=True)
class PriceCalculation:
    original_price: Money
    discounted_price: Money
    discount_amount: Money
    discount_ratio: Decimal  # effective billing ratio in percent, 100 = full price
    calculation_details: str
    applied_policy: PricingPolicy | None = None


def resolve_price(
    unit_price: Money | Decimal | int | float | str,
    quantity: Quantity | int,
    policy: PricingPolicy | None,
    unit: str = DEFAULT_UNIT,
) -> PriceCalculation:
    """Price ``quantity`` units at ``unit_price`` under ``policy``.

    No policy, or an inactive one, leaves the price untouched.  A malformed
    policy raises PolicyConfigurationError; a negative price or quantity
    raises ValidationError.
    """
    price = unit_price if isinstance(unit_price, Money) else Money.of(unit_price)
    qty = quantity if isinstance(quantity, Quantity) else _quantity(quantity)
    original = price * qty.value

    if policy is None:
        return _full_price(original, NO_POLICY_DETAILS)
    if not policy.is_active:
        return _full_price(original, f"价格政策「{policy.name}」未启用，按原价计费")

    policy.check_configuration()

    if policy.type == PolicyType.UNIFORM_DISCOUNT:
        return _uniform(price, qty.value, original, policy, unit)
    if policy.type == PolicyType.TIERED_DISCOUNT:
        return _tiered(price, qty.value, original, policy, unit)
    raise TypeError(f"Unknown policy type: {policy.type!r}")


# ---------------------------------------------------------------------------
# Policy kinds
# ---------------------------------------------------------------------------


def _uniform(
    price: Money, qty: int, original: Money, policy: PricingPolicy, unit: str
) -> PriceCalculation:
    ratio = policy.discount_ratio
    discounted = original.percent(ratio)
    discount = original - discounted

    lines = [
        "计费方式:",
        f"统一按照{format_ratio(ratio)}%计费",
        f"小计：{price} × {qty}{unit} × {format_ratio(ratio)}% = {discounted}",
    ]
    return PriceCalculation(
        original_price=original,
        discounted_price=discounted,
        discount_amount=discount,
        discount_ratio=ratio,
        calculation_details=_with_totals(lines, original, discount, discounted),
        applied_policy=policy,
    )


def _tiered(
    price: Money, qty: int, original: Money, policy: PricingPolicy, unit: str
) -> PriceCalculation:
    tiers = policy.sorted_tiers()
    remaining = qty
    total = Money.zero()
    tier_lines: list[str] = []
    tier_amounts: list[Money] = []

    for tier in tiers:
        if remaining <= 0:
            break
        capacity = tier.capacity
        tier_qty = remaining if capacity is None else min(remaining, capacity)
        if tier_qty <= 0:
            continue
        amount = (price * tier_qty).percent(tier.discount_ratio)
        total = total + amount
        tier_amounts.append(amount)
        tier_lines.append(
            f"{tier_label(tier, unit)}：{price} × {tier_qty}{unit} × "
            f"{format_ratio(tier.discount_ratio)}% = {amount}"
        )
        remaining -= tier_qty

    discount = original - total
    lines = ["计费方式:", describe_tiers(tiers, unit), *tier_lines]
    if tier_amounts:
        lines.append(f"小计：{'+'.join(str(a) for a in tier_amounts)}={total}")

    return PriceCalculation(
        original_price=original,
        discounted_price=total,
        discount_amount=discount,
        discount_ratio=_effective_ratio(original, total),
        calculation_details=_with_totals(lines, original, discount, total),
        applied_policy=policy,
    )


# ---------------------------------------------------------------------------
# Narrative helpers
# ---------------------------------------------------------------------------


def format_ratio(ratio: Decimal) -> str:
    """``Decimal("90.00")`` -> ``"90"``, ``Decimal("92.5")`` -> ``"92.5"``."""
    return format(ratio.normalize(), "f")


def tier_label(tier: TierSetting, unit: str) -> str:
    if tier.end_quantity is None:
        return f"{tier.start_quantity}{unit}及以上"
    if tier.start_quantity == tier.end_quantity:
        return f"第{tier.start_quantity}{unit}"
    return f"第{tier.start_quantity}-{tier.end_quantity}{unit}"


def describe_tiers(tiers: list[TierSetting], unit: str) -> str:
    return "，".join(
        f"{tier_label(t, unit)}按{format_ratio(t.discount_ratio)}%计费" for t in tiers
    )


def _with_totals(lines: list[str], original: Money, discount: Money, final: Money) -> str:
    return "\n".join(
        [*lines, "", f"原价：{original}", f"优惠：{discount}", f"最终价格：{final}"]
    )


def _full_price(original: Money, details: str) -> PriceCalculation:
    return PriceCalculation(
        original_price=original,
        discounted_price=original,
        discount_amount=Money.zero(),
        discount_ratio=FULL_PRICE_RATIO,
        calculation_details=details,
    )


def _effective_ratio(original: Money, discounted: Money) -> Decimal:
    if original.amount == 0:
        return FULL_PRICE_RATIO
    ratio = discounted.amount / original.amount * 100
    return ratio.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)


def _quantity(value: int) -> Quantity:
    if value is None:
        raise ValidationError("Quantity is required")
    return Quantity(value)

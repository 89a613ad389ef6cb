"""Domain service: build an unsaved OrderVersion from catalog input.

The builder takes the selected services in selection order (a selected
service may appear only once among the offered details), picks exactly
one pricing policy per line, prices each line with
``resolve_price`` and totals the result.  It never numbers or persists
the version; that is the VersionStore's job.

Single-active-policy rule: a line is priced by one policy only.  The
caller's first explicit choice wins; without one, the first candidate
whose scope covers the service is used, hand-picked selections ranking
before catalog bindings.  Further choices or candidates are logged and
ignored, never stacked.
"""

from __future__ import annotations

import logging
import re
from datetime import datetime, timezone
from typing import Callable, Iterable, Sequence

from opv.domain.exceptions import ValidationError
from opv.domain.model.order_version import (
    CalculationSummary,
    ClientInfo,
    OrderItemSnapshot,
    OrderVersion,
    PricingPolicySnapshot,
    ProjectInfo,
)
from opv.domain.model.pricing_policy import ExplicitSelection, PricingPolicy
from opv.domain.model.service import ServiceDetail
from opv.domain.model.value_objects import Money
from opv.domain.service.pricing_policy_resolver import PriceCalculation, resolve_price
from opv.domain.service.rmb_converter import convert_to_rmb

logger = logging.getLogger(__name__)

_BREAK_TAG = re.compile(r"<br\s*/?>", re.IGNORECASE)


def normalize_description(text: str | None) -> str:
    """Turn rich-text ``<br>`` variants and CRLF into plain newlines."""
    if not text:
        return ""
    return _BREAK_TAG.sub("\n", text).replace("\r\n", "\n").replace("\r", "\n").strip()


def candidate_policies(
    service_id: str, policies: Iterable[PricingPolicy]
) -> list[PricingPolicy]:
    """Policies whose scope covers ``service_id``, hand-picked ones first."""
    matching = [p for p in policies if p.applies_to(service_id)]
    explicit = [p for p in matching if isinstance(p.scope, ExplicitSelection)]
    bound = [p for p in matching if not isinstance(p.scope, ExplicitSelection)]
    return explicit + bound


class SnapshotBuilder:

    def __init__(self, clock: Callable[[], datetime] | None = None) -> None:
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    def build(
        self,
        order_id: int,
        client: ClientInfo,
        project: ProjectInfo,
        selected_service_ids: Sequence[str],
        service_details: Sequence[ServiceDetail],
        policies: Sequence[PricingPolicy],
        created_by: str,
    ) -> OrderVersion:
        """Price the selected services and return an unnumbered version."""
        if not created_by:
            raise ValidationError("Version creator is required")

        selected = self._select_services(selected_service_ids, service_details)
        items = tuple(self._snapshot_item(s, policies) for s in selected)

        total = Money.zero()
        for item in items:
            total = total + item.subtotal

        applied_ids: list[str] = []
        for item in items:
            for snap in item.pricing_policies:
                if snap.policy_id not in applied_ids:
                    applied_ids.append(snap.policy_id)

        now = self._clock()
        return OrderVersion(
            order_id=order_id,
            client=client,
            project=project,
            items=items,
            total_amount=total,
            total_amount_rmb=convert_to_rmb(total.amount),
            calculation_summary=CalculationSummary(
                total_items=len(items),
                total_quantity=sum(item.quantity for item in items),
                applied_policy_ids=tuple(applied_ids),
            ),
            created_by=created_by,
            iteration_time=now,
            created_at=now,
        )

    # --- Selection ------------------------------------------------------------

    @staticmethod
    def _select_services(
        selected_service_ids: Sequence[str],
        service_details: Sequence[ServiceDetail],
    ) -> list[ServiceDetail]:
        wanted: list[str] = []
        for service_id in selected_service_ids:
            if not service_id or not str(service_id).strip():
                raise ValidationError("Selected service ID cannot be empty")
            if service_id not in wanted:
                wanted.append(service_id)

        by_id: dict[str, ServiceDetail] = {}
        for service in service_details:
            if service.id in wanted and service.id in by_id:
                raise ValidationError(f"Service '{service.id}' is listed more than once")
            by_id[service.id] = service

        missing = [sid for sid in wanted if sid not in by_id]
        if missing:
            raise ValidationError(
                f"Selected services have no details: {', '.join(missing)}"
            )
        return [by_id[sid] for sid in wanted]

    @staticmethod
    def _select_policy(
        service: ServiceDetail, policies: Sequence[PricingPolicy]
    ) -> PricingPolicy | None:
        if service.selected_policy_ids:
            chosen_id, *ignored = service.selected_policy_ids
            if ignored:
                logger.warning(
                    "Service %s selects %d policies; applying only %s",
                    service.id, len(service.selected_policy_ids), chosen_id,
                )
            for policy in policies:
                if policy.id == chosen_id:
                    return policy
            raise ValidationError(
                f"Policy '{chosen_id}' selected for service '{service.name}' "
                f"is not in the policy list"
            )

        candidates = candidate_policies(service.id, policies)
        if len(candidates) > 1:
            logger.warning(
                "Service %s matches %d policies; applying only %s",
                service.id, len(candidates), candidates[0].id,
            )
        return candidates[0] if candidates else None

    # --- Line snapshot --------------------------------------------------------

    def _snapshot_item(
        self, service: ServiceDetail, policies: Sequence[PricingPolicy]
    ) -> OrderItemSnapshot:
        if not service.id or not service.name or not service.name.strip():
            raise ValidationError(f"Service '{service.id}' is missing its name")

        policy = self._select_policy(service, policies)
        calc = resolve_price(service.unit_price, service.quantity, policy, service.unit)

        return OrderItemSnapshot(
            service_id=service.id,
            service_name=service.name,
            category_name=service.category_name,
            unit_price=service.unit_price,
            unit=service.unit,
            quantity=service.quantity.value,
            original_price=calc.original_price,
            discounted_price=calc.discounted_price,
            discount_amount=calc.discount_amount,
            price_description=normalize_description(service.price_description),
            pricing_policies=self._policy_snapshots(calc),
        )

    @staticmethod
    def _policy_snapshots(calc: PriceCalculation) -> tuple[PricingPolicySnapshot, ...]:
        policy = calc.applied_policy
        if policy is None:
            return ()
        return (
            PricingPolicySnapshot(
                policy_id=policy.id,
                policy_name=policy.name,
                policy_type=policy.type,
                discount_ratio=calc.discount_ratio,
                calculation_details=calc.calculation_details,
            ),
        )

"""Map raw catalog and order payloads onto domain objects.

Payloads arrive in the camelCase shape the catalog and the order forms
use (``_id`` or ``id``, ``serviceName`` or ``name``...).  Anything the
pricing core needs and cannot find raises ValidationError instead of
being defaulted.
"""

from __future__ import annotations

from dataclasses import replace
from decimal import Decimal, InvalidOperation
from typing import Any, Sequence

from opv.application.dto import ServiceSelection, SnapshotInput
from opv.domain.exceptions import (
    EntityNotFoundError,
    PolicyConfigurationError,
    ValidationError,
)
from opv.domain.model.order_version import ClientInfo, ProjectInfo
from opv.domain.model.pricing_policy import (
    FULL_PRICE_RATIO,
    PolicyStatus,
    PolicyType,
    PricingPolicy,
    TierSetting,
    policy_scope_from_raw,
)
from opv.domain.model.service import DEFAULT_UNIT, ServiceDetail
from opv.domain.model.value_objects import Money, Quantity
from opv.domain.repository.catalog_repository import CatalogRepository


def service_detail_from_raw(raw: dict[str, Any]) -> ServiceDetail:
    service_id = _first(raw, "_id", "id")
    if service_id is None:
        raise ValidationError(f"Service record has no id: {raw!r}")
    name = _first(raw, "serviceName", "name")
    if not name:
        raise ValidationError(f"Service '{service_id}' has no name")
    if raw.get("unitPrice") is None:
        raise ValidationError(f"Service '{name}' has no unit price")
    if raw.get("quantity") is None:
        raise ValidationError(f"Service '{name}' has no quantity")

    return ServiceDetail(
        id=str(service_id),
        name=str(name),
        unit_price=Money.of(raw["unitPrice"]),
        quantity=Quantity(_integer(raw["quantity"], f"quantity of '{name}'")),
        unit=raw.get("unit") or DEFAULT_UNIT,
        category_name=raw.get("categoryName") or "",
        price_description=raw.get("priceDescription") or "",
        selected_policy_ids=tuple(str(p) for p in raw.get("selectedPolicies") or ()),
    )


def pricing_policy_from_raw(raw: dict[str, Any]) -> PricingPolicy:
    policy_id = _first(raw, "_id", "id", "policyId")
    if policy_id is None:
        raise ValidationError(f"Policy record has no id: {raw!r}")
    name = _first(raw, "name", "policyName")
    if not name:
        raise ValidationError(f"Policy '{policy_id}' has no name")

    try:
        policy_type = PolicyType(raw.get("type"))
    except ValueError as exc:
        raise PolicyConfigurationError(
            f"Policy '{name}' has unknown type {raw.get('type')!r}"
        ) from exc
    try:
        status = PolicyStatus(raw.get("status") or PolicyStatus.ACTIVE.value)
    except ValueError as exc:
        raise PolicyConfigurationError(
            f"Policy '{name}' has unknown status {raw.get('status')!r}"
        ) from exc

    return PricingPolicy(
        id=str(policy_id),
        name=str(name),
        type=policy_type,
        status=status,
        discount_ratio=_ratio(raw.get("discountRatio"), f"policy '{name}'"),
        tier_settings=tuple(
            _tier_from_raw(t, name) for t in raw.get("tierSettings") or ()
        ),
        scope=policy_scope_from_raw(raw),
        alias=raw.get("alias") or "",
    )


def snapshot_input_from_raw(raw: dict[str, Any]) -> SnapshotInput:
    """Read an order form payload (client, project, services, policies)."""
    return SnapshotInput(
        client=client_info_from_raw(raw),
        project=project_info_from_raw(raw),
        selected_service_ids=tuple(str(s) for s in raw.get("selectedServices") or ()),
        service_details=tuple(
            service_detail_from_raw(s) for s in raw.get("serviceDetails") or ()
        ),
        policies=tuple(pricing_policy_from_raw(p) for p in raw.get("policies") or ()),
    )


def client_info_from_raw(raw: dict[str, Any]) -> ClientInfo:
    return ClientInfo(
        client_id=str(raw.get("clientId") or ""),
        client_name=str(raw.get("clientName") or ""),
        contact_ids=tuple(str(c) for c in raw.get("contactIds") or ()),
        contact_names=tuple(str(c) for c in raw.get("contactNames") or ()),
        contact_phones=tuple(str(c) for c in raw.get("contactPhones") or ()),
    )


def project_info_from_raw(raw: dict[str, Any]) -> ProjectInfo:
    return ProjectInfo(
        project_name=str(raw.get("projectName") or ""),
        quotation_id=raw.get("quotationId"),
    )


def snapshot_input_from_catalog(
    catalog: CatalogRepository,
    client: ClientInfo,
    project: ProjectInfo,
    selections: Sequence[ServiceSelection],
) -> SnapshotInput:
    """Look selected services up in the catalog and apply quantities and choices."""
    ids = [s.service_id for s in selections]
    found = {s.id: s for s in catalog.get_services(ids)}
    missing = [sid for sid in ids if sid not in found]
    if missing:
        raise EntityNotFoundError(f"Services not in catalog: {', '.join(missing)}")

    details = tuple(
        replace(
            found[s.service_id],
            quantity=Quantity(s.quantity),
            selected_policy_ids=(s.policy_id,) if s.policy_id else (),
        )
        for s in selections
    )
    return SnapshotInput(
        client=client,
        project=project,
        selected_service_ids=tuple(ids),
        service_details=details,
        policies=tuple(catalog.list_policies()),
    )


# --- Helpers ------------------------------------------------------------------


def _tier_from_raw(raw: dict[str, Any], policy_name: str) -> TierSetting:
    where = f"tier of policy '{policy_name}'"
    end = raw.get("endQuantity")
    return TierSetting(
        start_quantity=_integer(raw.get("startQuantity") or 0, where),
        # 0, null and a missing end all mean "no upper bound"
        end_quantity=_integer(end, where) if end else None,
        discount_ratio=_ratio(raw.get("discountRatio"), where),
    )


def _first(raw: dict[str, Any], *keys: str) -> Any:
    for key in keys:
        value = raw.get(key)
        if value not in (None, ""):
            return value
    return None


def _integer(value: Any, where: str) -> int:
    if isinstance(value, bool):
        raise ValidationError(f"Invalid {where}: {value!r}")
    if isinstance(value, int):
        return value
    try:
        number = Decimal(str(value))
    except (InvalidOperation, ValueError) as exc:
        raise ValidationError(f"Invalid {where}: {value!r}") from exc
    if not number.is_finite() or number != number.to_integral_value():
        raise ValidationError(f"Invalid {where}: {value!r} is not a whole number")
    return int(number)


def _ratio(value: Any, where: str) -> Decimal:
    if value is None:
        return FULL_PRICE_RATIO
    try:
        return Decimal(str(value))
    except (InvalidOperation, ValueError) as exc:
        raise PolicyConfigurationError(
            f"Invalid discount ratio {value!r} for {where}"
        ) from exc

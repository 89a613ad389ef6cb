"""JSON-file-backed implementation of OrderVersionRepository.

All versions of all orders live in one JSON array.  Records are written
once and never rewritten; the only removal is per order.  Every write,
including number allocation in ``add_next``, runs under the file lock.
"""

from __future__ import annotations

import logging
from datetime import datetime
from decimal import Decimal
from pathlib import Path

from opv.domain.exceptions import ConsistencyError, VersionConflictError
from opv.domain.model.order_version import (
    CalculationSummary,
    ClientInfo,
    OrderItemSnapshot,
    OrderVersion,
    PricingPolicySnapshot,
    ProjectInfo,
)
from opv.domain.model.pricing_policy import PolicyType
from opv.domain.model.value_objects import Money
from opv.domain.repository.order_version_repository import OrderVersionRepository
from opv.infrastructure.persistence.json_file import JsonArrayFile

logger = logging.getLogger(__name__)


class JsonOrderVersionRepository(OrderVersionRepository):

    def __init__(self, file_path: Path) -> None:
        self._file_path = file_path
        self._file = JsonArrayFile(file_path)

    # --- OrderVersionRepository interface -------------------------------------

    def latest_version_number(self, order_id: int) -> int:
        return _latest_number(self._file.read(), order_id)

    def add(self, version: OrderVersion) -> None:
        if version.version_number is None:
            raise ConsistencyError(
                f"Refusing to store an unnumbered version of order #{version.order_id}"
            )
        with self._file.locked():
            versions = self._file.read()
            for raw in versions:
                if (
                    raw["orderId"] == version.order_id
                    and raw["versionNumber"] == version.version_number
                ):
                    raise VersionConflictError(version.order_id, version.version_number)
            self._append(versions, version)

    def add_next(self, draft: OrderVersion) -> OrderVersion:
        with self._file.locked():
            versions = self._file.read()
            version = draft.numbered(_latest_number(versions, draft.order_id) + 1)
            self._append(versions, version)
        return version

    def list_for_order(self, order_id: int) -> list[OrderVersion]:
        matching = [raw for raw in self._file.read() if raw["orderId"] == order_id]
        matching.sort(key=lambda raw: raw["versionNumber"], reverse=True)
        return [self._to_domain(raw) for raw in matching]

    def get(self, order_id: int, version_number: int) -> OrderVersion | None:
        for raw in self._file.read():
            if raw["orderId"] == order_id and raw["versionNumber"] == version_number:
                return self._to_domain(raw)
        return None

    def get_latest(self, order_id: int) -> OrderVersion | None:
        versions = self.list_for_order(order_id)
        return versions[0] if versions else None

    def delete_for_order(self, order_id: int) -> None:
        with self._file.locked():
            versions = self._file.read()
            kept = [raw for raw in versions if raw["orderId"] != order_id]
            if len(kept) != len(versions):
                self._file.write(kept)

    def _append(self, versions: list[dict], version: OrderVersion) -> None:
        versions.append(self._to_raw(version))
        self._file.write(versions)
        logger.debug(
            "Wrote version %d of order #%s to %s",
            version.version_number, version.order_id, self._file_path,
        )

    # --- Serialization --------------------------------------------------------

    @staticmethod
    def _to_raw(version: OrderVersion) -> dict:
        return {
            "orderId": version.order_id,
            "versionNumber": version.version_number,
            "iterationTime": version.iteration_time.isoformat(),
            "clientId": version.client.client_id,
            "clientName": version.client.client_name,
            "contactIds": list(version.client.contact_ids),
            "contactNames": list(version.client.contact_names),
            "contactPhones": list(version.client.contact_phones),
            "projectName": version.project.project_name,
            "quotationId": version.project.quotation_id,
            "items": [
                {
                    "serviceId": item.service_id,
                    "serviceName": item.service_name,
                    "categoryName": item.category_name,
                    "unitPrice": str(item.unit_price.amount),
                    "unit": item.unit,
                    "quantity": item.quantity,
                    "originalPrice": str(item.original_price.amount),
                    "discountedPrice": str(item.discounted_price.amount),
                    "discountAmount": str(item.discount_amount.amount),
                    "subtotal": str(item.subtotal.amount),
                    "priceDescription": item.price_description,
                    "pricingPolicies": [
                        {
                            "policyId": p.policy_id,
                            "policyName": p.policy_name,
                            "policyType": p.policy_type.value,
                            "discountRatio": str(p.discount_ratio),
                            "calculationDetails": p.calculation_details,
                        }
                        for p in item.pricing_policies
                    ],
                }
                for item in version.items
            ],
            "totalAmount": str(version.total_amount.amount),
            "totalAmountRMB": version.total_amount_rmb,
            "calculationSummary": {
                "totalItems": version.calculation_summary.total_items,
                "totalQuantity": version.calculation_summary.total_quantity,
                "appliedPolicies": list(version.calculation_summary.applied_policy_ids),
            },
            "createdBy": version.created_by,
            "createdAt": version.created_at.isoformat(),
        }

    @staticmethod
    def _to_domain(raw: dict) -> OrderVersion:
        items = tuple(
            OrderItemSnapshot(
                service_id=i["serviceId"],
                service_name=i["serviceName"],
                category_name=i["categoryName"],
                unit_price=Money(Decimal(i["unitPrice"])),
                unit=i["unit"],
                quantity=i["quantity"],
                original_price=Money(Decimal(i["originalPrice"])),
                discounted_price=Money(Decimal(i["discountedPrice"])),
                discount_amount=Money(Decimal(i["discountAmount"])),
                price_description=i["priceDescription"],
                pricing_policies=tuple(
                    PricingPolicySnapshot(
                        policy_id=p["policyId"],
                        policy_name=p["policyName"],
                        policy_type=PolicyType(p["policyType"]),
                        discount_ratio=Decimal(p["discountRatio"]),
                        calculation_details=p["calculationDetails"],
                    )
                    for p in i["pricingPolicies"]
                ),
            )
            for i in raw["items"]
        )
        summary = raw["calculationSummary"]
        return OrderVersion(
            order_id=raw["orderId"],
            version_number=raw["versionNumber"],
            iteration_time=datetime.fromisoformat(raw["iterationTime"]),
            client=ClientInfo(
                client_id=raw["clientId"],
                client_name=raw["clientName"],
                contact_ids=tuple(raw["contactIds"]),
                contact_names=tuple(raw["contactNames"]),
                contact_phones=tuple(raw["contactPhones"]),
            ),
            project=ProjectInfo(
                project_name=raw["projectName"],
                quotation_id=raw.get("quotationId"),
            ),
            items=items,
            total_amount=Money(Decimal(raw["totalAmount"])),
            total_amount_rmb=raw["totalAmountRMB"],
            calculation_summary=CalculationSummary(
                total_items=summary["totalItems"],
                total_quantity=summary["totalQuantity"],
                applied_policy_ids=tuple(summary["appliedPolicies"]),
            ),
            created_by=raw["createdBy"],
            created_at=datetime.fromisoformat(raw["createdAt"]),
        )


def _latest_number(versions: list[dict], order_id: int) -> int:
    return max(
        (raw["versionNumber"] for raw in versions if raw["orderId"] == order_id),
        default=0,
    )

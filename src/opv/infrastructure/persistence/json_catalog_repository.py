"""JSON-file-backed, read-only implementation of CatalogRepository.

``services.json`` and ``policies.json`` hold records in the catalog's
own camelCase shape; they are mapped with the same functions used for
order form payloads.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Sequence

from opv.application.catalog_input import pricing_policy_from_raw, service_detail_from_raw
from opv.domain.model.pricing_policy import PricingPolicy
from opv.domain.model.service import ServiceDetail
from opv.domain.repository.catalog_repository import CatalogRepository


class JsonCatalogRepository(CatalogRepository):

    def __init__(self, services_path: Path, policies_path: Path) -> None:
        self._services_path = services_path
        self._policies_path = policies_path

    def get_services(self, service_ids: Sequence[str]) -> list[ServiceDetail]:
        wanted = set(service_ids)
        return [
            service_detail_from_raw({"quantity": 1, **raw})
            for raw in self._load(self._services_path)
            if str(raw.get("_id") or raw.get("id")) in wanted
        ]

    def list_policies(self) -> list[PricingPolicy]:
        return [pricing_policy_from_raw(raw) for raw in self._load(self._policies_path)]

    @staticmethod
    def _load(path: Path) -> list[dict]:
        if not path.exists():
            return []
        return json.loads(path.read_text(encoding="utf-8"))

"""Read-only access to the service and pricing-policy catalog."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Sequence

from opv.domain.model.pricing_policy import PricingPolicy
from opv.domain.model.service import ServiceDetail


class CatalogRepository(ABC):

    @abstractmethod
    def get_services(self, service_ids: Sequence[str]) -> list[ServiceDetail]:
        """Catalog entries for the given IDs; unknown IDs are skipped."""

    @abstractmethod
    def list_policies(self) -> list[PricingPolicy]:
        """Every policy in the catalog, active or not."""

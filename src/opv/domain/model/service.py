"""Catalog service line as offered to a client.

A ``ServiceDetail`` is the catalog entry for a billable service together
with the quantity and policy choices made for one order.  It is read-only
input for pricing; prices are copied out of it into the version snapshot.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from opv.domain.model.value_objects import Money, Quantity

DEFAULT_UNIT = "项"


@dataclass(frozen=True)
class ServiceDetail:
    id: str
    name: str
    unit_price: Money
    quantity: Quantity = Quantity(1)
    unit: str = DEFAULT_UNIT
    category_name: str = ""
    price_description: str = ""
    selected_policy_ids: tuple[str, ...] = field(default_factory=tuple)

"""Tests for the current-order view."""

import pytest

from opv.application.dto import SnapshotInput
from opv.application.order_aggregate import OrderAggregate
from opv.application.version_store import VersionStore
from opv.domain.exceptions import EntityNotFoundError
from opv.domain.model.order import Order
from opv.domain.model.order_version import ClientInfo, ProjectInfo
from opv.domain.model.service import ServiceDetail
from opv.domain.model.value_objects import Money, Quantity
from opv.domain.service.rmb_converter import convert_to_rmb
from tests.fakes import FakeOrderRepository, FakeOrderVersionRepository


def _setup() -> tuple[OrderAggregate, FakeOrderRepository, VersionStore, Order]:
    order_repo = FakeOrderRepository()
    store = VersionStore(FakeOrderVersionRepository())
    order = Order.create(ClientInfo("C1", "Acme"), ProjectInfo("Website"), "alice")
    order_repo.save(order)
    return OrderAggregate(order_repo, store), order_repo, store, order


def _input(price: str, qty: int) -> SnapshotInput:
    return SnapshotInput(
        client=ClientInfo("C1", "Acme"),
        project=ProjectInfo("Website"),
        selected_service_ids=("S1",),
        service_details=(
            ServiceDetail(id="S1", name="Design", unit_price=Money.of(price),
                          quantity=Quantity(qty)),
        ),
    )


class TestCurrentView:

    def test_unpriced_order_has_no_current_fields(self):
        aggregate, _, _, order = _setup()
        view = aggregate.get_current_view(order.id)
        assert view.order_no == order.order_no
        assert view.current_version is None
        assert view.current_amount is None
        assert view.latest_version is None
        assert not view.is_priced

    def test_view_reflects_latest_version(self):
        aggregate, _, store, order = _setup()
        store.create_version(order.id, _input("100", 1), "alice")
        store.create_version(order.id, _input("150", 2), "alice")

        view = aggregate.get_current_view(order.id)
        assert view.current_version == 2
        assert view.current_amount == Money.of("300")
        assert view.current_amount_rmb == convert_to_rmb(view.current_amount.amount)
        assert view.latest_version_info.total_items == 1
        assert view.latest_version.version_number == 2
        assert view.is_priced

    def test_view_follows_new_versions(self):
        aggregate, _, store, order = _setup()
        store.create_version(order.id, _input("100", 1), "alice")
        assert aggregate.get_current_view(order.id).current_amount == Money.of("100")
        store.create_version(order.id, _input("80", 1), "alice")
        assert aggregate.get_current_view(order.id).current_amount == Money.of("80")

    def test_identity_fields_come_from_order(self):
        aggregate, order_repo, _, order = _setup()
        order.remark = "rush job"
        order_repo.save(order)
        view = aggregate.get_current_view(order.id)
        assert view.remark == "rush job"
        assert view.status == "normal"
        assert view.client.client_name == "Acme"

    def test_missing_order(self):
        aggregate, _, _, _ = _setup()
        with pytest.raises(EntityNotFoundError, match="Order #42 not found"):
            aggregate.get_current_view(42)

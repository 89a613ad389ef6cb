"""Integration tests for the UpdateOrder use case."""

import pytest

from opv.application.create_order import CreateOrderHandler
from opv.application.dto import SnapshotInput
from opv.application.update_order import UpdateOrderHandler
from opv.application.version_store import VersionStore
from opv.domain.exceptions import EntityNotFoundError, ValidationError
from opv.domain.model.order_version import ClientInfo, ProjectInfo
from opv.domain.model.service import ServiceDetail
from opv.domain.model.value_objects import Money, Quantity
from tests.fakes import FakeOrderRepository, FakeOrderVersionRepository

SERVICES = (
    ServiceDetail(id="S1", name="Design", unit_price=Money.of("3000")),
    ServiceDetail(id="S2", name="Photo", unit_price=Money.of("200"), quantity=Quantity(5)),
)


def _pricing(*selected: str) -> SnapshotInput:
    return SnapshotInput(
        client=ClientInfo("C-other", "Ignored Inc"),
        project=ProjectInfo("Ignored"),
        selected_service_ids=selected,
        service_details=SERVICES,
    )


def _setup():
    order_repo = FakeOrderRepository()
    store = VersionStore(FakeOrderVersionRepository())
    created = CreateOrderHandler(order_repo, store).handle(
        SnapshotInput(
            client=ClientInfo("C1", "Acme"),
            project=ProjectInfo("Website"),
            selected_service_ids=("S1",),
            service_details=SERVICES,
        ),
        created_by="alice",
    )
    return UpdateOrderHandler(order_repo, store), order_repo, store, created.id


class TestUpdateDetails:

    def test_details_only_update_keeps_version(self):
        handler, order_repo, store, order_id = _setup()
        view = handler.handle(order_id, updated_by="bob", remark="call first",
                              address="Shanghai")
        assert view.current_version == 1
        assert view.remark == "call first"
        assert order_repo.get_by_id(order_id).updated_by == "bob"
        assert len(store.get_order_versions(order_id)) == 1

    def test_missing_order(self):
        handler, _, _, _ = _setup()
        with pytest.raises(EntityNotFoundError):
            handler.handle(99, updated_by="bob", remark="x")


class TestRepricing:

    def test_new_selection_creates_next_version(self):
        handler, _, store, order_id = _setup()
        view = handler.handle(order_id, updated_by="bob", pricing=_pricing("S1", "S2"))
        assert view.current_version == 2
        assert view.current_amount == Money.of("4000")
        assert store.get_order_version(order_id, 1).total_amount == Money.of("3000")

    def test_version_takes_client_and_project_from_order(self):
        handler, _, store, order_id = _setup()
        handler.handle(
            order_id,
            updated_by="bob",
            project=ProjectInfo("Website v2"),
            pricing=_pricing("S2"),
        )
        version = store.get_latest_order_version(order_id)
        assert version.client.client_name == "Acme"
        assert version.project.project_name == "Website v2"
        assert version.created_by == "bob"

    def test_failed_repricing_restores_previous_details(self):
        handler, order_repo, store, order_id = _setup()
        with pytest.raises(ValidationError, match="S404"):
            handler.handle(
                order_id,
                updated_by="bob",
                project=ProjectInfo("Renamed"),
                pricing=_pricing("S404"),
            )
        order = order_repo.get_by_id(order_id)
        assert order.project.project_name == "Website"
        assert order.updated_by == "alice"
        assert [v.version_number for v in store.get_order_versions(order_id)] == [1]

"""Tests for status changes, deletion and listing of orders."""

import pytest

from opv.application.change_order_status import ChangeOrderStatusHandler
from opv.application.create_order import CreateOrderHandler
from opv.application.delete_order import DeleteOrderHandler
from opv.application.dto import SnapshotInput
from opv.application.list_orders import ListOrdersHandler
from opv.application.version_store import VersionStore
from opv.domain.exceptions import EntityNotFoundError, ValidationError
from opv.domain.model.order import OrderStatus
from opv.domain.model.order_version import ClientInfo, ProjectInfo
from opv.domain.model.service import ServiceDetail
from opv.domain.model.value_objects import Money
from tests.fakes import FakeOrderRepository, FakeOrderVersionRepository


def _input(client_id: str, client_name: str, project: str) -> SnapshotInput:
    return SnapshotInput(
        client=ClientInfo(client_id, client_name),
        project=ProjectInfo(project),
        selected_service_ids=("S1",),
        service_details=(
            ServiceDetail(id="S1", name="Design", unit_price=Money.of("1000")),
        ),
    )


@pytest.fixture
def env():
    order_repo = FakeOrderRepository()
    store = VersionStore(FakeOrderVersionRepository())
    create = CreateOrderHandler(order_repo, store)
    ids = [
        create.handle(_input("C1", "Acme", "Website"), "alice").id,
        create.handle(_input("C2", "Globex", "Brochure"), "alice").id,
        create.handle(_input("C1", "Acme", "Photo shoot"), "bob",
                      status=OrderStatus.DRAFT).id,
    ]
    return order_repo, store, ids


class TestChangeStatus:

    def test_cancel_keeps_versions(self, env):
        order_repo, store, ids = env
        ChangeOrderStatusHandler(order_repo).handle(ids[0], "cancelled", "carol")
        order = order_repo.get_by_id(ids[0])
        assert order.status == OrderStatus.CANCELLED
        assert order.updated_by == "carol"
        assert len(store.get_order_versions(ids[0])) == 1

    def test_unknown_status(self, env):
        order_repo, _, ids = env
        with pytest.raises(ValidationError, match="Unknown order status 'shipped'"):
            ChangeOrderStatusHandler(order_repo).handle(ids[0], "shipped", "carol")

    def test_same_status_rejected(self, env):
        order_repo, _, ids = env
        with pytest.raises(ValidationError, match="already normal"):
            ChangeOrderStatusHandler(order_repo).handle(ids[0], "normal", "carol")

    def test_missing_order(self, env):
        order_repo, _, _ = env
        with pytest.raises(EntityNotFoundError):
            ChangeOrderStatusHandler(order_repo).handle(99, "draft", "carol")


class TestDelete:

    def test_removes_order_and_history(self, env):
        order_repo, store, ids = env
        DeleteOrderHandler(order_repo, store).handle(ids[1])
        assert order_repo.get_by_id(ids[1]) is None
        assert store.get_order_versions(ids[1]) == []
        assert len(store.get_order_versions(ids[0])) == 1

    def test_missing_order(self, env):
        order_repo, store, _ = env
        with pytest.raises(EntityNotFoundError):
            DeleteOrderHandler(order_repo, store).handle(99)


class TestList:

    def test_lists_all_with_current_amounts(self, env):
        order_repo, store, _ = env
        page = ListOrdersHandler(order_repo, store).handle()
        assert page.total == 3
        assert all(v.current_amount == Money.of("1000") for v in page.orders)
        assert all(v.current_version == 1 for v in page.orders)

    def test_search_is_case_insensitive(self, env):
        order_repo, store, _ = env
        page = ListOrdersHandler(order_repo, store).handle(search="GLOBEX")
        assert [v.client.client_name for v in page.orders] == ["Globex"]

    def test_search_matches_project_and_order_no(self, env):
        order_repo, store, ids = env
        handler = ListOrdersHandler(order_repo, store)
        assert handler.handle(search="photo").total == 1
        order_no = order_repo.get_by_id(ids[1]).order_no
        assert [v.id for v in handler.handle(search=order_no).orders] == [ids[1]]

    def test_filters(self, env):
        order_repo, store, ids = env
        handler = ListOrdersHandler(order_repo, store)
        assert [v.id for v in handler.handle(status="draft").orders] == [ids[2]]
        assert handler.handle(client_id="C1").total == 2

    def test_pagination(self, env):
        order_repo, store, _ = env
        handler = ListOrdersHandler(order_repo, store)
        first = handler.handle(page=1, limit=2)
        second = handler.handle(page=2, limit=2)
        assert len(first.orders) == 2
        assert len(second.orders) == 1
        assert first.total == second.total == 3

    def test_invalid_page(self, env):
        order_repo, store, _ = env
        with pytest.raises(ValidationError, match="positive"):
            ListOrdersHandler(order_repo, store).handle(page=0)

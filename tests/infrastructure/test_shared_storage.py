"""Tests for JSON storage shared by independent writers, and for versions
outliving edits to the catalog they were priced from."""

import json
import shutil
import threading
from pathlib import Path

from opv.application.catalog_input import snapshot_input_from_catalog
from opv.application.dto import ServiceSelection, SnapshotInput
from opv.application.version_store import VersionStore
from opv.domain.model.order import Order
from opv.domain.model.order_version import ClientInfo, ProjectInfo
from opv.domain.model.service import ServiceDetail
from opv.domain.model.value_objects import Money
from opv.infrastructure.persistence.json_catalog_repository import JsonCatalogRepository
from opv.infrastructure.persistence.json_order_repository import JsonOrderRepository
from opv.infrastructure.persistence.json_order_version_repository import (
    JsonOrderVersionRepository,
)

CATALOG_DIR = Path(__file__).resolve().parents[2] / "data"

WRITERS = 4
WRITES_EACH = 10


def _input() -> SnapshotInput:
    return SnapshotInput(
        client=ClientInfo("C1", "Acme"),
        project=ProjectInfo("Website"),
        selected_service_ids=("S1",),
        service_details=(
            ServiceDetail(id="S1", name="Design", unit_price=Money.of("100")),
        ),
    )


def _run_together(target) -> list[Exception]:
    errors: list[Exception] = []

    def guarded() -> None:
        try:
            target()
        except Exception as exc:
            errors.append(exc)

    threads = [threading.Thread(target=guarded) for _ in range(WRITERS)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()
    return errors


class TestIndependentVersionWriters:

    def test_each_writer_with_its_own_store_gets_distinct_numbers(self, tmp_path):
        path = tmp_path / "versions.json"
        numbers: list[int] = []

        def write() -> None:
            store = VersionStore(JsonOrderVersionRepository(path))
            for _ in range(WRITES_EACH):
                numbers.append(store.create_version(1, _input(), "alice").version_number)

        errors = _run_together(write)

        total = WRITERS * WRITES_EACH
        assert errors == []
        assert sorted(numbers) == list(range(1, total + 1))
        stored = JsonOrderVersionRepository(path).list_for_order(1)
        assert [v.version_number for v in stored] == list(range(total, 0, -1))

    def test_readers_never_see_a_partial_file(self, tmp_path):
        path = tmp_path / "versions.json"
        done = threading.Event()
        read_errors: list[Exception] = []

        def read() -> None:
            repo = JsonOrderVersionRepository(path)
            while not done.is_set():
                try:
                    repo.latest_version_number(1)
                except Exception as exc:
                    read_errors.append(exc)

        reader = threading.Thread(target=read)
        reader.start()

        def write() -> None:
            store = VersionStore(JsonOrderVersionRepository(path))
            for _ in range(WRITES_EACH):
                store.create_version(1, _input(), "alice")

        errors = _run_together(write)
        done.set()
        reader.join()

        assert errors == []
        assert read_errors == []
        assert list(tmp_path.glob("*.tmp")) == []

    def test_delete_does_not_lose_other_orders_versions(self, tmp_path):
        path = tmp_path / "versions.json"
        store = VersionStore(JsonOrderVersionRepository(path))
        store.create_version(1, _input(), "alice")

        def write_other_order() -> None:
            other = VersionStore(JsonOrderVersionRepository(path))
            for _ in range(WRITES_EACH):
                other.create_version(2, _input(), "bob")

        writer = threading.Thread(target=write_other_order)
        writer.start()
        store.delete_order_versions(1)
        writer.join()

        repo = JsonOrderVersionRepository(path)
        assert repo.list_for_order(1) == []
        assert repo.latest_version_number(2) == WRITES_EACH


class TestIndependentOrderWriters:

    def test_each_writer_gets_distinct_ids(self, tmp_path):
        path = tmp_path / "orders.json"
        ids: list[int] = []

        def write() -> None:
            repo = JsonOrderRepository(path)
            for _ in range(WRITES_EACH):
                order = Order.create(ClientInfo("C1", "Acme"), ProjectInfo("Website"), "alice")
                repo.save(order)
                ids.append(order.id)

        errors = _run_together(write)

        assert errors == []
        assert sorted(ids) == list(range(1, WRITERS * WRITES_EACH + 1))
        assert len(JsonOrderRepository(path).list_all()) == WRITERS * WRITES_EACH


class TestCatalogEditsAfterPricing:

    def _edit(self, path: Path, change) -> None:
        records = json.loads(path.read_text(encoding="utf-8"))
        path.write_text(
            json.dumps(change(records), ensure_ascii=False), encoding="utf-8"
        )

    def test_stored_version_unchanged_when_catalog_changes(self, tmp_path):
        for name in ("services.json", "policies.json"):
            shutil.copy(CATALOG_DIR / name, tmp_path / name)
        catalog = JsonCatalogRepository(tmp_path / "services.json", tmp_path / "policies.json")
        versions_path = tmp_path / "versions.json"
        store = VersionStore(JsonOrderVersionRepository(versions_path))
        selections = [ServiceSelection("svc-photo", 15), ServiceSelection("svc-design", 1)]

        first = store.create_version(
            1,
            snapshot_input_from_catalog(
                catalog, ClientInfo("C1", "Acme"), ProjectInfo("Website"), selections
            ),
            "alice",
        )
        stored_bytes = versions_path.read_bytes()
        assert first.total_amount == Money.of("5600")

        def reprice_photos(services):
            for record in services:
                if record["_id"] == "svc-photo":
                    record["unitPrice"] = "999"
            return [r for r in services if r["_id"] != "svc-design"]

        def halve_everything(policies):
            for record in policies:
                record["discountRatio"] = 50
                for tier in record.get("tierSettings", []):
                    tier["discountRatio"] = 50
            return [r for r in policies if r["_id"] != "pol-content-90"]

        self._edit(tmp_path / "services.json", reprice_photos)
        self._edit(tmp_path / "policies.json", halve_everything)

        again = JsonOrderVersionRepository(versions_path).get(1, 1)
        assert again == first
        assert store.get_order_version(1, 1) == first
        assert versions_path.read_bytes() == stored_bytes

        second = store.create_version(
            1,
            snapshot_input_from_catalog(
                catalog, ClientInfo("C1", "Acme"), ProjectInfo("Website"),
                [ServiceSelection("svc-photo", 15)],
            ),
            "alice",
        )
        assert second.total_amount == Money.of("7492.5")
        assert store.get_order_version(1, 1) == first
        photo = first.items[0]
        assert photo.unit_price == Money.of("200")
        assert photo.pricing_policies[0].calculation_details == (
            again.items[0].pricing_policies[0].calculation_details
        )

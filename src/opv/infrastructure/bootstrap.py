"""Composition root: wires concrete implementations to domain interfaces.

This is the only place in the codebase that knows about *all* layers.
Every other module depends only on abstractions and receives its
collaborators through its constructor.
"""

from __future__ import annotations

import os
from pathlib import Path

from opv.application.version_store import VersionStore
from opv.infrastructure.persistence.json_catalog_repository import (
    JsonCatalogRepository,
)
from opv.infrastructure.persistence.json_order_repository import (
    JsonOrderRepository,
)
from opv.infrastructure.persistence.json_order_version_repository import (
    JsonOrderVersionRepository,
)

DATA_DIR_ENV = "OPV_DATA_DIR"

# When installed in editable mode the project root is the repo root.
_DEFAULT_DATA_DIR = Path(__file__).resolve().parents[3] / "data"


def data_dir() -> Path:
    override = os.environ.get(DATA_DIR_ENV)
    return Path(override) if override else _DEFAULT_DATA_DIR


def order_repository() -> JsonOrderRepository:
    return JsonOrderRepository(data_dir() / "orders.json")


def order_version_repository() -> JsonOrderVersionRepository:
    return JsonOrderVersionRepository(data_dir() / "order_versions.json")


def catalog_repository() -> JsonCatalogRepository:
    return JsonCatalogRepository(
        data_dir() / "services.json",
        data_dir() / "policies.json",
    )


def version_store() -> VersionStore:
    return VersionStore(order_version_repository())

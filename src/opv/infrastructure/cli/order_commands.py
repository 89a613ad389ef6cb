"""CLI commands for the Order aggregate."""

from __future__ import annotations

import json
from pathlib import Path

import click

from opv.application.catalog_input import (
    snapshot_input_from_catalog,
    snapshot_input_from_raw,
)
from opv.application.change_order_status import ChangeOrderStatusHandler
from opv.application.create_order import CreateOrderHandler
from opv.application.delete_order import DeleteOrderHandler
from opv.application.dto import ServiceSelection, SnapshotInput
from opv.application.list_orders import ListOrdersHandler
from opv.application.order_aggregate import OrderAggregate
from opv.application.update_order import UpdateOrderHandler
from opv.domain.exceptions import DomainException
from opv.domain.model.order import OrderStatus
from opv.domain.model.order_version import ClientInfo, ProjectInfo
from opv.infrastructure.bootstrap import (
    catalog_repository,
    order_repository,
    version_store,
)
from opv.infrastructure.cli.display import display_order_view


def _parse_items(raw: str) -> list[tuple[str, int]]:
    """Parse 'S1:3,S2:5' into (service_id, quantity) pairs."""
    pairs: list[tuple[str, int]] = []
    for pair in raw.split(","):
        pair = pair.strip()
        if ":" not in pair:
            raise click.BadParameter(
                f"Invalid item format '{pair}'. Expected 'ServiceId:Quantity'."
            )
        service_id, qty_str = pair.rsplit(":", 1)
        try:
            qty = int(qty_str)
        except ValueError:
            raise click.BadParameter(
                f"Invalid quantity '{qty_str}' for service '{service_id}'."
            )
        pairs.append((service_id.strip(), qty))
    return pairs


def _parse_policies(raw: tuple[str, ...]) -> dict[str, str]:
    """Parse repeated 'S1=P1' options into {service_id: policy_id}."""
    choices: dict[str, str] = {}
    for choice in raw:
        if "=" not in choice:
            raise click.BadParameter(
                f"Invalid policy choice '{choice}'. Expected 'ServiceId=PolicyId'."
            )
        service_id, policy_id = choice.split("=", 1)
        choices[service_id.strip()] = policy_id.strip()
    return choices


def _selections(items: str, policies: tuple[str, ...]) -> list[ServiceSelection]:
    choices = _parse_policies(policies)
    return [
        ServiceSelection(service_id=sid, quantity=qty, policy_id=choices.get(sid))
        for sid, qty in _parse_items(items)
    ]


def _load_payload(path: Path) -> SnapshotInput:
    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise click.BadParameter(f"{path} is not valid JSON: {exc}")
    return snapshot_input_from_raw(raw)


_INPUT_OPTION = click.option(
    "--input", "input_path", type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None, help="Order form payload (JSON) with services and policies.",
)
_ITEMS_OPTION = click.option(
    "--items", default=None, help="Catalog services as 'ServiceId:Qty,ServiceId:Qty'."
)
_POLICY_OPTION = click.option(
    "--policy", "policies", multiple=True, help="Policy choice as 'ServiceId=PolicyId'."
)


@click.command("create")
@click.option("--client-id", default=None, help="Client ID.")
@click.option("--client-name", default=None, help="Client name.")
@click.option("--project", default=None, help="Project name.")
@_ITEMS_OPTION
@_POLICY_OPTION
@_INPUT_OPTION
@click.option("--draft", is_flag=True, default=False, help="Create in draft status.")
@click.option("--by", "created_by", required=True, help="User creating the order.")
def order_create(
    client_id: str | None,
    client_name: str | None,
    project: str | None,
    items: str | None,
    policies: tuple[str, ...],
    input_path: Path | None,
    draft: bool,
    created_by: str,
) -> None:
    """Create an order and price its first version."""
    store = version_store()
    handler = CreateOrderHandler(order_repo=order_repository(), version_store=store)

    try:
        if input_path is not None:
            snapshot_input = _load_payload(input_path)
        elif items:
            snapshot_input = snapshot_input_from_catalog(
                catalog_repository(),
                ClientInfo(client_id=client_id or "", client_name=client_name or ""),
                ProjectInfo(project_name=project or ""),
                _selections(items, policies),
            )
        else:
            raise click.UsageError("Give either --input or --items.")

        view = handler.handle(
            snapshot_input,
            created_by=created_by,
            status=OrderStatus.DRAFT if draft else OrderStatus.NORMAL,
        )
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo(f"Order #{view.id} created as {view.order_no}")
    click.echo()
    display_order_view(view)


@click.command("update")
@click.option("--id", "order_id", required=True, type=int, help="Order ID to update.")
@click.option("--project", default=None, help="New project name.")
@click.option("--remark", default=None, help="Free-text remark.")
@click.option("--payment-method", default=None, help="Payment method.")
@click.option("--address", default=None, help="Delivery address.")
@_ITEMS_OPTION
@_POLICY_OPTION
@_INPUT_OPTION
@click.option("--by", "updated_by", required=True, help="User updating the order.")
def order_update(
    order_id: int,
    project: str | None,
    remark: str | None,
    payment_method: str | None,
    address: str | None,
    items: str | None,
    policies: tuple[str, ...],
    input_path: Path | None,
    updated_by: str,
) -> None:
    """Update an order; re-price it into a new version when services are given."""
    store = version_store()
    orders = order_repository()
    handler = UpdateOrderHandler(order_repo=orders, version_store=store)

    try:
        pricing = None
        if input_path is not None:
            pricing = _load_payload(input_path)
        elif items:
            current = OrderAggregate(orders, store).get_current_view(order_id)
            pricing = snapshot_input_from_catalog(
                catalog_repository(), current.client, current.project,
                _selections(items, policies),
            )

        view = handler.handle(
            order_id,
            updated_by=updated_by,
            project=ProjectInfo(project_name=project) if project else None,
            payment_method=payment_method,
            address=address,
            remark=remark,
            pricing=pricing,
        )
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo(f"Order #{order_id} updated.")
    click.echo()
    display_order_view(view)


@click.command("show")
@click.option("--id", "order_id", required=True, type=int, help="Order ID to display.")
def order_show(order_id: int) -> None:
    """Show an order with its current price."""
    aggregate = OrderAggregate(order_repository(), version_store())

    try:
        view = aggregate.get_current_view(order_id)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    display_order_view(view)


@click.command("list")
@click.option("--search", default="", help="Match order number, client or project.")
@click.option(
    "--status", default="",
    type=click.Choice(["", *(s.value for s in OrderStatus)]), help="Filter by status.",
)
@click.option("--client-id", default="", help="Filter by client ID.")
@click.option("--page", default=1, type=int, show_default=True)
@click.option("--limit", default=10, type=int, show_default=True)
def order_list(search: str, status: str, client_id: str, page: int, limit: int) -> None:
    """List orders with their current amounts."""
    handler = ListOrdersHandler(order_repository(), version_store())

    try:
        result = handler.handle(
            page=page, limit=limit, search=search, status=status, client_id=client_id
        )
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo(
        f"  {'ID':>4} {'Order No':<22} {'Client':<16} {'Status':<10} {'Ver':>4} {'Amount':>14}"
    )
    click.echo(f"  {'-' * 75}")
    for view in result.orders:
        amount = str(view.current_amount) if view.current_amount is not None else "-"
        version = f"v{view.current_version}" if view.current_version else "-"
        click.echo(
            f"  {view.id:>4} {view.order_no:<22} {view.client.client_name:<16} "
            f"{view.status:<10} {version:>4} {amount:>14}"
        )
    click.echo(f"  {'-' * 75}")
    click.echo(f"  page {result.page}, {len(result.orders)} of {result.total} orders")


@click.command("status")
@click.option("--id", "order_id", required=True, type=int, help="Order ID.")
@click.option(
    "--set", "status", required=True,
    type=click.Choice([s.value for s in OrderStatus]), help="New status.",
)
@click.option("--by", "updated_by", required=True, help="User changing the status.")
def order_status(order_id: int, status: str, updated_by: str) -> None:
    """Change an order's status."""
    handler = ChangeOrderStatusHandler(order_repository())

    try:
        handler.handle(order_id, status, updated_by)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo(f"Order #{order_id} is now {status}.")


@click.command("delete")
@click.option("--id", "order_id", required=True, type=int, help="Order ID to delete.")
@click.confirmation_option(prompt="Delete the order and its whole version history?")
def order_delete(order_id: int) -> None:
    """Delete an order together with all of its versions."""
    handler = DeleteOrderHandler(order_repository(), version_store())

    try:
        handler.handle(order_id)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo(f"Order #{order_id} and its versions deleted.")

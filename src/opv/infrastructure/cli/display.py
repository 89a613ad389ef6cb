"""Shared console formatting for orders and versions."""

from __future__ import annotations

import click

from opv.application.dto import OrderView
from opv.domain.model.order_version import OrderVersion

_WIDTH = 78


def display_order_view(view: OrderView) -> None:
    click.echo(f"Order #{view.id}  {view.order_no}  (status={view.status})")
    click.echo(f"Client:   {view.client.client_name} [{view.client.client_id}]")
    click.echo(f"Project:  {view.project.project_name}")
    click.echo(f"Created:  {view.created_at:%Y-%m-%d %H:%M} UTC by {view.created_by}")
    if view.latest_version is None:
        click.echo()
        click.echo("  (not priced yet)")
        return
    click.echo(f"Version:  v{view.current_version}")
    click.echo()
    display_items(view.latest_version)


def display_version(version: OrderVersion) -> None:
    click.echo(f"Order #{version.order_id}  version {version.version_number}")
    click.echo(f"Client:   {version.client.client_name} [{version.client.client_id}]")
    click.echo(f"Project:  {version.project.project_name}")
    click.echo(
        f"Created:  {version.created_at:%Y-%m-%d %H:%M} UTC by {version.created_by}"
    )
    click.echo()
    display_items(version, details=True)


def display_items(version: OrderVersion, details: bool = False) -> None:
    click.echo(
        f"  {'Service':<24} {'Qty':>5} {'Unit Price':>12} {'Original':>12} {'Subtotal':>12}"
    )
    click.echo(f"  {'-' * (_WIDTH - 10)}")
    for item in version.items:
        click.echo(
            f"  {item.service_name:<24} {item.quantity:>5} {str(item.unit_price):>12} "
            f"{str(item.original_price):>12} {str(item.subtotal):>12}"
        )
        if details:
            for policy in item.pricing_policies:
                click.echo(f"    [{policy.policy_name}]")
                for line in policy.calculation_details.splitlines():
                    click.echo(f"      {line}")
    click.echo(f"  {'-' * (_WIDTH - 10)}")
    click.echo(f"  {'Total':<43} {str(version.total_amount):>24}")
    click.echo(f"  {version.total_amount_rmb}")

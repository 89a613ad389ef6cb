"""CLI commands for order version history."""

from __future__ import annotations

import click

from opv.domain.exceptions import DomainException
from opv.infrastructure.bootstrap import version_store
from opv.infrastructure.cli.display import display_version


@click.command("list")
@click.option("--id", "order_id", required=True, type=int, help="Order ID.")
def version_list(order_id: int) -> None:
    """List every version of an order, newest first."""
    history = version_store().get_version_history(order_id)
    if not history:
        raise click.ClickException(f"Order #{order_id} has no versions")

    click.echo(f"  {'Ver':>4} {'Created':<17} {'By':<12} {'Items':>5} {'Total':>16}")
    click.echo(f"  {'-' * 58}")
    for row in history:
        click.echo(
            f"  {row.version_number:>4} {row.created_at:%Y-%m-%d %H:%M} "
            f"{row.created_by:<12} {row.total_items:>5} {str(row.total_amount):>16}"
        )


@click.command("show")
@click.option("--id", "order_id", required=True, type=int, help="Order ID.")
@click.option(
    "--version", "version_number", type=int, default=None,
    help="Version number (default: latest).",
)
def version_show(order_id: int, version_number: int | None) -> None:
    """Show one frozen version with its pricing details."""
    store = version_store()

    try:
        if version_number is None:
            version = store.get_latest_order_version(order_id)
        else:
            version = store.get_order_version(order_id, version_number)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    display_version(version)

import logging

import click

from opv.infrastructure.cli.order_commands import (
    order_create,
    order_delete,
    order_list,
    order_show,
    order_status,
    order_update,
)
from opv.infrastructure.cli.pricing_commands import price_quote, rmb
from opv.infrastructure.cli.version_commands import version_list, version_show


@click.group()
@click.option("-v", "--verbose", is_flag=True, default=False, help="Log debug output.")
def cli(verbose: bool) -> None:
    """OPV: order pricing and version history."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )


@cli.group()
def order() -> None:
    """Manage orders."""


@cli.group()
def version() -> None:
    """Browse order version history."""


@cli.group()
def price() -> None:
    """Price calculations against the catalog."""


# Register subcommands
order.add_command(order_create)
order.add_command(order_delete)
order.add_command(order_list)
order.add_command(order_show)
order.add_command(order_status)
order.add_command(order_update)
version.add_command(version_list)
version.add_command(version_show)
price.add_command(price_quote)
cli.add_command(rmb)

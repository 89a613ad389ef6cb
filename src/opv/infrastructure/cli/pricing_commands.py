"""CLI commands for one-off price calculations."""

from __future__ import annotations

import click

from opv.domain.exceptions import DomainException
from opv.domain.service.pricing_policy_resolver import resolve_price
from opv.domain.service.rmb_converter import convert_to_rmb
from opv.infrastructure.bootstrap import catalog_repository


@click.command("rmb")
@click.argument("amount", type=click.UNPROCESSED)
@click.option("--prefix", is_flag=True, default=False, help="Prefix with 人民币.")
def rmb(amount: str, prefix: bool) -> None:
    """Spell AMOUNT in capitalised Chinese numerals.

    Put ``--`` before a negative AMOUNT, e.g. ``opv rmb -- -50.5``.
    """
    try:
        click.echo(convert_to_rmb(amount, show_prefix=prefix))
    except DomainException as exc:
        raise click.ClickException(str(exc))


@click.command("quote")
@click.option("--unit-price", required=True, help="Price of one unit.")
@click.option("--quantity", required=True, type=int, help="Number of units.")
@click.option("--policy", "policy_id", default=None, help="Catalog policy ID to apply.")
@click.option("--unit", default="件", show_default=True, help="Unit label.")
def price_quote(
    unit_price: str, quantity: int, policy_id: str | None, unit: str
) -> None:
    """Price one line item, optionally under a catalog policy."""
    try:
        policy = None
        if policy_id is not None:
            policy = next(
                (p for p in catalog_repository().list_policies() if p.id == policy_id),
                None,
            )
            if policy is None:
                raise click.ClickException(f"Policy '{policy_id}' not in catalog")
        result = resolve_price(unit_price, quantity, policy, unit)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo(f"Original:   {result.original_price}")
    click.echo(f"Discounted: {result.discounted_price}")
    click.echo(f"Discount:   {result.discount_amount}")
    click.echo(f"Ratio:      {result.discount_ratio}%")
    click.echo()
    click.echo(result.calculation_details)
    click.echo()
    click.echo(convert_to_rmb(result.discounted_price.amount, show_prefix=True))

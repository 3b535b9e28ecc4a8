"""CLI commands for part inventory records."""

from __future__ import annotations

import click

from sims.application.add_part import AddPartHandler
from sims.application.dto import PartSpec
from sims.application.show_inventory import ShowInventoryHandler
from sims.application.show_part_history import ShowPartHistoryHandler
from sims.domain.exceptions import DomainException
from sims.infrastructure.bootstrap import (
    audit_log,
    inventory_history,
    part_repository,
    transaction_repository,
)
from sims.infrastructure.cli.actor import current_actor


@click.command("add")
@click.option("--number", "part_number", required=True, help="Part number.")
@click.option("--name", required=True, help="Part name.")
@click.option("--location", required=True, help="Storage location.")
@click.option("--department", default=None, help="Owning department (defaults to operator's).")
@click.option("--quantity", default=0, type=int, help="Opening stock.")
@click.option("--unit-price", default="0", help="Unit price.")
@click.option("--min-stock", default=0, type=int, help="Low-stock threshold.")
@click.option("--non-stock", is_flag=True, default=False, help="Not tracked by transactions.")
@click.option("--supplier", default=None, help="Who supplies the part.")
def part_add(
    part_number: str,
    name: str,
    location: str,
    department: str | None,
    quantity: int,
    unit_price: str,
    min_stock: int,
    non_stock: bool,
    supplier: str | None,
) -> None:
    """Register a part record (opening stock goes through a receipt)."""
    actor = current_actor()
    handler = AddPartHandler(
        part_repo=part_repository(),
        transaction_repo=transaction_repository(),
        audit_log=audit_log(),
        history=inventory_history(),
    )

    try:
        result = handler.handle(
            PartSpec(
                part_number=part_number,
                name=name,
                department=department or actor.department,
                location=location,
                quantity=quantity,
                unit_price=unit_price,
                min_stock_level=min_stock,
                is_stock_item=not non_stock,
                supplier=supplier,
            ),
            actor,
        )
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo(f"{result.message}  (id={result.part.id}, quantity={result.part.quantity})")


@click.command("list")
@click.option("--department", default=None, help="Only this department.")
def part_list(department: str | None) -> None:
    """Show current inventory levels."""
    handler = ShowInventoryHandler(part_repo=part_repository())
    try:
        parts = handler.handle(department=department)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    if not parts:
        click.echo("No parts found.")
        return

    click.echo(
        f"{'ID':<14} {'Part No.':<14} {'Name':<20} {'Location':<12} "
        f"{'Qty':>6} {'Status':<13} {'Value':>10}"
    )
    click.echo("-" * 95)
    for p in parts:
        click.echo(
            f"{p.id:<14} {p.part_number:<14} {p.name:<20} {p.location:<12} "
            f"{p.quantity:>6} {p.stock_status:<13} {p.total_value:>10}"
        )


@click.command("history")
@click.option("--id", "part_id", required=True, help="Part record ID.")
def part_history(part_id: str) -> None:
    """Show every stock change of a part record, newest first."""
    handler = ShowPartHistoryHandler(
        part_repo=part_repository(), history_repo=inventory_history()
    )
    try:
        movements = handler.handle(part_id)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    if not movements:
        click.echo("No stock changes recorded.")
        return

    click.echo(
        f"{'When':<20} {'Number':<12} {'Type':<13} {'Change':>7} {'Before':>7} "
        f"{'After':>7}  By"
    )
    click.echo("-" * 85)
    for m in movements:
        click.echo(
            f"{m.performed_at:<20} {m.transaction_number:<12} {m.transaction_type:<13} "
            f"{m.quantity_change:>+7} {m.previous_quantity:>7} {m.new_quantity:>7}  "
            f"{m.performed_by_name}"
        )

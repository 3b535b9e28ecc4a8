"""CLI commands for the StockTransaction aggregate."""

from __future__ import annotations

import click

from sims.application.add_transaction_note import AddTransactionNoteHandler
from sims.application.change_transaction_status import ChangeTransactionStatusHandler
from sims.application.create_transaction import CreateTransactionHandler
from sims.application.delete_transaction import DeleteTransactionHandler
from sims.application.dto import ItemSpec, TransactionSpec
from sims.application.list_transactions import ListTransactionsHandler
from sims.application.show_transaction import ShowTransactionHandler
from sims.application.transaction_stats import TransactionStatsHandler
from sims.application.update_transaction_items import UpdateTransactionItemsHandler
from sims.domain.exceptions import DomainException
from sims.domain.model.stock_transaction import (
    AdjustmentDirection,
    Priority,
    RecipientType,
    TransactionStatus,
    TransactionType,
)
from sims.infrastructure.bootstrap import (
    audit_log,
    inventory_history,
    part_repository,
    transaction_repository,
)
from sims.infrastructure.cli.actor import current_actor


def _parse_items(raw: str) -> list[ItemSpec]:
    """Parse 'PARTID:3,PARTID:5:12.50' into ItemSpec list (unit cost optional)."""
    specs: list[ItemSpec] = []
    for chunk in raw.split(","):
        chunk = chunk.strip()
        parts = chunk.split(":")
        if len(parts) not in (2, 3) or not parts[0].strip():
            raise click.BadParameter(
                f"Invalid item format '{chunk}'. Expected 'PartId:Quantity[:UnitCost]'."
            )
        try:
            qty = int(parts[1])
        except ValueError:
            raise click.BadParameter(
                f"Invalid quantity '{parts[1]}' for part '{parts[0]}'."
            )
        unit_cost = parts[2].strip() if len(parts) == 3 else None
        specs.append(ItemSpec(part_id=parts[0].strip(), quantity=qty, unit_cost=unit_cost))
    return specs


def _choices(enum_cls) -> click.Choice:
    return click.Choice([m.value for m in enum_cls], case_sensitive=False)


def _display_transaction(dto) -> None:
    """Shared formatting for displaying a transaction."""
    click.echo(f"{dto.transaction_number}  [{dto.transaction_type}]  (status={dto.status})")
    click.echo(f"ID:          {dto.id}")
    click.echo(f"Department:  {dto.department}    Priority: {dto.priority}")
    click.echo(f"Description: {dto.description}")
    if dto.reference_number:
        click.echo(f"Reference:   {dto.reference_number}")
    if dto.adjustment_direction:
        click.echo(f"Direction:   {dto.adjustment_direction}")
    if dto.supplier:
        click.echo(f"Supplier:    {dto.supplier}")
    if dto.asset_id or dto.asset_name:
        click.echo(f"Asset:       {dto.asset_name or dto.asset_id}")
    if dto.technician or dto.recipient:
        recipient = dto.technician or dto.recipient
        if dto.recipient_type:
            recipient = f"{recipient} ({dto.recipient_type})"
        click.echo(f"Issued to:   {recipient}")
    if dto.work_order_number or dto.work_order_id:
        click.echo(f"Work order:  {dto.work_order_number or dto.work_order_id}")
    click.echo(f"Created:     {dto.created_at} by {dto.created_by_name}")
    if dto.approved_by_name:
        click.echo(f"Approved:    {dto.approved_at} by {dto.approved_by_name}")
    click.echo()

    click.echo(f"  {'Part No.':<14} {'Name':<20} {'Qty':>5} {'From':<10} {'To':<10} {'Cost':>10}")
    click.echo(f"  {'-'*74}")
    for item in dto.items:
        click.echo(
            f"  {item.part_number:<14} {item.part_name:<20} {item.quantity:>5} "
            f"{item.from_location or '-':<10} {item.to_location or '-':<10} "
            f"{item.total_cost or '-':>10}"
        )
    click.echo(f"  {'-'*74}")
    click.echo(f"  {'Total':<36} {dto.total_quantity:>5} {dto.total_amount:>33}")

    if dto.internal_notes:
        click.echo()
        click.echo("Notes:")
        click.echo(dto.internal_notes)


@click.command("create")
@click.option("--type", "transaction_type", required=True, type=_choices(TransactionType))
@click.option("--description", required=True, help="What the movement is for.")
@click.option("--items", required=True, help="Items as 'PartId:Qty[:UnitCost],...'.")
@click.option("--from", "source_location", default=None, help="Default source location.")
@click.option("--to", "destination_location", default=None, help="Default destination location.")
@click.option("--direction", default=None, type=_choices(AdjustmentDirection), help="Adjustments only.")
@click.option("--priority", default="normal", type=_choices(Priority))
@click.option("--reference", default=None, help="Reference number (PO, work order...).")
@click.option("--department", default=None, help="Defaults to the operator's department.")
@click.option("--supplier", default=None, help="Supplier (required for receipts).")
@click.option("--recipient", default=None, help="Who receives issued parts.")
@click.option("--recipient-type", default=None, type=_choices(RecipientType))
@click.option("--technician", default=None, help="Technician taking issued parts.")
@click.option("--asset-id", default=None, help="Asset the parts are issued to.")
@click.option("--asset-name", default=None, help="Asset name, if no asset ID.")
@click.option("--work-order-id", default=None)
@click.option("--work-order-number", default=None)
def txn_create(
    transaction_type: str,
    description: str,
    items: str,
    source_location: str | None,
    destination_location: str | None,
    direction: str | None,
    priority: str,
    reference: str | None,
    department: str | None,
    supplier: str | None,
    recipient: str | None,
    recipient_type: str | None,
    technician: str | None,
    asset_id: str | None,
    asset_name: str | None,
    work_order_id: str | None,
    work_order_number: str | None,
) -> None:
    """Create a draft stock transaction."""
    specs = _parse_items(items)

    handler = CreateTransactionHandler(
        transaction_repo=transaction_repository(),
        part_repo=part_repository(),
    )

    try:
        dto = handler.handle(
            TransactionSpec(
                transaction_type=transaction_type,
                description=description,
                items=specs,
                department=department,
                priority=priority,
                adjustment_direction=direction,
                reference_number=reference,
                source_location=source_location,
                destination_location=destination_location,
                supplier=supplier,
                recipient=recipient,
                recipient_type=recipient_type,
                technician=technician,
                asset_id=asset_id,
                asset_name=asset_name,
                work_order_id=work_order_id,
                work_order_number=work_order_number,
            ),
            current_actor(),
        )
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo(f"Transaction {dto.transaction_number} created  (id={dto.id}, status={dto.status})")


@click.command("items")
@click.option("--id", "transaction_id", required=True, help="Transaction ID.")
@click.option("--items", required=True, help="Replacement items as 'PartId:Qty[:UnitCost],...'.")
def txn_items(transaction_id: str, items: str) -> None:
    """Replace the items of a draft transaction."""
    handler = UpdateTransactionItemsHandler(
        transaction_repo=transaction_repository(),
        part_repo=part_repository(),
    )

    try:
        dto = handler.handle(transaction_id, _parse_items(items))
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo(f"Transaction {dto.transaction_number} now has {dto.total_items} item(s).")


@click.command("show")
@click.option("--id", "transaction_id", required=True, help="Transaction ID to display.")
def txn_show(transaction_id: str) -> None:
    """Show details of a stock transaction."""
    handler = ShowTransactionHandler(transaction_repo=transaction_repository())

    try:
        dto = handler.handle(transaction_id)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    _display_transaction(dto)


@click.command("list")
@click.option("--status", default=None, type=_choices(TransactionStatus))
@click.option("--type", "transaction_type", default=None, type=_choices(TransactionType))
@click.option("--department", default=None)
def txn_list(status: str | None, transaction_type: str | None, department: str | None) -> None:
    """List stock transactions, newest first."""
    handler = ListTransactionsHandler(transaction_repo=transaction_repository())

    try:
        rows = handler.handle(
            status=status, transaction_type=transaction_type, department=department
        )
    except DomainException as exc:
        raise click.ClickException(str(exc))

    if not rows:
        click.echo("No transactions found.")
        return

    click.echo(f"{'Number':<12} {'Type':<11} {'Status':<10} {'Items':>5} {'Qty':>6}  ID")
    click.echo("-" * 80)
    for t in rows:
        click.echo(
            f"{t.transaction_number:<12} {t.transaction_type:<11} {t.status:<10} "
            f"{t.total_items:>5} {t.total_quantity:>6}  {t.id}"
        )


@click.command("status")
@click.option("--id", "transaction_id", required=True, help="Transaction ID.")
@click.option("--to", "status", required=True, help="New status.")
@click.option("--notes", default=None, help="Reason recorded in the internal notes.")
def txn_status(transaction_id: str, status: str, notes: str | None) -> None:
    """Move a transaction through its workflow (applies or reverses inventory)."""
    handler = ChangeTransactionStatusHandler(
        transaction_repo=transaction_repository(),
        part_repo=part_repository(),
        audit_log=audit_log(),
        history=inventory_history(),
    )

    try:
        result = handler.handle(transaction_id, status, current_actor(), notes=notes)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    if result.error is not None:
        lines = [result.error.message]
        for issue in result.error.issues:
            lines.append(
                f"  {issue.part_number}: required {issue.required}, available {issue.available}"
            )
        raise click.ClickException("\n".join(lines))

    click.echo(
        f"Transaction {result.transaction.transaction_number} is now {result.transaction.status}."
    )
    update = result.inventory_update
    if update is not None:
        click.echo(f"Inventory: {update.message}")
        for failure in update.failures:
            click.echo(f"  WARNING {failure}", err=True)


@click.command("note")
@click.option("--id", "transaction_id", required=True, help="Transaction ID.")
@click.option("--text", required=True, help="Note text.")
def txn_note(transaction_id: str, text: str) -> None:
    """Append an internal note (allowed in every status)."""
    handler = AddTransactionNoteHandler(transaction_repo=transaction_repository())

    try:
        dto = handler.handle(transaction_id, text, current_actor())
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo(f"Note added to {dto.transaction_number}.")


@click.command("delete")
@click.option("--id", "transaction_id", required=True, help="Draft transaction ID.")
def txn_delete(transaction_id: str) -> None:
    """Delete a draft transaction."""
    handler = DeleteTransactionHandler(transaction_repo=transaction_repository())

    try:
        handler.handle(transaction_id)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo(f"Transaction {transaction_id} deleted.")


@click.command("stats")
@click.option("--department", default=None)
def txn_stats(department: str | None) -> None:
    """Summarise transactions by status, type and department."""
    handler = TransactionStatsHandler(transaction_repo=transaction_repository())

    try:
        stats = handler.handle(department=department)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo(
        f"Total: {stats.total}  Pending: {stats.pending}  Completed: {stats.completed}  "
        f"This month: {stats.monthly}  This year: {stats.yearly}  Value: {stats.total_value}"
    )
    for title, buckets in (
        ("By status", stats.by_status),
        ("By type", stats.by_type),
        ("By department", stats.by_department),
    ):
        click.echo()
        click.echo(title)
        for key, bucket in sorted(buckets.items()):
            click.echo(f"  {key:<14} {bucket.count:>5} {str(bucket.value):>12}")

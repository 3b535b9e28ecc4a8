import click

from sims.infrastructure.cli.part_commands import part_add, part_history, part_list
from sims.infrastructure.cli.transaction_commands import (
    txn_create,
    txn_delete,
    txn_items,
    txn_list,
    txn_note,
    txn_show,
    txn_stats,
    txn_status,
)
from sims.infrastructure.config import get_settings
from sims.infrastructure.logging_config import configure_logging


@click.group()
def cli() -> None:
    """SIMS — Spare-parts Inventory Management System"""
    configure_logging(get_settings())


@cli.group()
def part() -> None:
    """Manage part inventory records."""


@cli.group()
def txn() -> None:
    """Manage stock transactions."""


# Register subcommands
part.add_command(part_add)
part.add_command(part_history)
part.add_command(part_list)
txn.add_command(txn_create)
txn.add_command(txn_delete)
txn.add_command(txn_items)
txn.add_command(txn_list)
txn.add_command(txn_note)
txn.add_command(txn_show)
txn.add_command(txn_stats)
txn.add_command(txn_status)

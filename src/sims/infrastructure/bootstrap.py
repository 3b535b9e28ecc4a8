"""Composition root — wires concrete implementations to domain interfaces.

This is the only place in the codebase that knows about *all* layers.
Every other module depends only on abstractions.
"""

from __future__ import annotations

from sims.infrastructure.config import get_settings
from sims.infrastructure.persistence.json_audit_log import JsonLinesAuditLog
from sims.infrastructure.persistence.json_inventory_history import JsonLinesInventoryHistory
from sims.infrastructure.persistence.json_part_repository import JsonPartRepository
from sims.infrastructure.persistence.json_stock_transaction_repository import (
    JsonStockTransactionRepository,
)


def part_repository() -> JsonPartRepository:
    return JsonPartRepository(get_settings().data_dir / "parts.json")


def transaction_repository() -> JsonStockTransactionRepository:
    data_dir = get_settings().data_dir
    return JsonStockTransactionRepository(
        data_dir / "transactions.json", data_dir / "sequences.json"
    )


def audit_log() -> JsonLinesAuditLog:
    return JsonLinesAuditLog(get_settings().data_dir / "audit.jsonl")


def inventory_history() -> JsonLinesInventoryHistory:
    return JsonLinesInventoryHistory(get_settings().data_dir / "inventory_history.jsonl")

"""Application service: Create Transaction use case.

Resolves each requested part, snapshots its number and name onto the
line item, and lets the StockTransaction aggregate validate the rest.
New transactions always start as drafts; nothing touches inventory
until the transaction is approved.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from sims.application.dto import Actor, ItemSpec, TransactionDTO, TransactionSpec
from sims.application.parsing import parse_choice
from sims.domain.exceptions import EntityNotFoundError
from sims.domain.model.stock_transaction import (
    AdjustmentDirection,
    Priority,
    RecipientType,
    StockTransaction,
    StockTransactionItem,
    TransactionType,
)
from sims.domain.model.value_objects import Money, Quantity
from sims.domain.repository.part_repository import PartRepository
from sims.domain.repository.stock_transaction_repository import StockTransactionRepository

logger = logging.getLogger(__name__)


def build_items(
    part_repo: PartRepository,
    specs: list[ItemSpec],
    source_location: str | None = None,
    destination_location: str | None = None,
) -> list[StockTransactionItem]:
    """Resolve item specs against the part store.

    Transaction-level locations fill in items that do not name their own.
    """
    items: list[StockTransactionItem] = []
    for spec in specs:
        part = part_repo.get_by_id(spec.part_id)
        if part is None:
            raise EntityNotFoundError(f"Part not found: '{spec.part_id}'")

        items.append(
            StockTransactionItem(
                part_id=part.id,
                part_number=part.part_number,
                part_name=part.name,
                quantity=Quantity(spec.quantity),
                unit_cost=Money.of(spec.unit_cost) if spec.unit_cost is not None else None,
                from_location=spec.from_location or source_location,
                to_location=spec.to_location or destination_location,
                notes=spec.notes,
            )
        )
    return items


class CreateTransactionHandler:

    def __init__(
        self,
        transaction_repo: StockTransactionRepository,
        part_repo: PartRepository,
    ) -> None:
        self._transaction_repo = transaction_repo
        self._part_repo = part_repo

    def handle(self, spec: TransactionSpec, actor: Actor) -> TransactionDTO:
        transaction_type = parse_choice(TransactionType, spec.transaction_type, "transaction type")
        priority = parse_choice(Priority, spec.priority, "priority")
        direction = (
            parse_choice(AdjustmentDirection, spec.adjustment_direction, "adjustment direction")
            if spec.adjustment_direction
            else None
        )
        recipient_type = (
            parse_choice(RecipientType, spec.recipient_type, "recipient type")
            if spec.recipient_type
            else None
        )

        items = build_items(
            self._part_repo,
            spec.items,
            source_location=spec.source_location,
            destination_location=spec.destination_location,
        )

        # Validate before burning a number from the period sequence.
        transaction = StockTransaction.create(
            transaction_number="",
            transaction_type=transaction_type,
            department=spec.department or actor.department,
            description=spec.description,
            items=items,
            created_by=actor.id,
            created_by_name=actor.name,
            priority=priority,
            adjustment_direction=direction,
            reference_number=spec.reference_number,
            source_location=spec.source_location,
            destination_location=spec.destination_location,
            supplier=spec.supplier,
            recipient=spec.recipient,
            recipient_type=recipient_type,
            technician=spec.technician,
            asset_id=spec.asset_id,
            asset_name=spec.asset_name,
            work_order_id=spec.work_order_id,
            work_order_number=spec.work_order_number,
            notes=spec.notes,
        )
        transaction.transaction_number = self._transaction_repo.next_transaction_number(
            datetime.now(timezone.utc)
        )
        self._transaction_repo.save(transaction)

        logger.info(
            "Created %s transaction %s with %d item(s)",
            transaction_type.value,
            transaction.transaction_number,
            transaction.total_items,
        )
        return TransactionDTO.from_domain(transaction)

"""Application service: Add Part use case.

A stock part registered with an opening quantity does not get that
quantity written directly.  The record starts at zero and an
auto-generated receipt is submitted and approved, so the opening stock
shows up in the transaction history like any other movement.  If the
automatic approval is rejected, the receipt is left pending for a
person to approve.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass

from sims.application.change_transaction_status import ChangeTransactionStatusHandler
from sims.application.create_transaction import CreateTransactionHandler
from sims.application.dto import (
    Actor,
    ItemSpec,
    PartDTO,
    PartSpec,
    TransactionResult,
    TransactionSpec,
)
from sims.application.show_inventory import part_to_dto
from sims.domain.exceptions import ValidationError
from sims.domain.model.part import Part
from sims.domain.model.stock_transaction import OPENING_STOCK_PREFIX
from sims.domain.model.value_objects import Money
from sims.domain.repository.audit_log import AuditLog
from sims.domain.repository.inventory_history_repository import InventoryHistoryRepository
from sims.domain.repository.part_repository import PartRepository
from sims.domain.repository.stock_transaction_repository import StockTransactionRepository

logger = logging.getLogger(__name__)

# Receipts need a supplier; opening stock of an unsourced part gets this one.
UNKNOWN_SUPPLIER = "External Supplier"


@dataclass(frozen=True)
class AddPartResult:
    part: PartDTO
    receipt: TransactionResult | None
    message: str


class AddPartHandler:

    def __init__(
        self,
        part_repo: PartRepository,
        transaction_repo: StockTransactionRepository,
        audit_log: AuditLog | None = None,
        history: InventoryHistoryRepository | None = None,
    ) -> None:
        self._part_repo = part_repo
        self._transaction_repo = transaction_repo
        self._audit_log = audit_log
        self._history = history

    def handle(self, spec: PartSpec, actor: Actor) -> AddPartResult:
        for label, value in (
            ("Part number", spec.part_number),
            ("Part name", spec.name),
            ("Department", spec.department),
            ("Location", spec.location),
        ):
            if not value or not value.strip():
                raise ValidationError(f"{label} is required")
        if spec.quantity < 0:
            raise ValidationError("Initial quantity cannot be negative")
        if spec.min_stock_level < 0:
            raise ValidationError("Minimum stock level cannot be negative")

        existing = self._part_repo.find_by_number_and_location(
            spec.part_number.strip(), spec.location.strip()
        )
        if existing is not None:
            raise ValidationError(
                f"Part {spec.part_number} already exists at {spec.location}"
            )

        via_receipt = spec.is_stock_item and spec.quantity > 0
        part = Part(
            id=uuid.uuid4().hex[:12],
            part_number=spec.part_number.strip(),
            name=spec.name.strip(),
            department=spec.department.strip(),
            location=spec.location.strip(),
            # Non-stock parts are outside reconciliation; keep the figure as given.
            quantity=0 if via_receipt else spec.quantity,
            min_stock_level=spec.min_stock_level,
            unit_price=Money.of(spec.unit_price),
            is_stock_item=spec.is_stock_item,
            supplier=spec.supplier.strip() if spec.supplier else None,
        )
        self._part_repo.save(part)

        if not via_receipt:
            return AddPartResult(
                part=part_to_dto(part), receipt=None, message=f"Part {part.part_number} added"
            )

        receipt = self._receive_initial_stock(part, spec, actor)
        stored = self._part_repo.get_by_id(part.id) or part
        if receipt.ok:
            message = (
                f"Part {part.part_number} added; opening stock received via "
                f"{receipt.transaction.transaction_number}"
            )
        else:
            message = (
                f"Part {part.part_number} added; receipt "
                f"{receipt.transaction.transaction_number} needs manual approval"
            )
        return AddPartResult(part=part_to_dto(stored), receipt=receipt, message=message)

    def _receive_initial_stock(
        self, part: Part, spec: PartSpec, actor: Actor
    ) -> TransactionResult:
        create = CreateTransactionHandler(self._transaction_repo, self._part_repo)
        draft = create.handle(
            TransactionSpec(
                transaction_type="receipt",
                description=(
                    f"Initial inventory receipt for part {part.part_number} - {part.name}"
                ),
                items=[
                    ItemSpec(
                        part_id=part.id,
                        quantity=spec.quantity,
                        unit_cost=spec.unit_price,
                        to_location=part.location,
                        notes=f"Initial inventory for new part: {part.name}",
                    )
                ],
                department=part.department,
                reference_number=f"{OPENING_STOCK_PREFIX}{part.part_number}",
                supplier=part.supplier or UNKNOWN_SUPPLIER,
            ),
            actor,
        )

        status = ChangeTransactionStatusHandler(
            self._transaction_repo,
            self._part_repo,
            audit_log=self._audit_log,
            history=self._history,
        )
        submitted = status.handle(draft.id, "pending", actor)
        if not submitted.ok:
            return submitted

        approved = status.handle(
            draft.id,
            "approved",
            actor,
            notes="Auto-approved: Initial inventory setup for new part creation",
        )
        if not approved.ok:
            logger.warning(
                "Auto-approval of %s failed: %s",
                draft.transaction_number,
                approved.error.message if approved.error else "unknown",
            )
        return approved
